from __future__ import annotations

import asyncio
import weakref


class UserLocks:
    """One asyncio.Lock per user; serializes timer mutations within a process."""

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def for_user(self, user_id) -> asyncio.Lock:
        key = str(user_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock


user_locks = UserLocks()
