from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from worktime.core.config import settings
from worktime.core.errors import Forbidden, InvalidInput, NotFound
from worktime.db.scan_repository import ScanEntryRepository
from worktime.models.workday import ClosedSession
from worktime.services import sources
from worktime.services.timer_service import TimerService
from worktime.utils.dates import local_day, utcnow
from worktime.utils.ids import parse_object_id


log = logging.getLogger("uvicorn.error")


class QRBridge:
    """Turns badge scans into timer starts and stops.

    A scan is an exit when the user has an open raw entry for the code (within
    ``max_shift_hours``) or a timer started from the code; otherwise it is an
    entry. Entries go through the same start gate as manual starts.
    """

    def __init__(self, db: AsyncIOMotorDatabase, timers: TimerService, *, max_shift_hours: Optional[int] = None) -> None:
        self._db = db
        self.timers = timers
        self.scans = ScanEntryRepository(db)
        self.max_shift = timedelta(hours=max_shift_hours or settings.QR_MAX_SHIFT_HOURS)

    async def _resolve_for_user(self, code: Optional[str], company_id: Optional[ObjectId]) -> dict:
        if not code or not str(code).strip():
            raise InvalidInput("QR code is required")
        qr = await sources.resolve_qr_code(self._db, str(code).strip())
        if not qr or not qr["active"]:
            raise NotFound("Invalid QR code")
        if company_id is None or qr["company_id"] != company_id:
            raise Forbidden("QR code does not belong to your team")
        return qr

    async def scan(self, user: dict, code: Optional[str], *, now: Optional[datetime] = None) -> dict:
        user_id, company_id = self.timers.user_ids(user)
        qr = await self._resolve_for_user(code, company_id)
        now = now or utcnow()
        async with self.timers.locks.for_user(user_id):
            open_entry = await self.scans.find_open(user_id, qr["id"], now - self.max_shift)
            active = await self.timers.workdays.find_active(user_id)
            timer_matches = bool(active and active.active_timer and active.active_timer.qr_code_id == qr["id"])
            if open_entry or timer_matches:
                return await self._exit(user, qr, open_entry, active if timer_matches else None, now)
            return await self._entry(user, qr, now)

    async def _entry(self, user: dict, qr: dict, now: datetime) -> dict:
        user_id, company_id = self.timers.user_ids(user)
        day = local_day(now, self.timers.tz)
        # The raw entry is written only once the timer is running: a refused scan leaves no trace
        await self.timers.ensure_can_start(user_id, company_id, day)
        await self.timers.start_locked(user, now=now, qr_code_id=qr["id"])
        entry = await self.scans.create_entry(
            user_id=user_id,
            company_id=company_id,
            qr_code_id=qr["id"],
            entry_time=now,
            day=day,
        )
        log.info("QR entry for user %s at %s (%s)", user_id, qr["name"], now.isoformat())
        return {"type": "entry", "entry_time": entry["entry_time"], "exit_time": None, "message": "Entry registered"}

    async def _exit(self, user: dict, qr: dict, open_entry: Optional[dict], active, now: datetime) -> dict:
        user_id, _ = self.timers.user_ids(user)
        entry_time = open_entry["entry_time"] if open_entry else active.active_timer.start_time
        if active is not None:
            await self.timers.stop_locked(active, now)
        elif open_entry is not None:
            await self._record_legacy_session(user, qr, open_entry, now)
        if open_entry is not None:
            await self.scans.close(open_entry, now)
        log.info("QR exit for user %s at %s (%s)", user_id, qr["name"], now.isoformat())
        return {"type": "exit", "entry_time": entry_time, "exit_time": now, "message": "Exit registered"}

    async def _record_legacy_session(self, user: dict, qr: dict, entry: dict, now: datetime) -> Optional[ClosedSession]:
        """Lower-fidelity fallback used when no timer carries this code.

        Builds a session from the raw entry/exit pair only: no break or
        overtime tracking. Skipped when the entry's day already holds a session
        for this code that started at or after the entry, i.e. the QR timer was
        stopped or split by hand and its time is already recorded.
        """
        user_id, company_id = self.timers.user_ids(user)
        day = local_day(entry["entry_time"], self.timers.tz)
        aggregate = await self.timers.workdays.get_or_new(user_id, company_id, day)
        for s in aggregate.sessions:
            if s.qr_code_id == qr["id"] and s.start_time >= entry["entry_time"]:
                return None
        if aggregate.entry_mode != "timer":
            log.warning("QR exit for user %s on manual day %s not recorded", user_id, day.date().isoformat())
            return None
        session = ClosedSession(
            start_time=entry["entry_time"],
            end_time=now,
            qr_code_id=qr["id"],
            source="qr_legacy",
        )
        aggregate.append_session(session)
        await self.timers.workdays.save(aggregate, now)
        log.info("Legacy QR session recorded for user %s on %s", user_id, day.date().isoformat())
        return session

    async def today_scans(self, user: dict, *, now: Optional[datetime] = None) -> list[dict]:
        user_id, _ = self.timers.user_ids(user)
        day = local_day(now or utcnow(), self.timers.tz)
        entries = await self.scans.list_for_day(user_id, day)
        names: dict[ObjectId, str] = {}
        out: list[dict] = []
        for e in entries:
            qid = e.get("qr_code_id")
            if qid not in names:
                qr = await self._db["qr_codes"].find_one({"_id": qid})
                names[qid] = (qr or {}).get("name", "")
            out.append({
                "id": str(e["_id"]),
                "qr_code_id": str(qid),
                "qr_code_name": names[qid],
                "entry_time": e.get("entry_time"),
                "exit_time": e.get("exit_time"),
            })
        return out


# ---------------------- QR code management ----------------------


async def generate_qr_code(db: AsyncIOMotorDatabase, user: dict, name: str, *, now: Optional[datetime] = None) -> dict:
    if not name or not name.strip():
        raise InvalidInput("QR code name is required")
    company_id = parse_object_id(user["company_id"], "company id")
    now = now or utcnow()
    while True:
        code = f"{str(company_id)[-6:]}-{secrets.token_hex(8)}"
        if not await db["qr_codes"].find_one({"code": code}):
            break
    doc = {
        "company_id": company_id,
        "code": code,
        "name": name.strip(),
        "is_active": True,
        "created_by": parse_object_id(user["id"], "user id"),
        "created_at": now,
        "updated_at": now,
    }
    res = await db["qr_codes"].insert_one(doc)
    doc["_id"] = res.inserted_id
    log.info("QR code %s generated for company %s", code, company_id)
    return doc


async def list_qr_codes(db: AsyncIOMotorDatabase, user: dict) -> list[dict]:
    company_id = parse_object_id(user["company_id"], "company id")
    cursor = db["qr_codes"].find({"company_id": company_id, "is_active": True}).sort("created_at", -1)
    return [doc async for doc in cursor]


async def deactivate_qr_code(db: AsyncIOMotorDatabase, user: dict, qr_id, *, now: Optional[datetime] = None) -> None:
    company_id = parse_object_id(user["company_id"], "company id")
    res = await db["qr_codes"].update_one(
        {"_id": parse_object_id(qr_id, "QR code id"), "company_id": company_id},
        {"$set": {"is_active": False, "updated_at": now or utcnow()}},
    )
    if res.matched_count == 0:
        raise NotFound("QR code not found")


async def verify_qr_code(db: AsyncIOMotorDatabase, code: str) -> dict:
    qr = await sources.resolve_qr_code(db, code)
    if not qr or not qr["active"]:
        raise NotFound("Invalid QR code")
    company = await db["companies"].find_one({"_id": qr["company_id"]})
    return {
        "valid": True,
        "code": qr["code"],
        "name": qr["name"],
        "company_id": str(qr["company_id"]),
        "company_name": (company or {}).get("name"),
    }
