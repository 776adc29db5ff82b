from __future__ import annotations

from datetime import datetime
from typing import Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from worktime.core.errors import ConflictingState
from worktime.models.workday import WorkdayAggregate


class WorkdayRepository:
    """Persistence for workday aggregates (collection ``workdays``).

    Saves are compare-and-swap on ``version``: a concurrent writer that got
    there first makes the save fail with ConflictingState and nothing is written.
    """

    collection_name = "workdays"

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._col = db[self.collection_name]

    async def get(self, user_id: ObjectId, day: datetime) -> Optional[WorkdayAggregate]:
        doc = await self._col.find_one({"user_id": user_id, "date": day})
        return WorkdayAggregate.from_document(doc) if doc else None

    async def get_by_id(self, workday_id: ObjectId) -> Optional[WorkdayAggregate]:
        doc = await self._col.find_one({"_id": workday_id})
        return WorkdayAggregate.from_document(doc) if doc else None

    async def get_or_new(self, user_id: ObjectId, company_id: Optional[ObjectId], day: datetime) -> WorkdayAggregate:
        existing = await self.get(user_id, day)
        if existing:
            return existing
        return WorkdayAggregate(user_id=user_id, company_id=company_id, date=day)

    async def find_active(self, user_id: ObjectId) -> Optional[WorkdayAggregate]:
        """The aggregate holding the user's open timer, whichever day it started on."""
        doc = await self._col.find_one({"user_id": user_id, "active_timer": {"$ne": None}})
        return WorkdayAggregate.from_document(doc) if doc else None

    async def list_range(self, user_id: ObjectId, start: datetime, end: datetime) -> list[WorkdayAggregate]:
        """Aggregates with ``start <= date < end``, oldest first."""
        cursor = self._col.find({"user_id": user_id, "date": {"$gte": start, "$lt": end}}).sort("date", 1)
        out: list[WorkdayAggregate] = []
        async for doc in cursor:
            out.append(WorkdayAggregate.from_document(doc))
        return out

    async def list_for_user(
        self,
        user_id: ObjectId,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[WorkdayAggregate]:
        q: dict = {"user_id": user_id}
        if start:
            q["date"] = {"$gte": start}
        if end:
            q.setdefault("date", {}).update({"$lte": end})
        cursor = self._col.find(q).sort("date", -1)
        out: list[WorkdayAggregate] = []
        async for doc in cursor:
            out.append(WorkdayAggregate.from_document(doc))
        return out

    async def save(self, aggregate: WorkdayAggregate, now: datetime) -> WorkdayAggregate:
        expected = aggregate.version
        aggregate.updated_at = now
        if expected == 0:
            aggregate.created_at = aggregate.created_at or now
            aggregate.version = 1
            try:
                await self._col.insert_one(aggregate.to_document())
            except DuplicateKeyError as exc:
                aggregate.version = expected
                raise ConflictingState("Workday was modified concurrently, please retry") from exc
            return aggregate
        aggregate.version = expected + 1
        doc = aggregate.to_document()
        doc.pop("_id")
        try:
            res = await self._col.update_one({"_id": aggregate.id, "version": expected}, {"$set": doc})
        except DuplicateKeyError as exc:
            # Another day of this user already holds the open timer
            aggregate.version = expected
            raise ConflictingState("Workday was modified concurrently, please retry") from exc
        if res.matched_count == 0:
            aggregate.version = expected
            raise ConflictingState("Workday was modified concurrently, please retry")
        return aggregate

    async def delete(self, aggregate: WorkdayAggregate) -> bool:
        res = await self._col.delete_one({"_id": aggregate.id, "version": aggregate.version})
        return res.deleted_count > 0
