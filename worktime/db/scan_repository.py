from __future__ import annotations

from datetime import datetime
from typing import Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase


class ScanEntryRepository:
    """Raw QR entry/exit pairs (collection ``scan_entries``)."""

    collection_name = "scan_entries"

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._col = db[self.collection_name]

    async def find_open(self, user_id: ObjectId, qr_code_id: ObjectId, since: datetime) -> Optional[dict]:
        """Latest entry for this code without an exit, entered at or after ``since``."""
        return await self._col.find_one(
            {
                "user_id": user_id,
                "qr_code_id": qr_code_id,
                "exit_time": None,
                "entry_time": {"$gte": since},
            },
            sort=[("entry_time", -1)],
        )

    async def create_entry(
        self,
        *,
        user_id: ObjectId,
        company_id: Optional[ObjectId],
        qr_code_id: ObjectId,
        entry_time: datetime,
        day: datetime,
    ) -> dict:
        doc = {
            "user_id": user_id,
            "company_id": company_id,
            "qr_code_id": qr_code_id,
            "entry_time": entry_time,
            "exit_time": None,
            "date": day,
            "created_at": entry_time,
            "updated_at": entry_time,
        }
        res = await self._col.insert_one(doc)
        doc["_id"] = res.inserted_id
        return doc

    async def close(self, entry: dict, exit_time: datetime) -> dict:
        await self._col.update_one(
            {"_id": entry["_id"], "exit_time": None},
            {"$set": {"exit_time": exit_time, "updated_at": exit_time}},
        )
        entry["exit_time"] = exit_time
        return entry

    async def list_for_day(self, user_id: ObjectId, day: datetime) -> list[dict]:
        cursor = self._col.find({"user_id": user_id, "date": day}).sort("entry_time", -1)
        return [doc async for doc in cursor]
