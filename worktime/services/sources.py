"""Read-only lookups into collections owned by other parts of the platform."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase


DEFAULT_TENANT_SETTINGS = {
    "work_on_weekends": True,
    "include_public_holidays": False,
    "include_custom_holidays": False,
    "custom_holidays": [],
}

APPROVED_LEAVE_STATUSES = ("approved", "accepted")


def _as_date(value) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        return datetime.fromisoformat(value[:10])
    return datetime(value.year, value.month, value.day)


async def get_user(db: AsyncIOMotorDatabase, user_id: ObjectId) -> Optional[dict]:
    user = await db["users"].find_one({"_id": user_id})
    if not user:
        return None
    return {
        "id": str(user["_id"]),
        "company_id": str(user.get("company_id")) if user.get("company_id") else None,
        "role": user.get("role", "employee"),
        "first_name": user.get("first_name", ""),
        "last_name": user.get("last_name", ""),
        "supervisor_ids": [str(s) for s in user.get("supervisor_ids", [])],
    }


async def get_tenant_settings(db: AsyncIOMotorDatabase, company_id: Optional[ObjectId]) -> dict:
    s = await db["settings"].find_one({"company_id": company_id}) if company_id else None
    merged = dict(DEFAULT_TENANT_SETTINGS)
    for key in DEFAULT_TENANT_SETTINGS:
        if s and s.get(key) is not None:
            merged[key] = s[key]
    return merged


async def get_approved_leave_ranges(db: AsyncIOMotorDatabase, user_id: ObjectId) -> list[dict]:
    """Inclusive whole-day ranges of the user's approved leaves."""
    cursor = db["leaves"].find({"user_id": user_id, "status": {"$in": list(APPROVED_LEAVE_STATUSES)}})
    ranges: list[dict] = []
    async for leave in cursor:
        start = _as_date(leave.get("start_date"))
        end = _as_date(leave.get("end_date"))
        if start and end:
            ranges.append({"start_date": start, "end_date": end})
    return ranges


async def resolve_task(db: AsyncIOMotorDatabase, task_id: ObjectId) -> Optional[dict]:
    task = await db["tasks"].find_one({"_id": task_id})
    if not task:
        return None
    return {"id": str(task["_id"]), "title": task.get("title", "")}


async def resolve_qr_code(db: AsyncIOMotorDatabase, code: str) -> Optional[dict]:
    qr = await db["qr_codes"].find_one({"code": code})
    if not qr:
        return None
    return {
        "id": qr["_id"],
        "company_id": qr.get("company_id"),
        "active": bool(qr.get("is_active", True)),
        "name": qr.get("name", ""),
        "code": qr.get("code"),
    }
