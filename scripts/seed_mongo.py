from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

from bson import ObjectId

from worktime.db.mongo import get_mongo_db, close_mongo_client
from worktime.db.mongo_indexes import ensure_indexes
from worktime.core.security import create_jwt


COMPANY_ID = ObjectId("6562a0f0a0a0a0a0a0a0a0a0")  # stable id for idempotence


async def seed_company(db):
    now = datetime.utcnow()
    company = {
        "_id": COMPANY_ID,
        "name": "Worktime Sp. z o.o.",
        "created_at": now,
        "updated_at": now,
    }
    await db["companies"].update_one({"_id": COMPANY_ID}, {"$setOnInsert": company}, upsert=True)


async def seed_settings(db):
    now = datetime.utcnow()
    await db["settings"].update_one(
        {"company_id": COMPANY_ID},
        {
            "$setOnInsert": {
                "company_id": COMPANY_ID,
                "work_on_weekends": False,
                "include_public_holidays": True,
                "include_custom_holidays": True,
                "custom_holidays": [
                    {"date": f"{now.year}-06-30", "name": "Company Day"},
                ],
                "created_at": now,
                "updated_at": now,
            }
        },
        upsert=True,
    )


async def seed_users(db):
    now = datetime.utcnow()
    admin_id = ObjectId("6562a0f0a0a0a0a0a0a0a0a1")
    supervisor_id = ObjectId("6562a0f0a0a0a0a0a0a0a0a2")
    users = [
        {
            "_id": admin_id,
            "email": "admin@worktime.local",
            "first_name": "Admin",
            "last_name": "User",
            "role": "admin",
            "company_id": COMPANY_ID,
            "supervisor_ids": [],
            "created_at": now,
            "updated_at": now,
        },
        {
            "_id": supervisor_id,
            "email": "supervisor@worktime.local",
            "first_name": "Sam",
            "last_name": "Supervisor",
            "role": "supervisor",
            "company_id": COMPANY_ID,
            "supervisor_ids": [],
            "created_at": now,
            "updated_at": now,
        },
        {
            "_id": ObjectId("6562a0f0a0a0a0a0a0a0a0a3"),
            "email": "alice@worktime.local",
            "first_name": "Alice",
            "last_name": "Smith",
            "role": "employee",
            "company_id": COMPANY_ID,
            "supervisor_ids": [supervisor_id],
            "created_at": now,
            "updated_at": now,
        },
    ]
    for u in users:
        await db["users"].update_one({"email": u["email"]}, {"$setOnInsert": u}, upsert=True)
    return users


async def seed_tasks(db):
    tasks = [
        {"_id": ObjectId("6562a0f0a0a0a0a0a0a0a0e1"), "company_id": COMPANY_ID, "title": "Warehouse inventory"},
        {"_id": ObjectId("6562a0f0a0a0a0a0a0a0a0e2"), "company_id": COMPANY_ID, "title": "Customer support"},
    ]
    for t in tasks:
        await db["tasks"].update_one({"_id": t["_id"]}, {"$setOnInsert": t}, upsert=True)


async def seed_leaves(db, users):
    now = datetime.utcnow()
    employee = users[-1]
    start = datetime(now.year, now.month, now.day) + timedelta(days=14)
    leave = {
        "_id": ObjectId("6562a0f0a0a0a0a0a0a0a0c1"),
        "company_id": COMPANY_ID,
        "user_id": employee["_id"],
        "leave_type": "annual",
        "start_date": start,
        "end_date": start + timedelta(days=4),
        "status": "approved",
        "created_at": now,
        "updated_at": now,
    }
    await db["leaves"].update_one({"_id": leave["_id"]}, {"$setOnInsert": leave}, upsert=True)


async def seed_qr_code(db, users):
    now = datetime.utcnow()
    qr = {
        "_id": ObjectId("6562a0f0a0a0a0a0a0a0a0f1"),
        "company_id": COMPANY_ID,
        "code": f"{str(COMPANY_ID)[-6:]}-00000000deadbeef",
        "name": "Main entrance",
        "is_active": True,
        "created_by": users[0]["_id"],
        "created_at": now,
        "updated_at": now,
    }
    await db["qr_codes"].update_one({"_id": qr["_id"]}, {"$setOnInsert": qr}, upsert=True)
    return qr


async def main():
    db = get_mongo_db()
    # Ensure indexes before inserting
    await ensure_indexes(db)

    await seed_company(db)
    await seed_settings(db)
    users = await seed_users(db)
    await seed_tasks(db)
    await seed_leaves(db, users)
    qr = await seed_qr_code(db, users)

    print("MongoDB seed completed.")
    print(f"QR code: {qr['code']}")
    for u in users:
        token = create_jwt({"sub": str(u["_id"]), "company_id": str(COMPANY_ID)}, timedelta(days=7))
        print(f"{u['email']}: Bearer {token}")
    close_mongo_client()


if __name__ == "__main__":
    asyncio.run(main())
