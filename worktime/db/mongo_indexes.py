from motor.motor_asyncio import AsyncIOMotorDatabase
from worktime.db.mongo import get_mongo_db


async def ensure_indexes(db: AsyncIOMotorDatabase | None = None) -> None:
    """Create required MongoDB indexes (idempotent)."""
    if db is None:
        db = get_mongo_db()

    workdays = db["workdays"]
    # One aggregate per user and calendar day
    await workdays.create_index([("user_id", 1), ("date", 1)], unique=True, name="uniq_workday_user_date")
    # At most one open timer per user across all days
    await workdays.create_index(
        [("user_id", 1)],
        unique=True,
        partialFilterExpression={"active_timer": {"$type": "object"}},
        name="uniq_workday_active_timer",
    )
    await workdays.create_index([("company_id", 1), ("date", 1)], name="idx_workday_company_date")

    scan_entries = db["scan_entries"]
    await scan_entries.create_index([("user_id", 1), ("date", -1)], name="idx_scan_user_date")
    await scan_entries.create_index([("qr_code_id", 1), ("date", -1)], name="idx_scan_code_date")
    await scan_entries.create_index([("user_id", 1), ("qr_code_id", 1), ("exit_time", 1), ("entry_time", -1)], name="idx_scan_open_entry")

    qr_codes = db["qr_codes"]
    await qr_codes.create_index([("code", 1)], unique=True, name="uniq_qr_code")
    await qr_codes.create_index([("company_id", 1), ("is_active", 1)], name="idx_qr_company_active")

    settings = db["settings"]
    # One settings document per company
    await settings.create_index([("company_id", 1)], unique=True, name="uniq_company_id_settings")

    leaves = db["leaves"]
    await leaves.create_index([("user_id", 1), ("status", 1)], name="idx_leave_user_status")
    await leaves.create_index([("company_id", 1), ("start_date", 1), ("end_date", 1)], name="idx_company_leave_dates")

    users = db["users"]
    await users.create_index([("company_id", 1)], name="idx_company_id")
