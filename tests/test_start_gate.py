from datetime import datetime

import pytest
from bson import ObjectId

from conftest import COMPANY_ID, at
from worktime.core.errors import PolicyDenied
from worktime.services import workday_service


pytestmark = pytest.mark.anyio

SATURDAY = datetime(2025, 6, 7)
MONDAY = datetime(2025, 6, 9)


async def _no_weekends(db, **extra):
    await db["settings"].insert_one({"company_id": COMPANY_ID, "work_on_weekends": False, **extra})


async def test_weekend_denied_when_company_does_not_work_weekends(db, timers, user):
    await _no_weekends(db)
    decision = await timers.can_start(user, SATURDAY)
    assert not decision.allowed
    assert decision.reason == "weekend"
    assert (await timers.can_start(user, MONDAY)).allowed


async def test_weekend_allowed_by_default(timers, user):
    assert (await timers.can_start(user, SATURDAY)).allowed


async def test_approved_leave_blocks_covered_days(db, timers, user):
    await db["leaves"].insert_one({
        "user_id": ObjectId(user["id"]),
        "status": "approved",
        "start_date": datetime(2025, 6, 10),
        "end_date": datetime(2025, 6, 12),
    })
    decision = await timers.can_start(user, datetime(2025, 6, 11))
    assert decision.reason == "leave"
    assert (await timers.can_start(user, datetime(2025, 6, 12))).reason == "leave"
    assert (await timers.can_start(user, datetime(2025, 6, 13))).allowed


async def test_requested_leave_does_not_block(db, timers, user):
    await db["leaves"].insert_one({
        "user_id": ObjectId(user["id"]),
        "status": "requested",
        "start_date": "2025-06-10",
        "end_date": "2025-06-12",
    })
    assert (await timers.can_start(user, datetime(2025, 6, 11))).allowed


async def test_public_holiday_denied_with_name(db, timers, user):
    await db["settings"].insert_one({"company_id": COMPANY_ID, "include_public_holidays": True})
    decision = await timers.can_start(user, datetime(2025, 11, 11))
    assert decision.reason == "holiday"
    assert decision.holiday_name == "Independence Day"
    assert "Independence Day" in decision.message


async def test_manual_entry_takes_precedence(db, timers, user):
    await _no_weekends(db)
    await workday_service.add_manual_workday(db, user, day=SATURDAY.date(), hours_worked=4, now=at("2025-06-07", "18:00"))
    decision = await timers.can_start(user, SATURDAY)
    assert decision.reason == "manual_entry_exists"


async def test_denial_is_idempotent_and_writes_nothing(db, timers, user):
    await _no_weekends(db)
    first = await timers.can_start(user, SATURDAY)
    second = await timers.can_start(user, SATURDAY)
    assert first == second
    assert await db["workdays"].count_documents({}) == 0


async def test_start_refused_by_gate(db, timers, user):
    await _no_weekends(db)
    with pytest.raises(PolicyDenied) as exc:
        await timers.start(user, now=at("2025-06-07", "09:00"))
    assert exc.value.code == "weekend"
    assert await db["workdays"].count_documents({}) == 0


async def test_absence_only_manual_day_is_denied_like_start(db, timers, user):
    await workday_service.add_manual_workday(db, user, day=MONDAY.date(), hours_worked=0, absence_type="sick")
    decision = await timers.can_start(user, MONDAY)
    assert decision.reason == "manual_entry_exists"
    with pytest.raises(PolicyDenied) as exc:
        await timers.start(user, now=at("2025-06-09", "09:00"))
    assert exc.value.code == "manual_entry_exists"


async def test_accepted_leave_blocks_like_approved(db, timers, user):
    await db["leaves"].insert_one({
        "user_id": ObjectId(user["id"]),
        "status": "accepted",
        "start_date": datetime(2025, 6, 10),
        "end_date": datetime(2025, 6, 10),
    })
    assert (await timers.can_start(user, datetime(2025, 6, 10))).reason == "leave"
