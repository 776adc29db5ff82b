import pytest
from bson import ObjectId

from conftest import OTHER_COMPANY_ID, UTC, at, make_user, user_document
from worktime.core.errors import Forbidden, InvalidInput, NotFound
from worktime.services import reporting


pytestmark = pytest.mark.anyio


async def _work(timers, user, day, start, end, **labels):
    await timers.start(user, now=at(day, start), **labels)
    await timers.stop(user, now=at(day, end))


async def test_groups_by_task_then_description(db, timers, user):
    task_id = (await db["tasks"].insert_one({"title": "Inventory"})).inserted_id
    await _work(timers, user, "2025-06-02", "08:00", "11:00", task_id=str(task_id), work_description="count shelves")
    await _work(timers, user, "2025-06-03", "08:00", "09:00", task_id=str(task_id))
    await _work(timers, user, "2025-06-03", "10:00", "11:00", work_description="Email ")
    await _work(timers, user, "2025-06-04", "10:00", "10:30", work_description=" email")
    await _work(timers, user, "2025-07-01", "10:00", "12:00", work_description="july")

    report = await reporting.sessions_for_range(db, user, 6, 2025, tz=UTC)

    assert report["total_minutes"] == 330
    assert report["total_hours"] == 5.5
    assert report["available_dates"] == ["2025-06-02", "2025-06-03", "2025-06-04"]

    inventory, email = report["grouped"]
    assert inventory["task_title"] == "Inventory"
    assert inventory["total_minutes"] == 240
    assert inventory["percentage"] == 72.7
    assert len(inventory["sessions"]) == 2
    assert email["task_id"] is None
    assert email["work_description"] == "Email"
    assert email["total_minutes"] == 90
    assert email["total_hours"] == 1.5
    assert email["percentage"] == 27.3


async def test_minutes_include_overtime_but_not_breaks(db, timers, user):
    await timers.start(user, work_description="shift", now=at("2025-06-02", "09:00"))
    await timers.pause_resume(user, now=at("2025-06-02", "12:00"))
    await timers.pause_resume(user, now=at("2025-06-02", "12:30"))
    await timers.update_active_label(user, is_overtime=True, now=at("2025-06-02", "17:00"))
    await timers.stop(user, now=at("2025-06-02", "18:00"))

    report = await reporting.sessions_for_range(db, user, 6, 2025, tz=UTC)
    assert report["total_minutes"] == 510


async def test_break_only_sessions_are_skipped(db, timers, user):
    await timers.start(user, now=at("2025-06-02", "09:00"))
    await timers.pause_resume(user, now=at("2025-06-02", "10:00"))
    await timers.split(user, work_description="lunch", now=at("2025-06-02", "10:00"))
    await timers.stop(user, now=at("2025-06-02", "10:30"))

    report = await reporting.sessions_for_range(db, user, 6, 2025, tz=UTC)
    assert [g["total_minutes"] for g in report["grouped"]] == [60]


async def test_empty_month(db, user):
    report = await reporting.sessions_for_range(db, user, 2, 2025, tz=UTC)
    assert report == {"grouped": [], "total_minutes": 0, "total_hours": 0, "available_dates": []}


async def test_defaults_to_today(db, timers, user):
    await _work(timers, user, "2025-06-02", "08:00", "09:00")
    await _work(timers, user, "2025-06-03", "08:00", "10:00")
    report = await reporting.sessions_for_range(db, user, now=at("2025-06-03", "12:00"), tz=UTC)
    assert report["available_dates"] == ["2025-06-03"]
    assert report["total_hours"] == 2.0


@pytest.mark.parametrize("month, year", [(6, None), (None, 2025), (0, 2025), (13, 2025)])
async def test_invalid_month_or_year(db, user, month, year):
    with pytest.raises(InvalidInput):
        await reporting.sessions_for_range(db, user, month, year, tz=UTC)


async def test_supervisor_sees_their_people(db, timers):
    supervisor = make_user(role="supervisor")
    worker = make_user(supervisor_ids=[ObjectId(supervisor["id"])])
    await db["users"].insert_one(user_document(worker))
    await _work(timers, worker, "2025-06-02", "08:00", "12:00")

    report = await reporting.sessions_for_user(db, supervisor, worker["id"], 6, 2025, tz=UTC)
    assert report["total_hours"] == 4.0
    assert report["user"]["id"] == worker["id"]

    with pytest.raises(Forbidden):
        await reporting.sessions_for_user(db, make_user(), worker["id"], 6, 2025, tz=UTC)


async def test_admin_sees_company_users_only(db):
    worker = make_user()
    await db["users"].insert_one(user_document(worker))
    admin = make_user(role="admin")
    assert (await reporting.sessions_for_user(db, admin, worker["id"], 6, 2025, tz=UTC))["grouped"] == []

    outsider_admin = make_user(role="admin", company_id=OTHER_COMPANY_ID)
    with pytest.raises(Forbidden):
        await reporting.sessions_for_user(db, outsider_admin, worker["id"], 6, 2025, tz=UTC)


async def test_unknown_user_is_not_found(db, user):
    with pytest.raises(NotFound):
        await reporting.sessions_for_user(db, user, str(ObjectId()), 6, 2025, tz=UTC)
