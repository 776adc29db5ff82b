from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from main import app
from worktime.core.security import get_current_user
from worktime.db.mongo import get_mongo_db
from worktime.services.locks import UserLocks
from worktime.services.qr_bridge import QRBridge
from worktime.services.timer_service import TimerService


UTC = ZoneInfo("UTC")
COMPANY_ID = ObjectId("6562a0f0a0a0a0a0a0a0a0a0")
OTHER_COMPANY_ID = ObjectId("6562a0f0a0a0a0a0a0a0aaaa")


def at(day: str, hhmm: str) -> datetime:
    """Naive UTC timestamp, e.g. at("2025-06-02", "09:00")."""
    return datetime.fromisoformat(f"{day}T{hhmm}:00")


def make_user(role: str = "employee", company_id: ObjectId = COMPANY_ID, supervisor_ids=()) -> dict:
    return {
        "id": str(ObjectId()),
        "first_name": "Test",
        "last_name": role.title(),
        "email": f"{role}@example.com",
        "company_id": str(company_id),
        "role": role,
        "supervisor_ids": [str(s) for s in supervisor_ids],
    }


def user_document(user: dict) -> dict:
    return {
        "_id": ObjectId(user["id"]),
        "company_id": ObjectId(user["company_id"]),
        "first_name": user["first_name"],
        "last_name": user["last_name"],
        "email": user["email"],
        "role": user["role"],
        "supervisor_ids": [ObjectId(s) for s in user["supervisor_ids"]],
    }


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def db():
    return AsyncMongoMockClient()["worktime_test"]


@pytest.fixture
def user():
    return make_user()


@pytest.fixture
def timers(db):
    return TimerService(db, tz=UTC, locks=UserLocks())


@pytest.fixture
def bridge(db, timers):
    return QRBridge(db, timers)


@pytest.fixture
def current(user):
    """Mutable holder for the user the HTTP client acts as."""
    return {"user": user}


@pytest.fixture
def client(db, current):
    app.dependency_overrides[get_mongo_db] = lambda: db
    app.dependency_overrides[get_current_user] = lambda: current["user"]
    yield TestClient(app)
    app.dependency_overrides.clear()
