import anyio
from bson import ObjectId

from conftest import COMPANY_ID, make_user


def test_root_and_health(client):
    assert client.get("/").status_code == 200
    assert client.get("/health").json() == {"status": "ok"}


def test_timer_lifecycle(client):
    assert client.get("/api/v1/timer/can-start").json()["can_start"] is True

    r = client.post("/api/v1/timer/start", json={"work_description": "packing"})
    assert r.status_code == 200
    assert r.json()["workday"]["active_timer"]["work_description"] == "packing"

    r = client.post("/api/v1/timer/start", json={})
    assert r.status_code == 409
    assert r.json()["code"] == "conflict"

    r = client.post("/api/v1/timer/pause")
    assert r.json()["message"] == "Timer paused"
    r = client.post("/api/v1/timer/pause")
    assert r.json()["message"] == "Timer resumed"

    r = client.put("/api/v1/timer/update", json={"work_description": "shipping"})
    assert r.status_code == 200

    active = client.get("/api/v1/timer/active").json()
    assert active["work_description"] == "shipping"

    r = client.post("/api/v1/timer/split", json={"work_description": "returns"})
    assert r.status_code == 200
    assert r.json()["session"]["work_description"] == "shipping"

    r = client.post("/api/v1/timer/stop")
    assert r.status_code == 200
    body = r.json()
    assert body["workday"]["active_timer"] is None
    assert len(body["workday"]["sessions"]) == 2

    assert client.get("/api/v1/timer/active").json() is None
    r = client.post("/api/v1/timer/stop")
    assert r.status_code == 409

    report = client.get("/api/v1/timer/sessions").json()
    assert {g["work_description"] for g in report["grouped"]} == {"shipping", "returns"}

    workday_id = body["workday"]["id"]
    session_id = body["session"]["id"]
    r = client.delete(f"/api/v1/timer/sessions/{workday_id}/{session_id}")
    assert r.status_code == 200
    assert len(r.json()["sessions"]) == 1


def test_can_start_reports_weekend_denial(client, db):
    anyio.run(db["settings"].insert_one, {"company_id": COMPANY_ID, "work_on_weekends": False})
    body = client.get("/api/v1/timer/can-start", params={"date": "2025-06-07"}).json()
    assert body == {
        "can_start": False,
        "reason": "weekend",
        "message": "Cannot start the timer on a weekend (your team does not work on weekends)",
        "holiday_name": None,
    }


def test_sessions_require_month_and_year_together(client):
    r = client.get("/api/v1/timer/sessions", params={"month": 6})
    assert r.status_code == 422
    assert r.json()["code"] == "invalid_input"


def test_supervisor_view_forbidden_for_peers(client, db):
    worker = make_user()
    anyio.run(db["users"].insert_one, {"_id": ObjectId(worker["id"]), "company_id": COMPANY_ID, "supervisor_ids": []})
    r = client.get(f"/api/v1/timer/sessions/user/{worker['id']}")
    assert r.status_code == 403
    assert r.json()["code"] == "forbidden"


def test_qr_code_management_requires_admin(client, current):
    r = client.post("/api/v1/qr/codes", json={"name": "Front door"})
    assert r.status_code == 403

    current["user"] = make_user(role="admin")
    r = client.post("/api/v1/qr/codes", json={"name": "Front door"})
    assert r.status_code == 201
    created = r.json()
    assert client.get("/api/v1/qr/codes").json()[0]["code"] == created["code"]
    assert client.get(f"/api/v1/qr/verify/{created['code']}").json()["name"] == "Front door"

    assert client.delete(f"/api/v1/qr/codes/{created['id']}").status_code == 204
    assert client.get(f"/api/v1/qr/verify/{created['code']}").status_code == 404


def test_qr_scan_entry_and_exit(client, db):
    anyio.run(db["qr_codes"].insert_one, {"company_id": COMPANY_ID, "code": "gate-1", "name": "Gate", "is_active": True})

    assert client.post("/api/v1/qr/scan", json={"code": "gate-1"}).json()["type"] == "entry"
    assert client.get("/api/v1/timer/active").json()["qr_code_id"] is not None
    assert client.post("/api/v1/qr/scan", json={"code": "gate-1"}).json()["type"] == "exit"
    assert client.get("/api/v1/timer/active").json() is None

    entries = client.get("/api/v1/qr/entries/today").json()
    assert len(entries) == 1
    assert entries[0]["qr_code_name"] == "Gate"


def test_qr_scan_errors(client):
    r = client.post("/api/v1/qr/scan", json={"code": ""})
    assert r.status_code == 422
    r = client.post("/api/v1/qr/scan", json={"code": "missing"})
    assert r.status_code == 404
    assert r.json()["code"] == "not_found"


def test_manual_workdays(client):
    r = client.post("/api/v1/workdays", json={"date": "2025-06-02", "hours_worked": 8, "real_time_day_worked": "08:00-16:00"})
    assert r.status_code == 201
    workday = r.json()
    assert workday["entry_mode"] == "manual"
    assert workday["real_time_day_worked"] == "08:00-16:00"

    r = client.post("/api/v1/workdays", json={"date": "2025-06-02", "hours_worked": 4})
    assert r.status_code == 409

    r = client.get("/api/v1/timer/can-start", params={"date": "2025-06-02"})
    assert r.json()["reason"] == "manual_entry_exists"

    listed = client.get("/api/v1/workdays", params={"from": "2025-06-01", "to": "2025-06-30"}).json()
    assert [w["id"] for w in listed] == [workday["id"]]

    assert client.delete(f"/api/v1/workdays/{workday['id']}").status_code == 204
    assert client.get("/api/v1/workdays").json() == []


def test_holidays_in_range(client, db):
    anyio.run(db["settings"].insert_one, {"company_id": COMPANY_ID, "include_public_holidays": True})
    r = client.get("/api/v1/holidays", params={"from": "2025-04-01", "to": "2025-05-31"})
    assert [h["date"] for h in r.json()] == ["2025-04-20", "2025-04-21", "2025-05-01", "2025-05-03"]

    r = client.get("/api/v1/holidays", params={"from": "2025-05-31", "to": "2025-04-01"})
    assert r.status_code == 422
