from __future__ import annotations

import inspect
from dataclasses import replace
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.testclient import TestClient

from campus_booking.controllers.auth_controller import router as auth_router
from campus_booking.controllers.booking_controller import router as booking_router
from campus_booking.controllers.dashboard_controller import router as dashboard_router
from campus_booking.controllers.room_controller import router as room_router
from campus_booking.repository.booking_repository import BookingRepository
from campus_booking.services.auth_service import AuthService
from campus_booking.services.booking_scheduler import BookingScheduler
from campus_booking.services.statistics_service import BookingStatisticsService
from campus_booking.utils.config import get_settings


NOW = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)
ADMIN_CODE = "admin-secret"
REP_CODE = "rep-secret"
STUDENT_CODE = "student-secret"
ROLE_CODES = {"admin": ADMIN_CODE, "class-representative": REP_CODE, "student": STUDENT_CODE}


def _build_test_app(tmp_path) -> FastAPI:
    settings = replace(
        get_settings(),
        database_path=tmp_path / "booking_api.db",
        admin_access_code=ADMIN_CODE,
        class_rep_access_code=REP_CODE,
        student_access_code=STUDENT_CODE,
    )
    repository = BookingRepository(settings)
    repository.initialize_database()

    app = FastAPI()
    app.include_router(auth_router)
    app.include_router(booking_router)
    app.include_router(room_router)
    app.include_router(dashboard_router)
    app.state.repository = repository
    app.state.booking_scheduler = BookingScheduler(
        repository=repository,
        settings=settings,
        clock=lambda: NOW,
    )
    app.state.statistics_service = BookingStatisticsService(repository=repository, settings=settings)
    app.state.auth_service = AuthService(settings=settings)
    return app


def _login(client: TestClient, user_id: str, role: str) -> dict:
    response = client.post(
        "/auth/login",
        json={
            "user_id": user_id,
            "name": user_id.title(),
            "role": role,
            "access_code": ROLE_CODES[role],
        },
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def _payload(start: str, end: str, room: str = "A304") -> dict:
    return {
        "room": room,
        "date": "2025-03-10",
        "start_time": start,
        "end_time": end,
        "purpose": "Operating systems lab prep",
    }


def test_login_and_identity(tmp_path):
    client = TestClient(_build_test_app(tmp_path))

    bad = client.post(
        "/auth/login",
        json={"user_id": "a", "name": "A", "role": "admin", "access_code": REP_CODE},
    )
    assert bad.status_code == 401

    headers = _login(client, "rep-1", "class-representative")
    me = client.get("/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["role"] == "class-representative"

    assert client.post("/auth/logout", headers=headers).status_code == 204
    assert client.get("/auth/me", headers=headers).status_code == 401


def test_endpoints_require_bearer_token(tmp_path):
    client = TestClient(_build_test_app(tmp_path))

    assert client.get("/bookings").status_code == 401
    assert client.post("/bookings", json=_payload("10:00", "11:00")).status_code == 401
    assert client.get("/rooms/blocks").status_code == 401
    assert client.get("/dashboard/stats").status_code == 401


def test_booking_workflow_over_http(tmp_path):
    client = TestClient(_build_test_app(tmp_path))
    rep = _login(client, "rep-1", "class-representative")
    other_rep = _login(client, "rep-2", "class-representative")
    admin = _login(client, "admin-1", "admin")

    created = client.post("/bookings", json=_payload("10:00", "11:00"), headers=rep)
    assert created.status_code == 201
    first = created.json()
    assert first["status"] == "pending"
    assert first["start_time"] == "10:00"

    conflict = client.post("/bookings", json=_payload("10:30", "11:30"), headers=other_rep)
    assert conflict.status_code == 409
    detail = conflict.json()["detail"]
    assert detail["code"] == "slot_conflict"
    assert detail["conflicting_booking"]["id"] == first["id"]

    touching = client.post("/bookings", json=_payload("11:00", "12:00"), headers=other_rep)
    assert touching.status_code == 201

    availability = client.get(
        "/bookings/check-availability",
        params={"room": "A304", "date": "2025-03-10", "start_time": "10:30", "end_time": "11:30"},
        headers=rep,
    )
    assert availability.status_code == 200
    body = availability.json()
    assert body["available"] is False
    assert body["conflicting_booking"]["id"] == first["id"]
    assert [item["start_time"] for item in body["other_bookings_same_day"]] == ["10:00", "11:00"]

    rejected = client.patch(
        f"/bookings/{first['id']}/reject",
        json={"admin_notes": "Room reserved for exams"},
        headers=admin,
    )
    assert rejected.status_code == 200
    assert rejected.json()["status"] == "rejected"
    assert rejected.json()["processed_by"] == "admin-1"

    again = client.patch(f"/bookings/{first['id']}/approve", headers=admin)
    assert again.status_code == 409
    assert again.json()["detail"]["code"] == "already_processed"
    assert again.json()["detail"]["status"] == "rejected"

    resubmitted = client.post("/bookings", json=_payload("10:30", "11:00"), headers=other_rep)
    assert resubmitted.status_code == 201

    approved = client.patch(f"/bookings/{resubmitted.json()['id']}/approve", headers=admin)
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"


def test_permission_and_validation_errors(tmp_path):
    client = TestClient(_build_test_app(tmp_path))
    student = _login(client, "student-1", "student")
    rep = _login(client, "rep-1", "class-representative")

    forbidden = client.post("/bookings", json=_payload("10:00", "11:00"), headers=student)
    assert forbidden.status_code == 403
    assert forbidden.json()["detail"]["code"] == "forbidden"

    invalid = client.post("/bookings", json=_payload("11:00", "10:00"), headers=rep)
    assert invalid.status_code == 400
    assert invalid.json()["detail"]["code"] == "validation_error"

    bad_room = client.post("/bookings", json=_payload("10:00", "11:00", room="Z1"), headers=rep)
    assert bad_room.status_code == 400
    assert bad_room.json()["detail"]["field"] == "room"

    created = client.post("/bookings", json=_payload("10:00", "11:00"), headers=rep)
    booking_id = created.json()["id"]

    assert client.patch(f"/bookings/{booking_id}/approve", headers=rep).status_code == 403
    assert client.get(f"/bookings/{booking_id}", headers=student).status_code == 403
    assert client.get(f"/bookings/{booking_id}", headers=rep).status_code == 200
    missing = client.get("/bookings/does-not-exist", headers=rep)
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "not_found"


def test_listing_and_own_bookings(tmp_path):
    client = TestClient(_build_test_app(tmp_path))
    rep = _login(client, "rep-1", "class-representative")
    other_rep = _login(client, "rep-2", "class-representative")
    admin = _login(client, "admin-1", "admin")

    for start, end in (("08:00", "09:00"), ("09:00", "10:00"), ("10:00", "11:00")):
        assert client.post("/bookings", json=_payload(start, end), headers=rep).status_code == 201
    assert client.post("/bookings", json=_payload("10:00", "11:00", room="B202"), headers=other_rep).status_code == 201

    listing = client.get(
        "/bookings",
        params={"room": "a304", "limit": 2, "sort_by": "start_time", "sort_order": "asc"},
        headers=admin,
    )
    assert listing.status_code == 200
    body = listing.json()
    assert body["total"] == 3
    assert body["pages"] == 2
    assert [item["start_time"] for item in body["bookings"]] == ["08:00", "09:00"]

    bad_sort = client.get("/bookings", params={"sort_by": "purpose"}, headers=rep)
    assert bad_sort.status_code == 400

    mine = client.get("/bookings/mine", headers=other_rep)
    assert mine.status_code == 200
    assert [item["room"] for item in mine.json()["bookings"]] == ["B202"]

    own_listing = client.get("/bookings", params={"room": "a304"}, headers=other_rep)
    assert own_listing.status_code == 200
    assert own_listing.json()["total"] == 0

    foreign = client.get("/bookings", params={"requester_id": "rep-1"}, headers=other_rep)
    assert foreign.status_code == 403
    assert foreign.json()["detail"]["code"] == "forbidden"


def test_room_catalog_and_dashboard(tmp_path):
    client = TestClient(_build_test_app(tmp_path))
    rep = _login(client, "rep-1", "class-representative")
    admin = _login(client, "admin-1", "admin")

    blocks = client.get("/rooms/blocks", headers=rep)
    assert blocks.status_code == 200
    assert [block["id"] for block in blocks.json()] == ["A", "B", "C", "D", "E"]
    assert client.get("/rooms/blocks/Z", headers=rep).status_code == 404
    assert client.get("/rooms/not-a-room", headers=rep).status_code == 400

    client.post("/bookings", json=_payload("10:00", "11:00"), headers=rep)
    stats = client.get("/dashboard/stats", headers=admin)
    assert stats.status_code == 200
    assert stats.json()["scope"] == "all"
    assert stats.json()["total_bookings"] == 1
    assert stats.json()["pending_bookings"] == 1

    own = client.get("/dashboard/stats", headers=rep)
    assert own.json()["scope"] == "own"
    assert own.json()["upcoming_bookings"] == []


def test_login_rejects_blank_identity(tmp_path):
    client = TestClient(_build_test_app(tmp_path))
    response = client.post(
        "/auth/login",
        json={"user_id": "   ", "name": "Rep", "role": "student", "access_code": STUDENT_CODE},
    )
    assert response.status_code == 422


def test_student_code_cannot_claim_submitting_role(tmp_path):
    client = TestClient(_build_test_app(tmp_path))

    escalation = client.post(
        "/auth/login",
        json={
            "user_id": "student-9",
            "name": "Student",
            "role": "class-representative",
            "access_code": STUDENT_CODE,
        },
    )
    assert escalation.status_code == 401

    student = _login(client, "student-9", "student")
    response = client.post("/bookings", json=_payload("10:00", "11:00"), headers=student)
    assert response.status_code == 403
    assert client.get("/bookings/mine", headers=student).json()["total"] == 0


def test_single_digit_hours_are_accepted(tmp_path):
    client = TestClient(_build_test_app(tmp_path))
    rep = _login(client, "rep-1", "class-representative")

    response = client.post("/bookings", json=_payload("9:00", "9:45"), headers=rep)
    assert response.status_code == 201
    assert response.json()["start_time"] == "09:00"


def test_blocking_booking_endpoints_run_in_threadpool():
    for router in (booking_router, dashboard_router):
        for route in router.routes:
            assert not inspect.iscoroutinefunction(route.endpoint), route.path
