from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time, timedelta, timezone

from campus_booking.domain.models import Actor, Booking, BookingStatus, Role
from campus_booking.repository.booking_repository import BookingRepository
from campus_booking.services.statistics_service import BookingStatisticsService
from campus_booking.utils.config import get_settings


TODAY = date(2025, 3, 10)
ADMIN = Actor(user_id="admin-1", name="Admin", role=Role.ADMIN)
REP = Actor(user_id="rep-1", name="Class Rep", role=Role.CLASS_REPRESENTATIVE)


def _build_service(tmp_path, **overrides):
    settings = replace(
        get_settings(), database_path=tmp_path / "stats.db", statistics_trend_days=7, **overrides
    )
    repository = BookingRepository(settings)
    repository.initialize_database()
    return BookingStatisticsService(repository=repository, settings=settings), repository


def _insert(repository, booking_id, *, room="A304", day=TODAY, start="10:00", end="11:00",
            status=BookingStatus.PENDING, requester_id="rep-1", created_days_ago=0, created_at=None):
    created = created_at or datetime.combine(
        TODAY - timedelta(days=created_days_ago), time(9, 0), tzinfo=timezone.utc
    )
    repository.insert_booking(
        Booking(
            id=booking_id,
            room=room,
            date=day,
            start_time=time.fromisoformat(start),
            end_time=time.fromisoformat(end),
            purpose="Statistics fixture booking",
            requester_id=requester_id,
            requester_name=requester_id,
            requester_roll_number=None,
            status=status,
            created_at=created,
        )
    )


def test_empty_database_summary(tmp_path):
    service, _ = _build_service(tmp_path)
    summary = service.summarize(ADMIN, TODAY)

    assert summary["total_bookings"] == 0
    assert summary["status_counts"] == {"pending": 0, "approved": 0, "rejected": 0}
    assert summary["approval_rate"] == 0
    assert len(summary["trend"]) == 7
    assert all(point["count"] == 0 for point in summary["trend"])
    assert summary["busiest_rooms"] == []


def test_admin_summary_counts_everything(tmp_path):
    service, repository = _build_service(tmp_path)
    _insert(repository, "a", status=BookingStatus.APPROVED, created_days_ago=1)
    _insert(repository, "b", start="11:00", end="13:00", status=BookingStatus.APPROVED)
    _insert(repository, "c", start="13:00", end="14:00", status=BookingStatus.REJECTED)
    _insert(repository, "d", room="B202", requester_id="rep-2")
    _insert(repository, "e", room="C101", requester_id="rep-2", created_days_ago=30)

    summary = service.summarize(ADMIN, TODAY)

    assert summary["scope"] == "all"
    assert summary["total_bookings"] == 5
    assert summary["status_counts"] == {"pending": 2, "approved": 2, "rejected": 1}
    assert summary["pending_bookings"] == 2
    assert summary["approval_rate"] == 67
    assert summary["trend"][-1] == {"date": TODAY.isoformat(), "count": 3}
    assert summary["trend"][-2]["count"] == 1
    assert sum(point["count"] for point in summary["trend"]) == 4
    assert summary["busiest_rooms"][0] == {"room": "A304", "bookings": 2, "booked_minutes": 180}
    assert "upcoming_bookings" not in summary


def test_member_summary_is_scoped_to_own_bookings(tmp_path):
    service, repository = _build_service(tmp_path)
    _insert(repository, "mine-approved", status=BookingStatus.APPROVED)
    _insert(repository, "mine-past", day=TODAY - timedelta(days=2), status=BookingStatus.APPROVED)
    _insert(repository, "theirs", room="B202", requester_id="rep-2")

    summary = service.summarize(REP, TODAY)

    assert summary["scope"] == "own"
    assert summary["total_bookings"] == 2
    assert [item["id"] for item in summary["upcoming_bookings"]] == ["mine-approved"]


def test_trend_uses_institution_calendar_day(tmp_path):
    service, repository = _build_service(tmp_path, institution_timezone="Asia/Kolkata")
    # 20:00 UTC on the 9th is 01:30 on the 10th in Kolkata.
    _insert(repository, "late-utc", created_at=datetime(2025, 3, 9, 20, 0, tzinfo=timezone.utc))

    trend = service.summarize(ADMIN, TODAY)["trend"]

    assert trend[-1] == {"date": TODAY.isoformat(), "count": 1}
    assert trend[-2]["count"] == 0
