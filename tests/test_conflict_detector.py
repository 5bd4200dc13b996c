from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

import pytest

from campus_booking.domain.errors import BookingValidationError
from campus_booking.domain.models import Booking, BookingStatus
from campus_booking.services.conflict_detector import ConflictDetector, intervals_overlap


ROOM = "A304"
DAY = date(2025, 3, 10)
CREATED = datetime(2025, 3, 1, 8, 0, tzinfo=timezone.utc)


def _booking(
    booking_id: str,
    start: str,
    end: str,
    *,
    room: str = ROOM,
    day: date = DAY,
    status: BookingStatus = BookingStatus.PENDING,
    created_offset_minutes: int = 0,
) -> Booking:
    return Booking(
        id=booking_id,
        room=room,
        date=day,
        start_time=time.fromisoformat(start),
        end_time=time.fromisoformat(end),
        purpose="Tutorial session for section A",
        requester_id="rep-1",
        requester_name="Class Rep",
        requester_roll_number="21CS001",
        status=status,
        created_at=CREATED + timedelta(minutes=created_offset_minutes),
    )


def _check(existing, start: str, end: str, **kwargs):
    return ConflictDetector().check_availability(
        room=ROOM,
        date=DAY,
        start_time=time.fromisoformat(start),
        end_time=time.fromisoformat(end),
        existing_bookings=existing,
        **kwargs,
    )


def test_back_to_back_windows_do_not_conflict():
    existing = [_booking("x", "10:00", "11:00")]
    assert _check(existing, "11:00", "12:00").available
    assert _check(existing, "09:00", "10:00").available


def test_partial_overlap_conflicts():
    existing = [_booking("x", "10:00", "11:00")]
    result = _check(existing, "10:30", "11:30")
    assert not result.available
    assert result.conflicting_booking.id == "x"


def test_containing_and_contained_windows_conflict():
    existing = [_booking("x", "10:00", "11:00")]
    assert not _check(existing, "09:00", "12:00").available
    assert not _check(existing, "10:15", "10:45").available


def test_rejected_booking_frees_slot():
    existing = [_booking("x", "10:00", "11:00", status=BookingStatus.REJECTED)]
    result = _check(existing, "10:00", "11:00")
    assert result.available
    assert result.other_bookings_same_day == []


def test_approved_booking_blocks_slot():
    existing = [_booking("x", "10:00", "11:00", status=BookingStatus.APPROVED)]
    assert not _check(existing, "10:00", "11:00").available


def test_other_rooms_and_dates_never_conflict():
    existing = [
        _booking("other-room", "10:00", "11:00", room="B202"),
        _booking("other-day", "10:00", "11:00", day=DAY + timedelta(days=1)),
    ]
    result = _check(existing, "10:00", "11:00")
    assert result.available
    assert result.other_bookings_same_day == []


def test_excluded_booking_does_not_conflict_with_itself():
    existing = [_booking("x", "10:00", "11:00")]
    assert _check(existing, "10:00", "11:00", exclude_booking_id="x").available


def test_earliest_created_conflict_wins():
    existing = [
        _booking("later", "10:30", "11:30", created_offset_minutes=30),
        _booking("earlier", "09:30", "10:30", created_offset_minutes=5),
    ]
    result = _check(existing, "10:00", "11:00")
    assert result.conflicting_booking.id == "earlier"


def test_same_day_bookings_listed_regardless_of_overlap():
    existing = [
        _booking("late", "15:00", "16:00"),
        _booking("clash", "10:00", "11:00"),
        _booking("early", "08:00", "09:00"),
        _booking("gone", "12:00", "13:00", status=BookingStatus.REJECTED),
    ]
    result = _check(existing, "10:30", "11:30")
    assert [item.id for item in result.other_bookings_same_day] == ["early", "clash", "late"]


def test_check_ignores_input_order_when_timestamps_differ():
    existing = [
        _booking("a", "10:00", "11:00", created_offset_minutes=1),
        _booking("b", "13:00", "14:00", created_offset_minutes=2),
    ]
    assert _check(existing, "10:30", "13:30") == _check(list(reversed(existing)), "10:30", "13:30")


def test_equal_timestamps_report_first_supplied_booking():
    existing = [
        _booking("zz-first", "10:00", "11:00"),
        _booking("aa-second", "11:00", "12:00"),
    ]
    result = _check(existing, "10:30", "11:30")
    assert result.conflicting_booking.id == "zz-first"
    assert [item.id for item in result.other_bookings_same_day] == ["zz-first", "aa-second"]


def test_empty_window_raises():
    with pytest.raises(BookingValidationError):
        _check([], "10:00", "10:00")


@pytest.mark.parametrize(
    ("a", "b", "expected"),
    [
        (("10:00", "11:00"), ("11:00", "12:00"), False),
        (("10:00", "11:00"), ("10:59", "12:00"), True),
        (("10:00", "11:00"), ("08:00", "10:00"), False),
        (("10:00", "11:00"), ("10:00", "11:00"), True),
    ],
)
def test_intervals_overlap_is_half_open(a, b, expected):
    args = [time.fromisoformat(value) for value in (*a, *b)]
    assert intervals_overlap(*args) is expected
    assert intervals_overlap(args[2], args[3], args[0], args[1]) is expected
