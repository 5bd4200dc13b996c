"""Domain-level validation rules for booking requests."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional, Union

from campus_booking.domain.errors import BookingValidationError
from campus_booking.domain.models import BookingRequest
from campus_booking.utils.config import Settings


TimeInput = Union[time, str]
DateInput = Union[date, str]


@dataclass(frozen=True)
class BookingRules:
    room_code_regex: str
    time_of_day_regex: str
    purpose_min_length: int
    purpose_max_length: int
    admin_notes_max_length: int

    @classmethod
    def from_settings(cls, settings: Settings) -> "BookingRules":
        return cls(
            room_code_regex=settings.room_code_regex,
            time_of_day_regex=settings.time_of_day_regex,
            purpose_min_length=settings.purpose_min_length,
            purpose_max_length=settings.purpose_max_length,
            admin_notes_max_length=settings.admin_notes_max_length,
        )


def validate_booking_rules(rules: BookingRules) -> None:
    if rules.purpose_min_length < 0:
        raise ValueError("purpose_min_length must be >= 0")
    if rules.purpose_max_length < rules.purpose_min_length:
        raise ValueError("purpose_max_length must be >= purpose_min_length")
    if rules.admin_notes_max_length < 0:
        raise ValueError("admin_notes_max_length must be >= 0")
    re.compile(rules.room_code_regex)
    re.compile(rules.time_of_day_regex)


def normalize_room_code(room: str, rules: BookingRules) -> str:
    if not isinstance(room, str) or not room.strip():
        raise BookingValidationError("room", "room is required")
    normalized = room.strip().upper()
    if re.fullmatch(rules.room_code_regex, normalized) is None:
        raise BookingValidationError(
            "room",
            "room must be a block letter, a floor digit and a two-digit room number (e.g. A304)",
        )
    return normalized


def parse_time_of_day(value: TimeInput, field: str, rules: BookingRules) -> time:
    """Accept ``H:MM``/``HH:MM`` strings or ``time`` values with minute granularity."""
    if isinstance(value, time):
        if value.second or value.microsecond:
            raise BookingValidationError(field, f"{field} must have minute granularity")
        if value.tzinfo is not None:
            raise BookingValidationError(field, f"{field} must be a local time of day")
        return value
    if not isinstance(value, str) or re.fullmatch(rules.time_of_day_regex, value.strip()) is None:
        raise BookingValidationError(field, f"{field} must follow HH:MM 24-hour format")
    hours, minutes = (int(part) for part in value.strip().split(":"))
    return time(hour=hours, minute=minutes)


def parse_booking_date(value: DateInput, field: str = "date") -> date:
    if isinstance(value, datetime):
        raise BookingValidationError(field, f"{field} must be a calendar date, not a timestamp")
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError as exc:
        raise BookingValidationError(field, f"{field} must follow YYYY-MM-DD format") from exc


def validate_time_window(start_time: time, end_time: time) -> None:
    if end_time <= start_time:
        raise BookingValidationError("end_time", "end_time must be after start_time")


def validate_purpose(purpose: str, rules: BookingRules) -> str:
    cleaned = (purpose or "").strip()
    if len(cleaned) < rules.purpose_min_length:
        raise BookingValidationError(
            "purpose",
            f"purpose must be at least {rules.purpose_min_length} characters",
        )
    if len(cleaned) > rules.purpose_max_length:
        raise BookingValidationError(
            "purpose",
            f"purpose cannot exceed {rules.purpose_max_length} characters",
        )
    return cleaned


def validate_booking_date(booking_date: date, today: date) -> None:
    if booking_date < today:
        raise BookingValidationError("date", "booking date cannot be in the past")


def validate_admin_notes(notes: Optional[str], rules: BookingRules) -> str:
    cleaned = (notes or "").strip()
    if len(cleaned) > rules.admin_notes_max_length:
        raise BookingValidationError(
            "admin_notes",
            f"admin notes cannot exceed {rules.admin_notes_max_length} characters",
        )
    return cleaned


def validate_booking_request(
    request: BookingRequest,
    rules: BookingRules,
    today: date,
) -> BookingRequest:
    """Return a normalized copy of ``request`` or raise on the first violation."""
    room = normalize_room_code(request.room, rules)
    booking_date = parse_booking_date(request.date)
    start_time = parse_time_of_day(request.start_time, "start_time", rules)
    end_time = parse_time_of_day(request.end_time, "end_time", rules)
    validate_time_window(start_time, end_time)
    purpose = validate_purpose(request.purpose, rules)
    validate_booking_date(booking_date, today)
    return BookingRequest(
        room=room,
        date=booking_date,
        start_time=start_time,
        end_time=end_time,
        purpose=purpose,
    )
