"""Domain models for classroom reservations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Optional


class Role(str, Enum):
    STUDENT = "student"
    CLASS_REPRESENTATIVE = "class-representative"
    ADMIN = "admin"


class BookingStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not BookingStatus.PENDING


# Statuses that still occupy a slot; rejected bookings free it.
ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.APPROVED)


@dataclass(frozen=True)
class Actor:
    user_id: str
    name: str
    role: Role
    roll_number: Optional[str] = None


@dataclass(frozen=True)
class BookingRequest:
    room: str
    date: date
    start_time: time
    end_time: time
    purpose: str


@dataclass(frozen=True)
class Booking:
    id: str
    room: str
    date: date
    start_time: time
    end_time: time
    purpose: str
    requester_id: str
    requester_name: str
    requester_roll_number: Optional[str]
    status: BookingStatus
    created_at: datetime
    admin_notes: str = ""
    processed_by: Optional[str] = None
    processed_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def duration_minutes(self) -> int:
        start = self.start_time.hour * 60 + self.start_time.minute
        end = self.end_time.hour * 60 + self.end_time.minute
        return end - start

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "room": self.room,
            "date": self.date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "purpose": self.purpose,
            "requester_id": self.requester_id,
            "requester_name": self.requester_name,
            "requester_roll_number": self.requester_roll_number,
            "status": self.status.value,
            "admin_notes": self.admin_notes,
            "processed_by": self.processed_by,
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    conflicting_booking: Optional[Booking]
    other_bookings_same_day: list[Booking] = field(default_factory=list)


SORTABLE_FIELDS = ("date", "created_at", "start_time", "room", "status")


@dataclass(frozen=True)
class BookingFilter:
    """Query over persisted bookings; every criterion is optional."""

    requester_id: Optional[str] = None
    room: Optional[str] = None
    date: Optional[date] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    statuses: Optional[tuple[BookingStatus, ...]] = None
    sort_by: str = "date"
    descending: bool = True
    limit: Optional[int] = None
    offset: int = 0


@dataclass(frozen=True)
class BookingPage:
    bookings: list[Booking]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return (self.total + self.limit - 1) // self.limit
