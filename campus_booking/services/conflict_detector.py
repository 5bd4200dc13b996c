"""Overlap detection between a requested slot and existing bookings."""

from __future__ import annotations

from datetime import date, time
from typing import Iterable, Optional

from campus_booking.domain.errors import BookingValidationError
from campus_booking.domain.models import AvailabilityResult, Booking


def intervals_overlap(start_a: time, end_a: time, start_b: time, end_b: time) -> bool:
    """Half-open overlap: a window ending at 10:00 does not touch one starting at 10:00."""
    return start_a < end_b and start_b < end_a


class ConflictDetector:
    """Pure availability decision over a supplied set of bookings."""

    def check_availability(
        self,
        room: str,
        date: date,
        start_time: time,
        end_time: time,
        existing_bookings: Iterable[Booking],
        exclude_booking_id: Optional[str] = None,
    ) -> AvailabilityResult:
        if end_time <= start_time:
            raise BookingValidationError("end_time", "end_time must be after start_time")

        same_day: list[Booking] = []
        conflict: Optional[Booking] = None
        for booking in existing_bookings:
            if booking.room != room or booking.date != date:
                continue
            if booking.id == exclude_booking_id or not booking.is_active:
                continue
            same_day.append(booking)
            if not intervals_overlap(start_time, end_time, booking.start_time, booking.end_time):
                continue
            # Equal timestamps keep the earlier entry in the supplied (insertion) order.
            if conflict is None or booking.created_at < conflict.created_at:
                conflict = booking

        same_day.sort(key=lambda item: (item.start_time, item.created_at))
        return AvailabilityResult(
            available=conflict is None,
            conflicting_booking=conflict,
            other_bookings_same_day=same_day,
        )
