"""Error taxonomy shared by the scheduling core."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from campus_booking.domain.models import Booking, BookingStatus


class BookingError(Exception):
    """Base exception for booking workflow failures."""


class BookingValidationError(BookingError):
    """Raised when a request is malformed; ``field`` names the violated input."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class SlotConflictError(BookingError):
    """Raised when the requested window overlaps an active booking."""

    def __init__(
        self,
        conflicting_booking: "Booking",
        same_day_bookings: Sequence["Booking"] = (),
    ) -> None:
        super().__init__(
            f"Room {conflicting_booking.room} is already booked on "
            f"{conflicting_booking.date.isoformat()} from "
            f"{conflicting_booking.start_time:%H:%M} to {conflicting_booking.end_time:%H:%M}"
        )
        self.conflicting_booking = conflicting_booking
        self.same_day_bookings = list(same_day_bookings)


class UnauthorizedError(BookingError):
    """Raised when the actor lacks the role required for an operation."""


class InvalidTransitionError(BookingError):
    """Raised when a booking is no longer pending."""

    def __init__(self, booking_id: str, current_status: Optional["BookingStatus"]) -> None:
        status_text = current_status.value if current_status is not None else "unknown"
        super().__init__(f"Booking {booking_id} has already been processed ({status_text})")
        self.booking_id = booking_id
        self.current_status = current_status


class BookingNotFoundError(BookingError):
    """Raised when a booking id does not exist."""

    def __init__(self, booking_id: str) -> None:
        super().__init__(f"Booking {booking_id} not found")
        self.booking_id = booking_id
