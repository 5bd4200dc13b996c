"""State machine for booking approval and rejection."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Optional

from campus_booking.domain.errors import InvalidTransitionError
from campus_booking.domain.models import Actor, Booking, BookingStatus
from campus_booking.domain.roles import BOOKING_ADMINS, ActorRoleGate, RoleGate, require_any_role


BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.APPROVED, BookingStatus.REJECTED}),
    BookingStatus.APPROVED: frozenset(),
    BookingStatus.REJECTED: frozenset(),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in BOOKING_TRANSITIONS.get(current, frozenset())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BookingLifecycle:
    """Only mutator of booking status; returns a new record, never edits in place."""

    def __init__(
        self,
        role_gate: Optional[RoleGate] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._role_gate = role_gate or ActorRoleGate()
        self._clock = clock or _utc_now

    def approve(self, booking: Booking, actor: Actor, notes: str = "") -> Booking:
        return self._transition(booking, actor, BookingStatus.APPROVED, notes)

    def reject(self, booking: Booking, actor: Actor, notes: str = "") -> Booking:
        """Reject a pending booking.

        Whether a reason is mandatory is a product policy applied by the caller;
        the state machine accepts empty notes.
        """
        return self._transition(booking, actor, BookingStatus.REJECTED, notes)

    def _transition(
        self,
        booking: Booking,
        actor: Actor,
        target: BookingStatus,
        notes: str,
    ) -> Booking:
        action = "Approving" if target is BookingStatus.APPROVED else "Rejecting"
        require_any_role(self._role_gate, actor, BOOKING_ADMINS, f"{action} a booking")
        if not can_transition(booking.status, target):
            raise InvalidTransitionError(booking.id, booking.status)
        return replace(
            booking,
            status=target,
            admin_notes=notes or "",
            processed_by=actor.user_id,
            processed_at=self._clock(),
        )
