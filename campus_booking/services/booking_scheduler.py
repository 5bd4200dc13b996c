"""Request-facing booking workflow: validation, conflict checks and decisions."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Callable, Optional
from uuid import uuid4

from campus_booking.domain.constraints import (
    BookingRules,
    DateInput,
    TimeInput,
    normalize_room_code,
    parse_booking_date,
    parse_time_of_day,
    validate_admin_notes,
    validate_booking_request,
    validate_booking_rules,
    validate_time_window,
)
from campus_booking.domain.errors import (
    BookingNotFoundError,
    BookingValidationError,
    InvalidTransitionError,
    SlotConflictError,
    UnauthorizedError,
)
from campus_booking.domain.models import (
    ACTIVE_STATUSES,
    Actor,
    AvailabilityResult,
    Booking,
    BookingFilter,
    BookingPage,
    BookingRequest,
    BookingStatus,
)
from campus_booking.domain.roles import (
    BOOKING_ADMINS,
    BOOKING_SUBMITTERS,
    BOOKING_VIEWERS,
    ActorRoleGate,
    RoleGate,
    require_any_role,
)
from campus_booking.repository.booking_repository import BookingRepository
from campus_booking.services.booking_lifecycle import BookingLifecycle
from campus_booking.services.conflict_detector import ConflictDetector
from campus_booking.services.slot_locks import KeyedLockRegistry
from campus_booking.utils.config import Settings, get_settings, resolve_timezone
from campus_booking.utils.logger import get_logger


logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BookingScheduler:
    """Coordinates submit -> conflict check -> persist, and admin decisions.

    Check-then-insert for a ``(room, date)`` pair runs under an in-process lock
    and inside a ``BEGIN IMMEDIATE`` transaction, so two overlapping requests
    can never both be accepted. Decisions on one booking id are serialized the
    same way and persisted with a conditional update; different ids never
    share a lock.
    """

    def __init__(
        self,
        repository: Optional[BookingRepository] = None,
        settings: Optional[Settings] = None,
        detector: Optional[ConflictDetector] = None,
        lifecycle: Optional[BookingLifecycle] = None,
        role_gate: Optional[RoleGate] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or BookingRepository(self._settings)
        self._role_gate = role_gate or ActorRoleGate()
        self._clock = clock or _utc_now
        self._detector = detector or ConflictDetector()
        self._lifecycle = lifecycle or BookingLifecycle(
            role_gate=self._role_gate,
            clock=self._clock,
        )
        self._rules = BookingRules.from_settings(self._settings)
        validate_booking_rules(self._rules)
        self._timezone = resolve_timezone(self._settings.institution_timezone)
        self._slot_locks = KeyedLockRegistry()
        self._booking_locks = KeyedLockRegistry()

    @property
    def rules(self) -> BookingRules:
        return self._rules

    def today(self) -> date:
        """Current day in the institution's local calendar."""
        return self._clock().astimezone(self._timezone).date()

    def check_availability(
        self,
        room: str,
        date: DateInput,
        start_time: TimeInput,
        end_time: TimeInput,
        exclude_booking_id: Optional[str] = None,
    ) -> AvailabilityResult:
        """Read-only preview; the authoritative check runs again on submit."""
        normalized_room = normalize_room_code(room, self._rules)
        booking_date = parse_booking_date(date)
        start = parse_time_of_day(start_time, "start_time", self._rules)
        end = parse_time_of_day(end_time, "end_time", self._rules)
        validate_time_window(start, end)
        existing = self._repository.find_bookings(
            self._slot_filter(normalized_room, booking_date)
        )
        return self._detector.check_availability(
            room=normalized_room,
            date=booking_date,
            start_time=start,
            end_time=end,
            existing_bookings=existing,
            exclude_booking_id=exclude_booking_id,
        )

    def submit_booking(self, request: BookingRequest, actor: Actor) -> Booking:
        require_any_role(self._role_gate, actor, BOOKING_SUBMITTERS, "Submitting a booking")
        normalized = validate_booking_request(request, self._rules, self.today())

        with self._slot_locks.hold((normalized.room, normalized.date)):
            with self._repository.write_transaction() as conn:
                existing = self._repository.find_bookings(
                    self._slot_filter(normalized.room, normalized.date),
                    connection=conn,
                )
                availability = self._detector.check_availability(
                    room=normalized.room,
                    date=normalized.date,
                    start_time=normalized.start_time,
                    end_time=normalized.end_time,
                    existing_bookings=existing,
                )
                if not availability.available:
                    conflicting = availability.conflicting_booking
                    logger.info(
                        "Slot conflict for %s on %s %s-%s (held by %s)",
                        normalized.room,
                        normalized.date.isoformat(),
                        normalized.start_time.strftime("%H:%M"),
                        normalized.end_time.strftime("%H:%M"),
                        conflicting.id,
                    )
                    raise SlotConflictError(conflicting, availability.other_bookings_same_day)

                booking = Booking(
                    id=str(uuid4()),
                    room=normalized.room,
                    date=normalized.date,
                    start_time=normalized.start_time,
                    end_time=normalized.end_time,
                    purpose=normalized.purpose,
                    requester_id=actor.user_id,
                    requester_name=actor.name,
                    requester_roll_number=(
                        actor.roll_number.strip().upper() if actor.roll_number else None
                    ),
                    status=BookingStatus.PENDING,
                    created_at=self._clock(),
                )
                self._repository.insert_booking(booking, connection=conn)

        logger.info(
            "Booking %s submitted by %s for %s on %s %s-%s",
            booking.id,
            actor.user_id,
            booking.room,
            booking.date.isoformat(),
            booking.start_time.strftime("%H:%M"),
            booking.end_time.strftime("%H:%M"),
        )
        return booking

    def approve_booking(self, booking_id: str, actor: Actor, notes: Optional[str] = "") -> Booking:
        return self._decide(booking_id, actor, notes, BookingStatus.APPROVED)

    def reject_booking(self, booking_id: str, actor: Actor, notes: Optional[str] = "") -> Booking:
        return self._decide(booking_id, actor, notes, BookingStatus.REJECTED)

    def _decide(
        self,
        booking_id: str,
        actor: Actor,
        notes: Optional[str],
        target: BookingStatus,
    ) -> Booking:
        action = "Approving" if target is BookingStatus.APPROVED else "Rejecting"
        require_any_role(self._role_gate, actor, BOOKING_ADMINS, f"{action} a booking")

        with self._booking_locks.hold(booking_id):
            booking = self._repository.get_booking(booking_id)
            if booking is None:
                raise BookingNotFoundError(booking_id)

            if target is BookingStatus.APPROVED:
                decided = self._lifecycle.approve(booking, actor, notes or "")
            else:
                decided = self._lifecycle.reject(booking, actor, notes or "")

            cleaned_notes = validate_admin_notes(notes, self._rules)
            if (
                target is BookingStatus.REJECTED
                and self._settings.require_rejection_notes
                and not cleaned_notes
            ):
                raise BookingValidationError(
                    "admin_notes",
                    "a reason is required when rejecting a booking",
                )
            decided = replace(decided, admin_notes=cleaned_notes)

            applied = self._repository.update_booking_status(
                booking_id=decided.id,
                status=decided.status,
                notes=decided.admin_notes,
                actor_id=actor.user_id,
                processed_at=decided.processed_at,
            )
            if not applied:
                current = self._repository.get_booking(booking_id)
                logger.warning(
                    "Booking %s was processed concurrently; %s by %s discarded",
                    booking_id,
                    target.value,
                    actor.user_id,
                )
                raise InvalidTransitionError(booking_id, current.status if current else None)

        logger.info("Booking %s %s by %s", booking_id, target.value, actor.user_id)
        return decided

    def get_booking(self, booking_id: str, actor: Actor) -> Booking:
        require_any_role(self._role_gate, actor, BOOKING_VIEWERS, "Viewing a booking")
        booking = self._repository.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        if booking.requester_id != actor.user_id and not self._role_gate.has_any_role(
            actor, BOOKING_ADMINS
        ):
            raise UnauthorizedError("Only the requester or an admin may view this booking")
        return booking

    def list_bookings(
        self,
        actor: Actor,
        booking_filter: Optional[BookingFilter] = None,
        *,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> BookingPage:
        """Paginated read; may trail in-flight writes.

        Admins see every booking. Other roles only ever see their own rows.
        """
        require_any_role(self._role_gate, actor, BOOKING_VIEWERS, "Listing bookings")
        if page < 1:
            raise BookingValidationError("page", "page must be >= 1")
        page_size = self._settings.default_page_size if limit is None else limit
        if not 1 <= page_size <= self._settings.max_page_size:
            raise BookingValidationError(
                "limit",
                f"limit must be between 1 and {self._settings.max_page_size}",
            )
        base_filter = booking_filter or BookingFilter()
        if not self._role_gate.has_any_role(actor, BOOKING_ADMINS):
            if base_filter.requester_id not in (None, actor.user_id):
                raise UnauthorizedError("Only admins may list other users' bookings")
            base_filter = replace(base_filter, requester_id=actor.user_id)
        if base_filter.room is not None:
            base_filter = replace(base_filter, room=normalize_room_code(base_filter.room, self._rules))
        if (
            base_filter.date_from is not None
            and base_filter.date_to is not None
            and base_filter.date_from > base_filter.date_to
        ):
            raise BookingValidationError("date_to", "date_to must not be before date_from")

        paged_filter = replace(base_filter, limit=page_size, offset=(page - 1) * page_size)
        bookings = self._repository.find_bookings(paged_filter)
        total = self._repository.count_bookings(base_filter)
        return BookingPage(bookings=bookings, total=total, page=page, limit=page_size)

    def list_my_bookings(
        self,
        actor: Actor,
        status: Optional[BookingStatus] = None,
        *,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> BookingPage:
        booking_filter = BookingFilter(
            requester_id=actor.user_id,
            statuses=(status,) if status is not None else None,
        )
        return self.list_bookings(actor, booking_filter, page=page, limit=limit)

    @staticmethod
    def _slot_filter(room: str, booking_date: date) -> BookingFilter:
        return BookingFilter(
            room=room,
            date=booking_date,
            statuses=ACTIVE_STATUSES,
            sort_by="created_at",
            descending=False,
        )
