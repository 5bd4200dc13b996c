"""HTTP controller layer for classroom bookings."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from campus_booking.controllers.dependencies import get_booking_scheduler, get_current_actor
from campus_booking.domain.errors import (
    BookingError,
    BookingNotFoundError,
    BookingValidationError,
    InvalidTransitionError,
    SlotConflictError,
    UnauthorizedError,
)
from campus_booking.domain.models import (
    SORTABLE_FIELDS,
    Actor,
    Booking,
    BookingFilter,
    BookingPage,
    BookingRequest,
    BookingStatus,
)
from campus_booking.services.booking_scheduler import BookingScheduler
from campus_booking.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])


class BookingCreateRequest(BaseModel):
    """Shape-only DTO; business rules are enforced by the scheduler."""

    room: str = Field(min_length=1, max_length=50)
    date: date
    start_time: str = Field(min_length=1, max_length=5)
    end_time: str = Field(min_length=1, max_length=5)
    purpose: str


class DecisionRequest(BaseModel):
    admin_notes: Optional[str] = None


class BookingResponse(BaseModel):
    id: str
    room: str
    date: date
    start_time: str
    end_time: str
    purpose: str
    requester_id: str
    requester_name: str
    requester_roll_number: Optional[str] = None
    status: BookingStatus
    admin_notes: str = ""
    processed_by: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        return cls(**booking.to_dict())


class AvailabilityResponse(BaseModel):
    available: bool
    conflicting_booking: Optional[BookingResponse] = None
    other_bookings_same_day: list[BookingResponse]


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)
    pages: int = Field(ge=0)

    @classmethod
    def from_page(cls, result: BookingPage) -> "BookingListResponse":
        return cls(
            bookings=[BookingResponse.from_booking(item) for item in result.bookings],
            page=result.page,
            limit=result.limit,
            total=result.total,
            pages=result.pages,
        )


def _to_http_exception(exc: BookingError) -> HTTPException:
    detail: dict[str, Any] = {"message": str(exc)}
    if isinstance(exc, BookingValidationError):
        detail.update(code="validation_error", field=exc.field)
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
    if isinstance(exc, SlotConflictError):
        detail.update(
            code="slot_conflict",
            conflicting_booking=BookingResponse.from_booking(exc.conflicting_booking).model_dump(
                mode="json"
            ),
        )
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)
    if isinstance(exc, InvalidTransitionError):
        detail.update(
            code="already_processed",
            status=exc.current_status.value if exc.current_status else None,
        )
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)
    if isinstance(exc, UnauthorizedError):
        detail.update(code="forbidden")
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
    if isinstance(exc, BookingNotFoundError):
        detail.update(code="not_found")
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    detail.update(code="booking_error")
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _internal_error(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=message,
    )


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def submit_booking(
    payload: BookingCreateRequest,
    actor: Actor = Depends(get_current_actor),
    scheduler: BookingScheduler = Depends(get_booking_scheduler),
) -> BookingResponse:
    try:
        booking = scheduler.submit_booking(
            BookingRequest(
                room=payload.room,
                date=payload.date,
                start_time=payload.start_time,
                end_time=payload.end_time,
                purpose=payload.purpose,
            ),
            actor,
        )
        return BookingResponse.from_booking(booking)
    except BookingError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking submission failure")
        raise _internal_error("Failed to create booking") from exc


@router.get(
    "/check-availability",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_200_OK,
)
def check_availability(
    room: str = Query(min_length=1),
    date: date = Query(),
    start_time: str = Query(min_length=1),
    end_time: str = Query(min_length=1),
    exclude_booking_id: Optional[str] = Query(default=None),
    _: Actor = Depends(get_current_actor),
    scheduler: BookingScheduler = Depends(get_booking_scheduler),
) -> AvailabilityResponse:
    """Preview only; submission re-checks inside its own critical section."""
    try:
        result = scheduler.check_availability(
            room=room,
            date=date,
            start_time=start_time,
            end_time=end_time,
            exclude_booking_id=exclude_booking_id,
        )
        return AvailabilityResponse(
            available=result.available,
            conflicting_booking=(
                BookingResponse.from_booking(result.conflicting_booking)
                if result.conflicting_booking is not None
                else None
            ),
            other_bookings_same_day=[
                BookingResponse.from_booking(item) for item in result.other_bookings_same_day
            ],
        )
    except BookingError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected availability check failure")
        raise _internal_error("Failed to check availability") from exc


@router.get("", response_model=BookingListResponse, status_code=status.HTTP_200_OK)
def list_bookings(
    requester_id: Optional[str] = Query(default=None),
    room: Optional[str] = Query(default=None),
    status_filter: Optional[BookingStatus] = Query(default=None, alias="status"),
    date_from: Optional[date] = Query(default=None),
    date_to: Optional[date] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
    sort_by: str = Query(default="date"),
    sort_order: Literal["asc", "desc"] = Query(default="desc"),
    actor: Actor = Depends(get_current_actor),
    scheduler: BookingScheduler = Depends(get_booking_scheduler),
) -> BookingListResponse:
    if sort_by not in SORTABLE_FIELDS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": f"sort_by must be one of: {', '.join(SORTABLE_FIELDS)}",
                "code": "validation_error",
                "field": "sort_by",
            },
        )
    try:
        result = scheduler.list_bookings(
            actor,
            BookingFilter(
                requester_id=requester_id,
                room=room,
                statuses=(status_filter,) if status_filter is not None else None,
                date_from=date_from,
                date_to=date_to,
                sort_by=sort_by,
                descending=sort_order == "desc",
            ),
            page=page,
            limit=limit,
        )
        return BookingListResponse.from_page(result)
    except BookingError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking listing failure")
        raise _internal_error("Failed to get bookings") from exc


@router.get("/mine", response_model=BookingListResponse, status_code=status.HTTP_200_OK)
def list_my_bookings(
    status_filter: Optional[BookingStatus] = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
    actor: Actor = Depends(get_current_actor),
    scheduler: BookingScheduler = Depends(get_booking_scheduler),
) -> BookingListResponse:
    try:
        result = scheduler.list_my_bookings(actor, status_filter, page=page, limit=limit)
        return BookingListResponse.from_page(result)
    except BookingError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected own-bookings listing failure")
        raise _internal_error("Failed to get bookings") from exc


@router.get("/{booking_id}", response_model=BookingResponse, status_code=status.HTTP_200_OK)
def get_booking(
    booking_id: str,
    actor: Actor = Depends(get_current_actor),
    scheduler: BookingScheduler = Depends(get_booking_scheduler),
) -> BookingResponse:
    try:
        return BookingResponse.from_booking(scheduler.get_booking(booking_id, actor))
    except BookingError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking lookup failure")
        raise _internal_error("Failed to get booking") from exc


@router.patch(
    "/{booking_id}/approve",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
)
def approve_booking(
    booking_id: str,
    payload: Optional[DecisionRequest] = None,
    actor: Actor = Depends(get_current_actor),
    scheduler: BookingScheduler = Depends(get_booking_scheduler),
) -> BookingResponse:
    notes = payload.admin_notes if payload is not None else None
    try:
        return BookingResponse.from_booking(scheduler.approve_booking(booking_id, actor, notes))
    except BookingError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking approval failure")
        raise _internal_error("Failed to update booking status") from exc


@router.patch(
    "/{booking_id}/reject",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
)
def reject_booking(
    booking_id: str,
    payload: Optional[DecisionRequest] = None,
    actor: Actor = Depends(get_current_actor),
    scheduler: BookingScheduler = Depends(get_booking_scheduler),
) -> BookingResponse:
    notes = payload.admin_notes if payload is not None else None
    try:
        return BookingResponse.from_booking(scheduler.reject_booking(booking_id, actor, notes))
    except BookingError as exc:
        raise _to_http_exception(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking rejection failure")
        raise _internal_error("Failed to update booking status") from exc
