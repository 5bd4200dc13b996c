"""Controller layer for booking dashboard statistics."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from campus_booking.controllers.dependencies import (
    get_booking_scheduler,
    get_current_actor,
    get_statistics_service,
)
from campus_booking.domain.errors import UnauthorizedError
from campus_booking.domain.models import Actor
from campus_booking.services.booking_scheduler import BookingScheduler
from campus_booking.services.statistics_service import BookingStatisticsService
from campus_booking.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


class TrendPoint(BaseModel):
    date: str
    count: int = Field(ge=0)


class RoomUsage(BaseModel):
    room: str
    bookings: int = Field(ge=0)
    booked_minutes: int = Field(ge=0)


class StatsResponse(BaseModel):
    scope: str
    total_bookings: int = Field(ge=0)
    status_counts: dict[str, int]
    pending_bookings: int = Field(ge=0)
    approval_rate: int = Field(ge=0, le=100)
    trend: list[TrendPoint]
    busiest_rooms: list[RoomUsage]
    upcoming_bookings: Optional[list[dict]] = None


@router.get("/stats", response_model=StatsResponse, status_code=status.HTTP_200_OK)
def booking_stats(
    actor: Actor = Depends(get_current_actor),
    scheduler: BookingScheduler = Depends(get_booking_scheduler),
    statistics_service: BookingStatisticsService = Depends(get_statistics_service),
) -> StatsResponse:
    try:
        summary = statistics_service.summarize(actor, today=scheduler.today())
        return StatsResponse(**summary)
    except UnauthorizedError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected dashboard statistics failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get dashboard statistics",
        ) from exc
