"""Aggregate booking statistics for admin and member dashboards."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Optional

import pandas as pd

from campus_booking.domain.models import Actor, Booking, BookingFilter, BookingStatus
from campus_booking.domain.roles import (
    BOOKING_ADMINS,
    BOOKING_VIEWERS,
    ActorRoleGate,
    RoleGate,
    require_any_role,
)
from campus_booking.repository.booking_repository import BookingRepository
from campus_booking.utils.config import Settings, get_settings, resolve_timezone


_STATUS_ORDER = [status.value for status in BookingStatus]


class BookingStatisticsService:
    """Summarizes persisted bookings; admins see everything, members see their own."""

    def __init__(
        self,
        repository: Optional[BookingRepository] = None,
        settings: Optional[Settings] = None,
        role_gate: Optional[RoleGate] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or BookingRepository(self._settings)
        self._role_gate = role_gate or ActorRoleGate()
        self._timezone = resolve_timezone(self._settings.institution_timezone)

    def _build_frame(self, bookings: list[Booking]) -> pd.DataFrame:
        frame = pd.DataFrame(
            [
                {
                    "id": booking.id,
                    "room": booking.room,
                    "date": booking.date,
                    "status": booking.status.value,
                    "created_day": booking.created_at.astimezone(self._timezone).date(),
                    "duration_minutes": booking.duration_minutes,
                }
                for booking in bookings
            ],
            columns=["id", "room", "date", "status", "created_day", "duration_minutes"],
        )
        return frame

    def summarize(self, actor: Actor, today: date) -> dict[str, Any]:
        require_any_role(self._role_gate, actor, BOOKING_VIEWERS, "Viewing statistics")
        is_admin = self._role_gate.has_any_role(actor, BOOKING_ADMINS)
        scope = BookingFilter() if is_admin else BookingFilter(requester_id=actor.user_id)
        bookings = self._repository.find_bookings(scope)
        frame = self._build_frame(bookings)

        status_counts = (
            frame["status"].value_counts().reindex(_STATUS_ORDER, fill_value=0).astype(int)
        )
        approved = int(status_counts["approved"])
        processed = approved + int(status_counts["rejected"])
        approval_rate = round(approved / processed * 100) if processed else 0

        trend_days = self._settings.statistics_trend_days
        window = [today - timedelta(days=offset) for offset in range(trend_days - 1, -1, -1)]
        daily_counts = frame.groupby("created_day").size()
        trend = [
            {"date": day.isoformat(), "count": int(daily_counts.get(day, 0))}
            for day in window
        ]

        summary: dict[str, Any] = {
            "scope": "all" if is_admin else "own",
            "total_bookings": int(len(frame)),
            "status_counts": {status: int(count) for status, count in status_counts.items()},
            "pending_bookings": int(status_counts["pending"]),
            "approval_rate": int(approval_rate),
            "trend": trend,
            "busiest_rooms": self._busiest_rooms(frame),
        }
        if not is_admin:
            upcoming = [
                booking
                for booking in bookings
                if booking.status is BookingStatus.APPROVED and booking.date >= today
            ]
            upcoming.sort(key=lambda item: (item.date, item.start_time))
            summary["upcoming_bookings"] = [booking.to_dict() for booking in upcoming[:5]]
        return summary

    def _busiest_rooms(self, frame: pd.DataFrame) -> list[dict[str, Any]]:
        active = frame[frame["status"].isin(["pending", "approved"])]
        if active.empty:
            return []
        busiest = (
            active.groupby("room", as_index=False)
            .agg(bookings=("id", "count"), booked_minutes=("duration_minutes", "sum"))
            .sort_values(
                by=["bookings", "booked_minutes", "room"],
                ascending=[False, False, True],
            )
            .head(self._settings.statistics_top_rooms)
        )
        return [
            {
                "room": str(row["room"]),
                "bookings": int(row["bookings"]),
                "booked_minutes": int(row["booked_minutes"]),
            }
            for _, row in busiest.iterrows()
        ]
