"""Repository layer responsible for all booking persistence."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import Iterator, Optional
from uuid import uuid4

from campus_booking.domain.models import (
    SORTABLE_FIELDS,
    Booking,
    BookingFilter,
    BookingStatus,
)
from campus_booking.utils.config import Settings, get_settings
from campus_booking.utils.logger import get_logger


logger = get_logger(__name__)

_SORT_COLUMNS = {
    "date": ("date", "start_time"),
    "created_at": ("created_at",),
    "start_time": ("start_time",),
    "room": ("room", "date", "start_time"),
    "status": ("status", "date", "start_time"),
}

_BOOKING_COLUMNS = """
    id,
    room,
    date,
    start_time,
    end_time,
    purpose,
    requester_id,
    requester_name,
    requester_roll_number,
    status,
    admin_notes,
    processed_by,
    processed_at,
    created_at
"""


def _format_time(value: time) -> str:
    return value.strftime("%H:%M")


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat(timespec="microseconds")


def _row_to_booking(row: sqlite3.Row) -> Booking:
    processed_at = row["processed_at"]
    return Booking(
        id=str(row["id"]),
        room=str(row["room"]),
        date=date.fromisoformat(row["date"]),
        start_time=time.fromisoformat(row["start_time"]),
        end_time=time.fromisoformat(row["end_time"]),
        purpose=str(row["purpose"]),
        requester_id=str(row["requester_id"]),
        requester_name=str(row["requester_name"]),
        requester_roll_number=row["requester_roll_number"],
        status=BookingStatus(row["status"]),
        admin_notes=str(row["admin_notes"] or ""),
        processed_by=row["processed_by"],
        processed_at=datetime.fromisoformat(processed_at) if processed_at else None,
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class BookingRepository:
    """Encapsulates SQLite access so scheduling logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _open(self) -> sqlite3.Connection:
        connection = sqlite3.connect(
            self._db_path,
            timeout=self._settings.sqlite_timeout_seconds,
            isolation_level=None,
        )
        connection.row_factory = sqlite3.Row
        return connection

    @contextmanager
    def _connect(self, connection: Optional[sqlite3.Connection] = None) -> Iterator[sqlite3.Connection]:
        """Reuse the caller's transaction when given one, else open a short-lived connection."""
        if connection is not None:
            yield connection
            return
        conn = self._open()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def write_transaction(self) -> Iterator[sqlite3.Connection]:
        """Hold the database write lock for a check-then-write sequence.

        ``BEGIN IMMEDIATE`` takes the reserved lock up front, so a second writer
        (in this or another process) waits until this transaction finishes.
        """
        conn = self._open()
        try:
            conn.execute("BEGIN IMMEDIATE;")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK;")
                raise
            conn.execute("COMMIT;")
        finally:
            conn.close()

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            with self._connect() as conn:
                conn.execute("PRAGMA journal_mode = WAL;")
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Bookings (
                        id TEXT PRIMARY KEY,
                        room TEXT NOT NULL,
                        date TEXT NOT NULL,
                        start_time TEXT NOT NULL,
                        end_time TEXT NOT NULL CHECK (end_time > start_time),
                        purpose TEXT NOT NULL,
                        requester_id TEXT NOT NULL,
                        requester_name TEXT NOT NULL,
                        requester_roll_number TEXT,
                        status TEXT NOT NULL DEFAULT 'pending'
                            CHECK (status IN ('pending', 'approved', 'rejected')),
                        admin_notes TEXT NOT NULL DEFAULT '',
                        processed_by TEXT,
                        processed_at TEXT,
                        created_at TEXT NOT NULL
                    );
                    """
                )
                conn.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_bookings_room_date
                    ON Bookings(room, date, status);
                    """
                )
                conn.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_bookings_requester_date
                    ON Bookings(requester_id, date);
                    """
                )
                conn.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_bookings_status
                    ON Bookings(status);
                    """
                )
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    def _where_clause(self, booking_filter: BookingFilter) -> tuple[str, list[object]]:
        clauses: list[str] = []
        params: list[object] = []
        if booking_filter.requester_id is not None:
            clauses.append("requester_id = ?")
            params.append(booking_filter.requester_id)
        if booking_filter.room is not None:
            clauses.append("room = ?")
            params.append(booking_filter.room.strip().upper())
        if booking_filter.date is not None:
            clauses.append("date = ?")
            params.append(booking_filter.date.isoformat())
        if booking_filter.date_from is not None:
            clauses.append("date >= ?")
            params.append(booking_filter.date_from.isoformat())
        if booking_filter.date_to is not None:
            clauses.append("date <= ?")
            params.append(booking_filter.date_to.isoformat())
        if booking_filter.statuses is not None:
            if not booking_filter.statuses:
                clauses.append("0")
            else:
                placeholders = ",".join("?" for _ in booking_filter.statuses)
                clauses.append(f"status IN ({placeholders})")
                params.extend(status.value for status in booking_filter.statuses)
        if not clauses:
            return "", params
        return "WHERE " + " AND ".join(clauses), params

    def find_bookings(
        self,
        booking_filter: BookingFilter,
        connection: Optional[sqlite3.Connection] = None,
    ) -> list[Booking]:
        """Return matching bookings; ties fall back to creation time, then insertion order."""
        if booking_filter.sort_by not in SORTABLE_FIELDS:
            raise ValueError(f"Unsupported sort field: {booking_filter.sort_by}")
        where_sql, params = self._where_clause(booking_filter)
        direction = "DESC" if booking_filter.descending else "ASC"
        order_sql = ", ".join(
            f"{column} {direction}" for column in _SORT_COLUMNS[booking_filter.sort_by]
        )
        query = (
            f"SELECT {_BOOKING_COLUMNS} FROM Bookings {where_sql} "
            f"ORDER BY {order_sql}, created_at ASC, rowid ASC"
        )
        if booking_filter.limit is not None:
            query += " LIMIT ? OFFSET ?"
            params.extend([booking_filter.limit, booking_filter.offset])
        with self._connect(connection) as conn:
            rows = conn.execute(query + ";", params).fetchall()
        return [_row_to_booking(row) for row in rows]

    def count_bookings(
        self,
        booking_filter: BookingFilter,
        connection: Optional[sqlite3.Connection] = None,
    ) -> int:
        where_sql, params = self._where_clause(booking_filter)
        with self._connect(connection) as conn:
            row = conn.execute(
                f"SELECT COUNT(*) AS count FROM Bookings {where_sql};",
                params,
            ).fetchone()
        return int(row["count"])

    def get_booking(
        self,
        booking_id: str,
        connection: Optional[sqlite3.Connection] = None,
    ) -> Optional[Booking]:
        with self._connect(connection) as conn:
            row = conn.execute(
                f"SELECT {_BOOKING_COLUMNS} FROM Bookings WHERE id = ?;",
                (booking_id,),
            ).fetchone()
        if row is None:
            return None
        return _row_to_booking(row)

    def insert_booking(
        self,
        booking: Booking,
        connection: Optional[sqlite3.Connection] = None,
    ) -> None:
        with self._connect(connection) as conn:
            conn.execute(
                f"""
                INSERT INTO Bookings ({_BOOKING_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    booking.id,
                    booking.room,
                    booking.date.isoformat(),
                    _format_time(booking.start_time),
                    _format_time(booking.end_time),
                    booking.purpose,
                    booking.requester_id,
                    booking.requester_name,
                    booking.requester_roll_number,
                    booking.status.value,
                    booking.admin_notes,
                    booking.processed_by,
                    _format_timestamp(booking.processed_at),
                    _format_timestamp(booking.created_at),
                ),
            )

    def update_booking_status(
        self,
        booking_id: str,
        status: BookingStatus,
        notes: str,
        actor_id: str,
        processed_at: datetime,
        connection: Optional[sqlite3.Connection] = None,
    ) -> bool:
        """Apply a decision only if the row is still pending; report whether it applied."""
        with self._connect(connection) as conn:
            cursor = conn.execute(
                """
                UPDATE Bookings
                SET status = ?, admin_notes = ?, processed_by = ?, processed_at = ?
                WHERE id = ? AND status = 'pending';
                """,
                (
                    status.value,
                    notes,
                    actor_id,
                    _format_timestamp(processed_at),
                    booking_id,
                ),
            )
            return cursor.rowcount == 1

    def seed_demo_bookings_if_empty(self, today: date) -> int:
        """Insert a handful of upcoming bookings when the table is empty."""
        demo_rows = [
            ("A304", 1, "09:00", "10:00", "Data structures revision session", BookingStatus.APPROVED),
            ("A304", 1, "10:00", "11:30", "Class representative meeting for year 2", BookingStatus.PENDING),
            ("B202", 2, "14:00", "16:00", "Programming club weekly practice", BookingStatus.PENDING),
            ("C101", 3, "11:00", "12:00", "Lab make-up session for section B", BookingStatus.APPROVED),
            ("A201", 4, "15:00", "17:00", "Guest lecture rehearsal with faculty", BookingStatus.PENDING),
        ]
        now = datetime.now(timezone.utc)
        try:
            with self.write_transaction() as conn:
                row = conn.execute("SELECT COUNT(*) AS count FROM Bookings;").fetchone()
                if int(row["count"]) > 0:
                    logger.info("Bookings already present; skipping demo seed")
                    return 0
                for room, day_offset, start, end, purpose, status in demo_rows:
                    processed = status is not BookingStatus.PENDING
                    self.insert_booking(
                        Booking(
                            id=str(uuid4()),
                            room=room,
                            date=today + timedelta(days=day_offset),
                            start_time=time.fromisoformat(start),
                            end_time=time.fromisoformat(end),
                            purpose=purpose,
                            requester_id="demo-class-rep",
                            requester_name="Demo Class Representative",
                            requester_roll_number="DEMO001",
                            status=status,
                            created_at=now,
                            admin_notes="Seeded for demo" if processed else "",
                            processed_by="demo-admin" if processed else None,
                            processed_at=now if processed else None,
                        ),
                        connection=conn,
                    )
        except sqlite3.Error as exc:
            raise RuntimeError(f"Demo booking seeding failed: {exc}") from exc
        logger.info("Demo seed completed with %s bookings", len(demo_rows))
        return len(demo_rows)
