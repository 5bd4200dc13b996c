"""Application settings resolved from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timezone, tzinfo
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv


PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Block letter, floor digit, two-digit room number (A304).
ROOM_CODE_REGEX = r"^(?P<block>[A-Z])(?P<floor>[0-9])(?P<number>[0-9]{2})$"
TIME_OF_DAY_REGEX = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    database_path: Path
    log_level: str
    sqlite_timeout_seconds: float
    institution_timezone: str
    admin_access_code: str | None
    class_rep_access_code: str | None
    student_access_code: str | None
    session_ttl_minutes: int
    room_code_regex: str
    time_of_day_regex: str
    purpose_min_length: int
    purpose_max_length: int
    admin_notes_max_length: int
    require_rejection_notes: bool
    default_page_size: int
    max_page_size: int
    statistics_trend_days: int
    statistics_top_rooms: int
    seed_demo_bookings: bool


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process; call ``cache_clear()`` to re-read."""
    load_dotenv()
    database_path = Path(
        os.getenv("DATABASE_PATH", str(PROJECT_ROOT / "data" / "campus_booking.db"))
    )
    return Settings(
        app_name=os.getenv("APP_NAME", "Campus Classroom Booking"),
        app_version=os.getenv("APP_VERSION", "1.0.0"),
        database_path=database_path,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        sqlite_timeout_seconds=_env_float("SQLITE_TIMEOUT_SECONDS", 10.0),
        institution_timezone=os.getenv("INSTITUTION_TIMEZONE", "UTC"),
        admin_access_code=os.getenv("ADMIN_TOKEN") or None,
        class_rep_access_code=os.getenv("CLASS_REP_ACCESS_CODE") or None,
        student_access_code=os.getenv("STUDENT_ACCESS_CODE") or None,
        session_ttl_minutes=_env_int("SESSION_TTL_MINUTES", 480),
        room_code_regex=ROOM_CODE_REGEX,
        time_of_day_regex=TIME_OF_DAY_REGEX,
        purpose_min_length=_env_int("PURPOSE_MIN_LENGTH", 10),
        purpose_max_length=_env_int("PURPOSE_MAX_LENGTH", 500),
        admin_notes_max_length=_env_int("ADMIN_NOTES_MAX_LENGTH", 200),
        require_rejection_notes=_env_bool("REQUIRE_REJECTION_NOTES", True),
        default_page_size=_env_int("DEFAULT_PAGE_SIZE", 10),
        max_page_size=_env_int("MAX_PAGE_SIZE", 100),
        statistics_trend_days=_env_int("STATISTICS_TREND_DAYS", 7),
        statistics_top_rooms=_env_int("STATISTICS_TOP_ROOMS", 5),
        seed_demo_bookings=_env_bool("SEED_DEMO_BOOKINGS", False),
    )


def resolve_timezone(name: str) -> tzinfo:
    """Map an IANA name to a tzinfo; ``UTC`` needs no zone database."""
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)
