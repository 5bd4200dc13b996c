#!/usr/bin/env python3
"""Validate local booking service environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from datetime import datetime, time, timedelta, timezone
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from campus_booking.domain.errors import SlotConflictError
from campus_booking.domain.models import Actor, BookingRequest, Role
from campus_booking.repository.booking_repository import BookingRepository
from campus_booking.services.booking_scheduler import BookingScheduler
from campus_booking.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="campus-booking-env-")

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable
    package_names = ["fastapi", "uvicorn", "pydantic", "pandas", "dotenv", "httpx", "pytest"]
    import_errors: list[str] = []
    for module_name in package_names:
        try:
            importlib.import_module(module_name)
        except ImportError as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        validation_settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "campus_booking_validation.db",
        )
        repository = BookingRepository(validation_settings)

        # CHECK 3: Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except RuntimeError as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: Submit, conflict, reject, resubmit
        scheduler = BookingScheduler(repository=repository, settings=validation_settings)
        rep = Actor(user_id="env-rep", name="Env Check", role=Role.CLASS_REPRESENTATIVE)
        admin = Actor(user_id="env-admin", name="Env Admin", role=Role.ADMIN)
        target_date = datetime.now(timezone.utc).date() + timedelta(days=1)
        try:
            first = scheduler.submit_booking(
                BookingRequest("A304", target_date, time(10, 0), time(11, 0), "Environment check slot"),
                rep,
            )
            overlapping = BookingRequest(
                "A304", target_date, time(10, 30), time(11, 30), "Environment check overlap"
            )
            try:
                scheduler.submit_booking(overlapping, rep)
                raise RuntimeError("overlapping booking was accepted")
            except SlotConflictError:
                pass
            scheduler.reject_booking(first.id, admin, "Environment check cleanup")
            scheduler.submit_booking(overlapping, rep)
            ok, line = _print_result("Booking workflow", True)
        except Exception as exc:
            ok, line = _print_result("Booking workflow", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Demo booking seeding on a fresh database
        try:
            seed_repository = BookingRepository(
                replace(validation_settings, database_path=Path(temp_dir) / "seed.db")
            )
            seed_repository.initialize_database()
            seeded = seed_repository.seed_demo_bookings_if_empty(target_date)
            if seeded <= 0:
                raise RuntimeError(f"expected seeded bookings, got {seeded}")
            ok, line = _print_result("Demo booking seeding", True, f": {seeded} bookings")
        except Exception as exc:
            ok, line = _print_result("Demo booking seeding", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Campus Booking Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
