"""Availability queries: load configuration and agenda, then generate slots."""

from datetime import date, datetime, time, timedelta

from sqlalchemy.orm import Session

from backend.core import config
from backend.scheduling import store
from backend.scheduling.slots import DaySlots, Slot, generate_available_slots, generate_window_slots


def _day_bounds(first_date: date, days: int = 1) -> tuple[datetime, datetime]:
    range_start = datetime.combine(first_date, time.min)
    return range_start, range_start + timedelta(days=days)


def get_day_slots(
    db: Session,
    professional_id: int,
    target_date: date,
    service_id: str | None = None,
) -> list[Slot]:
    availability = store.get_availability_config(db, professional_id, service_id)
    range_start, range_end = _day_bounds(target_date)
    appointments = store.find_appointments_overlapping(db, professional_id, range_start, range_end)
    return generate_available_slots(
        target_date,
        appointments,
        availability.duration_minutes,
        availability.buffer_minutes,
        availability.work_start_hour,
        availability.work_end_hour,
    )


def get_window_slots(
    db: Session,
    professional_id: int,
    first_date: date | None = None,
    service_id: str | None = None,
    days: int | None = None,
) -> list[DaySlots]:
    first_date = first_date or date.today()
    if days is None:
        days = config.AVAILABILITY_WINDOW_DAYS
    availability = store.get_availability_config(db, professional_id, service_id)
    range_start, range_end = _day_bounds(first_date, days)
    appointments = store.find_appointments_overlapping(db, professional_id, range_start, range_end)
    return generate_window_slots(
        first_date,
        appointments,
        availability.duration_minutes,
        availability.buffer_minutes,
        availability.work_start_hour,
        availability.work_end_hour,
        days=days,
    )
