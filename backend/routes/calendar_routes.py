from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.database import get_db
from backend.routes.errors import database_unavailable, ensure_database_ready, scheduling_http_error
from backend.scheduling import availability, store
from backend.scheduling.errors import SchedulingError
from backend.scheduling.slots import DaySlots, Slot

router = APIRouter(tags=['calendar'])


class SlotResponse(BaseModel):
    start_time: datetime
    time: str
    available: bool
    duration_minutes: int
    buffer_minutes: int


class DaySlotsResponse(BaseModel):
    date: date
    day_name: str
    slots: list[SlotResponse]


class AvailableDaysResponse(BaseModel):
    available_days: list[DaySlotsResponse]


def to_slot_response(slot: Slot) -> SlotResponse:
    return SlotResponse(
        start_time=slot.start_time,
        time=slot.time_of_day,
        available=slot.available,
        duration_minutes=slot.duration_minutes,
        buffer_minutes=slot.buffer_minutes,
    )


def to_day_response(day: DaySlots) -> DaySlotsResponse:
    return DaySlotsResponse(
        date=day.date,
        day_name=day.day_name,
        slots=[to_slot_response(slot) for slot in day.slots],
    )


@router.get('/available-slots', response_model=DaySlotsResponse | AvailableDaysResponse)
def list_available_slots(
    professional_id: str = Query(...),
    service_id: str | None = Query(default=None),
    slot_date: date | None = Query(default=None, alias='date'),
    db: Session = Depends(get_db),
):
    """Bookable slots of a professional for one day, or for the coming week."""
    ensure_database_ready()

    try:
        professional = store.get_professional(db, professional_id)

        if slot_date is not None:
            slots = availability.get_day_slots(db, professional.id, slot_date, service_id)
            return to_day_response(DaySlots(date=slot_date, slots=slots))

        window = availability.get_window_slots(db, professional.id, service_id=service_id)
        return AvailableDaysResponse(available_days=[to_day_response(day) for day in window])
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc
