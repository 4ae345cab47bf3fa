"""Bookable slot generation.

Candidate starts are laid out on a fixed grid inside the working-hours window
of a single day. The grid step (pitch) is ``min(30, duration)`` minutes and
each candidate occupies ``duration + buffer`` minutes (its footprint). A
candidate is free when its footprint does not intersect any active
appointment.

Everything here is pure: inputs are never mutated and the same snapshot of
appointments always yields the same slots.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable

from backend.core import config
from backend.models.appointment import ACTIVE_STATUSES
from backend.scheduling.conflicts import appointment_interval, intervals_overlap

DAY_NAMES = ('lunes', 'martes', 'miércoles', 'jueves', 'viernes', 'sábado', 'domingo')


@dataclass(frozen=True)
class Slot:
    start_time: datetime
    duration_minutes: int
    buffer_minutes: int
    available: bool = True

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration_minutes)

    @property
    def footprint_end(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration_minutes + self.buffer_minutes)

    @property
    def time_of_day(self) -> str:
        return self.start_time.strftime('%H:%M')

    def to_dict(self) -> dict:
        return {
            'start_time': self.start_time.isoformat(),
            'time': self.time_of_day,
            'available': self.available,
            'duration_minutes': self.duration_minutes,
            'buffer_minutes': self.buffer_minutes,
        }


@dataclass(frozen=True)
class DaySlots:
    date: date
    slots: list[Slot]

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.date.weekday()]


def slot_pitch_minutes(duration_minutes: int) -> int:
    return min(config.MAX_SLOT_PITCH_MINUTES, duration_minutes)


def generate_candidate_slots(
    target_date: date,
    appointments: Iterable,
    duration_minutes: int,
    buffer_minutes: int = 0,
    work_start_hour: int = config.DEFAULT_WORK_START_HOUR,
    work_end_hour: int = config.DEFAULT_WORK_END_HOUR,
) -> list[Slot]:
    """Return every candidate slot of ``target_date`` flagged free or occupied.

    ``appointments`` are objects exposing ``start_time``, ``duration_minutes``
    and ``status``; only PENDING and CONFIRMED ones occupy time. Duration and
    buffer must already be validated by the caller.
    """
    pitch = slot_pitch_minutes(duration_minutes)
    footprint = duration_minutes + buffer_minutes
    day_start = datetime.combine(target_date, time.min)
    busy = [
        appointment_interval(appointment)
        for appointment in appointments
        if appointment.status in ACTIVE_STATUSES
    ]

    slots: list[Slot] = []
    offset = work_start_hour * 60
    while offset + footprint <= work_end_hour * 60:
        candidate_start = day_start + timedelta(minutes=offset)
        slot_end = candidate_start + timedelta(minutes=footprint)
        occupied = any(
            intervals_overlap(candidate_start, slot_end, busy_start, busy_end)
            for busy_start, busy_end in busy
        )
        slots.append(
            Slot(
                start_time=candidate_start,
                duration_minutes=duration_minutes,
                buffer_minutes=buffer_minutes,
                available=not occupied,
            )
        )
        offset += pitch

    return slots


def generate_available_slots(
    target_date: date,
    appointments: Iterable,
    duration_minutes: int,
    buffer_minutes: int = 0,
    work_start_hour: int = config.DEFAULT_WORK_START_HOUR,
    work_end_hour: int = config.DEFAULT_WORK_END_HOUR,
) -> list[Slot]:
    return [
        slot
        for slot in generate_candidate_slots(
            target_date,
            appointments,
            duration_minutes,
            buffer_minutes,
            work_start_hour,
            work_end_hour,
        )
        if slot.available
    ]


def generate_window_slots(
    first_date: date,
    appointments: Iterable,
    duration_minutes: int,
    buffer_minutes: int = 0,
    work_start_hour: int = config.DEFAULT_WORK_START_HOUR,
    work_end_hour: int = config.DEFAULT_WORK_END_HOUR,
    days: int | None = None,
) -> list[DaySlots]:
    """Run the day generator for ``days`` consecutive days from ``first_date``."""
    if days is None:
        days = config.AVAILABILITY_WINDOW_DAYS
    appointments = list(appointments)
    window: list[DaySlots] = []
    for day_offset in range(days):
        current_day = first_date + timedelta(days=day_offset)
        window.append(
            DaySlots(
                date=current_day,
                slots=generate_available_slots(
                    current_day,
                    appointments,
                    duration_minutes,
                    buffer_minutes,
                    work_start_hour,
                    work_end_hour,
                ),
            )
        )
    return window
