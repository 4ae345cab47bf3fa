"""Conflict detection between a proposed appointment and existing ones."""

import logging
from datetime import datetime, timedelta
from typing import Iterable

from backend.models.appointment import ACTIVE_STATUSES
from backend.scheduling.errors import ConflictError

logger = logging.getLogger(__name__)


def intervals_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open interval intersection: [start_a, end_a) and [start_b, end_b)."""
    return start_a < end_b and end_a > start_b


def appointment_interval(appointment) -> tuple[datetime, datetime]:
    start_time = appointment.start_time
    return start_time, start_time + timedelta(minutes=appointment.duration_minutes)


def summarize_appointment(appointment) -> dict:
    return {
        'id': appointment.id,
        'start_time': appointment.start_time.isoformat(),
        'duration_minutes': appointment.duration_minutes,
    }


def find_conflicts(
    proposed_start: datetime,
    duration_minutes: int,
    appointments: Iterable,
    exclude_appointment_id: int | None = None,
) -> list:
    """Return the active appointments whose interval intersects the proposal."""
    proposed_end = proposed_start + timedelta(minutes=duration_minutes)
    conflicts = []
    for appointment in appointments:
        if appointment.status not in ACTIVE_STATUSES:
            continue
        if exclude_appointment_id is not None and appointment.id == exclude_appointment_id:
            continue
        existing_start, existing_end = appointment_interval(appointment)
        if intervals_overlap(proposed_start, proposed_end, existing_start, existing_end):
            conflicts.append(appointment)
    return conflicts


def check_conflicts(
    professional_id: int,
    proposed_start: datetime,
    duration_minutes: int,
    appointments: Iterable,
    exclude_appointment_id: int | None = None,
) -> None:
    """Raise ``ConflictError`` if the proposal collides with any active appointment.

    ``appointments`` is the professional's current agenda around the proposal,
    normally the result of ``store.find_appointments_overlapping``.
    """
    conflicts = find_conflicts(proposed_start, duration_minutes, appointments, exclude_appointment_id)
    if conflicts:
        logger.warning(
            'Booking conflict for professional %s at %s (%s min): %s',
            professional_id,
            proposed_start.isoformat(),
            duration_minutes,
            [appointment.id for appointment in conflicts],
        )
        raise ConflictError([summarize_appointment(appointment) for appointment in conflicts])
