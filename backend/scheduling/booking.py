"""Booking and rescheduling with conflict enforcement.

Each operation locks the professional row, checks the agenda, writes and
commits in one transaction. Any failure rolls the session back so the lock is
released before the error reaches the caller.
"""

import logging
import re
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from backend.models.appointment import ACTIVE_STATUSES, Appointment, AppointmentStatus
from backend.models.customer import Customer
from backend.models.notification import Notification
from backend.scheduling import store
from backend.scheduling.conflicts import check_conflicts
from backend.scheduling.errors import SchedulingValidationError

logger = logging.getLogger(__name__)

PUBLIC_BOOKING_COMMENT = 'Booked from landing page'


def _normalize_start(start_time: datetime) -> datetime:
    # Agendas hold naive server-local times.
    if start_time.tzinfo is not None:
        start_time = start_time.astimezone().replace(tzinfo=None)
    return start_time.replace(second=0, microsecond=0)


def _ensure_positive_duration(duration_minutes: int) -> None:
    if duration_minutes is None or duration_minutes <= 0:
        raise SchedulingValidationError('Duration must be a positive number of minutes.')


def _ensure_slot_is_free(
    db: Session,
    professional_id: int,
    start_time: datetime,
    duration_minutes: int,
    exclude_appointment_id: int | None = None,
) -> None:
    end_time = start_time + timedelta(minutes=duration_minutes)
    existing = store.find_appointments_overlapping(
        db,
        professional_id,
        start_time,
        end_time,
        exclude_appointment_id=exclude_appointment_id,
    )
    check_conflicts(professional_id, start_time, duration_minutes, existing, exclude_appointment_id)


def book_appointment(
    db: Session,
    professional_id: int,
    customer_id: int,
    start_time: datetime,
    duration_minutes: int,
    notes: str | None = None,
) -> Appointment:
    """Create an appointment for one of the professional's customers."""
    _ensure_positive_duration(duration_minutes)
    start_time = _normalize_start(start_time)

    try:
        store.lock_professional(db, professional_id)
        store.get_customer(db, professional_id, customer_id)
        _ensure_slot_is_free(db, professional_id, start_time, duration_minutes)
        appointment = store.create_appointment(
            db,
            professional_id=professional_id,
            customer_id=customer_id,
            start_time=start_time,
            duration_minutes=duration_minutes,
            notes=notes,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(appointment)
    logger.info('Booked appointment %s for professional %s at %s', appointment.id, professional_id, start_time)
    return appointment


def _parse_price(price) -> int | None:
    if price is None:
        return None
    digits = re.sub(r'[^\d]', '', str(price))
    return int(digits) if digits else None


def book_public_appointment(
    db: Session,
    professional_id: int,
    name: str,
    email: str,
    start_time: datetime,
    last_name: str | None = None,
    phone: str | None = None,
    comment: str | None = None,
    service_id: str | None = None,
) -> tuple[Appointment, Customer]:
    """Book through a landing page on behalf of an anonymous visitor.

    The duration comes from the selected service or the page configuration.
    The visitor is matched to an existing customer by email or registered as a
    new one, and the professional gets an in-app notification.
    """
    availability = store.get_availability_config(db, professional_id, service_id)
    start_time = _normalize_start(start_time)
    service = availability.service

    try:
        store.lock_professional(db, professional_id)
        _ensure_slot_is_free(db, professional_id, start_time, availability.duration_minutes)
        full_name = f"{name} {last_name or ''}".strip()
        customer = store.find_or_create_customer(db, professional_id, full_name, email, phone)
        if service:
            internal_comment = f"Service: {service.get('name', '')} - {service.get('description', '')}"
        else:
            internal_comment = PUBLIC_BOOKING_COMMENT
        appointment = store.create_appointment(
            db,
            professional_id=professional_id,
            customer_id=customer.id,
            start_time=start_time,
            duration_minutes=availability.duration_minutes,
            notes=comment,
            internal_comment=internal_comment,
            public_price=_parse_price(service.get('price')) if service else None,
        )
        db.add(
            Notification(
                user_id=professional_id,
                type='SYSTEM',
                message=f'New appointment booked: {customer.name} on {start_time:%d/%m/%Y} at {start_time:%H:%M}',
                read=False,
            )
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(appointment)
    db.refresh(customer)
    logger.info(
        'Public booking %s for professional %s at %s (customer %s)',
        appointment.id,
        professional_id,
        start_time,
        customer.id,
    )
    return appointment, customer


def update_appointment(db: Session, professional_id: int, appointment_id: int, changes: dict) -> Appointment:
    """Apply ``changes`` to an appointment, re-checking the agenda when needed.

    The conflict rule of the create path applies whenever the appointment ends
    up active and its time, duration or status changed.
    """
    try:
        store.lock_professional(db, professional_id)
        appointment = store.get_appointment(db, professional_id, appointment_id)

        start_time = appointment.start_time
        if changes.get('start_time') is not None:
            start_time = _normalize_start(changes['start_time'])
        duration_minutes = appointment.duration_minutes
        if changes.get('duration_minutes') is not None:
            duration_minutes = changes['duration_minutes']
            _ensure_positive_duration(duration_minutes)
        status = appointment.status
        if changes.get('status') is not None:
            status = AppointmentStatus(changes['status']).value

        rescheduled = (
            start_time != appointment.start_time
            or duration_minutes != appointment.duration_minutes
            or status != appointment.status
        )
        if rescheduled and status in ACTIVE_STATUSES:
            _ensure_slot_is_free(db, professional_id, start_time, duration_minutes, exclude_appointment_id=appointment.id)

        if changes.get('customer_id') is not None:
            appointment.customer_id = store.get_customer(db, professional_id, changes['customer_id']).id
        for field in ('notes', 'internal_comment', 'public_price'):
            if field in changes:
                setattr(appointment, field, changes[field])

        appointment.start_time = start_time
        appointment.duration_minutes = duration_minutes
        appointment.end_time = start_time + timedelta(minutes=duration_minutes)
        appointment.status = status
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(appointment)
    return appointment


def delete_appointment(db: Session, professional_id: int, appointment_id: int) -> None:
    appointment = store.get_appointment(db, professional_id, appointment_id)
    try:
        db.delete(appointment)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info('Deleted appointment %s of professional %s', appointment_id, professional_id)
