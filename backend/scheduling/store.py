"""Persistence access used by the availability and booking engine."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.core import config
from backend.models.appointment import ACTIVE_STATUSES, Appointment, AppointmentStatus
from backend.models.customer import Customer
from backend.models.landing_page import LandingPage
from backend.models.user import User
from backend.scheduling.errors import NotFoundError, SchedulingValidationError


@dataclass(frozen=True)
class AvailabilityConfig:
    duration_minutes: int
    buffer_minutes: int
    work_start_hour: int
    work_end_hour: int
    service: dict | None = None

    def validate(self) -> 'AvailabilityConfig':
        if self.duration_minutes <= 0:
            raise SchedulingValidationError('Appointment duration must be a positive number of minutes.')
        if self.buffer_minutes < 0:
            raise SchedulingValidationError('Buffer time cannot be negative.')
        if not 0 <= self.work_start_hour < self.work_end_hour <= 23:
            raise SchedulingValidationError('Working hours must satisfy 0 <= start < end <= 23.')
        return self


def get_professional(db: Session, subject: str) -> User:
    professional = db.query(User).filter(User.subject == subject).first()
    if professional is None:
        raise NotFoundError('Professional not found.')
    return professional


def lock_professional(db: Session, professional_id: int) -> User:
    """Take a row lock on the professional for the rest of the transaction.

    Bookings for the same professional queue behind this lock, so the conflict
    check and the insert that follows it cannot interleave with another booking.
    """
    professional = db.query(User).filter(User.id == professional_id).with_for_update().first()
    if professional is None:
        raise NotFoundError('Professional not found.')
    return professional


def get_landing_page(db: Session, professional_id: int) -> LandingPage | None:
    return db.query(LandingPage).filter(LandingPage.user_id == professional_id).first()


def _find_service(landing_page: LandingPage | None, service_id: str) -> dict:
    services = (landing_page.services if landing_page else None) or []
    for service in services:
        if str(service.get('id')) == str(service_id):
            return service
    raise NotFoundError('Service not found.')


def get_availability_config(db: Session, professional_id: int, service_id: str | None = None) -> AvailabilityConfig:
    """Resolve the slot parameters for a professional, optionally for one service.

    A professional without a landing page gets the configured defaults. A
    service's own duration and buffer override the page-level values when set.
    """
    landing_page = get_landing_page(db, professional_id)

    duration_minutes = config.DEFAULT_APPOINTMENT_DURATION_MINUTES
    buffer_minutes = config.DEFAULT_BUFFER_MINUTES
    work_start_hour = config.DEFAULT_WORK_START_HOUR
    work_end_hour = config.DEFAULT_WORK_END_HOUR

    if landing_page is not None:
        if landing_page.appointment_duration is not None:
            duration_minutes = landing_page.appointment_duration
        if landing_page.buffer_time is not None:
            buffer_minutes = landing_page.buffer_time
        if landing_page.work_start_hour is not None:
            work_start_hour = landing_page.work_start_hour
        if landing_page.work_end_hour is not None:
            work_end_hour = landing_page.work_end_hour

    service = None
    if service_id:
        service = _find_service(landing_page, service_id)
        if service.get('duration'):
            duration_minutes = int(service['duration'])
        if service.get('buffer_time') is not None:
            buffer_minutes = int(service['buffer_time'])

    return AvailabilityConfig(
        duration_minutes=duration_minutes,
        buffer_minutes=buffer_minutes,
        work_start_hour=work_start_hour,
        work_end_hour=work_end_hour,
        service=service,
    ).validate()


def find_appointments_overlapping(
    db: Session,
    professional_id: int,
    range_start: datetime,
    range_end: datetime,
    statuses: Iterable[str] = ACTIVE_STATUSES,
    exclude_appointment_id: int | None = None,
) -> list[Appointment]:
    query = db.query(Appointment).filter(
        Appointment.user_id == professional_id,
        Appointment.status.in_(list(statuses)),
        Appointment.start_time < range_end,
        Appointment.end_time > range_start,
    )
    if exclude_appointment_id is not None:
        query = query.filter(Appointment.id != exclude_appointment_id)
    return query.order_by(Appointment.start_time.asc()).all()


def get_customer(db: Session, professional_id: int, customer_id: int) -> Customer:
    customer = db.query(Customer).filter(
        Customer.id == customer_id,
        Customer.user_id == professional_id,
    ).first()
    if customer is None:
        raise NotFoundError('Customer not found.')
    return customer


def find_or_create_customer(
    db: Session,
    professional_id: int,
    name: str,
    email: str,
    phone: str | None = None,
) -> Customer:
    normalized_email = email.strip().lower()
    customer = db.query(Customer).filter(
        Customer.user_id == professional_id,
        func.lower(Customer.email) == normalized_email,
    ).first()
    if customer is None:
        customer = Customer(user_id=professional_id, name=name, email=normalized_email, phone=phone)
        db.add(customer)
        db.flush()
    return customer


def get_appointment(db: Session, professional_id: int, appointment_id: int) -> Appointment:
    appointment = db.query(Appointment).filter(
        Appointment.id == appointment_id,
        Appointment.user_id == professional_id,
    ).first()
    if appointment is None:
        raise NotFoundError('Appointment not found.')
    return appointment


def create_appointment(
    db: Session,
    professional_id: int,
    customer_id: int,
    start_time: datetime,
    duration_minutes: int,
    notes: str | None = None,
    internal_comment: str | None = None,
    public_price: int | None = None,
    status: str = AppointmentStatus.PENDING.value,
) -> Appointment:
    appointment = Appointment(
        user_id=professional_id,
        customer_id=customer_id,
        start_time=start_time,
        end_time=start_time + timedelta(minutes=duration_minutes),
        duration_minutes=duration_minutes,
        status=status,
        notes=notes,
        internal_comment=internal_comment,
        public_price=public_price,
    )
    db.add(appointment)
    db.flush()
    return appointment
