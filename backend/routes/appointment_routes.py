from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_professional
from backend.database import get_db
from backend.models.appointment import Appointment, AppointmentStatus
from backend.models.user import User
from backend.routes.errors import database_unavailable, ensure_database_ready, scheduling_http_error
from backend.scheduling import booking
from backend.scheduling.errors import SchedulingError

router = APIRouter(tags=['appointments'])

MAX_APPOINTMENT_NOTES_LENGTH = 600


def _normalize_notes(value: str | None) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
        raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

    return normalized


class CreateAppointmentRequest(BaseModel):
    customer_id: int
    start_time: datetime
    duration_minutes: int = Field(gt=0)
    notes: str | None = None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _normalize_notes(value)


class UpdateAppointmentRequest(BaseModel):
    customer_id: int | None = None
    start_time: datetime | None = None
    duration_minutes: int | None = Field(default=None, gt=0)
    status: AppointmentStatus | None = None
    notes: str | None = None
    internal_comment: str | None = None
    public_price: int | None = Field(default=None, ge=0)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _normalize_notes(value)


class AppointmentResponse(BaseModel):
    id: int
    customer_id: int
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    status: str
    notes: str | None = None
    internal_comment: str | None = None
    public_price: int | None = None

    class Config:
        from_attributes = True


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(
    professional: User = Depends(get_current_professional),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return db.query(Appointment).filter(
            Appointment.user_id == professional.id,
        ).order_by(Appointment.start_time.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    professional: User = Depends(get_current_professional),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return booking.book_appointment(
            db,
            professional_id=professional.id,
            customer_id=data.customer_id,
            start_time=data.start_time,
            duration_minutes=data.duration_minutes,
            notes=data.notes,
        )
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.put('/{appointment_id}', response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    data: UpdateAppointmentRequest,
    professional: User = Depends(get_current_professional),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return booking.update_appointment(
            db,
            professional_id=professional.id,
            appointment_id=appointment_id,
            changes=data.model_dump(exclude_unset=True),
        )
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.delete('/{appointment_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(
    appointment_id: int,
    professional: User = Depends(get_current_professional),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        booking.delete_appointment(db, professional.id, appointment_id)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc
