from datetime import date, datetime, time

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.database import get_db
from backend.models.landing_page import LandingPage
from backend.models.user import User
from backend.routes.errors import database_unavailable, ensure_database_ready, scheduling_http_error
from backend.routes.landing_page_routes import LandingPageResponse, to_landing_page_response
from backend.scheduling import booking, store
from backend.scheduling.errors import SchedulingError

router = APIRouter(tags=['public'])


class PublicBookingForm(BaseModel):
    name: str
    email: str
    last_name: str | None = None
    phone: str | None = None
    comment: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized or '@' not in normalized:
            raise ValueError('A valid email is required.')
        return normalized

    @field_validator('last_name', 'phone', 'comment')
    @classmethod
    def strip_optional(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class PublicAppointmentRequest(BaseModel):
    professional_id: str
    form_data: PublicBookingForm
    selected_date: date
    selected_time: time
    service_id: str | None = None


class PersonSummary(BaseModel):
    name: str | None = None
    email: str | None = None


class PublicAppointmentResponse(BaseModel):
    id: int
    start_time: datetime
    duration_minutes: int
    status: str
    customer: PersonSummary
    professional: PersonSummary


@router.post('/appointments', response_model=PublicAppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_public_appointment(data: PublicAppointmentRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        professional = store.get_professional(db, data.professional_id)
        appointment, customer = booking.book_public_appointment(
            db,
            professional_id=professional.id,
            name=data.form_data.name,
            last_name=data.form_data.last_name,
            email=data.form_data.email,
            phone=data.form_data.phone,
            comment=data.form_data.comment,
            start_time=datetime.combine(data.selected_date, data.selected_time),
            service_id=data.service_id,
        )

        return PublicAppointmentResponse(
            id=appointment.id,
            start_time=appointment.start_time,
            duration_minutes=appointment.duration_minutes,
            status=appointment.status,
            customer=PersonSummary(name=customer.name, email=customer.email),
            professional=PersonSummary(name=professional.name, email=professional.email),
        )
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/landing/{slug}', response_model=LandingPageResponse)
def get_public_landing_page(slug: str, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        landing_page = db.query(LandingPage).filter(
            LandingPage.slug == slug,
            LandingPage.is_published.is_(True),
        ).first()
        professional = db.get(User, landing_page.user_id) if landing_page else None
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    if landing_page is None or professional is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Landing page not found.',
        )

    return to_landing_page_response(landing_page, professional)
