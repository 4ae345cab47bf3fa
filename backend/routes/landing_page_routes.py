import logging
import re
import unicodedata

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_professional
from backend.core import config
from backend.database import get_db
from backend.models.landing_page import LandingPage
from backend.models.user import User
from backend.routes.errors import database_unavailable, ensure_database_ready

router = APIRouter(tags=['landing-page'])
logger = logging.getLogger(__name__)


class ServiceItem(BaseModel):
    id: str
    name: str
    description: str = ''
    price: str | None = None
    duration: int | None = Field(default=None, gt=0)
    buffer_time: int | None = Field(default=None, ge=0)


class LandingPageRequest(BaseModel):
    professional_name: str
    title: str | None = None
    description: str | None = None
    services: list[ServiceItem] = []
    show_calendar: bool = True
    appointment_duration: int = Field(default=config.DEFAULT_APPOINTMENT_DURATION_MINUTES, gt=0)
    buffer_time: int = Field(default=config.DEFAULT_BUFFER_MINUTES, ge=0)
    work_start_hour: int = Field(default=config.DEFAULT_WORK_START_HOUR, ge=0, le=23)
    work_end_hour: int = Field(default=config.DEFAULT_WORK_END_HOUR, ge=0, le=23)
    is_published: bool = False

    @field_validator('professional_name')
    @classmethod
    def validate_professional_name(cls, value: str) -> str:
        normalized = value.strip()
        if not slugify(normalized):
            raise ValueError('Professional name must contain letters or numbers.')
        return normalized

    @model_validator(mode='after')
    def validate_working_hours(self) -> 'LandingPageRequest':
        if self.work_start_hour >= self.work_end_hour:
            raise ValueError('Working hours must start before they end.')
        return self


class LandingPageResponse(BaseModel):
    professional_id: str
    slug: str
    professional_name: str
    title: str | None = None
    description: str | None = None
    services: list[ServiceItem] = []
    show_calendar: bool
    appointment_duration: int
    buffer_time: int
    work_start_hour: int
    work_end_hour: int
    is_published: bool


def slugify(value: str) -> str:
    decomposed = unicodedata.normalize('NFD', value.lower())
    without_accents = ''.join(char for char in decomposed if unicodedata.category(char) != 'Mn')
    cleaned = re.sub(r'[^a-z0-9\s-]', '', without_accents).strip()
    return re.sub(r'-+', '-', re.sub(r'\s+', '-', cleaned))


def unique_slug(db: Session, base_slug: str, professional_id: int) -> str:
    candidate = base_slug
    counter = 1
    while db.query(LandingPage.id).filter(
        LandingPage.slug == candidate,
        LandingPage.user_id != professional_id,
    ).first():
        candidate = f'{base_slug}-{counter}'
        counter += 1
    return candidate


def to_landing_page_response(landing_page: LandingPage, professional: User) -> LandingPageResponse:
    return LandingPageResponse(
        professional_id=professional.subject,
        slug=landing_page.slug,
        professional_name=landing_page.professional_name,
        title=landing_page.title,
        description=landing_page.description,
        services=landing_page.services or [],
        show_calendar=landing_page.show_calendar,
        appointment_duration=landing_page.appointment_duration,
        buffer_time=landing_page.buffer_time,
        work_start_hour=landing_page.work_start_hour,
        work_end_hour=landing_page.work_end_hour,
        is_published=landing_page.is_published,
    )


@router.get('', response_model=LandingPageResponse)
def get_landing_page(
    professional: User = Depends(get_current_professional),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        landing_page = db.query(LandingPage).filter(LandingPage.user_id == professional.id).first()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    if landing_page is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Landing page not found.',
        )

    return to_landing_page_response(landing_page, professional)


@router.put('', response_model=LandingPageResponse)
def save_landing_page(
    data: LandingPageRequest,
    professional: User = Depends(get_current_professional),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        slug = unique_slug(db, slugify(data.professional_name), professional.id)
        values = data.model_dump()
        values['slug'] = slug

        landing_page = db.query(LandingPage).filter(LandingPage.user_id == professional.id).first()
        if landing_page is None:
            landing_page = LandingPage(user_id=professional.id, **values)
            db.add(landing_page)
        else:
            for field, value in values.items():
                setattr(landing_page, field, value)

        db.commit()
        db.refresh(landing_page)

        return to_landing_page_response(landing_page, professional)
    except IntegrityError as exc:
        db.rollback()
        logger.warning('Landing page slug collided for professional %s', professional.id)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail='This page address was just taken. Please save again.',
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc
