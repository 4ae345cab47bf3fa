from datetime import date, datetime, time, timedelta

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_professional
from backend.database import get_db
from backend.models.appointment import Appointment, AppointmentStatus
from backend.models.customer import Customer
from backend.models.user import User
from backend.routes.errors import database_unavailable, ensure_database_ready

router = APIRouter(tags=['stats'])


class StatsResponse(BaseModel):
    appointments_today: int
    total_customers: int
    status_counts: dict[str, int]
    completed_this_month: int
    income_this_month: int
    income_last_month: int
    income_total: int


def _month_start(day: date) -> datetime:
    return datetime.combine(day.replace(day=1), time.min)


def _next_month_start(day: date) -> datetime:
    return _month_start(day.replace(day=28) + timedelta(days=4))


def _completed_income(db: Session, professional_id: int, range_start=None, range_end=None) -> int:
    query = db.query(func.coalesce(func.sum(Appointment.public_price), 0)).filter(
        Appointment.user_id == professional_id,
        Appointment.status == AppointmentStatus.COMPLETED.value,
    )
    if range_start is not None:
        query = query.filter(Appointment.start_time >= range_start, Appointment.start_time < range_end)
    return int(query.scalar())


def summarize_agenda(db: Session, professional_id: int, today: date) -> StatsResponse:
    """Dashboard counts and income for ``today`` and its calendar month.

    Income only counts COMPLETED appointments; an unpriced one adds nothing.
    """
    day_start = datetime.combine(today, time.min)
    month_start = _month_start(today)
    month_end = _next_month_start(today)
    last_month_start = _month_start(month_start.date() - timedelta(days=1))

    appointments = db.query(Appointment).filter(Appointment.user_id == professional_id)
    counts = dict(
        appointments.with_entities(Appointment.status, func.count(Appointment.id)).group_by(Appointment.status).all()
    )

    return StatsResponse(
        appointments_today=appointments.filter(
            Appointment.start_time >= day_start,
            Appointment.start_time < day_start + timedelta(days=1),
        ).count(),
        total_customers=db.query(Customer).filter(Customer.user_id == professional_id).count(),
        status_counts={status.value: counts.get(status.value, 0) for status in AppointmentStatus},
        completed_this_month=appointments.filter(
            Appointment.status == AppointmentStatus.COMPLETED.value,
            Appointment.start_time >= month_start,
            Appointment.start_time < month_end,
        ).count(),
        income_this_month=_completed_income(db, professional_id, month_start, month_end),
        income_last_month=_completed_income(db, professional_id, last_month_start, month_start),
        income_total=_completed_income(db, professional_id),
    )


@router.get('', response_model=StatsResponse)
def get_stats(
    professional: User = Depends(get_current_professional),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return summarize_agenda(db, professional.id, date.today())
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc
