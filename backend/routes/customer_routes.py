import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_professional
from backend.database import get_db
from backend.models.appointment import ACTIVE_STATUSES, Appointment
from backend.models.customer import Customer
from backend.models.user import User
from backend.routes.errors import database_unavailable, ensure_database_ready, scheduling_http_error
from backend.scheduling import store
from backend.scheduling.errors import SchedulingError

router = APIRouter(tags=['customers'])
logger = logging.getLogger(__name__)


class CreateCustomerRequest(BaseModel):
    name: str
    email: str | None = None
    phone: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Customer name is required.')
        return normalized

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().lower() or None


class CustomerResponse(BaseModel):
    id: int
    name: str
    email: str | None = None
    phone: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class UpdateCustomerRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if not normalized:
            raise ValueError('Customer name cannot be blank.')
        return normalized

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().lower() or None


def _email_taken(db: Session, professional_id: int, email: str, exclude_customer_id: int | None = None) -> bool:
    query = db.query(Customer.id).filter(
        Customer.user_id == professional_id,
        func.lower(Customer.email) == email,
    )
    if exclude_customer_id is not None:
        query = query.filter(Customer.id != exclude_customer_id)
    return query.first() is not None


def _duplicate_email_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail='A customer with this email already exists.',
    )


@router.get('', response_model=list[CustomerResponse])
def list_customers(
    professional: User = Depends(get_current_professional),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return db.query(Customer).filter(
            Customer.user_id == professional.id,
        ).order_by(Customer.name.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('', response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(
    data: CreateCustomerRequest,
    professional: User = Depends(get_current_professional),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        if data.email and _email_taken(db, professional.id, data.email):
            raise _duplicate_email_error()

        customer = Customer(user_id=professional.id, name=data.name, email=data.email, phone=data.phone)
        db.add(customer)
        db.commit()
        db.refresh(customer)

        return customer
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/{customer_id}', response_model=CustomerResponse)
def get_customer(
    customer_id: int,
    professional: User = Depends(get_current_professional),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return store.get_customer(db, professional.id, customer_id)
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.put('/{customer_id}', response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    data: UpdateCustomerRequest,
    professional: User = Depends(get_current_professional),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    changes = data.model_dump(exclude_unset=True)
    try:
        customer = store.get_customer(db, professional.id, customer_id)
        if changes.get('email') and _email_taken(db, professional.id, changes['email'], exclude_customer_id=customer.id):
            raise _duplicate_email_error()

        if changes.get('name'):
            customer.name = changes['name']
        for field in ('email', 'phone'):
            if field in changes:
                setattr(customer, field, changes[field] or None)

        db.commit()
        db.refresh(customer)

        return customer
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.delete('/{customer_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    customer_id: int,
    professional: User = Depends(get_current_professional),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        store.lock_professional(db, professional.id)
        customer = store.get_customer(db, professional.id, customer_id)
        active_appointments = db.query(Appointment.id).filter(
            Appointment.user_id == professional.id,
            Appointment.customer_id == customer.id,
            Appointment.status.in_(ACTIVE_STATUSES),
        ).count()
        if active_appointments:
            db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail='Customer has pending or confirmed appointments.',
            )

        db.query(Appointment).filter(
            Appointment.user_id == professional.id,
            Appointment.customer_id == customer.id,
        ).delete(synchronize_session=False)
        db.delete(customer)
        db.commit()
    except SchedulingError as exc:
        raise scheduling_http_error(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

    logger.info('Deleted customer %s of professional %s', customer_id, professional.id)
