from datetime import datetime

import pytest
from fastapi import HTTPException

from backend.models.appointment import Appointment
from backend.models.customer import Customer
from backend.models.user import User
from backend.routes.customer_routes import (
    CreateCustomerRequest,
    UpdateCustomerRequest,
    create_customer,
    delete_customer,
    get_customer,
    list_customers,
    update_customer,
)


@pytest.fixture
def other_professional(db):
    other = User(subject='user_pro_2', email='other@example.com', name='Otro')
    db.add(other)
    db.commit()
    db.refresh(other)
    return other


def test_create_customer_normalizes_email(db, professional) -> None:
    customer = create_customer(
        data=CreateCustomerRequest(name=' Beatriz Lagos ', email=' BEA@Example.com '),
        professional=professional,
        db=db,
    )

    assert customer.name == 'Beatriz Lagos'
    assert customer.email == 'bea@example.com'


def test_create_customer_rejects_duplicate_email(db, professional, customer) -> None:
    with pytest.raises(HTTPException) as exception_info:
        create_customer(
            data=CreateCustomerRequest(name='Carlos', email='CARLOS@example.com'),
            professional=professional,
            db=db,
        )

    assert exception_info.value.status_code == 409


def test_list_customers_only_returns_own_customers(db, professional, customer, other_professional) -> None:
    create_customer(data=CreateCustomerRequest(name='Ajeno'), professional=other_professional, db=db)

    customers = list_customers(professional=professional, db=db)

    assert [item.id for item in customers] == [customer.id]


def test_get_customer_returns_own_customer(db, professional, customer) -> None:
    assert get_customer(customer_id=customer.id, professional=professional, db=db).email == 'carlos@example.com'


def test_get_customer_of_another_professional_is_404(db, customer, other_professional) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_customer(customer_id=customer.id, professional=other_professional, db=db)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Customer not found.'


def test_update_customer_changes_only_given_fields(db, professional, customer) -> None:
    updated = update_customer(
        customer_id=customer.id,
        data=UpdateCustomerRequest(phone='+56 9 1234 5678'),
        professional=professional,
        db=db,
    )

    assert updated.name == 'Carlos Soto'
    assert updated.email == 'carlos@example.com'
    assert updated.phone == '+56 9 1234 5678'


def test_update_customer_keeping_own_email_is_allowed(db, professional, customer) -> None:
    updated = update_customer(
        customer_id=customer.id,
        data=UpdateCustomerRequest(name='Carlos Soto Vera', email='Carlos@Example.com'),
        professional=professional,
        db=db,
    )

    assert updated.name == 'Carlos Soto Vera'
    assert updated.email == 'carlos@example.com'


def test_update_customer_to_taken_email_is_409(db, professional, customer) -> None:
    second = create_customer(
        data=CreateCustomerRequest(name='Beatriz', email='bea@example.com'),
        professional=professional,
        db=db,
    )

    with pytest.raises(HTTPException) as exception_info:
        update_customer(
            customer_id=second.id,
            data=UpdateCustomerRequest(email='CARLOS@example.com'),
            professional=professional,
            db=db,
        )

    assert exception_info.value.status_code == 409
    db.refresh(second)
    assert second.email == 'bea@example.com'


@pytest.mark.parametrize('status', ['PENDING', 'CONFIRMED'])
def test_delete_customer_with_active_appointment_is_409(db, professional, customer, add_appointment, status: str) -> None:
    add_appointment(datetime(2025, 3, 10, 10, 0), status=status)

    with pytest.raises(HTTPException) as exception_info:
        delete_customer(customer_id=customer.id, professional=professional, db=db)

    assert exception_info.value.status_code == 409
    assert db.get(Customer, customer.id) is not None


def test_delete_customer_removes_finished_history(db, professional, customer, add_appointment) -> None:
    add_appointment(datetime(2025, 3, 10, 10, 0), status='COMPLETED')
    add_appointment(datetime(2025, 3, 11, 10, 0), status='CANCELLED')

    delete_customer(customer_id=customer.id, professional=professional, db=db)

    assert db.query(Customer).count() == 0
    assert db.query(Appointment).count() == 0


def test_delete_customer_of_another_professional_is_404(db, customer, other_professional) -> None:
    with pytest.raises(HTTPException) as exception_info:
        delete_customer(customer_id=customer.id, professional=other_professional, db=db)

    assert exception_info.value.status_code == 404
    assert db.get(Customer, customer.id) is not None
