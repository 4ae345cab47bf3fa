from datetime import date, datetime, time

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from backend.models.appointment import Appointment
from backend.routes.notification_routes import list_notifications
from backend.routes.public_routes import (
    PublicAppointmentRequest,
    PublicBookingForm,
    create_public_appointment,
    get_public_landing_page,
)


def _request(professional_id: str, selected_time: time, service_id: str | None = None) -> PublicAppointmentRequest:
    return PublicAppointmentRequest(
        professional_id=professional_id,
        form_data=PublicBookingForm(name=' Lucía ', last_name='Rojas', email=' LUCIA@EXAMPLE.COM ', comment='  '),
        selected_date=date(2025, 3, 10),
        selected_time=selected_time,
        service_id=service_id,
    )


def test_public_booking_form_normalizes_fields() -> None:
    form = PublicBookingForm(name=' Lucía ', email=' LUCIA@EXAMPLE.COM ', comment='  ')

    assert form.name == 'Lucía'
    assert form.email == 'lucia@example.com'
    assert form.comment is None


@pytest.mark.parametrize(('name', 'email'), [('   ', 'a@b.cl'), ('Lucía', 'not-an-email')])
def test_public_booking_form_requires_name_and_email(name: str, email: str) -> None:
    with pytest.raises(ValidationError):
        PublicBookingForm(name=name, email=email)


def test_public_booking_creates_pending_appointment(db, professional, landing_page) -> None:
    response = create_public_appointment(data=_request(professional.subject, time(11, 0)), db=db)

    assert response.status == 'PENDING'
    assert response.start_time == datetime(2025, 3, 10, 11, 0)
    assert response.duration_minutes == 60
    assert response.customer.name == 'Lucía Rojas'
    assert response.professional.email == professional.email


def test_public_booking_conflict_is_409(db, professional, landing_page, add_appointment) -> None:
    existing = add_appointment(datetime(2025, 3, 10, 10, 0))

    with pytest.raises(HTTPException) as exception_info:
        create_public_appointment(data=_request(professional.subject, time(10, 15), 'short'), db=db)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail['conflicts'][0]['id'] == existing.id
    assert db.query(Appointment).count() == 1


def test_public_booking_for_unknown_professional_is_404(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        create_public_appointment(data=_request('ghost', time(11, 0)), db=db)

    assert exception_info.value.status_code == 404


def test_published_landing_page_is_served_with_professional_id(db, professional, landing_page) -> None:
    response = get_public_landing_page(slug='ana-perez', db=db)

    assert response.professional_id == professional.subject
    assert [service.id for service in response.services] == ['short', 'long']
    assert response.work_end_hour == 18


def test_unpublished_landing_page_is_404(db, professional, landing_page) -> None:
    landing_page.is_published = False
    db.commit()

    with pytest.raises(HTTPException) as exception_info:
        get_public_landing_page(slug='ana-perez', db=db)

    assert exception_info.value.status_code == 404


def test_public_booking_notifies_the_professional(db, professional, landing_page) -> None:
    create_public_appointment(data=_request(professional.subject, time(11, 0), 'short'), db=db)

    notifications = list_notifications(unread=True, professional=professional, db=db)

    assert [item.message for item in notifications] == ['New appointment booked: Lucía Rojas on 10/03/2025 at 11:00']
