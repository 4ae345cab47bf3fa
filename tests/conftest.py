import os
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from backend.database import Base  # noqa: E402
from backend.models.appointment import Appointment  # noqa: E402
from backend.models.customer import Customer  # noqa: E402
from backend.models.landing_page import LandingPage  # noqa: E402
from backend.models.notification import Notification  # noqa: E402, F401
from backend.models.user import User  # noqa: E402


@pytest.fixture
def db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def professional(db):
    user = User(subject='user_pro_1', email='pro@example.com', name='Ana Pérez')
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def customer(db, professional):
    record = Customer(user_id=professional.id, name='Carlos Soto', email='carlos@example.com')
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def add_appointment(db, professional, customer):
    def _add(start_time: datetime, duration_minutes: int = 60, status: str = 'CONFIRMED') -> Appointment:
        appointment = Appointment(
            user_id=professional.id,
            customer_id=customer.id,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=duration_minutes),
            duration_minutes=duration_minutes,
            status=status,
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    return _add


@pytest.fixture
def landing_page(db, professional):
    page = LandingPage(
        user_id=professional.id,
        slug='ana-perez',
        professional_name='Ana Pérez',
        services=[
            {'id': 'short', 'name': 'Consulta breve', 'description': 'Control', 'price': '$15.000', 'duration': 20, 'buffer_time': 10},
            {'id': 'long', 'name': 'Sesión completa', 'description': 'Terapia', 'price': None, 'duration': None, 'buffer_time': None},
        ],
        appointment_duration=60,
        buffer_time=0,
        work_start_hour=9,
        work_end_hour=18,
        is_published=True,
    )
    db.add(page)
    db.commit()
    db.refresh(page)
    return page
