from datetime import date, datetime

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from backend.routes import stats_routes
from backend.routes.stats_routes import get_stats, summarize_agenda


@pytest.fixture
def priced_appointment(db, add_appointment):
    def _add(start_time: datetime, status: str, price: int | None):
        appointment = add_appointment(start_time, status=status)
        appointment.public_price = price
        db.commit()
        return appointment

    return _add


def test_summary_counts_statuses_and_income_from_completed_only(db, professional, customer, priced_appointment) -> None:
    priced_appointment(datetime(2025, 3, 15, 10, 0), 'COMPLETED', 20000)
    priced_appointment(datetime(2025, 3, 3, 9, 0), 'COMPLETED', None)
    priced_appointment(datetime(2025, 2, 20, 9, 0), 'COMPLETED', 15000)
    priced_appointment(datetime(2025, 1, 10, 9, 0), 'COMPLETED', 5000)
    priced_appointment(datetime(2025, 3, 15, 15, 0), 'CANCELLED', 9999)
    priced_appointment(datetime(2025, 3, 20, 9, 0), 'PENDING', 12000)

    stats = summarize_agenda(db, professional.id, date(2025, 3, 15))

    assert stats.appointments_today == 2
    assert stats.total_customers == 1
    assert stats.status_counts == {'PENDING': 1, 'CONFIRMED': 0, 'COMPLETED': 4, 'CANCELLED': 1}
    assert stats.completed_this_month == 2
    assert stats.income_this_month == 20000
    assert stats.income_last_month == 15000
    assert stats.income_total == 40000


def test_summary_in_january_reads_previous_december(db, professional, priced_appointment) -> None:
    priced_appointment(datetime(2024, 12, 31, 17, 0), 'COMPLETED', 7000)
    priced_appointment(datetime(2025, 1, 31, 17, 0), 'COMPLETED', 3000)

    stats = summarize_agenda(db, professional.id, date(2025, 1, 2))

    assert stats.income_this_month == 3000
    assert stats.income_last_month == 7000
    assert stats.appointments_today == 0


def test_summary_without_appointments_is_all_zero(db, professional) -> None:
    stats = get_stats(professional=professional, db=db)

    assert stats.income_total == 0
    assert stats.total_customers == 0
    assert set(stats.status_counts.values()) == {0}


def test_stats_database_failure_is_503(db, professional, monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_summary(*args, **kwargs):
        raise OperationalError('SELECT', {}, Exception('connection lost'))

    monkeypatch.setattr(stats_routes, 'summarize_agenda', failing_summary)

    with pytest.raises(HTTPException) as exception_info:
        get_stats(professional=professional, db=db)

    assert exception_info.value.status_code == 503
