from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException

from backend.models.notification import Notification
from backend.models.user import User
from backend.routes.notification_routes import (
    MarkNotificationsRequest,
    list_notifications,
    mark_notifications_read,
)


@pytest.fixture
def add_notification(db, professional):
    def _add(message: str, created_at: datetime, read: bool = False, user_id: int | None = None) -> Notification:
        notification = Notification(
            user_id=user_id or professional.id,
            message=message,
            read=read,
            created_at=created_at,
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)
        return notification

    return _add


def test_list_notifications_newest_first_and_scoped(db, professional, add_notification) -> None:
    other = User(subject='user_pro_2', email='other@example.com', name='Otro')
    db.add(other)
    db.commit()
    add_notification('older', datetime(2025, 3, 10, 9, 0))
    add_notification('newer', datetime(2025, 3, 10, 12, 0), read=True)
    add_notification('foreign', datetime(2025, 3, 10, 15, 0), user_id=other.id)

    notifications = list_notifications(unread=False, professional=professional, db=db)

    assert [item.message for item in notifications] == ['newer', 'older']


def test_list_notifications_can_filter_unread(db, professional, add_notification) -> None:
    add_notification('seen', datetime(2025, 3, 10, 9, 0), read=True)
    add_notification('fresh', datetime(2025, 3, 10, 10, 0))

    notifications = list_notifications(unread=True, professional=professional, db=db)

    assert [item.message for item in notifications] == ['fresh']


def test_list_notifications_is_capped_at_fifty(db, professional, add_notification) -> None:
    first = datetime(2025, 3, 1, 8, 0)
    for index in range(55):
        add_notification(f'n{index}', first + timedelta(minutes=index))

    notifications = list_notifications(unread=False, professional=professional, db=db)

    assert len(notifications) == 50
    assert notifications[0].message == 'n54'
    assert notifications[-1].message == 'n5'


def test_mark_given_notifications_read(db, professional, add_notification) -> None:
    target = add_notification('target', datetime(2025, 3, 10, 9, 0))
    untouched = add_notification('untouched', datetime(2025, 3, 10, 10, 0))

    result = mark_notifications_read(
        data=MarkNotificationsRequest(notification_ids=[target.id]),
        professional=professional,
        db=db,
    )

    assert result == {'updated': 1}
    db.refresh(target)
    db.refresh(untouched)
    assert target.read is True
    assert untouched.read is False


def test_mark_all_ignores_other_professionals(db, professional, add_notification) -> None:
    other = User(subject='user_pro_2', email='other@example.com', name='Otro')
    db.add(other)
    db.commit()
    add_notification('one', datetime(2025, 3, 10, 9, 0))
    add_notification('two', datetime(2025, 3, 10, 10, 0))
    foreign = add_notification('foreign', datetime(2025, 3, 10, 11, 0), user_id=other.id)

    result = mark_notifications_read(
        data=MarkNotificationsRequest(mark_all_as_read=True, notification_ids=[foreign.id]),
        professional=professional,
        db=db,
    )

    assert result == {'updated': 2}
    db.refresh(foreign)
    assert foreign.read is False
    assert list_notifications(unread=True, professional=professional, db=db) == []


def test_mark_without_ids_or_flag_is_400(db, professional) -> None:
    with pytest.raises(HTTPException) as exception_info:
        mark_notifications_read(data=MarkNotificationsRequest(), professional=professional, db=db)

    assert exception_info.value.status_code == 400
