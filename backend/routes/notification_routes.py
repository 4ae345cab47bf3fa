from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_professional
from backend.database import get_db
from backend.models.notification import Notification
from backend.models.user import User
from backend.routes.errors import database_unavailable, ensure_database_ready

router = APIRouter(tags=['notifications'])

MAX_NOTIFICATIONS = 50


class NotificationResponse(BaseModel):
    id: int
    type: str
    message: str
    read: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class MarkNotificationsRequest(BaseModel):
    notification_ids: list[int] | None = None
    mark_all_as_read: bool = False


@router.get('', response_model=list[NotificationResponse])
def list_notifications(
    unread: bool = False,
    professional: User = Depends(get_current_professional),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        query = db.query(Notification).filter(Notification.user_id == professional.id)
        if unread:
            query = query.filter(Notification.read.is_(False))
        return query.order_by(
            Notification.created_at.desc(),
            Notification.id.desc(),
        ).limit(MAX_NOTIFICATIONS).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.put('')
def mark_notifications_read(
    data: MarkNotificationsRequest,
    professional: User = Depends(get_current_professional),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    if not data.mark_all_as_read and data.notification_ids is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Provide notification_ids or mark_all_as_read.',
        )

    try:
        query = db.query(Notification).filter(
            Notification.user_id == professional.id,
            Notification.read.is_(False),
        )
        if not data.mark_all_as_read:
            query = query.filter(Notification.id.in_(data.notification_ids))
        updated = query.update({Notification.read: True}, synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

    return {'updated': updated}
