# app/crud/notification.py
from sqlalchemy.orm import Session
from sqlalchemy import update
from app.models.notification import Notification
from typing import List

def create_notification(
    db: Session,
    user_id: str,
    type: str,
    title: str,
    message: str | None = None,
    kind: str | None = None,
    order_id: str | None = None
) -> Notification:
    """Создает новое уведомление для счёта."""
    db_notification = Notification(
        user_id=user_id,
        type=type,
        kind=kind,
        title=title,
        message=message,
        order_id=order_id
    )
    db.add(db_notification)
    db.commit()
    db.refresh(db_notification)
    return db_notification

def get_notifications(
    db: Session,
    user_id: str,
    skip: int = 0,
    limit: int = 20,
    unread_only: bool = False
) -> List[Notification]:
    """Получает пагинированный список уведомлений."""
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read == False)
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).offset(skip).limit(limit).all()

def count_notifications(db: Session, user_id: str, unread_only: bool = False) -> int:
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read == False)
    return query.count()

def mark_notification_as_read(db: Session, user_id: str, notification_id: int) -> Notification | None:
    """Помечает одно уведомление как прочитанное."""
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user_id
    ).first()
    if notification:
        notification.is_read = True
        db.commit()
    return notification

def mark_all_notifications_as_read(db: Session, user_id: str):
    """Помечает все уведомления счёта как прочитанные."""
    stmt = update(Notification).where(
        Notification.user_id == user_id,
        Notification.is_read == False
    ).values(is_read=True)
    db.execute(stmt)
    db.commit()
