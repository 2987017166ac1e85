# app/routers/notification.py

from fastapi import APIRouter, Depends, Response, Query
from sqlalchemy.orm import Session

from app.dependencies import get_current_user, get_db
from app.models.user import Account
from app.schemas.notification import PaginatedNotifications
from app.services import notification as notification_service

router = APIRouter()

@router.get("/notifications", response_model=PaginatedNotifications)
def get_user_notifications(
    unread_only: bool = Query(False, description="Return unread notifications only"),
    page: int = Query(1, ge=1, description="Page number"),
    size: int = Query(20, ge=1, le=100, description="Notifications per page"),
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Список уведомлений с пагинацией, новые сверху.
    """
    return notification_service.get_paginated(db, current_user.id, page, size, unread_only)

@router.post("/notifications/{notification_id}/read", status_code=204)
def read_notification(
    notification_id: int,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Помечает одно уведомление как прочитанное."""
    notification_service.mark_as_read(db, current_user.id, notification_id)
    return Response(status_code=204)

@router.post("/notifications/read-all", status_code=204)
def read_all_notifications(
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Помечает ВСЕ уведомления счёта как прочитанные."""
    notification_service.mark_all_as_read(db, current_user.id)
    return Response(status_code=204)
