# app/services/notification.py

import logging
import math
from sqlalchemy.orm import Session

from app.crud import notification as crud_notification
from app.models.notification import Notification
from app.models.order import OrderStatus
from app.schemas.notification import Notification as NotificationSchema
from app.schemas.notification import PaginatedNotifications

logger = logging.getLogger(__name__)

ORDER_STATUS_NOTIFICATION_TYPE = "order_status"

# Фиксированные заголовок и текст для каждого статуса заказа
STATUS_COPY = {
    OrderStatus.PENDING: {
        "title": "Order pending",
        "message": "We have received your order and will review your payment proof shortly.",
    },
    OrderStatus.APPROVED: {
        "title": "Order approved",
        "message": "Your payment has been approved. We are preparing your order.",
    },
    OrderStatus.REJECTED: {
        "title": "Order rejected",
        "message": "Your payment could not be verified. Please contact support if needed.",
    },
    OrderStatus.CONFIRMED: {
        "title": "Order confirmed",
        "message": "Your order is confirmed and will be packed soon.",
    },
    OrderStatus.SHIPPED: {
        "title": "Order shipped",
        "message": "Your order is on the way.",
    },
    OrderStatus.DELIVERED: {
        "title": "Order delivered",
        "message": "Your order has been delivered. Thank you for shopping with us!",
    },
    OrderStatus.CANCELLED: {
        "title": "Order cancelled",
        "message": "Your order has been cancelled.",
    },
}


def build_status_message(order_id: str | None, status: OrderStatus, rejection_reason: str | None = None) -> tuple[str, str]:
    """Возвращает (заголовок, текст) уведомления о статусе заказа."""
    copy = STATUS_COPY[status]
    order_label = f"Order {order_id}" if order_id else "Your order"
    message = f"{order_label}: {copy['message']}"
    if status == OrderStatus.REJECTED and rejection_reason:
        message = f"{order_label} was rejected. Reason: {rejection_reason}"
    return copy["title"], message


def enqueue(
    db: Session,
    user_id: str,
    order_id: str,
    status: OrderStatus | str,
    rejection_reason: str | None = None
) -> Notification | None:
    """Добавляет счёту уведомление о статусе заказа."""
    if not user_id:
        return None

    status = OrderStatus(status)
    title, message = build_status_message(order_id, status, rejection_reason)
    notification = crud_notification.create_notification(
        db,
        user_id=user_id,
        type=ORDER_STATUS_NOTIFICATION_TYPE,
        kind=status.value,
        title=title,
        message=message,
        order_id=order_id,
    )
    logger.info(f"Notification '{status.value}' queued for account {user_id} (order {order_id})")
    return notification


def get_paginated(db: Session, user_id: str, page: int, size: int, unread_only: bool) -> PaginatedNotifications:
    """Страница уведомлений счёта, новые сверху."""
    skip = (page - 1) * size
    items = crud_notification.get_notifications(db, user_id=user_id, skip=skip, limit=size, unread_only=unread_only)
    total_items = crud_notification.count_notifications(db, user_id=user_id, unread_only=unread_only)
    total_pages = math.ceil(total_items / size) if total_items > 0 else 1

    return PaginatedNotifications(
        total_items=total_items,
        total_pages=total_pages,
        current_page=page,
        size=size,
        items=[NotificationSchema.model_validate(n) for n in items]
    )


def mark_as_read(db: Session, user_id: str, notification_id: int) -> Notification | None:
    return crud_notification.mark_notification_as_read(db, user_id=user_id, notification_id=notification_id)


def mark_all_as_read(db: Session, user_id: str):
    crud_notification.mark_all_notifications_as_read(db, user_id=user_id)
