# app/services/order_status.py

import logging
from datetime import datetime, timezone
from typing import Dict, FrozenSet, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import InvalidTransitionError, OrderNotFoundError
from app.crud import order as crud_order
from app.models.order import Order, OrderStatus
from app.services import notification as notification_service
from app.services.ledger import run_in_transaction

logger = logging.getLogger(__name__)

# Допустимые переходы. Статусы, которых нет среди ключей, конечные.
ORDER_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.APPROVED, OrderStatus.REJECTED, OrderStatus.CANCELLED}),
    OrderStatus.APPROVED: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
}
TERMINAL_STATUSES = frozenset({OrderStatus.REJECTED, OrderStatus.DELIVERED, OrderStatus.CANCELLED})
# Статусы, в которых фиксируется, кто и когда проверил оплату
REVIEW_STATUSES = frozenset({OrderStatus.APPROVED, OrderStatus.REJECTED})


def allowed_transitions(current: OrderStatus | str) -> FrozenSet[OrderStatus]:
    return ORDER_TRANSITIONS.get(OrderStatus(current), frozenset())


def can_transition(current: OrderStatus | str, new: OrderStatus | str) -> bool:
    return OrderStatus(new) in allowed_transitions(current)


def update_order_status(
    db: Session,
    order_id: str,
    new_status: OrderStatus | str,
    reviewer: Optional[str] = None,
    rejection_reason: Optional[str] = None,
    admin_notes: Optional[str] = None
) -> Order:
    """
    Переводит заказ в ``new_status`` и уведомляет владельца.

    Заказ перечитывается внутри транзакции, версия строки проверяется
    при записи: при параллельной смене статуса переход заново проверяется
    по свежему статусу, а не перезаписывает его.
    Уведомление отправляется только после коммита, его сбой не критичен.
    """
    new_status = OrderStatus(new_status)

    def _attempt(session: Session) -> Order:
        order = crud_order.get_order_by_order_id(session, order_id)
        if not order:
            raise OrderNotFoundError(f"Order {order_id} not found.")

        current_status = OrderStatus(order.status)
        if not can_transition(current_status, new_status):
            raise InvalidTransitionError(
                f"Order {order_id} cannot go from '{current_status.value}' to '{new_status.value}'."
            )

        now = datetime.now(timezone.utc)
        order.status = new_status.value
        order.updated_at = now

        if new_status in REVIEW_STATUSES:
            order.reviewed_at = now
            order.reviewed_by = reviewer
        if new_status == OrderStatus.REJECTED and rejection_reason:
            order.rejection_reason = rejection_reason
        if admin_notes:
            order.admin_notes = admin_notes
        return order

    order = run_in_transaction(db, _attempt, operation=f"update_order_status[{order_id}]")
    logger.info(f"Order {order_id} moved to '{new_status.value}' by {reviewer or 'system'}")

    # Смена статуса уже закоммичена и останется такой, что бы ни случилось ниже
    try:
        notification_service.enqueue(
            db,
            user_id=order.account_id,
            order_id=order.order_id,
            status=new_status,
            rejection_reason=rejection_reason,
        )
    except Exception:
        db.rollback()
        logger.error(f"Failed to create status notification for order {order_id}", exc_info=True)

    return order
