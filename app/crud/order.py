# app/crud/order.py

from typing import List
from sqlalchemy.orm import Session
from sqlalchemy import func

from app.models.order import Order


def add_order(db: Session, order: Order) -> Order:
    """
    Добавляет заказ (вместе с позициями) в сессию.
    Требует внешнего db.commit().
    """
    db.add(order)
    return order

def get_order_by_order_id(db: Session, order_id: str) -> Order | None:
    """Ищет заказ по публичному номеру."""
    return db.query(Order).filter(Order.order_id == order_id).first()

def get_orders(
    db: Session,
    account_id: str | None = None,
    status: str | None = None,
    skip: int = 0,
    limit: int | None = None
) -> List[Order]:
    """Заказы с фильтром по счёту и/или статусу, новые сверху."""
    query = db.query(Order)
    if account_id:
        query = query.filter(Order.account_id == account_id)
    if status:
        query = query.filter(Order.status == status)
    query = query.order_by(Order.created_at.desc(), Order.id.desc()).offset(skip)
    if limit is not None:
        query = query.limit(limit)
    return query.all()

def count_orders(db: Session, account_id: str | None = None, status: str | None = None) -> int:
    query = db.query(func.count(Order.id))
    if account_id:
        query = query.filter(Order.account_id == account_id)
    if status:
        query = query.filter(Order.status == status)
    return query.scalar() or 0
