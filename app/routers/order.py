# app/routers/order.py
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from app.dependencies import get_current_user, get_db
from app.models.order import OrderStatus
from app.models.user import Account
from app.schemas.order import (
    Order, OrderCreate, OrderPreviewRequest, OrderQuote, OrderStats, PaginatedOrders, PaymentProofSubmit
)
from app.services import order as order_service

router = APIRouter()

@router.post("/orders", response_model=Order, status_code=status.HTTP_201_CREATED)
def create_new_order(
    order_data: OrderCreate,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Оформляет заказ по снимку корзины из тела запроса.
    Цены, скидки и итог всегда пересчитываются на сервере.
    """
    return order_service.create_order(
        db,
        account_id=current_user.id,
        items=order_data.items,
        delivery=order_data.delivery,
        promotion_type=order_data.promotion,
        vouchers_to_use=order_data.vouchers_to_use,
        order_id=order_data.order_id,
        payment_method=order_data.payment_method,
        payment_proof_ref=order_data.payment_proof_ref,
    )


@router.post("/orders/preview", response_model=OrderQuote)
def preview_order(
    preview_data: OrderPreviewRequest,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Предварительный расчёт для страницы оформления: сколько ваучеров можно
    применить, скидка, доставка и итог. Заказ не создаётся.
    """
    return order_service.preview_order(
        db,
        account_id=current_user.id,
        items=preview_data.items,
        promotion_type=preview_data.promotion,
        vouchers_to_use=preview_data.vouchers_to_use,
        area_id=preview_data.area_id,
    )


@router.get("/orders", response_model=PaginatedOrders)
def get_orders_history(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[OrderStatus] = Query(None, description="Filter by order status"),
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    История заказов текущего счёта, новые сверху.
    """
    return order_service.get_paginated_orders(
        db, page, size, account_id=current_user.id, status=status.value if status else None
    )


@router.get("/orders/stats", response_model=OrderStats)
def get_orders_stats(
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return order_service.get_user_order_stats(db, current_user.id)


@router.get("/orders/{order_id}", response_model=Order)
def get_single_order(
    order_id: str,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Детали одного заказа текущего счёта.
    """
    order = order_service.get_user_order(db, order_id, current_user.id)
    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found or you do not have access to it."
        )
    return order


@router.post("/orders/{order_id}/payment-proof", response_model=Order)
def submit_order_payment_proof(
    order_id: str,
    proof: PaymentProofSubmit,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Сохраняет ссылку на загруженное подтверждение оплаты. Оплата не проверяется."""
    return order_service.submit_payment_proof(
        db, current_user.id, order_id, proof.payment_proof_ref, proof.payment_method
    )
