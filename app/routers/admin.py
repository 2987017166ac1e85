# app/routers/admin.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.dependencies import get_admin_user, get_db
from app.models.order import OrderStatus
from app.models.user import Account
from app.schemas.order import Order, OrderStatusUpdate, PaginatedOrders
from app.schemas.user import Account as AccountSchema, AccountCreate, AccountToken
from app.services import auth as auth_service
from app.services import order as order_service
from app.services import order_status as order_status_service
from app.services import user as user_service

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_admin_user)])


@router.get("/orders", response_model=PaginatedOrders)
def get_orders_list(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[OrderStatus] = Query(default=None, description="Filter by status: pending, approved, shipped, etc."),
    db: Session = Depends(get_db)
):
    """
    [ADMIN] Постраничный список всех заказов.
    """
    return order_service.get_paginated_orders(db, page, size, status=status.value if status else None)


@router.put("/orders/{order_id}/status", response_model=Order)
def update_order_status_endpoint(
    order_id: str,
    status_update: OrderStatusUpdate,
    admin: Account = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """
    [ADMIN] Переводит заказ в новый статус и уведомляет покупателя.
    """
    return order_status_service.update_order_status(
        db,
        order_id=order_id,
        new_status=status_update.status,
        reviewer=admin.id,
        rejection_reason=status_update.rejection_reason,
        admin_notes=status_update.admin_notes,
    )


@router.post("/accounts", response_model=AccountToken, status_code=status.HTTP_201_CREATED)
def register_account(
    account_data: AccountCreate,
    db: Session = Depends(get_db)
):
    """
    [ADMIN] Регистрирует счёт для провайдера идентификации (идемпотентно по id)
    и выдаёт токен доступа. Реферальный код, если есть, применяется сразу после создания.
    """
    account = user_service.register_or_get_account(
        db,
        account_id=account_data.id,
        email=account_data.email,
        display_name=account_data.display_name,
        referral_code=account_data.referral_code,
    )
    return AccountToken(
        account=AccountSchema.model_validate(account),
        access_token=auth_service.create_account_token(account.id),
    )
