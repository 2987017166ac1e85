# app/services/order.py

import logging
import math
import secrets
import string
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    AccountNotFoundError,
    DuplicateOrderIdError,
    OrderNotFoundError,
    PaymentProofError,
)
from app.crud import order as crud_order
from app.crud import user as crud_user
from app.models.order import Order, OrderItem, OrderStatus, PromotionType
from app.models.user import Account
from app.schemas.order import DeliveryInfo, OrderItemIn, OrderQuote, OrderStats, PaginatedOrders
from app.schemas.order import Order as OrderSchema
from app.services import promotion
from app.services.ledger import run_in_transaction

logger = logging.getLogger(__name__)

ORDER_ID_ALPHABET = string.ascii_uppercase + string.digits
ORDER_ID_LENGTH = 10


def generate_order_id() -> str:
    """Короткий случайный номер заказа: ORD-XXXXXXXXXX."""
    return "ORD-" + "".join(secrets.choice(ORDER_ID_ALPHABET) for _ in range(ORDER_ID_LENGTH))


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    promotion_type: PromotionType
    vouchers_applied: int
    voucher_discount: Decimal
    registration_discount: Decimal
    delivery_fee: Decimal
    total_amount: Decimal


def check_promotion(
    account: Account,
    items: List[OrderItemIn],
    promotion_type: PromotionType,
    vouchers_to_use: int
) -> promotion.PromotionCheck:
    """
    Проверяет выбранную акцию для счёта. В ``discount`` лежит скидка акции,
    в ``max_vouchers`` всегда лимит ваучеров для этих товаров.
    """
    if promotion_type == PromotionType.REFERRAL:
        return promotion.validate_voucher_usage(items, vouchers_to_use, account.voucher_balance)

    allowed = promotion.max_vouchers(items)
    if promotion_type == PromotionType.REGISTRATION:
        check = promotion.validate_registration_voucher(
            account.has_registration_voucher, account.registration_voucher_used
        )
        if not check.valid:
            return replace(check, max_vouchers=allowed)
        discount = promotion.registration_discount(promotion.calculate_subtotal(items))
        return replace(
            check, discount=discount, max_vouchers=allowed,
            message=f"Registration discount applied. You save {discount}!",
        )

    return promotion.PromotionCheck(valid=True, max_vouchers=allowed)


def price_order(
    account: Account,
    items: List[OrderItemIn],
    promotion_type: PromotionType,
    vouchers_to_use: int,
    delivery_fee: Decimal
) -> PriceBreakdown:
    """
    Считает все денежные поля заказа по товарам и состоянию счёта.
    Если акцию применить нельзя, бросает PromotionValidationError.
    """
    check = check_promotion(account, items, promotion_type, vouchers_to_use)
    check.raise_for_error()

    subtotal = promotion.calculate_subtotal(items)
    vouchers_applied = vouchers_to_use if promotion_type == PromotionType.REFERRAL else 0
    voucher_discount = check.discount if promotion_type == PromotionType.REFERRAL else promotion.ZERO
    registration_discount = check.discount if promotion_type == PromotionType.REGISTRATION else promotion.ZERO

    # Реферальный заказ без ваучеров считается заказом без акции
    if promotion_type == PromotionType.REFERRAL and vouchers_applied == 0:
        promotion_type = PromotionType.NONE

    total_amount = promotion.calculate_total(
        subtotal, voucher_discount + registration_discount, delivery_fee
    )
    return PriceBreakdown(
        subtotal=subtotal,
        promotion_type=promotion_type,
        vouchers_applied=vouchers_applied,
        voucher_discount=voucher_discount,
        registration_discount=registration_discount,
        delivery_fee=delivery_fee,
        total_amount=total_amount,
    )


def preview_order(
    db: Session,
    account_id: str,
    items: List[OrderItemIn],
    promotion_type: PromotionType = PromotionType.NONE,
    vouchers_to_use: int = 0,
    area_id: Optional[str] = None
) -> OrderQuote:
    """
    Расчёт для страницы оформления: лимит ваучеров, скидка, доставка, итог.
    Ничего не записывает. Невалидная акция не ошибка, а ``valid=False`` с
    причиной; итог тогда посчитан без скидки.
    """
    account = crud_user.get_account_by_id(db, account_id)
    if not account:
        raise AccountNotFoundError(f"Account {account_id} not found.")

    check = check_promotion(account, items, promotion_type, vouchers_to_use)
    discount = check.discount if check.valid else promotion.ZERO
    subtotal = promotion.calculate_subtotal(items)
    delivery_fee = promotion.get_delivery_fee(area_id)

    return OrderQuote(
        valid=check.valid,
        error_code=check.error.code if check.error else None,
        message=check.message,
        promotion_type=promotion_type,
        vouchers_requested=vouchers_to_use,
        max_vouchers=check.max_vouchers,
        available_vouchers=account.voucher_balance,
        registration_discount_available=(
            account.has_registration_voucher and not account.registration_voucher_used
        ),
        subtotal=subtotal,
        voucher_discount=discount if promotion_type == PromotionType.REFERRAL else promotion.ZERO,
        registration_discount=discount if promotion_type == PromotionType.REGISTRATION else promotion.ZERO,
        delivery_area_name=promotion.get_delivery_area_name(area_id),
        delivery_fee=delivery_fee,
        total_amount=promotion.calculate_total(subtotal, discount, delivery_fee),
    )


def create_order(
    db: Session,
    account_id: str,
    items: List[OrderItemIn],
    delivery: DeliveryInfo,
    promotion_type: PromotionType = PromotionType.NONE,
    vouchers_to_use: int = 0,
    order_id: Optional[str] = None,
    payment_method: Optional[str] = None,
    payment_proof_ref: Optional[str] = None
) -> Order:
    """
    Создаёт заказ и списывает выбранную акцию в одной транзакции.

    Либо закоммичены и заказ, и списание со счёта, либо ничего. При
    конкурентном изменении счёта весь цикл чтение-проверка-запись
    повторяется на свежих данных.

    ``order_id`` от клиента работает как ключ идемпотентности: повторный
    запрос возвращает заказ, созданный в первый раз.
    """
    if not items:
        raise ValueError("An order needs at least one item.")

    delivery_fee = promotion.get_delivery_fee(delivery.area_id)

    def _attempt(session: Session) -> Order:
        # --- Шаг 1: читаем счёт внутри транзакции ---
        account = crud_user.get_account_by_id(session, account_id)
        if not account:
            raise AccountNotFoundError(f"Account {account_id} not found.")

        if order_id:
            existing = crud_order.get_order_by_order_id(session, order_id)
            if existing:
                if existing.account_id != account_id:
                    raise DuplicateOrderIdError(f"Order ID {order_id} is already taken.")
                logger.info(f"Order {order_id} already exists for account {account_id}, returning it.")
                return existing

        # --- Шаг 2: цены и акция проверяются до любой записи ---
        pricing = price_order(account, items, promotion_type, vouchers_to_use, delivery_fee)

        # --- Шаг 3: собираем заказ ---
        now = datetime.now(timezone.utc)
        order = Order(
            order_id=order_id or generate_order_id(),
            account_id=account.id,
            subtotal=pricing.subtotal,
            promotion_type=pricing.promotion_type.value,
            vouchers_applied=pricing.vouchers_applied,
            voucher_discount=pricing.voucher_discount,
            registration_discount=pricing.registration_discount,
            delivery_fee=pricing.delivery_fee,
            total_amount=pricing.total_amount,
            delivery_area=delivery.area_id,
            delivery_address=delivery.model_dump(),
            payment_method=payment_method,
            payment_proof_ref=payment_proof_ref,
            payment_submitted_at=now if payment_proof_ref else None,
            status=OrderStatus.PENDING.value,
            created_at=now,
        )
        order.items = [
            OrderItem(
                position=position,
                product_id=item.product_id,
                product_name=item.product_name,
                product_image=item.product_image,
                unit_price=promotion.to_money(item.unit_price),
                quantity=item.quantity,
                category_tag=item.category_tag,
            )
            for position, item in enumerate(items)
        ]
        crud_order.add_order(session, order)

        # --- Шаг 4: списываем акцию в той же транзакции ---
        if pricing.vouchers_applied > 0:
            account.voucher_balance = account.voucher_balance - pricing.vouchers_applied
            account.vouchers_used = account.vouchers_used + pricing.vouchers_applied
        elif pricing.promotion_type == PromotionType.REGISTRATION:
            account.registration_voucher_used = True

        return order

    # IntegrityError при вставке значит, что order_id занят: сгенерированный id
    # на повторе выпадет новый, а ключ идемпотентности найдётся проверкой выше
    order = run_in_transaction(db, _attempt, operation=f"create_order[{account_id}]", retry_on=(IntegrityError,))

    logger.info(
        f"Order {order.order_id} created for account {account_id}: "
        f"promotion={order.promotion_type}, vouchers={order.vouchers_applied}, total={order.total_amount}"
    )
    return order


def get_order(db: Session, order_id: str) -> Order | None:
    return crud_order.get_order_by_order_id(db, order_id)


def get_user_order(db: Session, order_id: str, account_id: str) -> Order | None:
    """Возвращает заказ, только если он принадлежит этому счёту."""
    order = crud_order.get_order_by_order_id(db, order_id)
    if not order or order.account_id != account_id:
        return None
    return order


def get_user_orders(db: Session, account_id: str, status: Optional[str] = None) -> List[Order]:
    if not account_id:
        return []
    return crud_order.get_orders(db, account_id=account_id, status=status)


def get_paginated_orders(
    db: Session,
    page: int,
    size: int,
    account_id: Optional[str] = None,
    status: Optional[str] = None
) -> PaginatedOrders:
    skip = (page - 1) * size
    orders = crud_order.get_orders(db, account_id=account_id, status=status, skip=skip, limit=size)
    total_items = crud_order.count_orders(db, account_id=account_id, status=status)
    total_pages = math.ceil(total_items / size) if total_items > 0 else 1
    return PaginatedOrders(
        total_items=total_items,
        total_pages=total_pages,
        current_page=page,
        size=size,
        items=[OrderSchema.model_validate(o) for o in orders]
    )


def get_user_order_stats(db: Session, account_id: str) -> OrderStats:
    orders = get_user_orders(db, account_id)
    return OrderStats(
        total_orders=len(orders),
        pending_orders=sum(1 for o in orders if o.status == OrderStatus.PENDING),
        confirmed_orders=sum(1 for o in orders if o.status == OrderStatus.CONFIRMED),
        shipped_orders=sum(1 for o in orders if o.status == OrderStatus.SHIPPED),
        delivered_orders=sum(1 for o in orders if o.status == OrderStatus.DELIVERED),
        total_spent=sum((o.total_amount for o in orders), promotion.ZERO),
        total_saved=sum((o.voucher_discount + o.registration_discount for o in orders), promotion.ZERO),
    )


def submit_payment_proof(
    db: Session,
    account_id: str,
    order_id: str,
    payment_proof_ref: str,
    payment_method: Optional[str] = None
) -> Order:
    """Прикрепляет ссылку на подтверждение оплаты к заказу в статусе pending. Оплата не проверяется."""

    def _attempt(session: Session) -> Order:
        order = get_user_order(session, order_id, account_id)
        if not order:
            raise OrderNotFoundError(f"Order {order_id} not found.")
        if order.status != OrderStatus.PENDING:
            raise PaymentProofError(f"Order {order_id} is '{order.status}', payment proof can no longer be changed.")

        now = datetime.now(timezone.utc)
        order.payment_proof_ref = payment_proof_ref
        order.payment_submitted_at = now
        if payment_method:
            order.payment_method = payment_method
        order.updated_at = now
        return order

    order = run_in_transaction(db, _attempt, operation=f"submit_payment_proof[{order_id}]")
    logger.info(f"Payment proof attached to order {order_id} by account {account_id}")
    return order
