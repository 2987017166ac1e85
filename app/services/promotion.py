# app/services/promotion.py
"""
Правила расчёта реферальных ваучеров и разовой скидки за регистрацию.

Здесь только чистые функции: без базы, без часов, без записи настроек.
Сервис заказов передаёт сюда снимок корзины и состояние счёта, прочитанное
внутри своей транзакции.

Правила:
- один ваучер на *подходящую единицу* товара (категория из
  VOUCHER_ELIGIBLE_CATEGORIES), номинал VOUCHER_VALUE;
- скидка за регистрацию: REGISTRATION_DISCOUNT_PERCENT от суммы товаров,
  округление half-up до копеек;
- запрос на ноль ваучеров всегда валиден и скидки не даёт.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Protocol, Type

from app.core.config import settings
from app.core.exceptions import (
    AlreadyUsedError,
    ExceedsEligibilityError,
    InsufficientBalanceError,
    NotAvailableError,
    PromotionValidationError,
)

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


class PricedItem(Protocol):
    unit_price: Decimal
    quantity: int
    category_tag: str | None


@dataclass(frozen=True)
class PromotionCheck:
    valid: bool
    discount: Decimal = ZERO
    max_vouchers: int | None = None
    message: str = ""
    error: Type[PromotionValidationError] | None = None

    def raise_for_error(self) -> None:
        if not self.valid and self.error is not None:
            raise self.error(self.message)


def to_money(value) -> Decimal:
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def normalize_category(tag: str | None) -> str:
    return (tag or "").strip().lower()


def is_voucher_eligible(item: PricedItem) -> bool:
    return normalize_category(item.category_tag) in settings.VOUCHER_ELIGIBLE_CATEGORIES


def eligible_quantity(items: Iterable[PricedItem]) -> int:
    """Количество единиц товара в подходящих категориях."""
    return sum(item.quantity for item in items if is_voucher_eligible(item))


def max_vouchers(items: Iterable[PricedItem]) -> int:
    """Максимум ваучеров, которые можно применить к этим товарам."""
    return eligible_quantity(items)


def voucher_discount(voucher_count: int) -> Decimal:
    return to_money(voucher_count * settings.VOUCHER_VALUE)


def registration_discount(subtotal: Decimal) -> Decimal:
    return to_money(Decimal(subtotal) * settings.REGISTRATION_DISCOUNT_PERCENT / Decimal(100))


def calculate_subtotal(items: Iterable[PricedItem]) -> Decimal:
    """Сумма цена x количество. Никогда не берётся от клиента."""
    return to_money(sum((Decimal(item.unit_price) * item.quantity for item in items), ZERO))


def calculate_total(subtotal: Decimal, discount: Decimal, delivery_fee: Decimal) -> Decimal:
    """subtotal - скидка + доставка, но не меньше нуля."""
    return max(to_money(subtotal - discount + delivery_fee), ZERO)


def validate_voucher_usage(items: list[PricedItem], requested: int, available: int) -> PromotionCheck:
    """
    Проверяет списание ваучеров по балансу и по числу подходящих товаров.

    Сначала проверяется баланс: если запрос превышает и баланс, и лимит
    по товарам, ошибка будет InsufficientBalance.
    """
    if requested < 0:
        raise ValueError("Voucher count cannot be negative")

    allowed = max_vouchers(items)
    if requested == 0:
        return PromotionCheck(valid=True, max_vouchers=allowed)

    if requested > available:
        return PromotionCheck(
            valid=False,
            max_vouchers=allowed,
            message=f"You only have {available} voucher(s) available.",
            error=InsufficientBalanceError,
        )

    if requested > allowed:
        return PromotionCheck(
            valid=False,
            max_vouchers=allowed,
            message=f"You can only use {allowed} voucher(s) for this order: one voucher per eligible item.",
            error=ExceedsEligibilityError,
        )

    discount = voucher_discount(requested)
    return PromotionCheck(
        valid=True,
        max_vouchers=allowed,
        discount=discount,
        message=f"{requested} voucher(s) applied. You save {discount}!",
    )


def validate_registration_voucher(has_voucher: bool, already_used: bool) -> PromotionCheck:
    if already_used:
        return PromotionCheck(
            valid=False,
            message="The registration discount has already been used.",
            error=AlreadyUsedError,
        )
    if not has_voucher:
        return PromotionCheck(
            valid=False,
            message="The registration discount is not available for this account.",
            error=NotAvailableError,
        )
    return PromotionCheck(valid=True)


def get_delivery_fee(area_id: str | None) -> Decimal:
    """Стоимость доставки в район. Неизвестный или пустой район: 0."""
    area = settings.DELIVERY_AREAS.get(area_id or "")
    if not area:
        return ZERO
    return to_money(area.get("fee", 0))


def get_delivery_area_name(area_id: str | None) -> str:
    area = settings.DELIVERY_AREAS.get(area_id or "")
    return area.get("name", "") if area else ""
