# app/schemas/order.py
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.order import OrderStatus, PromotionType
from app.schemas.common import PaginatedResponse


# Строка корзины в том виде, в каком её присылает витрина при оформлении
class OrderItemIn(BaseModel):
    product_id: str = Field(..., min_length=1)
    product_name: str = Field(..., min_length=1)
    product_image: str | None = None
    unit_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    quantity: int = Field(..., ge=1)
    category_tag: str | None = None


class DeliveryInfo(BaseModel):
    full_name: str = Field(..., min_length=1)
    phone_number: str = Field(..., min_length=1)
    street_address: str = Field(..., min_length=1)
    city: str = ""
    state: str = ""
    postal_code: str = ""
    # id района доставки, стоимость определяется на сервере
    area_id: str | None = None


class OrderPricingRequest(BaseModel):
    items: List[OrderItemIn] = Field(..., min_length=1)
    promotion: PromotionType = PromotionType.NONE
    vouchers_to_use: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def check_vouchers_match_promotion(self):
        if self.vouchers_to_use and self.promotion != PromotionType.REFERRAL:
            raise ValueError("vouchers_to_use is only allowed with the 'referral' promotion")
        return self


class OrderPreviewRequest(OrderPricingRequest):
    area_id: str | None = None


class OrderCreate(OrderPricingRequest):
    delivery: DeliveryInfo
    # Необязательный id заказа от клиента, он же ключ идемпотентности
    order_id: Optional[str] = Field(default=None, min_length=4, max_length=64)
    payment_method: Optional[str] = None
    payment_proof_ref: Optional[str] = None


class OrderLineItem(BaseModel):
    product_id: str
    product_name: str
    product_image: str | None = None
    unit_price: Decimal
    quantity: int
    category_tag: str | None = None

    model_config = ConfigDict(from_attributes=True)


class Order(BaseModel):
    order_id: str
    account_id: str
    status: OrderStatus
    items: List[OrderLineItem]

    subtotal: Decimal
    promotion_type: PromotionType
    vouchers_applied: int
    voucher_discount: Decimal
    registration_discount: Decimal
    delivery_fee: Decimal
    total_amount: Decimal

    delivery_area: str | None = None
    delivery_address: dict | None = None

    payment_method: str | None = None
    payment_proof_ref: str | None = None
    payment_submitted_at: datetime | None = None

    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    rejection_reason: str | None = None
    admin_notes: str | None = None

    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class PaginatedOrders(PaginatedResponse[Order]):
    pass


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    rejection_reason: str | None = None
    admin_notes: str | None = None

    @field_validator("rejection_reason", "admin_notes", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class PaymentProofSubmit(BaseModel):
    payment_proof_ref: str = Field(..., min_length=1)
    payment_method: str | None = None


class OrderStats(BaseModel):
    total_orders: int
    pending_orders: int
    confirmed_orders: int
    shipped_orders: int
    delivered_orders: int
    total_spent: Decimal
    total_saved: Decimal


# Предварительный расчёт для страницы оформления, ничего не записывает
class OrderQuote(BaseModel):
    valid: bool
    error_code: str | None = None
    message: str = ""

    promotion_type: PromotionType
    vouchers_requested: int
    max_vouchers: int
    available_vouchers: int
    registration_discount_available: bool

    subtotal: Decimal
    voucher_discount: Decimal
    registration_discount: Decimal
    delivery_area_name: str
    delivery_fee: Decimal
    total_amount: Decimal
