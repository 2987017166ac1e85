# app/models/order.py
import enum

from sqlalchemy import Column, Integer, String, Text, Numeric, ForeignKey, DateTime, JSON, CheckConstraint, func
from sqlalchemy.orm import relationship
from app.db.session import Base


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PromotionType(str, enum.Enum):
    NONE = "none"
    REFERRAL = "referral"
    REGISTRATION = "registration"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    # Публичный номер заказа (ORD-XXXXXXXXXX или ключ идемпотентности от клиента)
    order_id = Column(String, unique=True, index=True, nullable=False)
    account_id = Column(String, ForeignKey("accounts.id"), nullable=False, index=True)

    # Цены, всегда считаются на сервере по позициям
    subtotal = Column(Numeric(12, 2), nullable=False)
    promotion_type = Column(String, default=PromotionType.NONE.value, nullable=False)
    vouchers_applied = Column(Integer, default=0, nullable=False)
    voucher_discount = Column(Numeric(12, 2), default=0, nullable=False)
    registration_discount = Column(Numeric(12, 2), default=0, nullable=False)
    delivery_fee = Column(Numeric(12, 2), default=0, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)

    # Доставка
    delivery_area = Column(String, nullable=True)
    delivery_address = Column(JSON, nullable=True)

    # Оплата. Хранится только ссылка на загруженное подтверждение, ничего не проверяется.
    payment_method = Column(String, nullable=True)
    payment_proof_ref = Column(String, nullable=True)
    payment_submitted_at = Column(DateTime(timezone=True), nullable=True)

    # Статус
    status = Column(String, default=OrderStatus.PENDING.value, nullable=False, index=True)
    reviewed_by = Column(String, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)

    version_id = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    account = relationship("Account")
    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan",
        order_by="OrderItem.position"
    )

    __mapper_args__ = {"version_id_col": version_id}
    __table_args__ = (
        CheckConstraint("vouchers_applied >= 0", name="ck_orders_vouchers_applied_non_negative"),
        CheckConstraint("total_amount >= 0", name="ck_orders_total_non_negative"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_pk = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    product_id = Column(String, nullable=False)
    product_name = Column(String, nullable=False)
    product_image = Column(String, nullable=True)
    # Цена на момент оформления. Последующие изменения каталога её не трогают.
    unit_price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    # Нужна только для решения, подходит ли товар под ваучер
    category_tag = Column(String, nullable=True)

    order = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),
    )
