# app/models/notification.py
from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, func, Boolean
from app.db.session import Base
from sqlalchemy.orm import relationship

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("accounts.id"), nullable=False, index=True)

    # Тип уведомления: пока только 'order_status'
    type = Column(String, nullable=False, index=True)
    # Статус заказа, о котором уведомление
    kind = Column(String, nullable=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=True)

    # Публичный id заказа, к которому относится уведомление
    order_id = Column(String, nullable=True, index=True)

    is_read = Column(Boolean, default=False, nullable=False, server_default='false')
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("Account")
