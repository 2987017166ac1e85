# app/models/referral.py
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, CheckConstraint, func
from sqlalchemy.orm import relationship
from app.db.session import Base

class Referral(Base):
    __tablename__ = "referrals"
    id = Column(Integer, primary_key=True, index=True)

    # Кто пригласил
    referrer_id = Column(String, ForeignKey("accounts.id"), nullable=False, index=True)
    # Кого пригласили. Уникально: счёт можно пригласить только один раз.
    referred_id = Column(String, ForeignKey("accounts.id"), nullable=False, unique=True)
    referred_email = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    referrer = relationship("Account", foreign_keys=[referrer_id], back_populates="referrals")
    referred = relationship("Account", foreign_keys=[referred_id], back_populates="referrer_link")

    __table_args__ = (
        CheckConstraint("referrer_id <> referred_id", name="ck_referrals_not_self"),
    )
