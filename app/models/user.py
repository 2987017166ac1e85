# app/models/user.py

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, CheckConstraint, func
from sqlalchemy.orm import relationship
from .referral import Referral
from app.db.session import Base

class Account(Base):
    __tablename__ = "accounts"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, nullable=True)
    display_name = Column(String, nullable=True)

    referral_code = Column(String, unique=True, index=True, nullable=False)
    # Кто пригласил этот счёт. Записывается один раз при обработке реферала, не очищается.
    referred_by_id = Column(String, ForeignKey("accounts.id"), nullable=True)
    referral_count = Column(Integer, default=0, nullable=False, server_default='0')

    voucher_balance = Column(Integer, default=0, nullable=False, server_default='0')
    vouchers_used = Column(Integer, default=0, nullable=False, server_default='0')

    has_registration_voucher = Column(Boolean, default=False, nullable=False, server_default='false')
    registration_voucher_used = Column(Boolean, default=False, nullable=False, server_default='false')

    # Растёт при каждом UPDATE; устаревшая версия даёт StaleDataError при flush
    version_id = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Кто пригласил этот счёт
    referrer_link = relationship("Referral", foreign_keys="Referral.referred_id", back_populates="referred", uselist=False)
    # Кого пригласил этот счёт
    referrals = relationship("Referral", foreign_keys="Referral.referrer_id", back_populates="referrer")

    __mapper_args__ = {"version_id_col": version_id}
    __table_args__ = (
        CheckConstraint("voucher_balance >= 0", name="ck_accounts_voucher_balance_non_negative"),
        CheckConstraint("vouchers_used >= 0", name="ck_accounts_vouchers_used_non_negative"),
        CheckConstraint("referred_by_id IS NULL OR referred_by_id <> id", name="ck_accounts_no_self_referral"),
    )
