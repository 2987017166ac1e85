# app/schemas/referral.py
from datetime import datetime
from decimal import Decimal
from typing import List
from pydantic import BaseModel, ConfigDict, Field


class ReferralProcessRequest(BaseModel):
    referral_code: str = Field(..., min_length=1)


class ReferralResult(BaseModel):
    already_referred: bool


class ReferralRecord(BaseModel):
    id: int
    referrer_id: str
    referred_id: str
    referred_email: str | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ReferralCodeCheck(BaseModel):
    referral_code: str
    valid: bool


class ReferralInfo(BaseModel):
    referral_code: str
    referral_link: str
    total_referrals: int      # Сколько счетов зарегистрировалось по коду
    available_vouchers: int   # Ваучеры, которые ещё можно применить
    used_vouchers: int        # Ваучеры, уже применённые в заказах
    total_savings: Decimal    # used_vouchers * номинал ваучера
    referrals: List[ReferralRecord] = []
