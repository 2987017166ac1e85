# app/schemas/user.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class Account(BaseModel):
    id: str
    email: str | None = None
    display_name: str | None = None
    referral_code: str
    referred_by_id: str | None = None
    referral_count: int
    voucher_balance: int
    vouchers_used: int
    has_registration_voucher: bool
    registration_voucher_used: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AccountCreate(BaseModel):
    id: str
    email: str | None = None
    display_name: str | None = None
    referral_code: str | None = None


# Ответ регистрации: счёт и токен доступа для него
class AccountToken(BaseModel):
    account: Account
    access_token: str
    token_type: str = "bearer"
