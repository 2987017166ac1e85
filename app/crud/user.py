# app/crud/user.py
from sqlalchemy.orm import Session
from app.models.user import Account


def get_account_by_id(db: Session, account_id: str) -> Account | None:
    """Возвращает счёт по первичному ключу."""
    return db.query(Account).filter(Account.id == account_id).first()

def get_account_by_referral_code(db: Session, code: str) -> Account | None:
    return db.query(Account).filter(Account.referral_code == code).first()

def create_account(
    db: Session,
    account_id: str,
    referral_code: str,
    email: str | None,
    display_name: str | None,
    has_registration_voucher: bool
) -> Account:
    """Создает новый счёт. Требует внешнего db.commit()."""
    db_account = Account(
        id=account_id,
        email=email,
        display_name=display_name,
        referral_code=referral_code,
        voucher_balance=0,
        vouchers_used=0,
        referral_count=0,
        has_registration_voucher=has_registration_voucher,
        registration_voucher_used=False
    )
    db.add(db_account)
    return db_account