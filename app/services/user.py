# app/services/user.py

import logging
import secrets
import string

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import PromotionValidationError
from app.crud import user as crud_user
from app.models.user import Account
from app.services import referral as referral_service
from app.services.ledger import run_in_transaction

logger = logging.getLogger(__name__)

REFERRAL_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_referral_code() -> str:
    """Реферальный код в формате FW-XXXXXX."""
    return "FW-" + "".join(secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(6))


def get_account(db: Session, account_id: str) -> Account | None:
    return crud_user.get_account_by_id(db, account_id)


def register_or_get_account(
    db: Session,
    account_id: str,
    email: str | None = None,
    display_name: str | None = None,
    referral_code: str | None = None
) -> Account:
    """
    Создает счёт при первом входе, при повторных возвращает сохранённый.

    Реферальный код при регистрации обрабатывается после коммита счёта.
    Неверный код саму регистрацию не ломает.
    """

    def _attempt(session: Session) -> Account:
        existing = crud_user.get_account_by_id(session, account_id)
        if existing:
            return existing

        logger.info(f"Account {account_id} not found. Creating a new one.")
        new_referral_code = generate_referral_code()
        while crud_user.get_account_by_referral_code(session, code=new_referral_code):
            new_referral_code = generate_referral_code()

        account = crud_user.create_account(
            session, account_id=account_id, referral_code=new_referral_code,
            email=email, display_name=display_name,
            has_registration_voucher=settings.NEW_ACCOUNT_REGISTRATION_VOUCHER
        )
        logger.info(f"Assigned referral code '{new_referral_code}' to new account {account_id}")
        return account

    # IntegrityError: параллельная регистрация с тем же id (повтор найдёт счёт)
    # или совпавший реферальный код (повтор вытянет новый)
    db_account = run_in_transaction(
        db, _attempt, operation=f"register_account[{account_id}]", retry_on=(IntegrityError,)
    )

    if referral_code:
        try:
            result = referral_service.process_referral(db, account_id, referral_code)
            if result.already_referred:
                logger.info(f"Account {account_id} was already referred, code '{referral_code}' ignored.")
        except PromotionValidationError as e:
            logger.warning(f"Referral code '{referral_code}' rejected for account {account_id}: {e.message}")

    db.refresh(db_account)
    return db_account
