# app/services/referral.py
import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AccountNotFoundError, InvalidCodeError, SelfReferralError
from app.crud import referral as crud_referral
from app.crud import user as crud_user
from app.schemas.referral import ReferralInfo, ReferralRecord
from app.services.ledger import run_in_transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferralResult:
    already_referred: bool


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def process_referral(db: Session, new_account_id: str, referral_code: str) -> ReferralResult:
    """
    Связывает новый счёт с пригласившим и начисляет пригласившему один ваучер.

    Идемпотентно: если у счёта уже есть пригласивший, повторные вызовы
    возвращают ``already_referred`` и ничего не пишут, так что повтор запроса
    не начислит ваучер дважды.
    """
    code = normalize_code(referral_code)
    if not code:
        raise InvalidCodeError()

    def _attempt(session: Session) -> ReferralResult:
        new_account = crud_user.get_account_by_id(session, new_account_id)
        if not new_account:
            raise AccountNotFoundError(f"Account {new_account_id} not found.")

        # Свой код отклоняется, даже если у счёта уже есть пригласивший
        if code == normalize_code(new_account.referral_code):
            raise SelfReferralError()

        if new_account.referred_by_id:
            logger.info(f"Account {new_account_id} already has a referrer, skipping referral processing.")
            return ReferralResult(already_referred=True)

        referrer = crud_user.get_account_by_referral_code(session, code=code)
        if not referrer:
            raise InvalidCodeError()

        if referrer.id == new_account.id:
            raise SelfReferralError()

        crud_referral.create_referral(
            session, referrer_id=referrer.id, referred_id=new_account.id, referred_email=new_account.email
        )
        new_account.referred_by_id = referrer.id
        referrer.voucher_balance = referrer.voucher_balance + 1
        referrer.referral_count = referrer.referral_count + 1

        logger.info(f"Referral link created: referrer_id={referrer.id} -> referred_id={new_account.id}")
        return ReferralResult(already_referred=False)

    # IntegrityError: параллельный вызов уже вставил реферальную связь для этого
    # счёта; повтор перечитает referred_by_id и вернёт already_referred.
    return run_in_transaction(
        db, _attempt, operation=f"process_referral[{new_account_id}]", retry_on=(IntegrityError,)
    )


def validate_referral_code(db: Session, code: str) -> bool:
    """Проверяет, что код принадлежит существующему счёту."""
    normalized = normalize_code(code)
    if not normalized:
        return False
    return crud_user.get_account_by_referral_code(db, code=normalized) is not None


def get_referral_link(referral_code: str) -> str:
    return f"{settings.SITE_URL}/signup?ref={referral_code}"


def get_user_referrals(db: Session, account_id: str) -> list[ReferralRecord]:
    referrals = crud_referral.get_referrals_by_referrer(db, referrer_id=account_id)
    return [ReferralRecord.model_validate(r) for r in referrals]


def get_referral_stats(db: Session, account_id: str) -> ReferralInfo:
    """Собирает статистику реферальной программы для счёта."""
    account = crud_user.get_account_by_id(db, account_id)
    if not account:
        raise AccountNotFoundError(f"Account {account_id} not found.")

    return ReferralInfo(
        referral_code=account.referral_code,
        referral_link=get_referral_link(account.referral_code),
        total_referrals=account.referral_count,
        available_vouchers=account.voucher_balance,
        used_vouchers=account.vouchers_used,
        total_savings=account.vouchers_used * settings.VOUCHER_VALUE,
        referrals=get_user_referrals(db, account_id),
    )
