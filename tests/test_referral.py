# tests/test_referral.py
from decimal import Decimal

import pytest

from app.core.exceptions import AccountNotFoundError, InvalidCodeError, SelfReferralError
from app.crud import referral as crud_referral
from app.services import referral as referral_service


def test_referral_links_accounts_and_credits_referrer(db_session, make_account):
    referrer = make_account("bob", referral_code="FW-BOB001")
    newcomer = make_account("dave")

    result = referral_service.process_referral(db_session, newcomer.id, "fw-bob001 ")

    assert result.already_referred is False
    db_session.refresh(referrer)
    db_session.refresh(newcomer)
    assert newcomer.referred_by_id == referrer.id
    assert referrer.voucher_balance == 1
    assert referrer.referral_count == 1
    [link] = crud_referral.get_referrals_by_referrer(db_session, referrer.id)
    assert link.referred_id == newcomer.id
    assert link.referred_email == "dave@example.com"


def test_second_referral_is_a_no_op(db_session, make_account):
    referrer = make_account("bob", referral_code="FW-BOB001")
    other = make_account("erin", referral_code="FW-ERIN01")
    newcomer = make_account("dave")

    referral_service.process_referral(db_session, newcomer.id, referrer.referral_code)
    again = referral_service.process_referral(db_session, newcomer.id, referrer.referral_code)
    elsewhere = referral_service.process_referral(db_session, newcomer.id, other.referral_code)

    assert again.already_referred is True
    assert elsewhere.already_referred is True
    db_session.refresh(referrer)
    db_session.refresh(other)
    assert referrer.voucher_balance == 1
    assert other.voucher_balance == 0
    assert len(crud_referral.get_referrals_by_referrer(db_session, referrer.id)) == 1


def test_own_code_is_rejected(db_session, test_user):
    with pytest.raises(SelfReferralError):
        referral_service.process_referral(db_session, test_user.id, test_user.referral_code)

    db_session.refresh(test_user)
    assert test_user.referred_by_id is None
    assert test_user.voucher_balance == 0


@pytest.mark.parametrize("code", ["", "   ", "FW-NOPE00"])
def test_unknown_or_empty_code(db_session, test_user, code):
    with pytest.raises(InvalidCodeError):
        referral_service.process_referral(db_session, test_user.id, code)


def test_unknown_account(db_session, test_user):
    with pytest.raises(AccountNotFoundError):
        referral_service.process_referral(db_session, "ghost", test_user.referral_code)


def test_validate_referral_code(db_session, test_user):
    assert referral_service.validate_referral_code(db_session, test_user.referral_code.lower())
    assert not referral_service.validate_referral_code(db_session, "FW-NOPE00")
    assert not referral_service.validate_referral_code(db_session, "")


def test_referral_stats(db_session, make_account):
    referrer = make_account("bob", referral_code="FW-BOB001", vouchers_used=2)
    for name in ("dave", "erin"):
        newcomer = make_account(name)
        referral_service.process_referral(db_session, newcomer.id, referrer.referral_code)

    stats = referral_service.get_referral_stats(db_session, referrer.id)

    assert stats.total_referrals == 2
    assert stats.available_vouchers == 2
    assert stats.used_vouchers == 2
    assert stats.total_savings == Decimal("60")
    assert stats.referral_link.endswith("/signup?ref=FW-BOB001")
    assert {r.referred_id for r in stats.referrals} == {"dave", "erin"}
