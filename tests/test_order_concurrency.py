# tests/test_order_concurrency.py
"""
Гонки воспроизводятся детерминированно: ``crud_order.add_order`` (и другие
CRUD-функции записи) вызываются после чтения счёта и до flush, поэтому подмена
в этом месте коммитит конкурирующее изменение из второй сессии ровно в
неудачный момент.
"""
import pytest

from app.core.config import settings
from app.core.exceptions import ContentionError, InsufficientBalanceError
from app.crud import order as crud_order
from app.crud import referral as crud_referral
from app.crud import user as crud_user
from app.dependencies import get_db_context
from app.models.order import PromotionType
from app.services import order as order_service
from app.services import referral as referral_service


def test_single_voucher_cannot_be_spent_twice(
    db_session, make_account, eligible_item, delivery, monkeypatch
):
    account = make_account("bob", voucher_balance=1)
    real_add_order = crud_order.add_order
    calls = {"count": 0}

    def racing_add_order(session, order):
        calls["count"] += 1
        if calls["count"] == 1:
            # Другое оформление того же счёта успевает первым
            with get_db_context() as other:
                order_service.create_order(
                    other, account.id, [eligible_item], delivery,
                    promotion_type=PromotionType.REFERRAL, vouchers_to_use=1,
                )
        return real_add_order(session, order)

    monkeypatch.setattr(crud_order, "add_order", racing_add_order)

    with pytest.raises(InsufficientBalanceError):
        order_service.create_order(
            db_session, account.id, [eligible_item], delivery,
            promotion_type=PromotionType.REFERRAL, vouchers_to_use=1,
        )

    db_session.expire_all()
    account = crud_user.get_account_by_id(db_session, "bob")
    assert account.voucher_balance == 0
    assert account.vouchers_used == 1
    assert crud_order.count_orders(db_session, account_id="bob") == 1


def test_conflict_is_retried_with_fresh_data(
    db_session, make_account, eligible_item, delivery, monkeypatch
):
    account = make_account("bob", voucher_balance=1)
    real_add_order = crud_order.add_order
    calls = {"count": 0}

    def add_order_after_referral(session, order):
        calls["count"] += 1
        if calls["count"] == 1:
            # Начисление за реферала приходит между чтением и записью
            with get_db_context() as other:
                referrer = crud_user.get_account_by_id(other, account.id)
                referrer.voucher_balance += 1
                other.commit()
        return real_add_order(session, order)

    monkeypatch.setattr(crud_order, "add_order", add_order_after_referral)

    order = order_service.create_order(
        db_session, account.id, [eligible_item], delivery,
        promotion_type=PromotionType.REFERRAL, vouchers_to_use=1,
    )

    assert calls["count"] == 2
    assert order.vouchers_applied == 1
    db_session.refresh(account)
    # Параллельное начисление сохранено, устаревшее чтение его не затёрло
    assert account.voucher_balance == 1
    assert account.vouchers_used == 1


def test_persistent_contention_gives_up_without_writing(
    db_session, test_user, eligible_item, delivery, monkeypatch
):
    monkeypatch.setattr(settings, "TRANSACTION_MAX_ATTEMPTS", 3)
    real_add_order = crud_order.add_order
    calls = {"count": 0}

    def always_conflicting_add_order(session, order):
        calls["count"] += 1
        with get_db_context() as other:
            rival = crud_user.get_account_by_id(other, test_user.id)
            rival.display_name = f"Alice #{calls['count']}"
            other.commit()
        return real_add_order(session, order)

    monkeypatch.setattr(crud_order, "add_order", always_conflicting_add_order)

    with pytest.raises(ContentionError) as exc_info:
        order_service.create_order(
            db_session, test_user.id, [eligible_item], delivery,
            promotion_type=PromotionType.REGISTRATION,
        )

    assert exc_info.value.retryable is True
    assert calls["count"] == 3
    assert crud_order.count_orders(db_session) == 0
    db_session.refresh(test_user)
    assert test_user.registration_voucher_used is False


def test_referral_credit_survives_concurrent_voucher_spend(
    db_session, make_account, eligible_item, delivery, monkeypatch
):
    referrer = make_account("bob", voucher_balance=1)
    newcomer = make_account("dave")
    real_add_order = crud_order.add_order
    calls = {"count": 0}

    def add_order_during_referral(session, order):
        calls["count"] += 1
        if calls["count"] == 1:
            with get_db_context() as other:
                referral_service.process_referral(other, newcomer.id, referrer.referral_code)
        return real_add_order(session, order)

    monkeypatch.setattr(crud_order, "add_order", add_order_during_referral)

    order_service.create_order(
        db_session, referrer.id, [eligible_item], delivery,
        promotion_type=PromotionType.REFERRAL, vouchers_to_use=1,
    )

    db_session.refresh(referrer)
    assert referrer.voucher_balance == 1
    assert referrer.vouchers_used == 1
    assert referrer.referral_count == 1


def test_account_loaded_earlier_is_reread(db_session, make_account, eligible_item, delivery):
    # Счёт уже лежит в сессии (как после get_current_user) с нулевым балансом
    account = make_account("bob", voucher_balance=0)
    with get_db_context() as other:
        credited = crud_user.get_account_by_id(other, account.id)
        credited.voucher_balance += 1
        other.commit()

    order = order_service.create_order(
        db_session, account.id, [eligible_item], delivery,
        promotion_type=PromotionType.REFERRAL, vouchers_to_use=1,
    )

    assert order.vouchers_applied == 1
    db_session.refresh(account)
    assert account.voucher_balance == 0
    assert account.vouchers_used == 1


def test_concurrent_referral_of_same_account_credits_once(db_session, make_account, monkeypatch):
    referrer = make_account("bob", referral_code="FW-BOB001")
    newcomer = make_account("dave")
    real_create_referral = crud_referral.create_referral
    calls = {"count": 0}

    def racing_create_referral(session, **fields):
        calls["count"] += 1
        if calls["count"] == 1:
            # Повторный запрос регистрации с тем же кодом успевает первым
            with get_db_context() as other:
                referral_service.process_referral(other, newcomer.id, referrer.referral_code)
        return real_create_referral(session, **fields)

    monkeypatch.setattr(crud_referral, "create_referral", racing_create_referral)

    result = referral_service.process_referral(db_session, newcomer.id, referrer.referral_code)

    assert result.already_referred is True
    db_session.expire_all()
    referrer = crud_user.get_account_by_id(db_session, "bob")
    assert referrer.voucher_balance == 1
    assert referrer.referral_count == 1
    assert len(crud_referral.get_referrals_by_referrer(db_session, "bob")) == 1
    assert crud_user.get_account_by_id(db_session, "dave").referred_by_id == "bob"


def test_concurrent_retry_with_same_order_id_returns_first_order(
    db_session, make_account, eligible_item, delivery, monkeypatch
):
    account = make_account("bob", voucher_balance=2)
    real_add_order = crud_order.add_order
    calls = {"count": 0}

    def racing_add_order(session, order):
        calls["count"] += 1
        if calls["count"] == 1:
            # Клиент повторил запрос, и повтор закоммитился раньше
            with get_db_context() as other:
                order_service.create_order(
                    other, account.id, [eligible_item], delivery,
                    promotion_type=PromotionType.REFERRAL, vouchers_to_use=1,
                    order_id="ORD-KEY00001",
                )
        return real_add_order(session, order)

    monkeypatch.setattr(crud_order, "add_order", racing_add_order)

    order = order_service.create_order(
        db_session, account.id, [eligible_item], delivery,
        promotion_type=PromotionType.REFERRAL, vouchers_to_use=1,
        order_id="ORD-KEY00001",
    )

    assert order.order_id == "ORD-KEY00001"
    assert order.vouchers_applied == 1
    assert crud_order.count_orders(db_session, account_id="bob") == 1
    db_session.expire_all()
    account = crud_user.get_account_by_id(db_session, "bob")
    assert account.voucher_balance == 1
    assert account.vouchers_used == 1
