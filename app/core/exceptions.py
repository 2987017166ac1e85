# app/core/exceptions.py
"""
Доменные ошибки заказов и акций.

У каждой ошибки есть стабильный ``code`` и HTTP ``status_code``, поэтому
глобальный обработчик в ``app.main`` отдаёт её, не зная конкретного
класса. ``retryable`` говорит клиенту, может ли помочь повтор запроса
(повторяемы только ошибки конкуренции; после ошибок валидации и "не найдено"
ничего не изменилось, ввод нужно исправить).
"""
from fastapi import status


class ShopError(Exception):
    code = "shop_error"
    status_code = status.HTTP_400_BAD_REQUEST
    retryable = False

    def __init__(self, message: str | None = None):
        self.message = message or self.__doc__ or self.code
        super().__init__(self.message)


# --- Ошибки валидации: ничего не записано, клиент должен исправить ввод ---

class PromotionValidationError(ShopError):
    code = "validation_error"


class InsufficientBalanceError(PromotionValidationError):
    """Not enough vouchers available."""
    code = "insufficient_balance"
    status_code = status.HTTP_409_CONFLICT


class ExceedsEligibilityError(PromotionValidationError):
    """More vouchers requested than eligible items in the order."""
    code = "exceeds_eligibility"


class AlreadyUsedError(PromotionValidationError):
    """The registration discount has already been used."""
    code = "already_used"
    status_code = status.HTTP_409_CONFLICT


class NotAvailableError(PromotionValidationError):
    """The registration discount is not available for this account."""
    code = "not_available"


class InvalidCodeError(PromotionValidationError):
    """Invalid referral code."""
    code = "invalid_code"


class SelfReferralError(PromotionValidationError):
    """Cannot refer yourself."""
    code = "self_referral"


class InvalidTransitionError(PromotionValidationError):
    """Order status transition is not allowed."""
    code = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT


class DuplicateOrderIdError(PromotionValidationError):
    """Order ID is already taken."""
    code = "duplicate_order_id"
    status_code = status.HTTP_409_CONFLICT


class PaymentProofError(PromotionValidationError):
    """Payment proof can only be attached to a pending order."""
    code = "payment_proof_rejected"
    status_code = status.HTTP_409_CONFLICT


# --- Не найдено ---

class NotFoundError(ShopError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class AccountNotFoundError(NotFoundError):
    """Account not found."""
    code = "account_not_found"


class OrderNotFoundError(NotFoundError):
    """Order not found."""
    code = "order_not_found"


# --- Конкуренция: ничего не записано, тот же запрос можно повторить ---

class ContentionError(ShopError):
    """The account is being updated concurrently, please try again."""
    code = "contention"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True
