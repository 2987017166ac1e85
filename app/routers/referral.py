# app/routers/referral.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.dependencies import get_current_user, get_db
from app.models.user import Account
from app.schemas.referral import ReferralCodeCheck, ReferralInfo, ReferralProcessRequest, ReferralResult
from app.services import referral as referral_service

router = APIRouter()

@router.post("/referrals/process", response_model=ReferralResult)
def process_referral_code(
    request_data: ReferralProcessRequest,
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Применяет реферальный код к текущему счёту.
    Повтор безопасен: второй вызов вернёт already_referred=true.
    """
    result = referral_service.process_referral(db, current_user.id, request_data.referral_code)
    return ReferralResult(already_referred=result.already_referred)


@router.get("/referrals/validate/{code}", response_model=ReferralCodeCheck)
def validate_code(code: str, db: Session = Depends(get_db)):
    return ReferralCodeCheck(
        referral_code=referral_service.normalize_code(code),
        valid=referral_service.validate_referral_code(db, code)
    )


@router.get("/referrals/stats", response_model=ReferralInfo)
def get_referral_stats(
    current_user: Account = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return referral_service.get_referral_stats(db, current_user.id)
