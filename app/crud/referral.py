# app/crud/referral.py
from typing import List
from sqlalchemy.orm import Session
from app.models.referral import Referral

def create_referral(db: Session, referrer_id: str, referred_id: str, referred_email: str | None = None) -> Referral:
    """Добавляет новую реферальную связь в сессию. Требует внешнего db.commit()."""
    db_referral = Referral(referrer_id=referrer_id, referred_id=referred_id, referred_email=referred_email)
    db.add(db_referral)
    return db_referral

def get_referrals_by_referrer(db: Session, referrer_id: str) -> List[Referral]:
    """Все приглашения, сделанные счётом, новые сверху."""
    return db.query(Referral).filter(
        Referral.referrer_id == referrer_id
    ).order_by(Referral.created_at.desc(), Referral.id.desc()).all()
