# app/routers/user.py
from fastapi import APIRouter, Depends

from app.dependencies import get_current_user
from app.models.user import Account
from app.schemas.user import Account as AccountSchema

router = APIRouter()

@router.get("/users/me", response_model=AccountSchema)
def get_me(current_user: Account = Depends(get_current_user)):
    """Текущий счёт с балансом ваучеров и флагами акций."""
    return current_user
