# app/dependencies.py

import logging
from typing import Iterator
from contextlib import contextmanager

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from jose import JWTError, jwt
from fastapi import Request
from app.core.config import settings
from app.db.session import SessionLocal
from app.models.user import Account

logger = logging.getLogger(__name__)

# --- Схемы аутентификации ---
strict_bearer_scheme = HTTPBearer(auto_error=True)

# --- Управление сессиями БД ---
def get_db_session_instance() -> Session:
    """Создает новую сессию БД."""
    return SessionLocal()

def get_db() -> Iterator[Session]:
    """
    Основная зависимость FastAPI, отдающая сессию БД.
    """
    db = get_db_session_instance()
    try:
        yield db
    finally:
        db.close()

@contextmanager
def get_db_context() -> Iterator[Session]:
    """
    Контекстный менеджер сессии БД вне FastAPI (скрипты, фоновые задачи).
    """
    db = get_db_session_instance()
    try:
        yield db
    finally:
        db.close()

# --- Аутентификация и авторизация ---

def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(strict_bearer_scheme),
    db: Session = Depends(get_db)
) -> Account:
    """
    Требует валидный токен. Нет токена или он невалиден: 401.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(credentials.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        account_id: str | None = payload.get("sub")
        if account_id is None:
            logger.warning("Token payload is missing 'sub' (account id).")
            raise credentials_exception
    except JWTError as e:
        logger.warning(f"JWT Error during token decoding: {e}")
        raise credentials_exception

    account = db.query(Account).filter(Account.id == account_id).first()
    if account is None:
        logger.warning(f"Account {account_id} from token not found in DB.")
        raise credentials_exception
    request.state.user = account
    return account


def get_admin_user(current_user: Account = Depends(get_current_user)) -> Account:
    """
    Защищает эндпоинты админки: счёт должен быть в ADMIN_ACCOUNT_IDS.
    """
    if current_user.id not in settings.ADMIN_ACCOUNT_IDS:
        logger.warning(f"Permission denied for account {current_user.id}: not an admin.")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to access this resource."
        )
    return current_user
