# app/services/ledger.py
"""
Оптимистичные транзакции.

У счетов и заказов есть счётчик версии (``version_id_col``). Если строка
изменилась с момента чтения, flush падает со ``StaleDataError``;
``run_in_transaction`` откатывает сессию и заново выполняет весь цикл
чтение-проверка-запись на свежих данных, не больше
``TRANSACTION_MAX_ATTEMPTS`` раз.
"""
import logging
from typing import Callable, Tuple, Type, TypeVar

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import settings
from app.core.exceptions import ContentionError, ShopError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_in_transaction(
    db: Session,
    work: Callable[[Session], T],
    operation: str,
    retry_on: Tuple[Type[Exception], ...] = (),
    max_attempts: int | None = None
) -> T:
    """
    Выполняет ``work(db)`` и делает commit. ``work`` сам читает данные и не коммитит.

    Доменные ошибки: rollback и проброс как есть. Конфликт версий (и ошибки из
    ``retry_on``): rollback и повтор. Остальное: rollback, лог, проброс.
    """
    attempts = max_attempts or settings.TRANSACTION_MAX_ATTEMPTS
    conflict_errors = (StaleDataError,) + tuple(retry_on)

    for attempt in range(1, attempts + 1):
        # Объекты, загруженные раньше (например, текущий пользователь из get_current_user),
        # не должны подсовывать устаревшие значения: все чтения идут в базу
        db.expire_all()
        try:
            result = work(db)
            db.commit()
            if attempt > 1:
                logger.info(f"{operation}: committed on attempt {attempt}/{attempts}.")
            return result
        except ShopError:
            db.rollback()
            raise
        except conflict_errors as e:
            db.rollback()
            logger.warning(
                f"{operation}: concurrent modification detected on attempt {attempt}/{attempts} "
                f"({type(e).__name__}). Retrying with fresh data."
            )
        except Exception:
            db.rollback()
            logger.error(f"{operation}: transaction failed.", exc_info=True)
            raise

    logger.error(f"{operation}: giving up after {attempts} conflicting attempts.")
    raise ContentionError()
