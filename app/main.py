# app/main.py

import logging
from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.config import settings as config
from app.core.exceptions import ShopError
from app.core.logging_config import setup_logging

from app.routers import (
    admin as admin_router, notification as notification_router,
    order, referral, user
)

# --- Инициализация ---
logger = logging.getLogger(__name__)

# --- Обработчики ошибок ---
async def shop_error_handler(request: Request, exc: ShopError):
    """
    Доменные ошибки: валидация, не найдено и конкуренция.
    ``retryable`` говорит клиенту, поможет ли повтор того же запроса.
    """
    log = logger.warning if exc.retryable else logger.info
    log(f"{request.method} {request.url.path} -> {exc.code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": exc.code, "detail": exc.message, "retryable": exc.retryable},
    )

async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Глобальный обработчик для всего остального (ошибки БД и инфраструктуры).
    """
    logger.critical(f"Unhandled exception for request: {request.method} {request.url}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"code": "internal_error", "detail": "Internal Server Error.", "retryable": False},
    )

# --- Жизненный цикл ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Application lifespan startup...")
    yield
    logger.info("Application shutting down.")

# --- Приложение FastAPI ---
app = FastAPI(
    title="Storefront Order & Promotion Service",
    description="Orders, referral vouchers and registration discounts for the storefront",
    version="0.1.0",
    lifespan=lifespan
)

origins = [
    "http://localhost",
    "http://localhost:3000",
    config.SITE_URL,
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(ShopError, shop_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Роутеры ---
api_router = APIRouter(prefix="/api/v1")

api_router.include_router(user.router, tags=["Users"])
api_router.include_router(order.router, tags=["Orders"])
api_router.include_router(referral.router, tags=["Referrals"])
api_router.include_router(notification_router.router, tags=["Notifications"])

# Эндпоинты для админки
api_router.include_router(admin_router.router, prefix="/admin", tags=["Admin"])

app.include_router(api_router)
