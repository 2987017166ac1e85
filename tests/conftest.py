# tests/conftest.py
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app import dependencies
from app.core.config import settings
from app.db.session import Base
from app.models import notification, order, referral, user  # noqa: F401 (регистрирует все таблицы)
from app.models.user import Account
from app.schemas.order import DeliveryInfo, OrderItemIn
from app.services.auth import create_account_token

ADMIN_ID = "admin-1"


@pytest.fixture(scope="function")
def engine(tmp_path):
    """
    SQLite в файле на каждый тест: разные сессии видят коммиты друг друга,
    на этом держатся тесты конкурентности.
    """
    db_engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=db_engine)
    yield db_engine
    Base.metadata.drop_all(bind=db_engine)
    db_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine, monkeypatch):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    # get_db и get_db_context открывают сессии через это имя
    monkeypatch.setattr(dependencies, "SessionLocal", factory)
    return factory


@pytest.fixture(scope="function")
def db_session(session_factory) -> Session:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_account(db_session):
    def _make(account_id: str, **fields) -> Account:
        values = dict(
            email=f"{account_id}@example.com",
            display_name=account_id.title(),
            referral_code=f"FW-{account_id.upper()[:6]}",
            voucher_balance=0,
            vouchers_used=0,
            referral_count=0,
            has_registration_voucher=True,
            registration_voucher_used=False,
        )
        values.update(fields)
        account = Account(id=account_id, **values)
        db_session.add(account)
        db_session.commit()
        db_session.refresh(account)
        return account
    return _make


@pytest.fixture
def test_user(make_account) -> Account:
    return make_account("alice")


@pytest.fixture
def admin_user(make_account, monkeypatch) -> Account:
    monkeypatch.setattr(settings, "ADMIN_ACCOUNT_IDS_STR", ADMIN_ID)
    return make_account(ADMIN_ID, referral_code="FW-ADMIN1")


@pytest.fixture
def auth_headers(test_user) -> dict:
    return {"Authorization": f"Bearer {create_account_token(test_user.id)}"}


@pytest.fixture
def admin_auth_headers(admin_user) -> dict:
    return {"Authorization": f"Bearer {create_account_token(admin_user.id)}"}


@pytest.fixture
def eligible_item() -> OrderItemIn:
    return OrderItemIn(
        product_id="p-12",
        product_name="Dragon 12 inch",
        unit_price=Decimal("100.00"),
        quantity=2,
        category_tag="12inch",
    )


@pytest.fixture
def regular_item() -> OrderItemIn:
    return OrderItemIn(
        product_id="p-sparkler",
        product_name="Sparkler pack",
        unit_price=Decimal("15.50"),
        quantity=1,
        category_tag="sparklers",
    )


@pytest.fixture
def delivery() -> DeliveryInfo:
    return DeliveryInfo(
        full_name="Alice Tan",
        phone_number="+60123456789",
        street_address="12 Jalan Ampang",
        city="Kuala Lumpur",
        area_id="kuala-lumpur",
    )


@pytest_asyncio.fixture
async def client(session_factory):
    from app.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
