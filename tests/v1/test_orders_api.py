# tests/v1/test_orders_api.py
from decimal import Decimal

import pytest
from httpx import AsyncClient

from app.models.user import Account
from app.services.auth import create_account_token

pytestmark = pytest.mark.asyncio

DELIVERY = {
    "full_name": "Alice Tan",
    "phone_number": "+60123456789",
    "street_address": "12 Jalan Ampang",
    "area_id": "kuala-lumpur",
}
ITEM = {
    "product_id": "p-12",
    "product_name": "Dragon 12 inch",
    "unit_price": "100.00",
    "quantity": 2,
    "category_tag": "12inch",
}


@pytest.fixture
def voucher_holder(make_account) -> Account:
    return make_account("bob", voucher_balance=3)


@pytest.fixture
def voucher_headers(voucher_holder) -> dict:
    return {"Authorization": f"Bearer {create_account_token(voucher_holder.id)}"}


async def test_create_order_with_vouchers(client: AsyncClient, voucher_headers: dict):
    payload = {"items": [ITEM], "delivery": DELIVERY, "promotion": "referral", "vouchers_to_use": 2}

    response = await client.post("/api/v1/orders", json=payload, headers=voucher_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["promotion_type"] == "referral"
    assert Decimal(data["voucher_discount"]) == Decimal("60.00")
    assert Decimal(data["total_amount"]) == Decimal("240.00")
    assert data["items"][0]["quantity"] == 2

    me = await client.get("/api/v1/users/me", headers=voucher_headers)
    assert me.json()["voucher_balance"] == 1
    assert me.json()["vouchers_used"] == 2


async def test_domain_error_shape(client: AsyncClient, voucher_headers: dict):
    payload = {"items": [ITEM], "delivery": DELIVERY, "promotion": "referral", "vouchers_to_use": 3}

    response = await client.post("/api/v1/orders", json=payload, headers=voucher_headers)

    # Доступно 3 ваучера, но подходящих товаров в заказе только 2
    assert response.status_code == 400
    assert response.json()["code"] == "exceeds_eligibility"
    assert response.json()["retryable"] is False


async def test_vouchers_require_referral_promotion(client: AsyncClient, voucher_headers: dict):
    payload = {"items": [ITEM], "delivery": DELIVERY, "promotion": "none", "vouchers_to_use": 1}

    response = await client.post("/api/v1/orders", json=payload, headers=voucher_headers)

    assert response.status_code == 422


async def test_orders_require_authentication(client: AsyncClient):
    response = await client.post("/api/v1/orders", json={"items": [ITEM], "delivery": DELIVERY})
    assert response.status_code in (401, 403)

    bad_token = await client.get("/api/v1/orders", headers={"Authorization": "Bearer not-a-jwt"})
    assert bad_token.status_code == 401


async def test_history_details_and_stats(client: AsyncClient, auth_headers: dict, voucher_headers: dict):
    created = await client.post(
        "/api/v1/orders", json={"items": [ITEM], "delivery": DELIVERY, "order_id": "ORD-ALICE0001"},
        headers=auth_headers,
    )
    assert created.status_code == 201

    history = await client.get("/api/v1/orders", headers=auth_headers)
    assert history.json()["total_items"] == 1
    assert history.json()["items"][0]["order_id"] == "ORD-ALICE0001"

    details = await client.get("/api/v1/orders/ORD-ALICE0001", headers=auth_headers)
    assert details.status_code == 200

    # Заказы других счетов не видны
    foreign = await client.get("/api/v1/orders/ORD-ALICE0001", headers=voucher_headers)
    assert foreign.status_code == 404

    stats = await client.get("/api/v1/orders/stats", headers=auth_headers)
    assert stats.json()["total_orders"] == 1
    assert stats.json()["pending_orders"] == 1


async def test_payment_proof_submission(client: AsyncClient, auth_headers: dict):
    await client.post(
        "/api/v1/orders", json={"items": [ITEM], "delivery": DELIVERY, "order_id": "ORD-ALICE0002"},
        headers=auth_headers,
    )

    response = await client.post(
        "/api/v1/orders/ORD-ALICE0002/payment-proof",
        json={"payment_proof_ref": "uploads/receipt.png", "payment_method": "duitnow"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["payment_proof_ref"] == "uploads/receipt.png"
    assert response.json()["payment_method"] == "duitnow"

    missing = await client.post(
        "/api/v1/orders/ORD-NOPE/payment-proof", json={"payment_proof_ref": "x"}, headers=auth_headers
    )
    assert missing.status_code == 404
    assert missing.json()["code"] == "order_not_found"


async def test_checkout_preview(client: AsyncClient, voucher_headers: dict):
    payload = {"items": [ITEM], "promotion": "referral", "vouchers_to_use": 2, "area_id": "kuala-lumpur"}

    response = await client.post("/api/v1/orders/preview", json=payload, headers=voucher_headers)

    assert response.status_code == 200
    quote = response.json()
    assert quote["valid"] is True
    assert quote["max_vouchers"] == 2
    assert quote["available_vouchers"] == 3
    assert Decimal(quote["voucher_discount"]) == Decimal("60.00")
    assert Decimal(quote["total_amount"]) == Decimal("240.00")
    assert quote["delivery_area_name"] == "Kuala Lumpur (city center)"

    # Предпросмотр ничего не списывает
    me = await client.get("/api/v1/users/me", headers=voucher_headers)
    assert me.json()["voucher_balance"] == 3
