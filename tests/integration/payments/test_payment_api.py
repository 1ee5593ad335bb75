"""Integration tests for POST /api/v1/payments/confirm/.

The gateway HTTP session is replaced with a mock; everything else runs
through the full Django stack.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import requests

from django.db import DatabaseError

from modules.cart.models import CartItem
from modules.orders.constants import OrderStatus
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.payments.constants import PaymentAttemptStatus
from modules.payments.models import PaymentAttempt

pytestmark = pytest.mark.integration

URL = "/api/v1/payments/confirm/"
PAYMENT_KEY = "tgen_20240101ABCDEF"


def _gateway_response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.reason = "OK"
    response.json.return_value = payload or {}
    return response


@pytest.fixture()
def gateway_post():
    """Patch the HTTP call the gateway client makes."""
    with patch.object(requests.Session, "post") as post:
        post.return_value = _gateway_response(
            payload={
                "paymentKey": PAYMENT_KEY,
                "status": "DONE",
                "approvedAt": "2024-01-01T10:00:00+09:00",
            }
        )
        yield post


@pytest.fixture()
def cart(make_product, add_to_cart):
    product = make_product(name="Green Tea", price=Decimal("10000"), stock_quantity=5)
    add_to_cart(product, quantity=2)
    return product


def _payload(amount="20000", **extra):
    return {
        "payment_key": PAYMENT_KEY,
        "order_id": "order-1700000000000",
        "amount": amount,
        **extra,
    }


class TestConfirmPayment:
    def test_approved_payment_creates_confirmed_order(
        self, auth_client, gateway_post, cart
    ):
        response = auth_client.post(URL, _payload(), format="json")

        assert response.status_code == 201
        data = response.json()
        assert data["payment_key"] == PAYMENT_KEY
        assert data["total_amount"] == "20000.00"
        order = Order.objects.get(id=data["order_id"])
        assert order.status == OrderStatus.CONFIRMED
        assert order.order_number == data["order_number"]
        cart.refresh_from_db()
        assert cart.stock_quantity == 3
        assert not CartItem.objects.filter(user_id="user_123").exists()

        _, kwargs = gateway_post.call_args
        assert kwargs["json"] == {
            "paymentKey": PAYMENT_KEY,
            "orderId": "order-1700000000000",
            "amount": 20000,
        }

    def test_with_shipping_address(self, auth_client, gateway_post, cart):
        response = auth_client.post(
            URL,
            _payload(
                shipping_address={
                    "customer_name": "Kim Minji",
                    "address": "123 Teheran-ro, Gangnam-gu",
                    "postal_code": "06234",
                    "phone_number": "02-123-4567",
                },
                order_note="Leave at the door",
            ),
            format="json",
        )

        assert response.status_code == 201
        order = Order.objects.get(id=response.json()["order_id"])
        assert order.shipping_phone == "021234567"
        assert order.order_note == "Leave at the door"

    def test_amount_mismatch_never_calls_gateway(
        self, auth_client, gateway_post, cart
    ):
        response = auth_client.post(URL, _payload(amount="19999"), format="json")

        assert response.status_code == 409
        assert response.json()["code"] == "amount_mismatch"
        gateway_post.assert_not_called()

    def test_declined_is_402(self, auth_client, gateway_post, cart):
        gateway_post.return_value = _gateway_response(
            status_code=400,
            payload={"code": "REJECT_CARD_PAYMENT", "message": "Limit exceeded."},
        )

        response = auth_client.post(URL, _payload(), format="json")

        assert response.status_code == 402
        assert response.json()["code"] == "payment_not_approved"
        assert Order.objects.count() == 0

    def test_gateway_timeout_is_502_unknown_outcome(
        self, auth_client, gateway_post, cart
    ):
        gateway_post.side_effect = requests.exceptions.ReadTimeout()

        response = auth_client.post(URL, _payload(), format="json")

        assert response.status_code == 502
        body = response.json()
        assert body["code"] == "payment_outcome_unknown"
        assert "charged" not in body
        assert PaymentAttempt.objects.get().status == (
            PaymentAttemptStatus.OUTCOME_UNKNOWN
        )

    def test_persistence_failure_reports_charge(
        self, auth_client, gateway_post, cart
    ):
        with patch.object(
            OrderDjangoRepository, "add_lines", side_effect=DatabaseError("boom")
        ):
            response = auth_client.post(URL, _payload(), format="json")

        assert response.status_code == 502
        body = response.json()
        assert body["code"] == "order_persistence_failed"
        assert body["charged"] is True
        assert Order.objects.count() == 0

    def test_resubmission_returns_same_order(self, auth_client, gateway_post, cart):
        first = auth_client.post(URL, _payload(), format="json")
        second = auth_client.post(URL, _payload(), format="json")

        assert first.status_code == second.status_code == 201
        assert first.json()["order_id"] == second.json()["order_id"]
        assert gateway_post.call_count == 1
        assert Order.objects.count() == 1

    def test_invalid_amount_is_400(self, auth_client, gateway_post, cart):
        response = auth_client.post(URL, _payload(amount="-5"), format="json")

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_input"
        gateway_post.assert_not_called()

    def test_missing_fields_are_400(self, auth_client, gateway_post):
        response = auth_client.post(URL, {"amount": "100"}, format="json")
        assert response.status_code == 400

    def test_missing_gateway_secret_is_500(
        self, auth_client, gateway_post, cart, settings
    ):
        settings.PAYMENT_GATEWAY_SECRET_KEY = ""

        response = auth_client.post(URL, _payload(), format="json")

        assert response.status_code == 500
        assert response.json()["code"] == "internal_error"
        gateway_post.assert_not_called()
