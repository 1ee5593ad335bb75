"""Unit tests for PaymentGatewayClient with a mocked ``requests`` session."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests
from requests.auth import HTTPBasicAuth

from modules.payments.gateway import (
    PaymentGatewayClient,
    PaymentGatewayDeclined,
    PaymentGatewayNotConfigured,
    PaymentGatewayUnavailable,
    encode_amount,
)

pytestmark = pytest.mark.unit


def _response(status_code=200, payload=None, reason="OK"):
    response = MagicMock()
    response.status_code = status_code
    response.reason = reason
    if payload is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture()
def session():
    return MagicMock()


@pytest.fixture()
def client(session):
    return PaymentGatewayClient(
        base_url="https://gateway.test/",
        secret_key="test_sk_secret",
        timeout=7,
        session=session,
    )


class TestEncodeAmount:
    def test_integral_amount_is_int(self):
        assert encode_amount(Decimal("20000.00")) == 20000
        assert isinstance(encode_amount(Decimal("20000")), int)

    def test_fractional_amount_is_string(self):
        assert encode_amount(Decimal("19.99")) == "19.99"


class TestConfirmRequest:
    def test_posts_reference_order_and_amount(self, client, session):
        session.post.return_value = _response(
            payload={"status": "DONE", "approvedAt": "2024-01-01T10:00:00+09:00"}
        )

        client.confirm("pay_key_1", "order-1", Decimal("20000"))

        session.post.assert_called_once_with(
            "https://gateway.test/v1/payments/confirm",
            json={"paymentKey": "pay_key_1", "orderId": "order-1", "amount": 20000},
            auth=HTTPBasicAuth("test_sk_secret", ""),
            timeout=7,
        )

    def test_parses_confirmation(self, client, session):
        payload = {
            "paymentKey": "pay_key_1",
            "status": "DONE",
            "approvedAt": "2024-01-01T10:00:00+09:00",
        }
        session.post.return_value = _response(payload=payload)

        confirmation = client.confirm("pay_key_1", "order-1", Decimal("20000"))

        assert confirmation.status == "DONE"
        assert confirmation.approved_at.year == 2024
        assert confirmation.approved_at.utcoffset().total_seconds() == 9 * 3600
        assert confirmation.raw == payload

    def test_missing_approval_time(self, client, session):
        session.post.return_value = _response(payload={"status": "WAITING"})
        confirmation = client.confirm("k", "o", Decimal("1"))
        assert confirmation.approved_at is None

    def test_missing_secret_never_sends(self, session):
        client = PaymentGatewayClient(
            base_url="https://gateway.test", secret_key="", session=session
        )
        with pytest.raises(PaymentGatewayNotConfigured):
            client.confirm("k", "o", Decimal("1"))
        session.post.assert_not_called()

    def test_defaults_come_from_settings(self, settings):
        settings.PAYMENT_GATEWAY_BASE_URL = "https://configured.test/"
        settings.PAYMENT_GATEWAY_SECRET_KEY = "configured_sk"
        settings.PAYMENT_GATEWAY_TIMEOUT = 3

        client = PaymentGatewayClient()

        assert client.base_url == "https://configured.test"
        assert client.secret_key == "configured_sk"
        assert client.timeout == 3


class TestConfirmFailures:
    def test_client_error_is_declined(self, client, session):
        session.post.return_value = _response(
            status_code=400,
            payload={"code": "REJECT_CARD_PAYMENT", "message": "Limit exceeded."},
            reason="Bad Request",
        )

        with pytest.raises(PaymentGatewayDeclined) as exc_info:
            client.confirm("k", "o", Decimal("1"))

        assert exc_info.value.status_code == 400
        assert exc_info.value.code == "REJECT_CARD_PAYMENT"
        assert exc_info.value.message == "Limit exceeded."
        assert exc_info.value.payload["code"] == "REJECT_CARD_PAYMENT"

    def test_client_error_without_body(self, client, session):
        session.post.return_value = _response(status_code=404, reason="Not Found")

        with pytest.raises(PaymentGatewayDeclined) as exc_info:
            client.confirm("k", "o", Decimal("1"))

        assert exc_info.value.code == "UNKNOWN"
        assert exc_info.value.message == "Not Found"

    def test_server_error_is_unknown_outcome(self, client, session):
        session.post.return_value = _response(status_code=503, payload={})
        with pytest.raises(PaymentGatewayUnavailable):
            client.confirm("k", "o", Decimal("1"))

    def test_timeout_is_unknown_outcome(self, client, session):
        session.post.side_effect = requests.exceptions.ReadTimeout()
        with pytest.raises(PaymentGatewayUnavailable, match="timed out"):
            client.confirm("k", "o", Decimal("1"))

    def test_connection_error_is_unknown_outcome(self, client, session):
        session.post.side_effect = requests.exceptions.ConnectionError()
        with pytest.raises(PaymentGatewayUnavailable, match="unreachable"):
            client.confirm("k", "o", Decimal("1"))

    def test_unreadable_success_body_is_unknown_outcome(self, client, session):
        session.post.return_value = _response(status_code=200)
        with pytest.raises(PaymentGatewayUnavailable):
            client.confirm("k", "o", Decimal("1"))

    @pytest.mark.parametrize(
        "approved_at",
        ["2024-02-30T10:00:00+09:00", "yesterday", 1704070800],
    )
    def test_bad_approval_time_is_unknown_outcome(self, client, session, approved_at):
        session.post.return_value = _response(
            payload={"status": "DONE", "approvedAt": approved_at}
        )
        with pytest.raises(PaymentGatewayUnavailable, match="unreadable"):
            client.confirm("k", "o", Decimal("1"))
