"""HTTP client for the payment gateway's confirmation API.

``POST {base_url}/v1/payments/confirm`` with ``{paymentKey, orderId,
amount}`` and the server-held secret as an HTTP Basic username (empty
password).  The secret never leaves the server.

Outcomes:

* 2xx -> ``GatewayConfirmation`` (the caller decides whether the
  reported status counts as approved).
* 4xx -> ``PaymentGatewayDeclined``: the gateway refused the request and
  no money moved.
* 5xx, timeout, connection error or an unreadable 2xx body ->
  ``PaymentGatewayUnavailable``: the charge may or may not have happened.

The client never retries; the gateway owns retry and idempotency.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Union

import requests
import structlog
from django.conf import settings
from django.utils.dateparse import parse_datetime
from requests.auth import HTTPBasicAuth

logger = structlog.get_logger(__name__)


class PaymentGatewayError(Exception):
    """Base class for gateway client failures."""


class PaymentGatewayNotConfigured(PaymentGatewayError):
    """No secret key is configured; the request was never sent."""


class PaymentGatewayDeclined(PaymentGatewayError):
    """The gateway answered with a client error (4xx)."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.code = code
        self.message = message
        self.payload = payload or {}
        super().__init__(f"{status_code} {code}: {message}")


class PaymentGatewayUnavailable(PaymentGatewayError):
    """The outcome of the confirmation request is unknown."""


@dataclass(frozen=True)
class GatewayConfirmation:
    status: str
    approved_at: Optional[datetime]
    raw: Dict[str, Any] = field(default_factory=dict)


def _parse_approved_at(value: Any) -> Optional[datetime]:
    if not value:
        return None
    parsed = parse_datetime(value)
    if parsed is None:
        raise ValueError(f"unrecognised approvedAt: {value!r}")
    return parsed


def encode_amount(amount: Decimal) -> Union[int, str]:
    """JSON-safe amount: integers stay integers, fractions become strings."""
    if amount == amount.to_integral_value():
        return int(amount)
    return str(amount)


class PaymentGatewayClient:
    confirm_path = "/v1/payments/confirm"

    def __init__(
        self,
        base_url: Optional[str] = None,
        secret_key: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        if secret_key is None:
            secret_key = settings.PAYMENT_GATEWAY_SECRET_KEY
        if timeout is None:
            timeout = settings.PAYMENT_GATEWAY_TIMEOUT
        self.base_url = (base_url or settings.PAYMENT_GATEWAY_BASE_URL).rstrip("/")
        self.secret_key = secret_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def confirm(
        self, payment_reference: str, order_reference: str, amount: Decimal
    ) -> GatewayConfirmation:
        if not self.secret_key:
            raise PaymentGatewayNotConfigured("Payment gateway secret key is not set.")

        url = f"{self.base_url}{self.confirm_path}"
        log = logger.bind(order_reference=order_reference, amount=str(amount))
        log.info("gateway.confirm_requested")

        try:
            response = self.session.post(
                url,
                json={
                    "paymentKey": payment_reference,
                    "orderId": order_reference,
                    "amount": encode_amount(amount),
                },
                auth=HTTPBasicAuth(self.secret_key, ""),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as exc:
            log.error("gateway.timeout", timeout=self.timeout)
            raise PaymentGatewayUnavailable("Payment gateway timed out.") from exc
        except requests.exceptions.RequestException as exc:
            log.error("gateway.request_failed", error=type(exc).__name__)
            raise PaymentGatewayUnavailable("Payment gateway unreachable.") from exc

        if response.status_code >= 500:
            log.error("gateway.server_error", status_code=response.status_code)
            raise PaymentGatewayUnavailable(
                f"Payment gateway returned {response.status_code}."
            )

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if 400 <= response.status_code < 500:
            body = payload if isinstance(payload, dict) else {}
            code = str(body.get("code", "UNKNOWN"))
            message = str(body.get("message") or response.reason or "Declined")
            log.warning(
                "gateway.declined", status_code=response.status_code, code=code
            )
            raise PaymentGatewayDeclined(response.status_code, code, message, body)

        if not isinstance(payload, dict):
            log.error("gateway.unreadable_response", status_code=response.status_code)
            raise PaymentGatewayUnavailable("Payment gateway response was unreadable.")

        # The request went through: a body we cannot read is an unknown outcome.
        try:
            confirmation = GatewayConfirmation(
                status=str(payload.get("status", "")),
                approved_at=_parse_approved_at(payload.get("approvedAt")),
                raw=payload,
            )
        except (TypeError, ValueError) as exc:
            log.error("gateway.unreadable_response", status_code=response.status_code)
            raise PaymentGatewayUnavailable(
                "Payment gateway response was unreadable."
            ) from exc
        log.info("gateway.confirm_answered", gateway_status=confirmation.status)
        return confirmation
