"""Payment domain exceptions."""

from __future__ import annotations

from typing import Any, Dict, Optional

from modules.payments.constants import PaymentAttemptStatus
from shared.domain.results import DomainError, ErrorKind


class PaymentNotApproved(DomainError):
    """The gateway answered without approving the charge.

    ``attempt_status`` and ``gateway_fields`` describe what the gateway
    said, for the payment attempt row.
    """

    kind = ErrorKind.PAYMENT_NOT_APPROVED
    default_message = "The payment was not approved."

    def __init__(
        self,
        message: str = default_message,
        attempt_status: str = PaymentAttemptStatus.DECLINED,
        gateway_fields: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.attempt_status = attempt_status
        self.gateway_fields = gateway_fields or {}


class PaymentOutcomeUnknown(DomainError):
    """The gateway call timed out or failed: the charge may have succeeded."""

    kind = ErrorKind.PAYMENT_OUTCOME_UNKNOWN

    def __init__(
        self,
        message: str = (
            "We could not confirm your payment with the payment provider. "
            "You may have been charged; please contact support before retrying."
        ),
    ) -> None:
        super().__init__(message)


class PaymentInProgress(DomainError):
    """Another confirmation for the same payment reference is unresolved."""

    kind = ErrorKind.PAYMENT_IN_PROGRESS

    def __init__(
        self, message: str = "This payment is already being processed."
    ) -> None:
        super().__init__(message)


class PaymentAccessDenied(DomainError):
    """The payment reference already belongs to another user's order."""

    kind = ErrorKind.UNAUTHORIZED


class OrderPersistenceFailed(DomainError):
    """The gateway approved the charge but the order could not be recorded."""

    kind = ErrorKind.ORDER_PERSISTENCE_FAILED

    def __init__(
        self,
        message: str = (
            "Your payment was approved but we could not record your order. "
            "You have been charged; our team will contact you to resolve it."
        ),
    ) -> None:
        super().__init__(message)
