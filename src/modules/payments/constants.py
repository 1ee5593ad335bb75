"""Payment attempt statuses.

``CONFIRMING``, ``OUTCOME_UNKNOWN``, ``NOT_APPROVED`` and
``PERSISTENCE_FAILED`` are the unresolved states: money may have moved
without a matching order.

Only ``REJECTED`` (stopped before the gateway was called) may be claimed
again. Every other status means the gateway has already seen the
reference and must not be asked a second time.
"""

from django.db import models


class PaymentAttemptStatus(models.TextChoices):
    CONFIRMING = "confirming", "Confirming with gateway"
    REJECTED = "rejected", "Rejected before gateway"
    DECLINED = "declined", "Declined by gateway"
    NOT_APPROVED = "not_approved", "Answered without approval"
    RECORDED = "recorded", "Order recorded"
    PERSISTENCE_FAILED = "persistence_failed", "Charged, order not recorded"
    OUTCOME_UNKNOWN = "outcome_unknown", "Gateway outcome unknown"


UNRESOLVED_STATES: set[str] = {
    PaymentAttemptStatus.CONFIRMING,
    PaymentAttemptStatus.OUTCOME_UNKNOWN,
    PaymentAttemptStatus.NOT_APPROVED,
    PaymentAttemptStatus.PERSISTENCE_FAILED,
}

UNAPPROVED_STATES: set[str] = {
    PaymentAttemptStatus.DECLINED,
    PaymentAttemptStatus.NOT_APPROVED,
}

REFERENCE_LOG_PREFIX = 8


def short_reference(payment_reference: str) -> str:
    """Truncated payment reference that is safe to log."""
    return f"{payment_reference[:REFERENCE_LOG_PREFIX]}..."
