"""Payment attempt repository interface."""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.payments.models import PaymentAttempt


class IPaymentAttemptRepository(IRepository["PaymentAttempt"]):
    """Repository contract for the payment idempotency table."""

    @abstractmethod
    def get_by_reference(self, payment_reference: str) -> Optional["PaymentAttempt"]:
        """Retrieve the attempt for a gateway payment reference."""

    @abstractmethod
    def claim(
        self,
        payment_reference: str,
        order_reference: str,
        user_id: str,
        amount: Decimal,
    ) -> "PaymentAttempt":
        """Claim a reference for confirmation and commit the claim.

        A new reference is inserted; a previously ``rejected`` one is
        reset to ``confirming``.  Raises ``PaymentInProgress`` when the
        reference is held by another, unresolved attempt.
        """

    @abstractmethod
    def mark(self, attempt: "PaymentAttempt", status: str, **fields: Any) -> None:
        """Move an attempt to ``status`` and update the given fields."""

    @abstractmethod
    def list_unresolved(self, older_than: datetime) -> List["PaymentAttempt"]:
        """Unflagged attempts stuck in an unresolved state since ``older_than``."""

    @abstractmethod
    def flag_for_review(self, attempt: "PaymentAttempt", at: datetime) -> None:
        """Record that the attempt was raised for manual reconciliation."""
