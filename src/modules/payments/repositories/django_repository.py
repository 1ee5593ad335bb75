"""Django ORM implementation of the payment attempt repository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from modules.payments.constants import UNRESOLVED_STATES, PaymentAttemptStatus
from modules.payments.exceptions import PaymentInProgress
from modules.payments.models import PaymentAttempt
from modules.payments.repositories.interfaces import IPaymentAttemptRepository

logger = structlog.get_logger(__name__)


class PaymentAttemptDjangoRepository(IPaymentAttemptRepository):
    """Concrete payment attempt repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[PaymentAttempt]:
        try:
            return PaymentAttempt.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_reference(self, payment_reference: str) -> Optional[PaymentAttempt]:
        return PaymentAttempt.objects.filter(
            payment_reference=payment_reference
        ).first()

    @transaction.atomic
    def save(self, entity: PaymentAttempt) -> PaymentAttempt:
        entity.save()
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        try:
            deleted, _ = PaymentAttempt.objects.filter(id=id).delete()
        except (ValueError, ValidationError):
            return False
        return deleted > 0

    def claim(
        self,
        payment_reference: str,
        order_reference: str,
        user_id: str,
        amount: Decimal,
    ) -> PaymentAttempt:
        fields = {
            "order_reference": order_reference,
            "user_id": user_id,
            "amount": amount,
            "status": PaymentAttemptStatus.CONFIRMING,
            "error_message": "",
        }

        # Retry of a rejected attempt: only one caller wins the reset.
        reset = PaymentAttempt.objects.filter(
            payment_reference=payment_reference,
            status=PaymentAttemptStatus.REJECTED,
        ).update(updated_at=timezone.now(), **fields)
        if reset:
            logger.info("payment.attempt_reclaimed", user_id=user_id)
            return PaymentAttempt.objects.get(payment_reference=payment_reference)

        try:
            with transaction.atomic():
                attempt = PaymentAttempt.objects.create(
                    payment_reference=payment_reference, **fields
                )
        except IntegrityError as exc:
            raise PaymentInProgress() from exc
        logger.info("payment.attempt_claimed", user_id=user_id)
        return attempt

    def mark(self, attempt: PaymentAttempt, status: str, **fields: Any) -> None:
        fields["status"] = status
        for name, value in fields.items():
            setattr(attempt, name, value)
        PaymentAttempt.objects.filter(id=attempt.id).update(
            updated_at=timezone.now(), **fields
        )

    def list_unresolved(self, older_than: datetime) -> List[PaymentAttempt]:
        return list(
            PaymentAttempt.objects.filter(
                status__in=UNRESOLVED_STATES,
                updated_at__lt=older_than,
                review_flagged_at__isnull=True,
            ).order_by("updated_at")
        )

    def flag_for_review(self, attempt: PaymentAttempt, at: datetime) -> None:
        attempt.review_flagged_at = at
        PaymentAttempt.objects.filter(id=attempt.id).update(review_flagged_at=at)
