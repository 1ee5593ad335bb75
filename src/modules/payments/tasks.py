"""Periodic payment reconciliation tasks (Celery beat)."""

from __future__ import annotations

from datetime import timedelta

import structlog
from celery import shared_task
from django.conf import settings
from django.utils import timezone

from modules.payments.constants import short_reference
from modules.payments.repositories.django_repository import (
    PaymentAttemptDjangoRepository,
)

logger = structlog.get_logger(__name__)


@shared_task(name="payments.flag_unresolved_attempts")
def flag_unresolved_attempts() -> int:
    """Flag attempts that may have charged a customer without an order.

    Attempts stuck in ``confirming``, ``outcome_unknown``, ``not_approved``
    or ``persistence_failed`` for longer than
    ``PAYMENT_REVIEW_AFTER_MINUTES`` are logged once for manual
    reconciliation and marked as flagged.
    """
    now = timezone.now()
    cutoff = now - timedelta(minutes=settings.PAYMENT_REVIEW_AFTER_MINUTES)
    repository = PaymentAttemptDjangoRepository()

    attempts = repository.list_unresolved(older_than=cutoff)
    for attempt in attempts:
        logger.error(
            "payment.reconciliation_required",
            attempt_id=str(attempt.id),
            payment_reference=short_reference(attempt.payment_reference),
            attempt_status=attempt.status,
            user_id=attempt.user_id,
            amount=str(attempt.amount),
        )
        repository.flag_for_review(attempt, at=now)

    logger.info("payment.unresolved_sweep_completed", flagged=len(attempts))
    return len(attempts)
