"""PaymentAttempt model: one row per gateway payment reference.

The row is claimed (unique insert) before the gateway is called, which
gives at-most-once confirmation per ``payment_reference`` and leaves a
durable trace when the outcome of a charge is unknown.
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel
from modules.payments.constants import PaymentAttemptStatus, short_reference


class PaymentAttempt(BaseModel):
    payment_reference = models.CharField(max_length=255, unique=True)
    order_reference = models.CharField(max_length=255)
    user_id = models.CharField(max_length=255, db_index=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(
        max_length=20,
        choices=PaymentAttemptStatus.choices,
        default=PaymentAttemptStatus.CONFIRMING,
    )
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payment_attempts",
    )
    gateway_status = models.CharField(max_length=50, blank=True, default="")
    gateway_approved_at = models.DateTimeField(null=True, blank=True)
    gateway_payload = models.JSONField(default=dict, blank=True)
    error_message = models.TextField(blank=True, default="")
    review_flagged_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "payment_attempts"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["status", "updated_at"], name="payment_attempts_status_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"{short_reference(self.payment_reference)} ({self.status})"
