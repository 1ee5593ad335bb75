"""Orders written by the checkout and payment workflows.

An order is immutable once written apart from its status. Lines carry a
frozen copy of the product name and unit price, so catalog edits and
deletions never rewrite purchase history. ``payment_reference`` is unique:
one gateway payment yields at most one order.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    ORDER_NUMBER_MAX_RETRIES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
)


def _money(digits: int = 12, **kwargs: Any) -> models.DecimalField:
    return models.DecimalField(max_digits=digits, decimal_places=2, **kwargs)


def _status_field(**kwargs: Any) -> models.CharField:
    return models.CharField(max_length=20, choices=OrderStatus.choices, **kwargs)


class Order(BaseModel):
    """One placed order, scoped to the opaque ``user_id`` of its owner.

    ``order_number`` (``ORD-YYYYMMDD-XXXXXX``) is shown to customers; the
    UUIDv7 ``id`` is what the API looks orders up by.
    """

    order_number: models.CharField = models.CharField(
        max_length=20, unique=True, editable=False
    )
    user_id: models.CharField = models.CharField(max_length=255, db_index=True)
    status: models.CharField = _status_field(default=OrderStatus.PENDING)
    total_amount: models.DecimalField = _money(default=Decimal("0.00"))

    # Shipping snapshot taken when the order is written.
    shipping_name: models.CharField = models.CharField(max_length=255, blank=True)
    shipping_phone: models.CharField = models.CharField(max_length=20, blank=True)
    shipping_postal_code: models.CharField = models.CharField(
        max_length=5, blank=True
    )
    shipping_address: models.CharField = models.CharField(max_length=200, blank=True)
    shipping_address_detail: models.CharField = models.CharField(
        max_length=200, blank=True, default=""
    )
    order_note: models.TextField = models.TextField(blank=True, default="")

    # Set only by the payment flow; pending orders leave it NULL.
    payment_reference: models.CharField = models.CharField(
        max_length=255, unique=True, null=True, blank=True
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["user_id", "-created_at"], name="orders_user_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=0),
                name="orders_total_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    @staticmethod
    def generate_order_number() -> str:
        return f"ORD-{timezone.now():%Y%m%d}-{secrets.token_hex(3).upper()}"

    def _assign_order_number(self) -> None:
        for _ in range(ORDER_NUMBER_MAX_RETRIES):
            candidate = self.generate_order_number()
            if not Order.objects.filter(order_number=candidate).exists():
                self.order_number = candidate
                return
        raise RuntimeError(
            f"no free order number after {ORDER_NUMBER_MAX_RETRIES} attempts"
        )

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            self._assign_order_number()
        super().save(*args, **kwargs)


class OrderItem(BaseModel):
    """Frozen snapshot of one purchased product."""

    order: models.ForeignKey = models.ForeignKey(
        Order, on_delete=models.CASCADE, related_name="items"
    )
    product: models.ForeignKey = models.ForeignKey(
        "products.Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
    )
    product_name: models.CharField = models.CharField(max_length=255)
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        validators=[MinValueValidator(1)]
    )
    unit_price: models.DecimalField = _money()
    subtotal: models.DecimalField = _money(14, editable=False)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity}"

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)


class OrderStatusHistory(BaseModel):
    """Append-only status audit trail.

    Blank ``changed_by`` means the system made the change, for example the
    payment workflow writing a confirmed order.
    """

    order: models.ForeignKey = models.ForeignKey(
        Order, on_delete=models.CASCADE, related_name="status_history"
    )
    old_status: models.CharField = _status_field(null=True, blank=True)  # noqa: DJ01
    new_status: models.CharField = _status_field()
    changed_by: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["order", "-created_at"], name="osh_order_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.order_id}: {self.old_status} -> {self.new_status}"
