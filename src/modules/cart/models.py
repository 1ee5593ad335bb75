"""Cart line model.

A cart is the set of ``CartItem`` rows sharing one ``user_id``.  Lines
are ephemeral working state: they are hard-deleted on removal and when
an order is completed.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class CartItem(BaseModel):
    """One (user, product, quantity) line, unique per user and product."""

    user_id = models.CharField(max_length=255, db_index=True)
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.CASCADE,
        related_name="cart_items",
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    class Meta:
        db_table = "cart_items"
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["user_id", "product"],
                name="cart_items_user_product_unique",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="cart_items_quantity_positive",
            ),
        ]

    @property
    def subtotal(self) -> Decimal:
        return self.product.price * self.quantity

    def __str__(self) -> str:
        return f"{self.user_id}: {self.product_id} x {self.quantity}"
