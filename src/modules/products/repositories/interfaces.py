"""Product repository interface (the inventory store).

Extends ``IRepository[Product]`` with the row-locking read and the
guarded stock decrement used after a payment is approved.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Product]":
        """List non-deleted products with optional filters."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional["Product"]:
        """Retrieve a product with a row-level lock (SELECT FOR UPDATE).

        Returns ``None`` if the product does not exist.
        """

    @abstractmethod
    def decrement_stock(self, id: str, quantity: int) -> "Product":
        """Subtract ``quantity`` from stock without ever going below zero.

        Raises ``ProductNotFound`` or ``StockShortfall``; in both cases
        nothing is written.
        """
