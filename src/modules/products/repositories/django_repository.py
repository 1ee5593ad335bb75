"""Django ORM implementation of the Product repository.

Satisfies ``IProductRepository`` using Django's QuerySet API.
Look-ups follow the Null Object pattern and return ``None`` for a
missing product; the stock decrement raises instead, because callers
must tell a shortfall apart from a successful write.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog

from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import F
from django.utils import timezone

from modules.products.exceptions import ProductNotFound, StockShortfall
from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a non-deleted product by primary key.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Product.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        """List non-deleted products with optional Django ORM look-ups.

        Examples of valid filters::

            {"is_active": True}
            {"category__iexact": "fruit"}
        """
        queryset = Product.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        """Persist (create or update) a product."""
        entity.save()
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Soft-delete a product by ID.

        Returns ``True`` if the product was found and soft-deleted.
        """
        product = self.get_by_id(id)
        if not product:
            return False
        product.delete()
        logger.info("product.soft_deleted", product_id=str(id))
        return True

    def get_for_update(self, id: str) -> Optional[Product]:
        try:
            return (
                Product.objects.alive().select_for_update().filter(id=id).first()
            )
        except (ValueError, ValidationError):
            return None

    @transaction.atomic
    def decrement_stock(self, id: str, quantity: int) -> Product:
        product = self.get_for_update(id)
        if product is None:
            raise ProductNotFound(f"Product {id} not found.")

        # Compare-and-set: the filter re-checks stock at write time.
        updated = Product.objects.filter(
            id=product.id, stock_quantity__gte=quantity
        ).update(
            stock_quantity=F("stock_quantity") - quantity,
            updated_at=timezone.now(),
        )
        if not updated:
            raise StockShortfall(
                product.id, available=product.stock_quantity, requested=quantity
            )

        product.refresh_from_db(fields=["stock_quantity", "updated_at"])
        logger.info(
            "product.stock_decremented",
            product_id=str(product.id),
            quantity=quantity,
            remaining=product.stock_quantity,
        )
        return product
