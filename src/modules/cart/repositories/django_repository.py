"""Django ORM implementation of the Cart repository."""

from __future__ import annotations

from typing import List, Optional

import structlog

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Sum

from modules.cart.models import CartItem
from modules.cart.repositories.interfaces import ICartRepository

logger = structlog.get_logger(__name__)


class CartDjangoRepository(ICartRepository):
    """Concrete cart repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[CartItem]:
        try:
            return CartItem.objects.select_related("product").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    @transaction.atomic
    def save(self, entity: CartItem) -> CartItem:
        entity.save()
        logger.info(
            "cart.line_saved",
            cart_item_id=str(entity.id),
            product_id=str(entity.product_id),
            quantity=entity.quantity,
        )
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Hard-delete a cart line.  Returns ``False`` when it does not exist."""
        try:
            deleted, _ = CartItem.objects.filter(id=id).delete()
        except (ValueError, ValidationError):
            return False
        return deleted > 0

    def get_by_user_and_product(
        self, user_id: str, product_id: str
    ) -> Optional[CartItem]:
        try:
            return (
                CartItem.objects.select_related("product")
                .filter(user_id=user_id, product_id=product_id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list_for_user(self, user_id: str) -> List[CartItem]:
        return list(
            CartItem.objects.select_related("product")
            .filter(user_id=user_id)
            .order_by("created_at", "id")
        )

    def lock_for_user(self, user_id: str) -> List[CartItem]:
        return list(
            CartItem.objects.select_for_update()
            .filter(user_id=user_id)
            .order_by("product_id")
        )

    @transaction.atomic
    def clear_for_user(self, user_id: str) -> int:
        deleted, _ = CartItem.objects.filter(user_id=user_id).delete()
        logger.info("cart.cleared", user_id=user_id, deleted=deleted)
        return deleted

    def count_quantity(self, user_id: str) -> int:
        total = CartItem.objects.filter(user_id=user_id).aggregate(
            total=Sum("quantity")
        )["total"]
        return total or 0
