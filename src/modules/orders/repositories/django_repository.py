"""Django ORM implementation of the Order repository.

Header and lines are written by separate calls so each order-producing
flow can decide its own transaction and compensation boundaries.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.cart.validation import LineSnapshot
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderDjangoRepository(IOrderRepository):
    """Order store backed by the Django ORM."""

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        order = Order(**data)
        order.save()
        logger.info(
            "order.header_written",
            order_id=str(order.id),
            status=order.status,
            total_amount=str(order.total_amount),
        )
        return order

    @transaction.atomic
    def add_lines(self, order: Order, lines: Sequence[LineSnapshot]) -> List[OrderItem]:
        # bulk_create skips save(), so the subtotal is set here.
        items = [
            OrderItem(
                order=order,
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity,
                unit_price=line.unit_price,
                subtotal=line.subtotal,
            )
            for line in lines
        ]
        created = OrderItem.objects.bulk_create(items)
        logger.info(
            "order.lines_written", order_id=str(order.id), line_count=len(created)
        )
        return created

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded lines and history.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.prefetch_related("items", "status_history")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list_for_user(
        self, user_id: str, status: Optional[str] = None
    ) -> models.QuerySet:
        queryset = (
            Order.objects.filter(user_id=user_id)
            .prefetch_related("items")
            .order_by("-created_at", "-id")
        )
        if status:
            queryset = queryset.filter(status=status)
        return queryset

    def get_for_update(self, id: str) -> Optional[Order]:
        try:
            return Order.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_payment_reference(self, reference: str) -> Optional[Order]:
        return (
            Order.objects.prefetch_related("items", "status_history")
            .filter(payment_reference=reference)
            .first()
        )

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        entity.save()
        logger.info("order.saved", order_id=str(entity.id), status=entity.status)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Hard-delete an order together with its lines and history."""
        try:
            deleted, _ = Order.objects.filter(id=id).delete()
        except (ValueError, ValidationError):
            return False
        if deleted:
            logger.info("order.deleted", order_id=str(id))
        return deleted > 0

    @transaction.atomic
    def add_history(
        self,
        order_id: UUID,
        status: str,
        old_status: Optional[str] = None,
        changed_by: str = "",
        notes: str = "",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            changed_by=changed_by,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
        )
        return history
