"""Order repository interface (the order store).

Extends ``IRepository[Order]`` with the header/lines split used by
both order-producing flows, status history tracking and the
payment-reference look-up.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence
from uuid import UUID

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.cart.validation import LineSnapshot
    from modules.orders.models import Order, OrderItem, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Insert the order header only.

        ``data`` must include ``user_id``, ``status`` and ``total_amount``,
        plus the shipping columns and optionally ``order_note`` and
        ``payment_reference``.
        """

    @abstractmethod
    def add_lines(
        self, order: Order, lines: Sequence[LineSnapshot]
    ) -> List[OrderItem]:
        """Insert one snapshot line per validated cart line."""

    @abstractmethod
    def list_for_user(
        self, user_id: str, status: Optional[str] = None
    ) -> "models.QuerySet[Order]":
        """The user's orders, newest first, optionally filtered by status."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def get_by_payment_reference(self, reference: str) -> Optional[Order]:
        """Retrieve the order produced by a gateway payment, if any."""

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        status: str,
        old_status: Optional[str] = None,
        changed_by: str = "",
        notes: str = "",
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""
