"""Cart repository interface (the cart store).

Extends ``IRepository[CartItem]`` with the per-user look-ups and the
cart-wide lock taken by the payment workflow.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.cart.models import CartItem


class ICartRepository(IRepository["CartItem"]):
    """Repository contract for cart lines."""

    @abstractmethod
    def get_by_user_and_product(
        self, user_id: str, product_id: str
    ) -> Optional["CartItem"]:
        """Retrieve the caller's line for one product, if any."""

    @abstractmethod
    def list_for_user(self, user_id: str) -> List["CartItem"]:
        """Return the caller's lines joined with their products."""

    @abstractmethod
    def lock_for_user(self, user_id: str) -> List["CartItem"]:
        """Lock every line of the caller's cart (SELECT FOR UPDATE).

        Must be called inside a transaction.  Rows are locked in product
        order so that concurrent callers never deadlock.
        """

    @abstractmethod
    def clear_for_user(self, user_id: str) -> int:
        """Delete every line of the caller's cart; return the count."""

    @abstractmethod
    def count_quantity(self, user_id: str) -> int:
        """Total number of units across the caller's lines."""
