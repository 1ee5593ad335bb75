"""Product domain exceptions.

Raised by the inventory repository; callers decide whether a missing
product or a stock shortfall is fatal (cart checks) or only worth an
operational alert (post-payment stock bookkeeping).
"""

from __future__ import annotations


class ProductNotFound(Exception):
    """The requested product does not exist or has been soft-deleted."""


class StockShortfall(Exception):
    """Current stock is lower than the quantity to decrement."""

    def __init__(self, product_id: object, available: int, requested: int) -> None:
        self.product_id = product_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Product {product_id}: requested {requested}, available {available}."
        )
