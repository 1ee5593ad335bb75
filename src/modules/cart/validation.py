"""Cart validation shared by order creation and payment reconciliation.

Given a user's current cart, ``CartValidator.validate`` either returns a
``ValidatedCart`` (line snapshots plus the authoritative total) or raises
the first ``DomainError`` it finds.  It never writes.

Per line the checks run in this order:

1. Product deactivated or soft-deleted -> ``InactiveProduct``.
2. Current stock is zero -> ``OutOfStock``.
3. Quantity exceeds current stock -> ``InsufficientStock``.

An empty cart fails with ``EmptyCart`` before any line is inspected.
Money is ``Decimal`` end to end; ``ensure_amount_matches`` compares a
client-supplied total against the computed one.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Tuple
from uuid import UUID

import structlog

from modules.cart.exceptions import (
    AmountMismatch,
    EmptyCart,
    InactiveProduct,
    InsufficientStock,
    OutOfStock,
)

AMOUNT_TOLERANCE = Decimal("0.01")

if TYPE_CHECKING:
    from modules.cart.models import CartItem
    from modules.cart.repositories.interfaces import ICartRepository


@dataclass(frozen=True)
class LineSnapshot:
    """Price and name of one cart line captured at validation time."""

    product_id: UUID
    product_name: str
    quantity: int
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class ValidatedCart:
    user_id: str
    lines: Tuple[LineSnapshot, ...]
    total: Decimal

    @property
    def order_name(self) -> str:
        """Short description for the payment gateway, e.g. ``"Tea and 2 more"``."""
        first = self.lines[0].product_name
        others = len(self.lines) - 1
        if others > 0:
            return f"{first} and {others} more"
        return first


def check_line(item: CartItem) -> None:
    """Raise the precise failure for a line that cannot be purchased."""
    product = item.product
    if not product.is_active or product.is_deleted:
        raise InactiveProduct(product.id, product.name)
    if product.stock_quantity == 0:
        raise OutOfStock(product.id, product.name)
    if item.quantity > product.stock_quantity:
        raise InsufficientStock(
            product.id,
            product.name,
            available=product.stock_quantity,
            requested=item.quantity,
        )


class CartValidator:
    """Re-reads the cart and its products and checks every line."""

    def __init__(self, cart_repository: ICartRepository, logger=None) -> None:
        self._cart_repo = cart_repository
        self._logger = logger or structlog.get_logger(__name__)

    def validate(self, user_id: str) -> ValidatedCart:
        log = self._logger.bind(user_id=user_id)

        items = self._cart_repo.list_for_user(user_id)
        if not items:
            log.info("checkout.rejected", reason="empty_cart")
            raise EmptyCart()

        lines = []
        total = Decimal("0")
        for item in items:
            try:
                check_line(item)
            except (InactiveProduct, OutOfStock, InsufficientStock) as exc:
                log.info(
                    "checkout.rejected",
                    reason=exc.kind.value,
                    product_id=str(item.product_id),
                )
                raise
            line = LineSnapshot(
                product_id=item.product.id,
                product_name=item.product.name,
                quantity=item.quantity,
                unit_price=item.product.price,
            )
            lines.append(line)
            total += line.subtotal

        log.info("checkout.validated", line_count=len(lines), total=str(total))
        return ValidatedCart(user_id=user_id, lines=tuple(lines), total=total)


def ensure_amount_matches(cart: ValidatedCart, claimed: Decimal) -> None:
    """Reject a claimed total that differs from the cart total by more than 0.01."""
    if abs(cart.total - claimed) > AMOUNT_TOLERANCE:
        raise AmountMismatch(expected=cart.total, actual=claimed)
