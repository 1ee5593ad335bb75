"""Cart service layer (Use Cases).

Every command is scoped to the caller's ``user_id``: a line owned by
someone else is reported as ``CartItemAccessDenied`` and never touched.

Business rules enforced:
- Only active, non-deleted products can be added.
- Quantity is an integer of at least 1.
- The resulting line quantity may never exceed current stock.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, List

import structlog

from django.db import transaction

from modules.cart.exceptions import (
    CartItemAccessDenied,
    CartItemNotFound,
    InactiveProduct,
    InsufficientStock,
    OutOfStock,
    ProductNotAvailable,
)
from modules.cart.models import CartItem
from shared.domain.results import NotAuthenticated

if TYPE_CHECKING:
    from modules.cart.repositories.interfaces import ICartRepository
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository


@dataclass(frozen=True)
class CartSummary:
    items: List[CartItem]
    total: Decimal

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)


def _require_user(user_id: str) -> None:
    if not user_id:
        raise NotAuthenticated("Please sign in to use the cart.")


def _check_stock(product: Product, quantity: int) -> None:
    if product.stock_quantity == 0:
        raise OutOfStock(product.id, product.name)
    if quantity > product.stock_quantity:
        raise InsufficientStock(
            product.id,
            product.name,
            available=product.stock_quantity,
            requested=quantity,
        )


class CartService:
    """Application service for cart use-cases.

    Receives repositories and, optionally, a structlog logger via
    constructor injection (DIP).
    """

    def __init__(
        self,
        cart_repository: ICartRepository,
        product_repository: IProductRepository,
        logger=None,
    ) -> None:
        self._cart_repo = cart_repository
        self._product_repo = product_repository
        self._logger = logger or structlog.get_logger(__name__)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def add_item(self, user_id: str, product_id: str, quantity: int = 1) -> CartItem:
        """Add ``quantity`` units of a product, merging into an existing line.

        Raises:
            ProductNotAvailable: product does not exist.
            InactiveProduct: product is deactivated.
            OutOfStock / InsufficientStock: resulting quantity exceeds stock.
        """
        _require_user(user_id)
        log = self._logger.bind(user_id=user_id, product_id=str(product_id))

        product = self._product_repo.get_by_id(str(product_id))
        if product is None:
            raise ProductNotAvailable("Product not found.")
        if not product.is_active:
            raise InactiveProduct(product.id, product.name)

        item = self._cart_repo.get_by_user_and_product(user_id, str(product.id))
        new_quantity = quantity + (item.quantity if item else 0)
        _check_stock(product, new_quantity)

        if item is None:
            item = CartItem(user_id=user_id, product=product, quantity=new_quantity)
        else:
            item.quantity = new_quantity
        item = self._cart_repo.save(item)

        log.info("cart.item_added", quantity=quantity, line_quantity=new_quantity)
        return item

    @transaction.atomic
    def update_quantity(self, user_id: str, item_id: str, quantity: int) -> CartItem:
        """Set a line's quantity.

        Raises:
            CartItemNotFound / CartItemAccessDenied: line missing or not owned.
            InactiveProduct: product was deactivated since it was added.
            OutOfStock / InsufficientStock: quantity exceeds stock.
        """
        _require_user(user_id)
        item = self._get_owned_item(user_id, item_id)

        product = item.product
        if not product.is_active or product.is_deleted:
            raise InactiveProduct(product.id, product.name)
        _check_stock(product, quantity)

        item.quantity = quantity
        item = self._cart_repo.save(item)
        self._logger.info(
            "cart.item_updated",
            user_id=user_id,
            cart_item_id=str(item.id),
            quantity=quantity,
        )
        return item

    @transaction.atomic
    def remove_item(self, user_id: str, item_id: str) -> None:
        _require_user(user_id)
        item = self._get_owned_item(user_id, item_id)
        self._cart_repo.delete(str(item.id))
        self._logger.info(
            "cart.item_removed", user_id=user_id, cart_item_id=str(item.id)
        )

    def clear_cart(self, user_id: str) -> int:
        _require_user(user_id)
        return self._cart_repo.clear_for_user(user_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_cart(self, user_id: str) -> CartSummary:
        """Return purchasable lines and their exact total.

        Lines whose product was deactivated or deleted are left out of the
        listing and the total; they are still rejected at checkout.
        """
        _require_user(user_id)
        items = [
            item
            for item in self._cart_repo.list_for_user(user_id)
            if item.product.is_active and not item.product.is_deleted
        ]
        total = sum((item.subtotal for item in items), Decimal("0"))
        return CartSummary(items=items, total=total)

    def count_items(self, user_id: str) -> int:
        if not user_id:
            return 0
        return self._cart_repo.count_quantity(user_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_owned_item(self, user_id: str, item_id: str) -> CartItem:
        item = self._cart_repo.get_by_id(str(item_id))
        if item is None:
            raise CartItemNotFound("Cart item not found.")
        if item.user_id != user_id:
            self._logger.warning(
                "cart.access_denied", user_id=user_id, cart_item_id=str(item_id)
            )
            raise CartItemAccessDenied("You cannot modify another user's cart.")
        return item
