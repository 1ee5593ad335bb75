"""Cart domain exceptions.

The validation failures here are shared by the cart endpoints, order
creation and payment reconciliation.  Their messages are safe to show
to the customer verbatim.
"""

from __future__ import annotations

from shared.domain.results import DomainError, ErrorKind


class EmptyCart(DomainError):
    kind = ErrorKind.EMPTY_CART

    def __init__(self, message: str = "Your cart is empty.") -> None:
        super().__init__(message)


class InactiveProduct(DomainError):
    """The product is deactivated or deleted and can no longer be bought."""

    kind = ErrorKind.INACTIVE_PRODUCT

    def __init__(self, product_id: object, name: str) -> None:
        self.product_id = product_id
        super().__init__(f"'{name}' is no longer available for purchase.")


class OutOfStock(DomainError):
    """Current stock is exactly zero: the line should be removed."""

    kind = ErrorKind.OUT_OF_STOCK

    def __init__(self, product_id: object, name: str) -> None:
        self.product_id = product_id
        super().__init__(f"'{name}' is out of stock.")


class InsufficientStock(DomainError):
    """Requested quantity exceeds current stock: the line should be reduced."""

    kind = ErrorKind.INSUFFICIENT_STOCK

    def __init__(
        self, product_id: object, name: str, available: int, requested: int
    ) -> None:
        self.product_id = product_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Not enough stock for '{name}' "
            f"(current stock: {available}, requested: {requested})."
        )


class ProductNotAvailable(DomainError):
    """The product to add does not exist."""

    kind = ErrorKind.NOT_FOUND


class CartItemNotFound(DomainError):
    kind = ErrorKind.NOT_FOUND


class CartItemAccessDenied(DomainError):
    """The cart line belongs to another user."""

    kind = ErrorKind.UNAUTHORIZED


class AmountMismatch(DomainError):
    """The client's total disagrees with the freshly computed cart total."""

    kind = ErrorKind.AMOUNT_MISMATCH

    def __init__(self, expected: object, actual: object) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            "The order total has changed. Please refresh your cart and try again."
        )
