"""Error taxonomy and tagged workflow results shared by every module.

Domain code raises ``DomainError`` subclasses; workflow entry points
(order creation, payment reconciliation, cancellation) catch them at the
boundary and hand back a ``Success`` or ``Failure`` instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    NOT_AUTHENTICATED = "not_authenticated"
    INVALID_INPUT = "invalid_input"
    EMPTY_CART = "empty_cart"
    INACTIVE_PRODUCT = "inactive_product"
    OUT_OF_STOCK = "out_of_stock"
    INSUFFICIENT_STOCK = "insufficient_stock"
    AMOUNT_MISMATCH = "amount_mismatch"
    PAYMENT_NOT_APPROVED = "payment_not_approved"
    PAYMENT_OUTCOME_UNKNOWN = "payment_outcome_unknown"
    PAYMENT_IN_PROGRESS = "payment_in_progress"
    ORDER_PERSISTENCE_FAILED = "order_persistence_failed"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    INTERNAL_ERROR = "internal_error"


#: Kinds raised after the gateway has approved a charge.
CHARGED_KINDS = frozenset({ErrorKind.ORDER_PERSISTENCE_FAILED})

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


class DomainError(Exception):
    """Base class for business-rule failures.

    ``kind`` classifies the failure; the exception message is a
    human-readable reason that is safe to show to the customer.
    """

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    @property
    def message(self) -> str:
        return str(self)


class NotAuthenticated(DomainError):
    """No user identity was supplied."""

    kind = ErrorKind.NOT_AUTHENTICATED


class InvalidInput(DomainError):
    """Input failed schema validation."""

    kind = ErrorKind.INVALID_INPUT


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    ok = True


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str

    ok = False

    @classmethod
    def from_error(cls, error: DomainError) -> Failure:
        return cls(kind=error.kind, message=error.message)

    @classmethod
    def internal(cls) -> Failure:
        return cls(kind=ErrorKind.INTERNAL_ERROR, message=INTERNAL_ERROR_MESSAGE)

    @property
    def customer_was_charged(self) -> bool:
        return self.kind in CHARGED_KINDS


Result = Union[Success[T], Failure]
