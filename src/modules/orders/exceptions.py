"""Order domain exceptions.

Raised by the Service Layer when business rules are violated and
converted into ``Failure`` results at the workflow boundary.
"""

from __future__ import annotations

from shared.domain.results import DomainError, ErrorKind


class OrderNotFound(DomainError):
    """The requested order does not exist."""

    kind = ErrorKind.NOT_FOUND


class OrderAccessDenied(DomainError):
    """The order belongs to another user."""

    kind = ErrorKind.UNAUTHORIZED


class InvalidOrderState(DomainError):
    """The order's current status does not allow the requested change."""

    kind = ErrorKind.INVALID_STATE
