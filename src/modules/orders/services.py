"""Order service layer (Use Cases).

Creates pending orders from the caller's cart, cancels them, and
answers order queries.  Workflow entry points return ``Success`` or
``Failure`` and never raise for business-rule violations.

Business rules enforced:
- The cart is re-validated (active products, stock) before any write.
- A client-supplied total must match the computed one within 0.01.
- Order header and lines are written in one transaction: an order row
  never exists without its lines.
- Stock is not touched: it is only decremented once a payment settles.
- Only the owner may cancel, and only while the order is ``pending``.
- History is recorded on creation and on every status change.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import structlog

from django.db import models, transaction

from modules.cart.validation import ensure_amount_matches
from modules.orders.constants import OrderStatus
from modules.orders.dtos import OrderCreatedDTO, shipping_columns
from modules.orders.exceptions import (
    InvalidOrderState,
    OrderAccessDenied,
    OrderNotFound,
)
from shared.domain.results import (
    DomainError,
    Failure,
    NotAuthenticated,
    Result,
    Success,
)

if TYPE_CHECKING:
    from modules.cart.validation import CartValidator
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository


class OrderService:
    """Application service for Order use-cases.

    Receives the order repository, the shared cart validator and a
    structlog logger via constructor injection.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        cart_validator: CartValidator,
        logger=None,
    ) -> None:
        self._order_repo = order_repository
        self._validator = cart_validator
        self._logger = logger or structlog.get_logger(__name__)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_order(
        self, user_id: str, dto: CreateOrderDTO
    ) -> Result[OrderCreatedDTO]:
        """Turn the caller's cart into a ``pending`` order.

        Steps:
        1. Re-validate the cart (no writes on failure).
        2. Compare ``dto.expected_total`` with the computed total.
        3. Insert the order header and its line snapshots atomically.
        """
        log = self._logger.bind(user_id=user_id)
        try:
            created = self._create_order(user_id, dto, log)
        except DomainError as exc:
            log.info("order.creation_rejected", reason=exc.kind.value)
            return Failure.from_error(exc)
        except Exception:
            log.exception("order.creation_failed")
            return Failure.internal()
        return Success(created)

    def cancel_order(self, user_id: str, order_id: str) -> Result[Order]:
        """Cancel a ``pending`` order owned by the caller.

        No stock or payment reversal happens: pending orders never
        decremented stock and were never charged.
        """
        log = self._logger.bind(user_id=user_id, order_id=str(order_id))
        try:
            order = self._cancel_order(user_id, order_id, log)
        except DomainError as exc:
            log.info("order.cancel_rejected", reason=exc.kind.value)
            return Failure.from_error(exc)
        except Exception:
            log.exception("order.cancel_failed")
            return Failure.internal()
        return Success(order)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, user_id: str, order_id: str) -> Order:
        """Retrieve one of the caller's orders with lines and history.

        Raises:
            NotAuthenticated: no user id.
            OrderNotFound: the order does not exist.
            OrderAccessDenied: the order belongs to another user.
        """
        if not user_id:
            raise NotAuthenticated("Please sign in to view your orders.")
        order = self._order_repo.get_by_id(str(order_id))
        if order is None:
            raise OrderNotFound("Order not found.")
        if order.user_id != user_id:
            raise OrderAccessDenied("You do not have access to this order.")
        return order

    def list_orders(
        self, user_id: str, status: Optional[str] = None
    ) -> models.QuerySet:
        """Return the caller's orders, newest first."""
        if not user_id:
            raise NotAuthenticated("Please sign in to view your orders.")
        return self._order_repo.list_for_user(user_id, status=status)

    # ------------------------------------------------------------------
    # Internal steps
    # ------------------------------------------------------------------

    def _create_order(self, user_id: str, dto: CreateOrderDTO, log) -> OrderCreatedDTO:
        if not user_id:
            raise NotAuthenticated("Please sign in to place an order.")

        cart = self._validator.validate(user_id)
        if dto.expected_total is not None:
            ensure_amount_matches(cart, dto.expected_total)

        with transaction.atomic():
            order = self._order_repo.create(
                {
                    "user_id": user_id,
                    "status": OrderStatus.PENDING,
                    "total_amount": cart.total,
                    "order_note": dto.order_note or "",
                    **shipping_columns(dto.shipping_address),
                }
            )
            self._order_repo.add_lines(order, cart.lines)
            self._order_repo.add_history(
                order_id=order.id,
                status=OrderStatus.PENDING,
                changed_by=user_id,
                notes="Order created",
            )

        log.info(
            "order.created",
            order_id=str(order.id),
            line_count=len(cart.lines),
            total_amount=str(cart.total),
        )
        return OrderCreatedDTO(
            order_id=order.id,
            order_number=order.order_number,
            total_amount=cart.total,
        )

    def _cancel_order(self, user_id: str, order_id: str, log) -> Order:
        if not user_id:
            raise NotAuthenticated("Please sign in to cancel an order.")

        with transaction.atomic():
            order = self._order_repo.get_for_update(str(order_id))
            if order is None:
                raise OrderNotFound("Order not found.")
            if order.user_id != user_id:
                log.warning("order.cancel_access_denied")
                raise OrderAccessDenied("You can only cancel your own orders.")
            if not order.can_transition_to(OrderStatus.CANCELLED):
                raise InvalidOrderState(
                    f"Only pending orders can be cancelled "
                    f"(current status: {order.status})."
                )

            old_status = order.status
            order.status = OrderStatus.CANCELLED
            self._order_repo.save(order)
            self._order_repo.add_history(
                order_id=order.id,
                status=OrderStatus.CANCELLED,
                old_status=old_status,
                changed_by=user_id,
                notes="Cancelled by customer",
            )

        log.info("order.cancelled")
        return self._order_repo.get_by_id(str(order.id)) or order
