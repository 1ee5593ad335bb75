"""Payment reconciliation service (Use Case).

Turns a payment the gateway has just authorised into a ``confirmed``
order.  The gateway confirmation call is irreversible: once it reports
approval the purchase can no longer be aborted, only recorded or
escalated.

Sequence::

    replay check -> claim attempt -> lock cart -> validate cart
    -> compare amount -> gateway confirm (point of no return)
    -> order header -> order lines (compensating delete on failure)
    -> stock decrement (best effort) -> cart clear (best effort)

Guarantees:
- The gateway is never called for an invalid cart or a mismatched amount.
- One payment reference produces at most one gateway call and one order
  (``PaymentAttempt`` is claimed and committed before the call).
- Requests for the same user are serialised by locking the cart rows
  for the whole sequence; a second request finds an empty cart.
- After approval, any failure to record the order surfaces as
  ``OrderPersistenceFailed`` and is logged for manual reconciliation.
- Stock and cart bookkeeping failures after approval are logged and
  never undo the order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import structlog
from django.conf import settings
from django.db import transaction

from modules.cart.validation import ensure_amount_matches
from modules.orders.constants import OrderStatus
from modules.orders.dtos import shipping_columns
from modules.payments.constants import (
    UNAPPROVED_STATES,
    PaymentAttemptStatus,
    short_reference,
)
from modules.payments.dtos import PaymentConfirmedDTO
from modules.payments.exceptions import (
    OrderPersistenceFailed,
    PaymentAccessDenied,
    PaymentInProgress,
    PaymentNotApproved,
    PaymentOutcomeUnknown,
)
from modules.payments.gateway import (
    GatewayConfirmation,
    PaymentGatewayDeclined,
    PaymentGatewayNotConfigured,
    PaymentGatewayUnavailable,
)
from modules.products.exceptions import ProductNotFound, StockShortfall
from shared.domain.results import (
    DomainError,
    Failure,
    NotAuthenticated,
    Result,
    Success,
)

if TYPE_CHECKING:
    from modules.cart.repositories.interfaces import ICartRepository
    from modules.cart.validation import CartValidator, ValidatedCart
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.dtos import ConfirmPaymentDTO
    from modules.payments.gateway import PaymentGatewayClient
    from modules.payments.models import PaymentAttempt
    from modules.payments.repositories.interfaces import IPaymentAttemptRepository
    from modules.products.repositories.interfaces import IProductRepository


class PaymentReconciliationService:
    """Application service for payment confirmation.

    Collaborators (repositories, cart validator, gateway client and a
    structlog logger) are injected through the constructor.
    """

    def __init__(
        self,
        cart_repository: ICartRepository,
        product_repository: IProductRepository,
        order_repository: IOrderRepository,
        attempt_repository: IPaymentAttemptRepository,
        cart_validator: CartValidator,
        gateway: PaymentGatewayClient,
        logger=None,
        approved_status: Optional[str] = None,
    ) -> None:
        self._cart_repo = cart_repository
        self._product_repo = product_repository
        self._order_repo = order_repository
        self._attempts = attempt_repository
        self._validator = cart_validator
        self._gateway = gateway
        self._logger = logger or structlog.get_logger(__name__)
        self._approved_status = (
            approved_status or settings.PAYMENT_GATEWAY_APPROVED_STATUS
        )

    # ------------------------------------------------------------------
    # Workflow entry point
    # ------------------------------------------------------------------

    def confirm_payment(
        self, user_id: str, dto: ConfirmPaymentDTO
    ) -> Result[PaymentConfirmedDTO]:
        """Confirm a payment with the gateway and record the order.

        Never raises: every outcome is a ``Success`` or a ``Failure``.
        """
        log = self._logger.bind(
            user_id=user_id,
            payment_reference=short_reference(dto.payment_key),
            order_reference=dto.order_id,
        )
        try:
            confirmed = self._confirm(user_id, dto, log)
        except OrderPersistenceFailed as exc:
            log.critical("payment.reconciliation_required", amount=str(dto.amount))
            return Failure.from_error(exc)
        except PaymentOutcomeUnknown as exc:
            log.error("payment.outcome_unknown", amount=str(dto.amount))
            return Failure.from_error(exc)
        except DomainError as exc:
            log.info("payment.rejected", reason=exc.kind.value)
            return Failure.from_error(exc)
        except Exception:
            log.exception("payment.failed")
            return Failure.internal()
        return Success(confirmed)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _confirm(
        self, user_id: str, dto: ConfirmPaymentDTO, log
    ) -> PaymentConfirmedDTO:
        if not user_id:
            raise NotAuthenticated("Please sign in to complete your payment.")

        replayed = self._replay(user_id, dto.payment_key, log)
        if replayed is not None:
            return replayed

        attempt = self._attempts.claim(
            payment_reference=dto.payment_key,
            order_reference=dto.order_id,
            user_id=user_id,
            amount=dto.amount,
        )

        confirmation: Optional[GatewayConfirmation] = None
        try:
            with transaction.atomic():
                self._cart_repo.lock_for_user(user_id)
                cart = self._validator.validate(user_id)
                ensure_amount_matches(cart, dto.amount)

                confirmation = self._call_gateway(cart, dto, log)

                # Point of no return: the customer has been charged.
                order = self._record_order(user_id, cart, dto, confirmation, log)
                self._attempts.mark(
                    attempt,
                    PaymentAttemptStatus.RECORDED,
                    order=order,
                    **self._gateway_fields(confirmation),
                )
                self._decrement_stock(order, cart, log)
                self._clear_cart(user_id, log)
        except PaymentOutcomeUnknown as exc:
            self._attempts.mark(
                attempt,
                PaymentAttemptStatus.OUTCOME_UNKNOWN,
                error_message=str(exc.__cause__ or exc),
            )
            raise
        except PaymentNotApproved as exc:
            self._attempts.mark(
                attempt,
                exc.attempt_status,
                error_message=exc.message,
                **exc.gateway_fields,
            )
            raise
        except DomainError as exc:
            if confirmation is None:
                self._attempts.mark(
                    attempt, PaymentAttemptStatus.REJECTED, error_message=exc.message
                )
                raise
            self._mark_persistence_failed(attempt, confirmation, exc)
            raise OrderPersistenceFailed() from exc
        except Exception as exc:
            if confirmation is None:
                self._attempts.mark(
                    attempt, PaymentAttemptStatus.REJECTED, error_message=repr(exc)
                )
                raise
            self._mark_persistence_failed(attempt, confirmation, exc)
            raise OrderPersistenceFailed() from exc

        log.info(
            "payment.completed",
            order_id=str(order.id),
            total_amount=str(order.total_amount),
        )
        return PaymentConfirmedDTO(
            order_id=order.id,
            order_number=order.order_number,
            payment_reference=dto.payment_key,
            total_amount=order.total_amount,
        )

    def _replay(
        self, user_id: str, payment_reference: str, log
    ) -> Optional[PaymentConfirmedDTO]:
        """Answer a repeated confirmation without calling the gateway.

        Returns the existing order's result, or ``None`` when the reference
        is new or was rejected before reaching the gateway. Raises the
        stored ``PaymentNotApproved`` for a reference the gateway did not
        approve, and ``PaymentInProgress`` while an attempt is unresolved.
        """
        order = self._order_repo.get_by_payment_reference(payment_reference)
        if order is not None:
            if order.user_id != user_id:
                raise PaymentAccessDenied("This payment belongs to another account.")
            log.info("payment.replayed", order_id=str(order.id))
            return PaymentConfirmedDTO(
                order_id=order.id,
                order_number=order.order_number,
                payment_reference=payment_reference,
                total_amount=order.total_amount,
            )

        attempt = self._attempts.get_by_reference(payment_reference)
        if attempt is None or attempt.status == PaymentAttemptStatus.REJECTED:
            return None
        if attempt.status in UNAPPROVED_STATES:
            if attempt.user_id != user_id:
                raise PaymentAccessDenied("This payment belongs to another account.")
            log.info("payment.replayed_not_approved", attempt_status=attempt.status)
            raise PaymentNotApproved(
                attempt.error_message or PaymentNotApproved.default_message,
                attempt_status=attempt.status,
            )
        log.warning("payment.duplicate_in_flight", attempt_status=attempt.status)
        raise PaymentInProgress()

    def _call_gateway(
        self, cart: ValidatedCart, dto: ConfirmPaymentDTO, log
    ) -> GatewayConfirmation:
        log.info(
            "payment.gateway_called",
            order_name=cart.order_name,
            amount=str(dto.amount),
        )
        try:
            confirmation = self._gateway.confirm(
                payment_reference=dto.payment_key,
                order_reference=dto.order_id,
                amount=dto.amount,
            )
        except PaymentGatewayDeclined as exc:
            raise PaymentNotApproved(
                f"The payment was declined: {exc.message}",
                attempt_status=PaymentAttemptStatus.DECLINED,
                gateway_fields={
                    "gateway_status": exc.code[:50],
                    "gateway_payload": exc.payload,
                },
            ) from exc
        except PaymentGatewayUnavailable as exc:
            raise PaymentOutcomeUnknown() from exc
        except PaymentGatewayNotConfigured:
            raise
        except Exception as exc:
            # The request may have reached the gateway.
            log.exception("payment.gateway_client_failed")
            raise PaymentOutcomeUnknown() from exc

        if confirmation.status != self._approved_status:
            log.warning("payment.not_approved", gateway_status=confirmation.status)
            raise PaymentNotApproved(
                f"The payment was not approved (status: {confirmation.status}).",
                attempt_status=PaymentAttemptStatus.NOT_APPROVED,
                gateway_fields=self._gateway_fields(confirmation),
            )
        log.info("payment.gateway_approved", approved_at=str(confirmation.approved_at))
        return confirmation

    def _record_order(
        self,
        user_id: str,
        cart: ValidatedCart,
        dto: ConfirmPaymentDTO,
        confirmation: GatewayConfirmation,
        log,
    ) -> Order:
        with transaction.atomic():
            order = self._order_repo.create(
                {
                    "user_id": user_id,
                    "status": OrderStatus.CONFIRMED,
                    "total_amount": cart.total,
                    "order_note": dto.order_note or "",
                    "payment_reference": dto.payment_key,
                    **shipping_columns(dto.shipping_address, fallback_name=user_id),
                }
            )

        try:
            with transaction.atomic():
                self._order_repo.add_lines(order, cart.lines)
        except Exception:
            log.exception("payment.order_lines_failed", order_id=str(order.id))
            self._order_repo.delete(str(order.id))
            log.warning("payment.order_compensated", order_id=str(order.id))
            raise

        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.CONFIRMED,
            notes=f"Payment approved at {confirmation.approved_at}",
        )
        log.info("payment.order_recorded", order_id=str(order.id))
        return order

    def _decrement_stock(self, order: Order, cart: ValidatedCart, log) -> None:
        for line in sorted(cart.lines, key=lambda line: str(line.product_id)):
            line_log = log.bind(
                order_id=str(order.id),
                product_id=str(line.product_id),
                quantity=line.quantity,
            )
            try:
                product = self._product_repo.decrement_stock(
                    str(line.product_id), line.quantity
                )
            except (ProductNotFound, StockShortfall) as exc:
                line_log.warning("payment.stock_decrement_skipped", reason=str(exc))
                continue
            except Exception:
                line_log.exception("payment.stock_decrement_failed")
                continue
            line_log.info(
                "payment.stock_decremented", remaining=product.stock_quantity
            )

    def _clear_cart(self, user_id: str, log) -> None:
        try:
            with transaction.atomic():
                self._cart_repo.clear_for_user(user_id)
        except Exception:
            log.exception("payment.cart_clear_failed")
            return
        log.info("payment.cart_cleared")

    # ------------------------------------------------------------------
    # Attempt bookkeeping
    # ------------------------------------------------------------------

    @staticmethod
    def _gateway_fields(confirmation: GatewayConfirmation) -> dict:
        return {
            "gateway_status": confirmation.status,
            "gateway_approved_at": confirmation.approved_at,
            "gateway_payload": confirmation.raw,
        }

    def _mark_persistence_failed(
        self,
        attempt: PaymentAttempt,
        confirmation: GatewayConfirmation,
        exc: Exception,
    ) -> None:
        self._attempts.mark(
            attempt,
            PaymentAttemptStatus.PERSISTENCE_FAILED,
            error_message=repr(exc),
            **self._gateway_fields(confirmation),
        )
