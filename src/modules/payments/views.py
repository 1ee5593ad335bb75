"""Payment API views."""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.cart.validation import CartValidator
from modules.core.authentication import get_user_id
from modules.core.responses import failure_response, invalid_input_response
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.payments.dtos import ConfirmPaymentDTO
from modules.payments.gateway import PaymentGatewayClient
from modules.payments.repositories.django_repository import (
    PaymentAttemptDjangoRepository,
)
from modules.payments.serializers import ConfirmPaymentSerializer
from modules.payments.services import PaymentReconciliationService
from modules.products.repositories.django_repository import ProductDjangoRepository


def build_reconciliation_service(
    gateway: Optional[PaymentGatewayClient] = None,
) -> PaymentReconciliationService:
    cart_repository = CartDjangoRepository()
    return PaymentReconciliationService(
        cart_repository=cart_repository,
        product_repository=ProductDjangoRepository(),
        order_repository=OrderDjangoRepository(),
        attempt_repository=PaymentAttemptDjangoRepository(),
        cart_validator=CartValidator(cart_repository),
        gateway=gateway or PaymentGatewayClient(),
    )


class PaymentConfirmView(APIView):
    """POST /api/v1/payments/confirm/

    Called by the storefront after the payment widget redirects back
    with ``paymentKey``, ``orderId`` and ``amount``.  A 502 with
    ``charged: true`` means the customer was charged but the order could
    not be recorded.
    """

    throttle_scope = "payment_confirmation"

    def post(self, request: Request) -> Response:
        serializer = ConfirmPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = ConfirmPaymentDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return invalid_input_response(exc)

        result = build_reconciliation_service().confirm_payment(
            get_user_id(request), dto
        )
        if not result.ok:
            return failure_response(result)

        confirmed = result.value
        return Response(
            {
                "order_id": str(confirmed.order_id),
                "order_number": confirmed.order_number,
                "payment_key": confirmed.payment_reference,
                "total_amount": f"{confirmed.total_amount:.2f}",
            },
            status=status.HTTP_201_CREATED,
        )
