"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.  Every
endpoint is scoped to the authenticated caller; ``Failure`` results and
domain exceptions become ``{"code", "detail"}`` responses.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.cart.validation import CartValidator
from modules.core.authentication import get_user_id
from modules.core.responses import failure_response, invalid_input_response
from modules.orders.dtos import CreateOrderDTO
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
)
from modules.orders.services import OrderService
from shared.domain.results import DomainError, Failure

THROTTLE_SCOPES = {
    "create": "order_creation",
    "list": "order_listing",
    "retrieve": "order_listing",
}


class OrderViewSet(GenericViewSet):
    """The caller's orders. Another user's order is refused, never shown."""

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            cart_validator=CartValidator(CartDjangoRepository()),
        )

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = THROTTLE_SCOPES.get(self.action)
        return super().get_throttles()

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Creates a ``pending`` order from the caller's cart.
        """
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        try:
            dto = CreateOrderDTO(**create_serializer.validated_data)
        except PydanticValidationError as exc:
            return invalid_input_response(exc)

        result = self._service.create_order(get_user_id(request), dto)
        if not result.ok:
            return failure_response(result)

        created = result.value
        return Response(
            {
                "order_id": str(created.order_id),
                "order_number": created.order_number,
                "total_amount": f"{created.total_amount:.2f}",
            },
            status=status.HTTP_201_CREATED,
        )

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        return self._service.list_orders(get_user_id(self.request))

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering by ``status`` and date range is handled by
        ``OrderFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(get_user_id(request), str(pk))
        except DomainError as exc:
            return failure_response(Failure.from_error(exc))
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/

        Only ``pending`` orders owned by the caller can be cancelled.
        """
        result = self._service.cancel_order(get_user_id(request), str(pk))
        if not result.ok:
            return failure_response(result)
        return Response(OrderSerializer(result.value).data)
