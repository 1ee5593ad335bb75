"""Cart API views.

Exposes ``CartService`` over HTTP.  Every endpoint acts on the
authenticated caller's own cart; domain exceptions become
``{"code", "detail"}`` responses.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.cart.dtos import AddCartItemDTO, UpdateCartItemDTO
from modules.cart.models import CartItem
from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.cart.serializers import (
    AddCartItemSerializer,
    CartItemSerializer,
    UpdateCartItemSerializer,
)
from modules.cart.services import CartService
from modules.core.authentication import get_user_id
from modules.core.responses import failure_response, invalid_input_response
from modules.products.repositories.django_repository import ProductDjangoRepository
from shared.domain.results import DomainError, Failure


class CartViewSet(GenericViewSet):
    """Cart endpoints under ``/api/v1/cart/``."""

    queryset = CartItem.objects.none()
    serializer_class = CartItemSerializer
    pagination_class = None

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CartService(
            cart_repository=CartDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )

    def list(self, request: Request) -> Response:
        """GET /api/v1/cart/"""
        try:
            summary = self._service.get_cart(get_user_id(request))
        except DomainError as exc:
            return failure_response(Failure.from_error(exc))
        return Response(
            {
                "items": CartItemSerializer(summary.items, many=True).data,
                "total_amount": f"{summary.total:.2f}",
                "item_count": summary.item_count,
            }
        )

    def create(self, request: Request) -> Response:
        """POST /api/v1/cart/"""
        serializer = AddCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = AddCartItemDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return invalid_input_response(exc)

        try:
            item = self._service.add_item(
                get_user_id(request), str(dto.product_id), dto.quantity
            )
        except DomainError as exc:
            return failure_response(Failure.from_error(exc))
        return Response(CartItemSerializer(item).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/cart/{pk}/"""
        serializer = UpdateCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = UpdateCartItemDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return invalid_input_response(exc)

        try:
            item = self._service.update_quantity(
                get_user_id(request), str(pk), dto.quantity
            )
        except DomainError as exc:
            return failure_response(Failure.from_error(exc))
        return Response(CartItemSerializer(item).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/cart/{pk}/"""
        try:
            self._service.remove_item(get_user_id(request), str(pk))
        except DomainError as exc:
            return failure_response(Failure.from_error(exc))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["delete"], url_path="clear")
    def clear(self, request: Request) -> Response:
        """DELETE /api/v1/cart/clear/"""
        try:
            deleted = self._service.clear_cart(get_user_id(request))
        except DomainError as exc:
            return failure_response(Failure.from_error(exc))
        return Response({"deleted": deleted})

    @action(detail=False, methods=["get"], url_path="count")
    def count(self, request: Request) -> Response:
        """GET /api/v1/cart/count/"""
        return Response({"count": self._service.count_items(get_user_id(request))})
