"""Unit tests for CartService."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from modules.cart.exceptions import (
    CartItemAccessDenied,
    CartItemNotFound,
    InactiveProduct,
    InsufficientStock,
    OutOfStock,
    ProductNotAvailable,
)
from modules.cart.models import CartItem
from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.cart.services import CartService
from modules.products.repositories.django_repository import ProductDjangoRepository
from shared.domain.results import NotAuthenticated

pytestmark = pytest.mark.unit

USER = "user_123"
OTHER = "user_456"


@pytest.fixture()
def service():
    return CartService(
        cart_repository=CartDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


# ---------------------------------------------------------------------------
# add_item
# ---------------------------------------------------------------------------


class TestAddItem:
    def test_creates_line(self, service, make_product):
        product = make_product()

        item = service.add_item(USER, str(product.id), 2)

        assert item.quantity == 2
        assert CartItem.objects.filter(user_id=USER).count() == 1

    def test_merges_into_existing_line(self, service, make_product):
        product = make_product(stock_quantity=5)
        service.add_item(USER, str(product.id), 2)

        item = service.add_item(USER, str(product.id), 3)

        assert item.quantity == 5
        assert CartItem.objects.filter(user_id=USER).count() == 1

    def test_merged_quantity_above_stock_is_rejected(self, service, make_product):
        product = make_product(stock_quantity=3)
        service.add_item(USER, str(product.id), 2)

        with pytest.raises(InsufficientStock) as exc_info:
            service.add_item(USER, str(product.id), 2)

        assert exc_info.value.available == 3
        assert exc_info.value.requested == 4
        assert CartItem.objects.get(user_id=USER).quantity == 2

    def test_unknown_product(self, service):
        with pytest.raises(ProductNotAvailable):
            service.add_item(USER, str(uuid4()), 1)

    def test_deleted_product_is_unknown(self, service, make_product):
        product = make_product()
        product.delete()
        with pytest.raises(ProductNotAvailable):
            service.add_item(USER, str(product.id), 1)

    def test_inactive_product(self, service, make_product):
        product = make_product(is_active=False)
        with pytest.raises(InactiveProduct):
            service.add_item(USER, str(product.id), 1)

    def test_out_of_stock_product(self, service, make_product):
        product = make_product(stock_quantity=0)
        with pytest.raises(OutOfStock):
            service.add_item(USER, str(product.id), 1)

    def test_requires_user(self, service, make_product):
        with pytest.raises(NotAuthenticated):
            service.add_item("", str(make_product().id), 1)


# ---------------------------------------------------------------------------
# update_quantity / remove_item
# ---------------------------------------------------------------------------


class TestUpdateQuantity:
    def test_sets_quantity(self, service, make_product, add_to_cart):
        item = add_to_cart(make_product(stock_quantity=5), quantity=1)

        updated = service.update_quantity(USER, str(item.id), 4)

        assert updated.quantity == 4
        item.refresh_from_db()
        assert item.quantity == 4

    def test_quantity_above_stock(self, service, make_product, add_to_cart):
        item = add_to_cart(make_product(stock_quantity=2), quantity=1)
        with pytest.raises(InsufficientStock):
            service.update_quantity(USER, str(item.id), 3)

    def test_product_deactivated_after_adding(
        self, service, make_product, add_to_cart
    ):
        product = make_product()
        item = add_to_cart(product)
        product.is_active = False
        product.save()

        with pytest.raises(InactiveProduct):
            service.update_quantity(USER, str(item.id), 2)

    def test_other_users_line(self, service, make_product, add_to_cart):
        item = add_to_cart(make_product(), user_id=OTHER)

        with pytest.raises(CartItemAccessDenied):
            service.update_quantity(USER, str(item.id), 2)

        item.refresh_from_db()
        assert item.quantity == 1

    def test_missing_line(self, service):
        with pytest.raises(CartItemNotFound):
            service.update_quantity(USER, str(uuid4()), 2)


class TestRemoveItem:
    def test_removes_own_line(self, service, make_product, add_to_cart):
        item = add_to_cart(make_product())
        service.remove_item(USER, str(item.id))
        assert not CartItem.objects.filter(id=item.id).exists()

    def test_other_users_line_is_kept(self, service, make_product, add_to_cart):
        item = add_to_cart(make_product(), user_id=OTHER)
        with pytest.raises(CartItemAccessDenied):
            service.remove_item(USER, str(item.id))
        assert CartItem.objects.filter(id=item.id).exists()

    def test_invalid_id(self, service):
        with pytest.raises(CartItemNotFound):
            service.remove_item(USER, "not-a-uuid")


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TestGetCart:
    def test_skips_unavailable_products(self, service, make_product, add_to_cart):
        add_to_cart(make_product(name="Tea", price=Decimal("1000.10")), quantity=3)
        add_to_cart(make_product(name="Gone", is_active=False), quantity=1)
        deleted = make_product(name="Deleted")
        add_to_cart(deleted)
        deleted.delete()

        summary = service.get_cart(USER)

        assert [item.product.name for item in summary.items] == ["Tea"]
        assert summary.total == Decimal("3000.30")
        assert summary.item_count == 3

    def test_empty_cart(self, service):
        summary = service.get_cart(USER)
        assert summary.items == []
        assert summary.total == Decimal("0")


class TestClearAndCount:
    def test_clear_only_touches_callers_lines(
        self, service, make_product, add_to_cart
    ):
        product = make_product()
        add_to_cart(product, quantity=2)
        add_to_cart(product, quantity=1, user_id=OTHER)

        assert service.clear_cart(USER) == 1
        assert CartItem.objects.filter(user_id=OTHER).count() == 1

    def test_count_sums_quantities(self, service, make_product, add_to_cart):
        add_to_cart(make_product(name="A"), quantity=2)
        add_to_cart(make_product(name="B"), quantity=3)
        assert service.count_items(USER) == 5

    def test_count_without_user_is_zero(self, service):
        assert service.count_items("") == 0


class TestInjectedLogger:
    @pytest.fixture()
    def logger(self):
        return MagicMock()

    @pytest.fixture()
    def service(self, logger):
        return CartService(
            cart_repository=CartDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            logger=logger,
        )

    def test_add_item_logs_through_injected_logger(
        self, service, logger, make_product
    ):
        product = make_product(stock_quantity=5)

        service.add_item(USER, str(product.id), 2)

        logger.bind.assert_called_once_with(user_id=USER, product_id=str(product.id))
        logger.bind.return_value.info.assert_called_once_with(
            "cart.item_added", quantity=2, line_quantity=2
        )

    def test_access_denied_logs_through_injected_logger(
        self, service, logger, make_product, add_to_cart
    ):
        item = add_to_cart(make_product(), quantity=1, user_id=OTHER)

        with pytest.raises(CartItemAccessDenied):
            service.remove_item(USER, str(item.id))

        logger.warning.assert_called_once_with(
            "cart.access_denied", user_id=USER, cart_item_id=str(item.id)
        )
