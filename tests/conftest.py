from decimal import Decimal

import pytest

from django.core.cache import cache
from rest_framework.test import APIClient

from modules.cart.models import CartItem
from modules.core.authentication import IdentityUser
from modules.products.models import Product

USER_ID = "user_123"
OTHER_USER_ID = "user_456"


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def auth_client():
    """APIClient authenticated as ``USER_ID`` through the identity provider."""
    client = APIClient()
    client.force_authenticate(user=IdentityUser({"sub": USER_ID}))
    return client


@pytest.fixture()
def other_client():
    client = APIClient()
    client.force_authenticate(user=IdentityUser({"sub": OTHER_USER_ID}))
    return client


@pytest.fixture()
def make_product():
    def _make(
        name="Green Tea",
        price=Decimal("10000"),
        stock_quantity=5,
        is_active=True,
        category="food",
    ):
        return Product.objects.create(
            name=name,
            price=price,
            stock_quantity=stock_quantity,
            is_active=is_active,
            category=category,
        )

    return _make


@pytest.fixture()
def add_to_cart():
    def _add(product, quantity=1, user_id=USER_ID):
        return CartItem.objects.create(
            user_id=user_id, product=product, quantity=quantity
        )

    return _add
