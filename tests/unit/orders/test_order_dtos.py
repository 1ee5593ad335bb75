"""Unit tests for order, cart and payment DTOs (Pydantic v2)."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.cart.dtos import AddCartItemDTO, UpdateCartItemDTO
from modules.core.responses import validation_message
from modules.orders.dtos import CreateOrderDTO, ShippingAddressDTO, shipping_columns
from modules.payments.dtos import ConfirmPaymentDTO

pytestmark = pytest.mark.unit

VALID_SHIPPING = {
    "customer_name": "Kim Minji",
    "address": "123 Teheran-ro, Gangnam-gu",
    "postal_code": "06234",
    "phone_number": "010-1234-5678",
}


class TestShippingAddressDTO:
    def test_valid_address(self):
        dto = ShippingAddressDTO(**VALID_SHIPPING)
        assert dto.customer_name == "Kim Minji"
        assert dto.address_detail is None

    def test_phone_hyphens_are_stripped(self):
        dto = ShippingAddressDTO(**VALID_SHIPPING)
        assert dto.phone_number == "01012345678"

    @pytest.mark.parametrize("phone", ["01012345678", "02-123-4567", "031-1234-5678"])
    def test_accepted_phone_formats(self, phone):
        ShippingAddressDTO(**{**VALID_SHIPPING, "phone_number": phone})

    @pytest.mark.parametrize("phone", ["1234", "110-1234-5678", "010-12-5678"])
    def test_rejected_phone_formats(self, phone):
        with pytest.raises(ValidationError):
            ShippingAddressDTO(**{**VALID_SHIPPING, "phone_number": phone})

    @pytest.mark.parametrize("postal_code", ["1234", "123456", "12a45"])
    def test_postal_code_must_be_five_digits(self, postal_code):
        with pytest.raises(ValidationError) as exc_info:
            ShippingAddressDTO(**{**VALID_SHIPPING, "postal_code": postal_code})
        assert validation_message(exc_info.value) == (
            "Postal code must be exactly 5 digits."
        )

    def test_name_length_bounds(self):
        with pytest.raises(ValidationError):
            ShippingAddressDTO(**{**VALID_SHIPPING, "customer_name": "K"})
        with pytest.raises(ValidationError):
            ShippingAddressDTO(**{**VALID_SHIPPING, "customer_name": "K" * 51})

    def test_address_too_short(self):
        with pytest.raises(ValidationError):
            ShippingAddressDTO(**{**VALID_SHIPPING, "address": "abc"})

    def test_blank_detail_becomes_absent(self):
        dto = ShippingAddressDTO(**{**VALID_SHIPPING, "address_detail": ""})
        assert dto.address_detail is None

    def test_is_immutable(self):
        dto = ShippingAddressDTO(**VALID_SHIPPING)
        with pytest.raises(ValidationError):
            dto.customer_name = "Someone Else"


class TestCreateOrderDTO:
    def test_blank_note_becomes_absent(self):
        dto = CreateOrderDTO(shipping_address=VALID_SHIPPING, order_note="")
        assert dto.order_note is None

    def test_note_length_limit(self):
        with pytest.raises(ValidationError):
            CreateOrderDTO(shipping_address=VALID_SHIPPING, order_note="x" * 501)

    def test_negative_expected_total(self):
        with pytest.raises(ValidationError):
            CreateOrderDTO(
                shipping_address=VALID_SHIPPING, expected_total=Decimal("-1")
            )


class TestShippingColumns:
    def test_maps_dto_to_columns(self):
        columns = shipping_columns(
            ShippingAddressDTO(**{**VALID_SHIPPING, "address_detail": "Apt 301"})
        )
        assert columns == {
            "shipping_name": "Kim Minji",
            "shipping_address": "123 Teheran-ro, Gangnam-gu",
            "shipping_postal_code": "06234",
            "shipping_address_detail": "Apt 301",
            "shipping_phone": "01012345678",
        }

    def test_missing_address_uses_fallback_name(self):
        columns = shipping_columns(None, fallback_name="user_123")
        assert columns["shipping_name"] == "user_123"
        assert columns["shipping_address"] == ""


class TestCartDTOs:
    def test_default_quantity_is_one(self):
        assert AddCartItemDTO(product_id=uuid4()).quantity == 1

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_quantity_must_be_positive(self, quantity):
        with pytest.raises(ValidationError):
            UpdateCartItemDTO(quantity=quantity)

    def test_quantity_must_be_integer(self):
        with pytest.raises(ValidationError):
            AddCartItemDTO(product_id=uuid4(), quantity=1.5)


class TestConfirmPaymentDTO:
    def test_valid_payload(self):
        dto = ConfirmPaymentDTO(
            payment_key="tgen_20240101abc",
            order_id="order-1700000000",
            amount=Decimal("20000"),
        )
        assert dto.shipping_address is None
        assert dto.order_note is None

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-100")])
    def test_amount_must_be_positive(self, amount):
        with pytest.raises(ValidationError):
            ConfirmPaymentDTO(payment_key="pk", order_id="o-1", amount=amount)

    def test_blank_payment_key(self):
        with pytest.raises(ValidationError):
            ConfirmPaymentDTO(payment_key="  ", order_id="o-1", amount=Decimal("1"))

    def test_nested_shipping_is_validated(self):
        with pytest.raises(ValidationError):
            ConfirmPaymentDTO(
                payment_key="pk",
                order_id="o-1",
                amount=Decimal("1"),
                shipping_address={**VALID_SHIPPING, "postal_code": "1"},
            )
