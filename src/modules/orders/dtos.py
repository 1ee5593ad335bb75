"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``ShippingAddressDTO``: recipient and delivery address.
- ``CreateOrderDTO``: input for pending-order creation.
- ``OrderCreatedDTO``: output of a successful order creation.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

PHONE_NUMBER_PATTERN = re.compile(r"^0\d{1,3}-?\d{3,4}-?\d{4}$")
POSTAL_CODE_PATTERN = re.compile(r"^\d{5}$")

ORDER_NOTE_MAX_LENGTH = 500


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    if v is None or v == "":
        return None
    return v


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class ShippingAddressDTO(BaseModel):
    """Immutable delivery details captured on the order row.

    ``phone_number`` accepts Korean formats with or without hyphens
    (``010-1234-5678``, ``02-123-4567``) and is stored without them.
    """

    model_config = ConfigDict(frozen=True)

    customer_name: str = Field(min_length=2, max_length=50)
    address: str = Field(min_length=5, max_length=200)
    postal_code: str
    address_detail: Optional[str] = Field(default=None, max_length=200)
    phone_number: str

    @field_validator("postal_code")
    @classmethod
    def postal_code_must_have_five_digits(cls, v: str) -> str:
        if not POSTAL_CODE_PATTERN.match(v):
            raise ValueError("Postal code must be exactly 5 digits.")
        return v

    @field_validator("address_detail")
    @classmethod
    def blank_detail_is_absent(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

    @field_validator("phone_number")
    @classmethod
    def phone_number_must_be_valid(cls, v: str) -> str:
        if not PHONE_NUMBER_PATTERN.match(v):
            raise ValueError("Invalid phone number (e.g. 010-1234-5678).")
        return v.replace("-", "")


class CreateOrderDTO(BaseModel):
    """Immutable DTO for pending-order creation.

    ``expected_total`` is the total the client displayed; when given, it
    must match the server-computed total.
    """

    model_config = ConfigDict(frozen=True)

    shipping_address: ShippingAddressDTO
    order_note: Optional[str] = Field(default=None, max_length=ORDER_NOTE_MAX_LENGTH)
    expected_total: Optional[Decimal] = Field(default=None, ge=0)

    @field_validator("order_note")
    @classmethod
    def blank_note_is_absent(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderCreatedDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
    order_number: str
    total_amount: Decimal


def shipping_columns(
    shipping: Optional[ShippingAddressDTO], fallback_name: str = ""
) -> Dict[str, Any]:
    """Map a shipping DTO onto the ``Order`` shipping columns.

    Without an address every column is blank and the recipient name
    falls back to ``fallback_name``.
    """
    if shipping is None:
        return {
            "shipping_name": fallback_name,
            "shipping_address": "",
            "shipping_postal_code": "",
            "shipping_address_detail": "",
            "shipping_phone": "",
        }
    return {
        "shipping_name": shipping.customer_name,
        "shipping_address": shipping.address,
        "shipping_postal_code": shipping.postal_code,
        "shipping_address_detail": shipping.address_detail or "",
        "shipping_phone": shipping.phone_number,
    }
