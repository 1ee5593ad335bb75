"""Payment DTOs (Pydantic v2, immutable).

- ``ConfirmPaymentDTO``: the gateway's success-redirect parameters plus
  optional shipping details, as submitted by the browser.
- ``PaymentConfirmedDTO``: output of a successful reconciliation.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modules.orders.dtos import ORDER_NOTE_MAX_LENGTH, ShippingAddressDTO


class ConfirmPaymentDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    payment_key: str = Field(min_length=1, max_length=255)
    order_id: str = Field(min_length=1, max_length=255)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    shipping_address: Optional[ShippingAddressDTO] = None
    order_note: Optional[str] = Field(default=None, max_length=ORDER_NOTE_MAX_LENGTH)

    @field_validator("order_note")
    @classmethod
    def blank_note_is_absent(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class PaymentConfirmedDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
    order_number: str
    payment_reference: str
    total_amount: Decimal
