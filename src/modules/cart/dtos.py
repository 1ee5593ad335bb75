"""Cart DTOs (Pydantic v2, immutable).

- ``AddCartItemDTO``: input for adding a product to the cart.
- ``UpdateCartItemDTO``: input for changing a line's quantity.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, StrictInt, field_validator


class AddCartItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: StrictInt = 1

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be an integer of at least 1.")
        return v


class UpdateCartItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    quantity: StrictInt

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be an integer of at least 1.")
        return v
