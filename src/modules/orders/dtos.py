"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``ShippingAddressDTO``: where the parcel goes.
- ``CreateOrderDTO``: checkout request for the caller's cart.
- ``UpdateOrderStatusDTO``: admin lifecycle change.
"""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modules.orders.constants import (
    GATEWAY_PAYMENT_METHODS,
    OrderStatus,
    PaymentMethod,
)
from modules.payments.dtos import PaymentConfirmationDTO

ZIP_CODE_RE = re.compile(r"^[0-9]{6}$")
PHONE_RE = re.compile(r"^(?:\+?[0-9]{1,3}[\s-]?)?[6-9][0-9]{9}$")


class ShippingAddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(min_length=2, max_length=50)
    phone: str
    street: str = Field(min_length=5, max_length=100)
    city: str = Field(min_length=2, max_length=50)
    state: str = Field(min_length=2, max_length=50)
    zip_code: str
    country: str = Field(default="India", max_length=56)

    @field_validator("phone")
    @classmethod
    def phone_must_be_mobile(cls, v: str) -> str:
        if not PHONE_RE.match(v):
            raise ValueError("Enter a valid mobile number.")
        return v

    @field_validator("zip_code")
    @classmethod
    def zip_code_must_be_six_digits(cls, v: str) -> str:
        if not ZIP_CODE_RE.match(v):
            raise ValueError("ZIP code must be exactly 6 digits.")
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for checkout.

    Items are not part of the request: the order is built from the
    caller's cart.  ``payment`` is required for online methods and
    ignored for cash on delivery.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    shipping_address: ShippingAddressDTO
    payment_method: PaymentMethod
    notes: str = Field(default="", max_length=500)
    payment: Optional[PaymentConfirmationDTO] = None

    @property
    def is_gateway_payment(self) -> bool:
        return self.payment_method in GATEWAY_PAYMENT_METHODS


class UpdateOrderStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: OrderStatus
    note: str = Field(default="", max_length=200)
    tracking_number: Optional[str] = Field(default=None, min_length=5, max_length=50)
