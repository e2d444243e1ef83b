"""Payment DTOs (Pydantic v2, immutable)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


class PaymentConfirmationDTO(BaseModel):
    """The signed callback the gateway hands the browser after payment.

    Field names follow the gateway's callback payload.
    """

    model_config = ConfigDict(frozen=True)

    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str

    @field_validator("razorpay_order_id", "razorpay_payment_id", "razorpay_signature")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Must not be blank.")
        return v
