"""Payment input serializers."""

from __future__ import annotations

from rest_framework import serializers


class CreatePaymentIntentSerializer(serializers.Serializer):
    amount = serializers.IntegerField(min_value=1)
    currency = serializers.RegexField(
        r"^[A-Z]{3}$",
        default="INR",
        error_messages={"invalid": "Currency must be a 3-letter ISO code."},
    )


def not_blank(value: str) -> None:
    if not value.strip():
        raise serializers.ValidationError("This field may not be blank.")


class PaymentConfirmationSerializer(serializers.Serializer):
    # Signed values are compared byte for byte, so whitespace is kept.
    razorpay_order_id = serializers.CharField(
        max_length=100, trim_whitespace=False, validators=[not_blank]
    )
    razorpay_payment_id = serializers.CharField(
        max_length=100, trim_whitespace=False, validators=[not_blank]
    )
    razorpay_signature = serializers.CharField(
        max_length=256, trim_whitespace=False, validators=[not_blank]
    )
