"""Payment service layer.

Wraps the gateway client with the storefront's logging and error
policy.  A failed verification is logged as ``payment.signature_mismatch``
at warning level so it can be alerted on separately from ordinary input
errors.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import structlog

from modules.payments.exceptions import SignatureMismatch

if TYPE_CHECKING:
    from modules.payments.dtos import PaymentConfirmationDTO
    from modules.payments.gateway import PaymentIntent, RazorpayClient

logger = structlog.get_logger(__name__)


class PaymentService:
    """Application service for the payment round trip."""

    def __init__(self, gateway: RazorpayClient) -> None:
        self._gateway = gateway

    def create_intent(
        self, amount: int, currency: str, user_id: Optional[str] = None
    ) -> PaymentIntent:
        """Open a gateway order. Propagates ``GatewayError``."""
        intent = self._gateway.create_payment_intent(amount, currency)
        logger.info(
            "payment.intent_requested",
            user_id=user_id,
            intent_id=intent.intent_id,
            amount=intent.amount,
            currency=intent.currency,
        )
        return intent

    def verify(self, confirmation: PaymentConfirmationDTO, user_id: Optional[str] = None) -> None:
        """Check that the callback was signed by the gateway.

        Raises:
            SignatureMismatch: the signature does not match.
        """
        authentic = self._gateway.verify_callback(
            confirmation.razorpay_order_id,
            confirmation.razorpay_payment_id,
            confirmation.razorpay_signature,
        )
        if not authentic:
            logger.warning(
                "payment.signature_mismatch",
                user_id=user_id,
                intent_id=confirmation.razorpay_order_id,
                payment_id=confirmation.razorpay_payment_id,
            )
            raise SignatureMismatch("Payment signature verification failed.")

        logger.info(
            "payment.verified",
            user_id=user_id,
            intent_id=confirmation.razorpay_order_id,
            payment_id=confirmation.razorpay_payment_id,
        )
