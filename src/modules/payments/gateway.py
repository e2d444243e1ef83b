"""Razorpay payment gateway client.

Two responsibilities:

* ``create_payment_intent`` opens a gateway-side order the customer pays
  against (one outbound HTTPS call, bounded by ``timeout``).
* ``verify_callback`` proves that the ``(order_id, payment_id, signature)``
  triple relayed by the browser was produced by the gateway.  It is a
  local HMAC-SHA256 computation over ``"<order_id>|<payment_id>"`` keyed
  with the account secret, which the browser never sees.

The client is built explicitly and handed to the services that need it,
so tests can swap the transport or the whole object.
"""

from __future__ import annotations

import hashlib
import hmac
import time
from dataclasses import dataclass
from typing import Optional

import httpx
import structlog
from django.conf import settings

from modules.payments.exceptions import GatewayError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PaymentIntent:
    """Gateway-side order the customer completes payment against."""

    intent_id: str
    amount: int
    currency: str


def compute_signature(intent_id: str, payment_id: str, secret: str) -> str:
    """Lowercase hex HMAC-SHA256 of ``intent_id|payment_id``."""
    message = f"{intent_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_callback_signature(
    intent_id: str, payment_id: str, provided_signature: str, secret: str
) -> bool:
    """Constant-time comparison of the expected and provided signatures."""
    if not (intent_id and payment_id and provided_signature and secret):
        return False
    expected = compute_signature(intent_id, payment_id, secret)
    return hmac.compare_digest(expected.encode(), provided_signature.encode())


class RazorpayClient:
    """Thin wrapper over the Razorpay Orders API."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._key_id = key_id
        self._key_secret = key_secret
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def create_payment_intent(
        self, amount: int, currency: str, receipt: Optional[str] = None
    ) -> PaymentIntent:
        """Create a gateway order for ``amount`` minor units of ``currency``.

        Raises:
            GatewayError: network failure, timeout, or a non-2xx answer.
        """
        payload = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt or f"receipt_order_{int(time.time() * 1000)}",
        }
        log = logger.bind(amount=amount, currency=currency)

        try:
            with httpx.Client(
                base_url=self._base_url,
                auth=(self._key_id, self._key_secret),
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = client.post("/orders", json=payload)
        except httpx.TimeoutException as exc:
            log.error("payment.gateway_timeout")
            raise GatewayError("Payment gateway timed out.") from exc
        except httpx.HTTPError as exc:
            log.error("payment.gateway_unreachable", error=str(exc))
            raise GatewayError("Payment gateway is unreachable.") from exc

        if response.status_code >= 400:
            description = _error_description(response)
            log.error(
                "payment.gateway_rejected",
                status_code=response.status_code,
                description=description,
            )
            raise GatewayError(f"Payment gateway rejected the request: {description}")

        body = response.json()
        intent = PaymentIntent(
            intent_id=body["id"],
            amount=int(body["amount"]),
            currency=body["currency"],
        )
        log.info("payment.intent_created", intent_id=intent.intent_id)
        return intent

    def verify_callback(
        self,
        intent_id: str,
        payment_id: str,
        provided_signature: str,
        secret: Optional[str] = None,
    ) -> bool:
        return verify_callback_signature(
            intent_id,
            payment_id,
            provided_signature,
            secret if secret is not None else self._key_secret,
        )


def _error_description(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["description"]
    except (ValueError, KeyError, TypeError):
        return response.text[:200] or response.reason_phrase


def build_payment_gateway() -> RazorpayClient:
    """Client configured from Django settings."""
    return RazorpayClient(
        key_id=settings.RAZORPAY_KEY_ID,
        key_secret=settings.RAZORPAY_KEY_SECRET,
        base_url=settings.RAZORPAY_API_URL,
        timeout=settings.PAYMENT_GATEWAY_TIMEOUT,
    )
