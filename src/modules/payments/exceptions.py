"""Payment domain exceptions."""

from __future__ import annotations


class GatewayError(Exception):
    """The payment provider was unreachable, timed out or rejected the request.

    Retryable by the customer by restarting checkout.
    """


class SignatureMismatch(Exception):
    """A payment callback failed cryptographic verification.

    Never retried; treated as a potential fraud signal.
    """
