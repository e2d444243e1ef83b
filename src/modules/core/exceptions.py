"""DRF exception handler producing the standard error envelope.

Serializer errors are flattened into ``[{field, message}]`` using dotted
paths (``shippingAddress.zipCode``) so that every failing field is
reported, not just the first one.  Anything DRF does not recognise is an
``InternalError``: logged with its stack trace, generic message to the
client.
"""

from __future__ import annotations

from typing import Any, Dict, List

import structlog
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.views import exception_handler

from modules.core.responses import error_response

logger = structlog.get_logger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again later."


def flatten_errors(detail: Any, prefix: str = "") -> List[Dict[str, str]]:
    """Flatten a nested DRF error ``detail`` into field/message pairs."""
    errors: List[Dict[str, str]] = []
    if isinstance(detail, dict):
        for key, value in detail.items():
            field = key if key != "non_field_errors" else ""
            path = f"{prefix}.{field}" if prefix and field else (prefix or field)
            errors.extend(flatten_errors(value, path))
    elif isinstance(detail, list):
        for index, value in enumerate(detail):
            if isinstance(value, (dict, list)):
                errors.extend(flatten_errors(value, f"{prefix}[{index}]"))
            else:
                errors.append({"field": prefix or "non_field_errors", "message": str(value)})
    else:
        errors.append({"field": prefix or "non_field_errors", "message": str(detail)})
    return errors


def envelope_exception_handler(exc: Exception, context: Dict[str, Any]):
    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.exception(
            "api.unhandled_exception",
            view=view.__class__.__name__ if view else None,
            error=str(exc),
        )
        return error_response(
            GENERIC_ERROR_MESSAGE,
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, ValidationError):
        errors = flatten_errors(exc.detail)
        logger.info("api.validation_failed", fields=[e["field"] for e in errors])
        wrapped = error_response(
            "Validation failed.",
            status=response.status_code,
            errors=errors,
        )
    else:
        detail = response.data.get("detail") if isinstance(response.data, dict) else None
        wrapped = error_response(
            str(detail) if detail else "Request failed.",
            status=response.status_code,
        )

    for header in ("WWW-Authenticate", "Retry-After", "Allow"):
        if header in response:
            wrapped[header] = response[header]
    return wrapped
