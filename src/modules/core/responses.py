"""Uniform response envelope.

Every endpoint answers with the same tagged shape::

    {"success": true, "data": ..., "message": "..."}
    {"success": false, "message": "...", "errors": [{"field": ..., "message": ...}]}
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from rest_framework import status as http_status
from rest_framework.response import Response


def success_response(
    data: Any = None,
    message: Optional[str] = None,
    status: int = http_status.HTTP_200_OK,
) -> Response:
    body: Dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return Response(body, status=status)


def error_response(
    message: str,
    status: int = http_status.HTTP_400_BAD_REQUEST,
    errors: Optional[List[Dict[str, str]]] = None,
) -> Response:
    body: Dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return Response(body, status=status)
