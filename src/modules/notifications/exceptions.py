"""Notification exceptions."""

from __future__ import annotations


class RecipientUnavailable(Exception):
    """The order's user no longer exists or has no email address."""
