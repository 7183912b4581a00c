"""Storefront operations built on the storage contract."""

from .auth import AuthService
from .storefront import STATUS_TRANSITIONS, StorefrontService

__all__ = [
    "AuthService",
    "StorefrontService",
    "STATUS_TRANSITIONS",
]
