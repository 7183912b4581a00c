"""CLI commands module."""

from . import cart, menu, order, storage, user

__all__ = [
    "menu",
    "user",
    "cart",
    "order",
    "storage",
]
