"""Validation of insert payloads.

Each function raises ``ValidationError`` on the first problem found and
returns nothing otherwise. The storage contract calls these before any
backend write, so all backends reject the same inputs.
"""

import math

from .exceptions import ValidationError
from .models import (
    CheckoutDetails,
    NewCartItem,
    NewMenuItem,
    NewOrder,
    NewUser,
    OrderStatus,
)


def _require_text(field: str, value: str | None) -> None:
    if value is None or not value.strip():
        raise ValidationError(field, "is required")


def _require_amount(field: str, value: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(field, "must be a number")
    if math.isnan(value) or math.isinf(value):
        raise ValidationError(field, "must be a finite number")
    if value < 0:
        raise ValidationError(field, "must not be negative")


def validate_quantity(quantity: int) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("quantity", "must be an integer")
    if quantity < 1:
        raise ValidationError("quantity", "must be at least 1")


def validate_id(field: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(field, "must be a positive integer")


def validate_new_user(user: NewUser) -> None:
    _require_text("username", user.username)
    _require_text("password", user.password)


def validate_new_menu_item(item: NewMenuItem) -> None:
    _require_text("name", item.name)
    _require_text("description", item.description)
    _require_text("category", item.category)
    _require_amount("price", item.price)


def validate_new_cart_item(item: NewCartItem) -> None:
    validate_id("user_id", item.user_id)
    validate_id("menu_item_id", item.menu_item_id)
    validate_quantity(item.quantity)


def validate_new_order(order: NewOrder) -> None:
    validate_id("user_id", order.user_id)
    if not order.items:
        raise ValidationError("items", "an order needs at least one item")
    for line in order.items:
        if line.menu_item_id is not None:
            validate_id("menu_item_id", line.menu_item_id)
        _require_text("name", line.name)
        _require_amount("price", line.price)
        validate_quantity(line.quantity)
    _require_amount("total", order.total)


def validate_status(status: OrderStatus | str) -> OrderStatus:
    """Coerce ``status`` to an ``OrderStatus`` or raise."""
    try:
        return OrderStatus(status)
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError("status", f"must be one of: {allowed}") from None


def validate_checkout(details: CheckoutDetails) -> None:
    for field in ("name", "address", "city", "zip_code", "phone"):
        _require_text(field, getattr(details, field))
