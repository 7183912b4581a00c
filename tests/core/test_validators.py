"""Tests for insert payload validation."""

import math

import pytest

from quickbite.core.exceptions import ValidationError
from quickbite.core.models import (
    CheckoutDetails,
    NewCartItem,
    NewMenuItem,
    NewOrder,
    NewUser,
    OrderLine,
    OrderStatus,
)
from quickbite.core.validators import (
    validate_checkout,
    validate_id,
    validate_new_cart_item,
    validate_new_menu_item,
    validate_new_order,
    validate_new_user,
    validate_quantity,
    validate_status,
)


def menu_payload(**overrides) -> NewMenuItem:
    fields = {
        "name": "Sushi Roll",
        "description": "Salmon and avocado",
        "price": 14.99,
        "category": "Sushi",
    }
    fields.update(overrides)
    return NewMenuItem(**fields)


def order_payload(**overrides) -> NewOrder:
    fields = {
        "user_id": 1,
        "items": (OrderLine(menu_item_id=1, name="Sushi", price=14.99, quantity=1),),
        "total": 14.99,
    }
    fields.update(overrides)
    return NewOrder(**fields)


class TestQuantityAndIds:
    @pytest.mark.parametrize("quantity", [1, 2, 99])
    def test_positive_quantities_pass(self, quantity):
        validate_quantity(quantity)

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, True, "2"])
    def test_bad_quantities_fail(self, quantity):
        with pytest.raises(ValidationError) as exc_info:
            validate_quantity(quantity)
        assert exc_info.value.field == "quantity"

    @pytest.mark.parametrize("value", [0, -5, False, None])
    def test_bad_ids_fail(self, value):
        with pytest.raises(ValidationError):
            validate_id("user_id", value)


class TestUserValidation:
    def test_valid_user(self):
        validate_new_user(NewUser(username="bob", password="hash"))

    @pytest.mark.parametrize("field", ["username", "password"])
    def test_blank_fields_rejected(self, field):
        data = {"username": "bob", "password": "hash", field: "   "}
        with pytest.raises(ValidationError) as exc_info:
            validate_new_user(NewUser(**data))
        assert exc_info.value.field == field


class TestMenuItemValidation:
    def test_valid_item(self):
        validate_new_menu_item(menu_payload())

    def test_free_item_allowed(self):
        validate_new_menu_item(menu_payload(price=0))

    @pytest.mark.parametrize("price", [-0.01, math.nan, math.inf])
    def test_bad_prices_rejected(self, price):
        with pytest.raises(ValidationError) as exc_info:
            validate_new_menu_item(menu_payload(price=price))
        assert exc_info.value.field == "price"

    def test_missing_category_rejected(self):
        with pytest.raises(ValidationError, match="category"):
            validate_new_menu_item(menu_payload(category=""))


class TestCartAndOrderValidation:
    def test_cart_item_needs_positive_quantity(self):
        with pytest.raises(ValidationError):
            validate_new_cart_item(NewCartItem(user_id=1, menu_item_id=1, quantity=0))

    def test_order_needs_items(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_new_order(order_payload(items=()))
        assert exc_info.value.field == "items"

    def test_order_line_quantity_checked(self):
        bad_line = OrderLine(menu_item_id=1, name="Sushi", price=14.99, quantity=0)
        with pytest.raises(ValidationError):
            validate_new_order(order_payload(items=(bad_line,)))

    def test_negative_total_rejected(self):
        with pytest.raises(ValidationError, match="total"):
            validate_new_order(order_payload(total=-1))


class TestStatusAndCheckout:
    def test_status_from_string(self):
        assert validate_status("delivering") is OrderStatus.DELIVERING

    def test_status_passthrough(self):
        assert validate_status(OrderStatus.CANCELLED) is OrderStatus.CANCELLED

    def test_unknown_status_lists_allowed_values(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_status("shipped")
        assert "pending" in exc_info.value.message

    def test_checkout_requires_every_field(self):
        details = CheckoutDetails(
            name="Alice", address="1 Main St", city="", zip_code="123", phone="555"
        )
        with pytest.raises(ValidationError) as exc_info:
            validate_checkout(details)
        assert exc_info.value.field == "city"
