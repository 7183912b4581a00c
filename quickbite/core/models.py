"""Core data models for the storefront.

Every record that crosses the storage contract is an immutable msgspec
struct. Backends keep whatever native representation suits them (rows,
documents, dicts) and convert at the boundary with ``to_dict`` and
``from_dict``.

Key components:
- User, MenuItem, CartItem, Order: stored entities with numeric ids
- OrderLine: snapshot of a purchased item taken at checkout
- New*: insert payloads carrying only the caller-supplied fields
- CartItemWithDetails, OrderWithItems: read-side joins against the menu
"""

import enum
from datetime import datetime, timezone
from typing import Any

import msgspec


class OrderStatus(str, enum.Enum):
    """Lifecycle states of an order."""

    PENDING = "pending"
    PROCESSING = "processing"
    DELIVERING = "delivering"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` in UTC, treating naive datetimes as UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class _Record(msgspec.Struct, frozen=True, kw_only=True):
    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary of builtin types."""
        return msgspec.to_builtins(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        """Build an instance from a dictionary, coercing field types."""
        return msgspec.convert(data, cls, strict=False)


class User(_Record, frozen=True, kw_only=True):
    """A storefront account. ``password`` holds the scrypt hash."""

    id: int
    username: str
    password: str
    name: str | None = None
    email: str | None = None
    is_admin: bool = False


class NewUser(_Record, frozen=True, kw_only=True):
    username: str
    password: str
    name: str | None = None
    email: str | None = None
    is_admin: bool = False


class MenuItem(_Record, frozen=True, kw_only=True):
    """A dish on the menu."""

    id: int
    name: str
    description: str
    price: float
    category: str
    image_url: str | None = None
    rating: float = 0.0
    is_popular: bool = False


class NewMenuItem(_Record, frozen=True, kw_only=True):
    """Editable menu item fields, used for both create and update."""

    name: str
    description: str
    price: float
    category: str
    image_url: str | None = None
    is_popular: bool = False


class CartItem(_Record, frozen=True, kw_only=True):
    id: int
    user_id: int
    menu_item_id: int
    quantity: int = 1


class NewCartItem(_Record, frozen=True, kw_only=True):
    user_id: int
    menu_item_id: int
    quantity: int = 1


class OrderLine(_Record, frozen=True, kw_only=True):
    """A purchased item frozen at checkout time.

    Name and price are copied from the menu when the order is placed, so
    later menu edits or deletions never change what the customer paid.
    ``menu_item_id`` is None when the item was already gone from the menu
    by the time the order was copied to another store.
    """

    menu_item_id: int | None
    name: str
    price: float
    quantity: int

    @property
    def subtotal(self) -> float:
        return round(self.price * self.quantity, 2)


class Order(_Record, frozen=True, kw_only=True):
    id: int
    user_id: int
    items: tuple[OrderLine, ...]
    total: float
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime = msgspec.field(default_factory=utcnow)
    address: str | None = None
    payment_id: str | None = None


class NewOrder(_Record, frozen=True, kw_only=True):
    user_id: int
    items: tuple[OrderLine, ...]
    total: float
    address: str | None = None
    payment_id: str | None = None


class CartItemWithDetails(msgspec.Struct, frozen=True, kw_only=True):
    """A cart row joined with the menu item it refers to."""

    item: CartItem
    menu_item: MenuItem

    @property
    def subtotal(self) -> float:
        return round(self.menu_item.price * self.item.quantity, 2)


class OrderItemDetail(msgspec.Struct, frozen=True, kw_only=True):
    """An order line with the current menu item, if it still exists."""

    line: OrderLine
    menu_item: MenuItem | None = None


class OrderWithItems(msgspec.Struct, frozen=True, kw_only=True):
    order: Order
    items: tuple[OrderItemDetail, ...]


class CheckoutDetails(msgspec.Struct, frozen=True, kw_only=True):
    """Delivery details collected at checkout."""

    name: str
    address: str
    city: str
    zip_code: str
    phone: str

    @property
    def shipping_address(self) -> str:
        return f"{self.address}, {self.city} {self.zip_code}"
