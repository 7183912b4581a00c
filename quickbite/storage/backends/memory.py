"""In-memory storage backend for testing and demos."""

import itertools
import threading
from datetime import datetime

import msgspec

from quickbite.core.models import (
    CartItem,
    MenuItem,
    NewCartItem,
    NewMenuItem,
    NewOrder,
    NewUser,
    Order,
    OrderStatus,
    User,
)
from quickbite.storage.sessions import DEFAULT_SESSION_TTL, MemorySessionStore

from .base import StorageBackend, newest_first


class MemoryBackend(StorageBackend):
    """Map-based store with one autoincrement counter per entity.

    Records are immutable structs, so they are stored and handed out
    as-is. Ids start at 1 and are never reused after a delete.
    """

    name = "memory"

    def __init__(self, session_ttl: float = DEFAULT_SESSION_TTL):
        self._lock = threading.RLock()
        self.sessions = MemorySessionStore(ttl=session_ttl)
        self._reset()

    def _reset(self) -> None:
        self._users: dict[int, User] = {}
        self._menu_items: dict[int, MenuItem] = {}
        self._cart_items: dict[int, CartItem] = {}
        self._orders: dict[int, Order] = {}

        self._user_ids = itertools.count(1)
        self._menu_item_ids = itertools.count(1)
        self._cart_item_ids = itertools.count(1)
        self._order_ids = itertools.count(1)

    def initialize(self) -> None:
        """Initialize the backend (no-op for memory)."""
        pass

    def close(self) -> None:
        """Close backend (no-op for memory)."""
        pass

    def clear(self) -> None:
        """Drop all data and restart the id counters."""
        with self._lock:
            self._reset()

    # Users

    def get_user(self, user_id: int) -> User | None:
        return self._users.get(user_id)

    def get_user_by_username(self, username: str) -> User | None:
        wanted = username.lower()
        for user in self._users.values():
            if user.username.lower() == wanted:
                return user
        return None

    def get_all_users(self) -> list[User]:
        return sorted(self._users.values(), key=lambda u: u.id)

    def _insert_user(self, user: NewUser) -> User:
        with self._lock:
            record = User(id=next(self._user_ids), **user.to_dict())
            self._users[record.id] = record
            return record

    # Menu items

    def get_all_menu_items(self) -> list[MenuItem]:
        return sorted(self._menu_items.values(), key=lambda m: m.id)

    def get_menu_item(self, item_id: int) -> MenuItem | None:
        return self._menu_items.get(item_id)

    def get_menu_items_by_category(self, category: str) -> list[MenuItem]:
        wanted = category.lower()
        return [m for m in self.get_all_menu_items() if m.category.lower() == wanted]

    def _insert_menu_item(self, item: NewMenuItem, rating: float = 0.0) -> MenuItem:
        with self._lock:
            record = MenuItem(
                id=next(self._menu_item_ids), rating=rating, **item.to_dict()
            )
            self._menu_items[record.id] = record
            return record

    def _update_menu_item(self, item_id: int, item: NewMenuItem) -> MenuItem | None:
        with self._lock:
            existing = self._menu_items.get(item_id)
            if existing is None:
                return None
            updated = msgspec.structs.replace(existing, **item.to_dict())
            self._menu_items[item_id] = updated
            return updated

    def delete_menu_item(self, item_id: int) -> bool:
        with self._lock:
            return self._menu_items.pop(item_id, None) is not None

    # Cart

    def get_cart_items(self, user_id: int) -> list[CartItem]:
        return sorted(
            (c for c in self._cart_items.values() if c.user_id == user_id),
            key=lambda c: c.id,
        )

    def _find_cart_item(self, user_id: int, menu_item_id: int) -> CartItem | None:
        for item in self._cart_items.values():
            if item.user_id == user_id and item.menu_item_id == menu_item_id:
                return item
        return None

    def _merge_cart_item(self, item: NewCartItem) -> CartItem:
        with self._lock:
            existing = self._find_cart_item(item.user_id, item.menu_item_id)
            if existing is not None:
                record = msgspec.structs.replace(
                    existing, quantity=existing.quantity + item.quantity
                )
            else:
                record = CartItem(id=next(self._cart_item_ids), **item.to_dict())
            self._cart_items[record.id] = record
            return record

    def remove_from_cart(self, cart_item_id: int, user_id: int) -> bool:
        with self._lock:
            item = self._cart_items.get(cart_item_id)
            if item is None or item.user_id != user_id:
                return False
            del self._cart_items[cart_item_id]
            return True

    def _set_cart_item_quantity(
        self, cart_item_id: int, user_id: int, quantity: int
    ) -> CartItem | None:
        with self._lock:
            item = self._cart_items.get(cart_item_id)
            if item is None or item.user_id != user_id:
                return None
            updated = msgspec.structs.replace(item, quantity=quantity)
            self._cart_items[cart_item_id] = updated
            return updated

    def clear_cart(self, user_id: int) -> bool:
        with self._lock:
            for item in self.get_cart_items(user_id):
                del self._cart_items[item.id]
        return True

    # Orders

    def _insert_order(
        self, order: NewOrder, status: OrderStatus, created_at: datetime
    ) -> Order:
        with self._lock:
            record = Order(
                id=next(self._order_ids),
                user_id=order.user_id,
                items=tuple(order.items),
                total=order.total,
                status=status,
                created_at=created_at,
                address=order.address,
                payment_id=order.payment_id,
            )
            self._orders[record.id] = record
            return record

    def get_order(self, order_id: int) -> Order | None:
        return self._orders.get(order_id)

    def get_orders_for_user(self, user_id: int) -> list[Order]:
        return newest_first([o for o in self._orders.values() if o.user_id == user_id])

    def get_all_orders(self) -> list[Order]:
        return newest_first(list(self._orders.values()))

    def _set_order_status(self, order_id: int, status: OrderStatus) -> Order | None:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                return None
            updated = msgspec.structs.replace(order, status=status)
            self._orders[order_id] = updated
            return updated
