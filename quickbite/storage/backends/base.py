"""Base storage backend interface.

``StorageBackend`` is the single contract behind which the in-memory,
relational and document backends sit. Public methods validate their input
and then delegate to ``_``-prefixed primitives that each backend
implements against its own store. Joins against the menu (cart details,
order details) and seeding are written once here in terms of the public
methods.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime

from quickbite.core.exceptions import DuplicateUserError, NotFoundError
from quickbite.core.models import (
    CartItem,
    CartItemWithDetails,
    MenuItem,
    NewCartItem,
    NewMenuItem,
    NewOrder,
    NewUser,
    Order,
    OrderItemDetail,
    OrderStatus,
    OrderWithItems,
    User,
    as_utc,
    utcnow,
)
from quickbite.core.security import hash_password, is_hashed
from quickbite.core.seed import DEFAULT_ADMIN_PASSWORD, DEMO_MENU, default_admin
from quickbite.core.validators import (
    validate_new_cart_item,
    validate_new_menu_item,
    validate_new_order,
    validate_new_user,
    validate_quantity,
    validate_status,
)
from quickbite.storage.sessions import SessionStore

logger = logging.getLogger(__name__)


def newest_first(orders: list[Order]) -> list[Order]:
    return sorted(orders, key=lambda o: (o.created_at, o.id), reverse=True)


class StorageBackend(ABC):
    """Abstract base class for storage backends."""

    name = "base"
    sessions: SessionStore

    @abstractmethod
    def initialize(self) -> None:
        """Create schema, indexes or counters. Safe to call repeatedly."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close backend connections."""
        pass

    def __enter__(self) -> "StorageBackend":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def same_store(self, other: "StorageBackend") -> bool:
        """Whether ``other`` reads and writes the same data as this backend."""
        return other is self

    # User methods

    @abstractmethod
    def get_user(self, user_id: int) -> User | None:
        """Get a user by id."""
        pass

    @abstractmethod
    def get_user_by_username(self, username: str) -> User | None:
        """Get a user by username, ignoring case."""
        pass

    @abstractmethod
    def get_all_users(self) -> list[User]:
        """Get all users ordered by id."""
        pass

    def create_user(self, user: NewUser) -> User:
        """Create a user. The password must already be hashed."""
        validate_new_user(user)
        if self.get_user_by_username(user.username) is not None:
            raise DuplicateUserError(user.username)
        created = self._insert_user(user)
        logger.debug(f"Created user {created.id} ({created.username})")
        return created

    @abstractmethod
    def _insert_user(self, user: NewUser) -> User:
        pass

    # Menu item methods

    @abstractmethod
    def get_all_menu_items(self) -> list[MenuItem]:
        """Get the whole menu ordered by id."""
        pass

    @abstractmethod
    def get_menu_item(self, item_id: int) -> MenuItem | None:
        """Get a menu item by id."""
        pass

    @abstractmethod
    def get_menu_items_by_category(self, category: str) -> list[MenuItem]:
        """Get menu items in a category, ignoring case."""
        pass

    def create_menu_item(self, item: NewMenuItem) -> MenuItem:
        """Add an item to the menu with a zero rating."""
        validate_new_menu_item(item)
        created = self._insert_menu_item(item)
        logger.debug(f"Created menu item {created.id} ({created.name})")
        return created

    def import_menu_item(self, item: NewMenuItem, rating: float) -> MenuItem:
        """Add a menu item that already carries a rating, e.g. during migration."""
        validate_new_menu_item(item)
        return self._insert_menu_item(item, rating)

    def update_menu_item(self, item_id: int, item: NewMenuItem) -> MenuItem | None:
        """Replace the editable fields of a menu item, keeping its rating."""
        validate_new_menu_item(item)
        return self._update_menu_item(item_id, item)

    @abstractmethod
    def delete_menu_item(self, item_id: int) -> bool:
        """Delete a menu item. Placed orders keep their snapshots."""
        pass

    @abstractmethod
    def _insert_menu_item(self, item: NewMenuItem, rating: float = 0.0) -> MenuItem:
        pass

    @abstractmethod
    def _update_menu_item(self, item_id: int, item: NewMenuItem) -> MenuItem | None:
        pass

    # Cart methods

    @abstractmethod
    def get_cart_items(self, user_id: int) -> list[CartItem]:
        """Get a user's cart rows ordered by id."""
        pass

    def get_cart_items_with_details(self, user_id: int) -> list[CartItemWithDetails]:
        """Get cart rows joined with their menu items.

        Rows whose menu item has since been deleted are skipped.
        """
        result = []
        for item in self.get_cart_items(user_id):
            menu_item = self.get_menu_item(item.menu_item_id)
            if menu_item is not None:
                result.append(CartItemWithDetails(item=item, menu_item=menu_item))
        return result

    def add_to_cart(self, item: NewCartItem) -> CartItem:
        """Add to the cart, merging with an existing row for the same item."""
        validate_new_cart_item(item)
        if self.get_menu_item(item.menu_item_id) is None:
            raise NotFoundError("Menu item", item.menu_item_id)
        return self._merge_cart_item(item)

    @abstractmethod
    def remove_from_cart(self, cart_item_id: int, user_id: int) -> bool:
        """Remove a cart row owned by ``user_id``."""
        pass

    def update_cart_item_quantity(
        self, cart_item_id: int, user_id: int, quantity: int
    ) -> CartItem | None:
        """Set the quantity of a cart row owned by ``user_id``."""
        validate_quantity(quantity)
        return self._set_cart_item_quantity(cart_item_id, user_id, quantity)

    @abstractmethod
    def clear_cart(self, user_id: int) -> bool:
        """Empty a user's cart."""
        pass

    @abstractmethod
    def _merge_cart_item(self, item: NewCartItem) -> CartItem:
        """Insert a cart row or add to the quantity of the existing one."""
        pass

    @abstractmethod
    def _set_cart_item_quantity(
        self, cart_item_id: int, user_id: int, quantity: int
    ) -> CartItem | None:
        pass

    # Order methods

    def create_order(self, order: NewOrder) -> Order:
        """Place an order in the pending state."""
        validate_new_order(order)
        created = self._insert_order(order, OrderStatus.PENDING, utcnow())
        logger.debug(f"Created order {created.id} for user {created.user_id}")
        return created

    def import_order(
        self, order: NewOrder, status: OrderStatus, created_at: datetime
    ) -> Order:
        """Store an order that already has a history, e.g. during migration."""
        validate_new_order(order)
        return self._insert_order(order, validate_status(status), as_utc(created_at))

    @abstractmethod
    def get_order(self, order_id: int) -> Order | None:
        """Get an order by id."""
        pass

    @abstractmethod
    def get_orders_for_user(self, user_id: int) -> list[Order]:
        """Get a user's orders, newest first."""
        pass

    def get_orders_by_user_id(self, user_id: int) -> list[OrderWithItems]:
        """Get a user's orders with each line joined to the current menu."""
        return [self.with_items(order) for order in self.get_orders_for_user(user_id)]

    def with_items(self, order: Order) -> OrderWithItems:
        details = tuple(
            OrderItemDetail(
                line=line,
                menu_item=None
                if line.menu_item_id is None
                else self.get_menu_item(line.menu_item_id),
            )
            for line in order.items
        )
        return OrderWithItems(order=order, items=details)

    @abstractmethod
    def get_all_orders(self) -> list[Order]:
        """Get every order, newest first."""
        pass

    def update_order_status(
        self, order_id: int, status: OrderStatus | str
    ) -> Order | None:
        """Move an order to a new status."""
        return self._set_order_status(order_id, validate_status(status))

    @abstractmethod
    def _insert_order(
        self, order: NewOrder, status: OrderStatus, created_at: datetime
    ) -> Order:
        pass

    @abstractmethod
    def _set_order_status(self, order_id: int, status: OrderStatus) -> Order | None:
        pass

    # Seeding

    def seed_initial_data(self, admin_password: str = DEFAULT_ADMIN_PASSWORD) -> bool:
        """Load the admin account and demo menu into an empty storefront.

        Returns True if anything was seeded.
        """
        if self.get_all_menu_items():
            return False

        logger.info(f"Seeding initial data into {self.name} backend")
        if self.get_user_by_username("admin") is None:
            password = (
                admin_password if is_hashed(admin_password) else hash_password(admin_password)
            )
            self.create_user(default_admin(password))
            logger.info("Admin user created")

        for item in DEMO_MENU:
            self.create_menu_item(item)
        logger.info(f"Created {len(DEMO_MENU)} menu items")
        return True

    def get_statistics(self) -> dict[str, object]:
        """Count records and break orders down by status."""
        orders = self.get_all_orders()
        by_status = {status.value: 0 for status in OrderStatus}
        for order in orders:
            by_status[order.status.value] += 1
        return {
            "backend": self.name,
            "users": len(self.get_all_users()),
            "menu_items": len(self.get_all_menu_items()),
            "orders": len(orders),
            "orders_by_status": by_status,
            "revenue": round(
                sum(o.total for o in orders if o.status != OrderStatus.CANCELLED), 2
            ),
        }
