"""Browsing, cart, checkout and order management."""

from __future__ import annotations

import logging

from ..core.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ..core.models import (
    CartItem,
    CartItemWithDetails,
    CheckoutDetails,
    MenuItem,
    NewCartItem,
    NewMenuItem,
    NewOrder,
    Order,
    OrderLine,
    OrderStatus,
    OrderWithItems,
    User,
)
from ..core.seed import DEFAULT_ADMIN_PASSWORD
from ..core.validators import validate_checkout, validate_status
from ..storage.backends.base import StorageBackend
from ..storage.events import EventBus, EventPublisher, EventType

logger = logging.getLogger(__name__)

# Allowed moves for each order status; delivered and cancelled are final.
STATUS_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.DELIVERING, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERING: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def _require_admin(actor: User) -> None:
    if not actor.is_admin:
        raise PermissionDeniedError(f"User {actor.username} is not an administrator")


class StorefrontService(EventPublisher):
    """Customer and back-office operations over any storage backend."""

    def __init__(self, backend: StorageBackend, event_bus: EventBus | None = None):
        super().__init__(event_bus)
        self.backend = backend

    def seed(self, admin_password: str = DEFAULT_ADMIN_PASSWORD) -> bool:
        """Load the admin account and demo menu if the menu is empty."""
        seeded = self.backend.seed_initial_data(admin_password)
        if seeded:
            self._publish_event(EventType.STOREFRONT_SEEDED, backend=self.backend.name)
        return seeded

    # Menu

    def menu(self, category: str | None = None) -> list[MenuItem]:
        if category:
            return self.backend.get_menu_items_by_category(category)
        return self.backend.get_all_menu_items()

    def categories(self) -> list[str]:
        """Distinct menu categories in first-seen order."""
        seen: dict[str, str] = {}
        for item in self.backend.get_all_menu_items():
            seen.setdefault(item.category.lower(), item.category)
        return list(seen.values())

    def popular_items(self) -> list[MenuItem]:
        return [m for m in self.backend.get_all_menu_items() if m.is_popular]

    def add_menu_item(self, actor: User, item: NewMenuItem) -> MenuItem:
        _require_admin(actor)
        created = self.backend.create_menu_item(item)
        logger.info(f"Menu item {created.id} ({created.name}) added by {actor.username}")
        self._publish_event(EventType.MENU_ITEM_CREATED, menu_item_id=created.id)
        return created

    def update_menu_item(self, actor: User, item_id: int, item: NewMenuItem) -> MenuItem:
        _require_admin(actor)
        updated = self.backend.update_menu_item(item_id, item)
        if updated is None:
            raise NotFoundError("Menu item", item_id)
        self._publish_event(EventType.MENU_ITEM_UPDATED, menu_item_id=item_id)
        return updated

    def delete_menu_item(self, actor: User, item_id: int) -> None:
        _require_admin(actor)
        if not self.backend.delete_menu_item(item_id):
            raise NotFoundError("Menu item", item_id)
        logger.info(f"Menu item {item_id} deleted by {actor.username}")
        self._publish_event(EventType.MENU_ITEM_DELETED, menu_item_id=item_id)

    # Cart

    def cart(self, user_id: int) -> list[CartItemWithDetails]:
        return self.backend.get_cart_items_with_details(user_id)

    def cart_total(self, user_id: int) -> float:
        return round(sum(row.subtotal for row in self.cart(user_id)), 2)

    def add_to_cart(self, user_id: int, menu_item_id: int, quantity: int = 1) -> CartItem:
        item = self.backend.add_to_cart(
            NewCartItem(user_id=user_id, menu_item_id=menu_item_id, quantity=quantity)
        )
        self._publish_event(EventType.CART_UPDATED, user_id=user_id, cart_item_id=item.id)
        return item

    def set_quantity(self, user_id: int, cart_item_id: int, quantity: int) -> CartItem:
        item = self.backend.update_cart_item_quantity(cart_item_id, user_id, quantity)
        if item is None:
            raise NotFoundError("Cart item", cart_item_id)
        self._publish_event(EventType.CART_UPDATED, user_id=user_id, cart_item_id=item.id)
        return item

    def remove_from_cart(self, user_id: int, cart_item_id: int) -> None:
        if not self.backend.remove_from_cart(cart_item_id, user_id):
            raise NotFoundError("Cart item", cart_item_id)
        self._publish_event(
            EventType.CART_UPDATED, user_id=user_id, cart_item_id=cart_item_id
        )

    def clear_cart(self, user_id: int) -> None:
        self.backend.clear_cart(user_id)
        self._publish_event(EventType.CART_CLEARED, user_id=user_id)

    # Checkout and orders

    def checkout(
        self, user_id: int, details: CheckoutDetails, payment_id: str | None = None
    ) -> Order:
        """Turn the user's cart into a pending order and empty the cart.

        Each line is priced from the menu as it stands now; the order keeps
        that snapshot for good.
        """
        validate_checkout(details)
        rows = self.cart(user_id)
        if not rows:
            raise ValidationError("cart", "cannot check out an empty cart")

        lines = tuple(
            OrderLine(
                menu_item_id=row.menu_item.id,
                name=row.menu_item.name,
                price=row.menu_item.price,
                quantity=row.item.quantity,
            )
            for row in rows
        )
        total = round(sum(line.subtotal for line in lines), 2)

        order = self.backend.create_order(
            NewOrder(
                user_id=user_id,
                items=lines,
                total=total,
                address=details.shipping_address,
                payment_id=payment_id,
            )
        )
        self.backend.clear_cart(user_id)

        logger.info(f"Order {order.id} placed by user {user_id} for {total:.2f}")
        self._publish_event(
            EventType.ORDER_PLACED, user_id=user_id, order_id=order.id, total=total
        )
        return order

    def orders_for(self, user_id: int) -> list[OrderWithItems]:
        return self.backend.get_orders_by_user_id(user_id)

    def order_for(self, actor: User, order_id: int) -> OrderWithItems:
        """Get an order visible to ``actor``: their own, or any for admins."""
        order = self.backend.get_order(order_id)
        if order is None or (order.user_id != actor.id and not actor.is_admin):
            raise NotFoundError("Order", order_id)
        return self.backend.with_items(order)

    def all_orders(self, actor: User) -> list[Order]:
        _require_admin(actor)
        return self.backend.get_all_orders()

    def update_order_status(
        self, actor: User, order_id: int, status: OrderStatus | str
    ) -> Order:
        _require_admin(actor)
        return self._transition(order_id, validate_status(status))

    def cancel_order(self, user_id: int, order_id: int) -> Order:
        """Let a customer cancel their own order while it is still pending."""
        order = self.backend.get_order(order_id)
        if order is None or order.user_id != user_id:
            raise NotFoundError("Order", order_id)
        if order.status != OrderStatus.PENDING:
            raise ValidationError(
                "status", f"only pending orders can be cancelled, not {order.status.value}"
            )
        return self._transition(order_id, OrderStatus.CANCELLED)

    def _transition(self, order_id: int, status: OrderStatus) -> Order:
        order = self.backend.get_order(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        if status != order.status and status not in STATUS_TRANSITIONS[order.status]:
            raise ValidationError(
                "status", f"cannot move from {order.status.value} to {status.value}"
            )

        updated = self.backend.update_order_status(order_id, status)
        if updated is None:
            raise NotFoundError("Order", order_id)
        logger.info(f"Order {order_id} is now {status.value}")
        self._publish_event(
            EventType.ORDER_STATUS_CHANGED,
            user_id=updated.user_id,
            order_id=order_id,
            previous=order.status.value,
            status=status.value,
        )
        return updated
