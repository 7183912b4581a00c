"""Data migration between storage backends.

Copies a whole storefront from one backend to another. Ids are
reassigned by the target, so every reference (cart rows, orders, order
lines) is remapped through the ids the target hands out.

The same manager reconciles a document store in place, giving documents
written by other tools ids in the numeric id space.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from quickbite.core.exceptions import QuickBiteError, StorageError
from quickbite.core.models import NewCartItem, NewMenuItem, NewOrder, NewUser, OrderLine
from quickbite.storage.backends.base import StorageBackend
from quickbite.storage.backends.document import DocumentBackend, ReconciliationReport
from quickbite.storage.events import EventPublisher, EventType

logger = logging.getLogger(__name__)

ENTITIES = ("users", "menu_items", "cart_items", "orders")


@dataclass
class MigrationStats:
    """Statistics for a migration operation."""

    started_at: datetime
    completed_at: datetime | None = None
    totals: dict[str, int] = field(default_factory=lambda: dict.fromkeys(ENTITIES, 0))
    migrated: dict[str, int] = field(default_factory=lambda: dict.fromkeys(ENTITIES, 0))
    failed: dict[str, int] = field(default_factory=lambda: dict.fromkeys(ENTITIES, 0))
    errors: list[str] = field(default_factory=list)

    @property
    def duration(self) -> float | None:
        """Get migration duration in seconds."""
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def success_rate(self) -> float:
        """Get success rate as percentage."""
        total = sum(self.totals.values())
        if total == 0:
            return 100.0
        return (sum(self.migrated.values()) / total) * 100.0

    def record_failure(self, entity: str, message: str) -> None:
        self.failed[entity] += 1
        self.errors.append(message)
        logger.warning(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat()
            if self.completed_at
            else None,
            "duration": self.duration,
            "totals": dict(self.totals),
            "migrated": dict(self.migrated),
            "failed": dict(self.failed),
            "success_rate": self.success_rate,
            "errors": list(self.errors),
        }


class MigrationManager(EventPublisher):
    """Manages data migration between storage backends."""

    def __init__(self, event_bus=None):
        super().__init__(event_bus)
        self._progress_callback: Callable[[str, int, int], None] | None = None

    def set_progress_callback(self, callback: Callable[[str, int, int], None]) -> None:
        """Set a callback for progress updates (entity, current, total)."""
        self._progress_callback = callback

    def _report_progress(self, entity: str, current: int, total: int) -> None:
        if self._progress_callback:
            self._progress_callback(entity, current, total)
        self._publish_event(
            EventType.MIGRATION_PROGRESS, entity=entity, current=current, total=total
        )

    def migrate(
        self, source: StorageBackend, target: StorageBackend, merge: bool = False
    ) -> MigrationStats:
        """Copy users, menu, carts and orders from ``source`` into ``target``.

        Users whose username already exists on the target are merged into
        the existing account rather than duplicated. Menu items, cart rows
        and orders are always added, so a target that already has a menu
        or orders is refused unless ``merge`` is set.

        Raises:
            StorageError: If source and target are the same store, or the
                target holds data and ``merge`` is not set.
        """
        if source.same_store(target):
            raise StorageError("Source and target are the same store")
        if not merge and (target.get_all_menu_items() or target.get_all_orders()):
            raise StorageError(
                f"Target {target.name} storage already has a menu or orders; "
                "migrating again would duplicate them"
            )

        stats = MigrationStats(started_at=datetime.now())
        logger.info(f"Migrating storefront from {source.name} to {target.name}")

        user_ids = self._migrate_users(source, target, stats)
        menu_ids = self._migrate_menu(source, target, stats)
        self._migrate_carts(source, target, user_ids, menu_ids, stats)
        self._migrate_orders(source, target, user_ids, menu_ids, stats)

        stats.completed_at = datetime.now()
        self._publish_event(EventType.MIGRATION_COMPLETED, stats=stats.to_dict())
        logger.info(
            f"Migration finished: {sum(stats.migrated.values())} records copied, "
            f"{sum(stats.failed.values())} failed"
        )
        return stats

    def _migrate_users(
        self, source: StorageBackend, target: StorageBackend, stats: MigrationStats
    ) -> dict[int, int]:
        users = source.get_all_users()
        stats.totals["users"] = len(users)
        mapping = {}

        for i, user in enumerate(users, 1):
            try:
                existing = target.get_user_by_username(user.username)
                if existing is None:
                    existing = target.create_user(
                        NewUser(
                            username=user.username,
                            password=user.password,
                            name=user.name,
                            email=user.email,
                            is_admin=user.is_admin,
                        )
                    )
                mapping[user.id] = existing.id
                stats.migrated["users"] += 1
            except QuickBiteError as e:
                stats.record_failure("users", f"User {user.id}: {e}")
            self._report_progress("users", i, len(users))

        return mapping

    def _migrate_menu(
        self, source: StorageBackend, target: StorageBackend, stats: MigrationStats
    ) -> dict[int, int]:
        items = source.get_all_menu_items()
        stats.totals["menu_items"] = len(items)
        mapping = {}

        for i, item in enumerate(items, 1):
            try:
                created = target.import_menu_item(
                    NewMenuItem(
                        name=item.name,
                        description=item.description,
                        price=item.price,
                        category=item.category,
                        image_url=item.image_url,
                        is_popular=item.is_popular,
                    ),
                    rating=item.rating,
                )
                mapping[item.id] = created.id
                stats.migrated["menu_items"] += 1
            except QuickBiteError as e:
                stats.record_failure("menu_items", f"Menu item {item.id}: {e}")
            self._report_progress("menu_items", i, len(items))

        return mapping

    def _migrate_carts(
        self,
        source: StorageBackend,
        target: StorageBackend,
        user_ids: dict[int, int],
        menu_ids: dict[int, int],
        stats: MigrationStats,
    ) -> None:
        rows = [
            row for user_id in user_ids for row in source.get_cart_items(user_id)
        ]
        stats.totals["cart_items"] = len(rows)

        for i, row in enumerate(rows, 1):
            if row.menu_item_id not in menu_ids:
                stats.record_failure(
                    "cart_items",
                    f"Cart item {row.id}: menu item {row.menu_item_id} was not migrated",
                )
            else:
                try:
                    target.add_to_cart(
                        NewCartItem(
                            user_id=user_ids[row.user_id],
                            menu_item_id=menu_ids[row.menu_item_id],
                            quantity=row.quantity,
                        )
                    )
                    stats.migrated["cart_items"] += 1
                except QuickBiteError as e:
                    stats.record_failure("cart_items", f"Cart item {row.id}: {e}")
            self._report_progress("cart_items", i, len(rows))

    def _migrate_orders(
        self,
        source: StorageBackend,
        target: StorageBackend,
        user_ids: dict[int, int],
        menu_ids: dict[int, int],
        stats: MigrationStats,
    ) -> None:
        # oldest first so the target allocates ids in placement order
        orders = list(reversed(source.get_all_orders()))
        stats.totals["orders"] = len(orders)

        for i, order in enumerate(orders, 1):
            if order.user_id not in user_ids:
                stats.record_failure(
                    "orders", f"Order {order.id}: user {order.user_id} was not migrated"
                )
                self._report_progress("orders", i, len(orders))
                continue

            # Items already deleted from the source menu have no counterpart in
            # the target; such lines keep only their name and price snapshot.
            lines = tuple(
                OrderLine(
                    menu_item_id=menu_ids.get(line.menu_item_id),
                    name=line.name,
                    price=line.price,
                    quantity=line.quantity,
                )
                for line in order.items
            )
            try:
                target.import_order(
                    NewOrder(
                        user_id=user_ids[order.user_id],
                        items=lines,
                        total=order.total,
                        address=order.address,
                        payment_id=order.payment_id,
                    ),
                    status=order.status,
                    created_at=order.created_at,
                )
                stats.migrated["orders"] += 1
            except QuickBiteError as e:
                stats.record_failure("orders", f"Order {order.id}: {e}")
            self._report_progress("orders", i, len(orders))

    def reconcile(self, backend: DocumentBackend) -> ReconciliationReport:
        """Bring foreign document ids into the numeric id space in place."""
        report = backend.reconcile_identifiers()
        self._publish_event(EventType.IDENTIFIERS_RECONCILED, report=report.to_dict())
        return report
