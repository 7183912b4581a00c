"""Tests for migrating a storefront between backends."""

from datetime import datetime, timezone

import mongomock
import pytest

from quickbite.core.exceptions import StorageError
from quickbite.core.models import NewCartItem, NewOrder, OrderLine, OrderStatus
from quickbite.storage import (
    DocumentBackend,
    EventBus,
    EventType,
    MemoryBackend,
    MigrationManager,
    SQLiteBackend,
)


@pytest.fixture
def source(new_user, new_menu_item):
    """A memory storefront with a customer, a cart and two orders."""
    backend = MemoryBackend()
    alice = backend.create_user(new_user("alice"))
    pizza = backend.import_menu_item(new_menu_item("Pizza", price=12.99), rating=4.5)
    cake = backend.create_menu_item(new_menu_item("Cake", price=6.99, category="Desserts"))
    retired = backend.create_menu_item(new_menu_item("Retired Special", price=5.0))

    backend.add_to_cart(NewCartItem(user_id=alice.id, menu_item_id=cake.id, quantity=2))
    backend.import_order(
        NewOrder(
            user_id=alice.id,
            items=(
                OrderLine(menu_item_id=pizza.id, name="Pizza", price=12.99, quantity=1),
                OrderLine(
                    menu_item_id=retired.id, name="Retired Special", price=5.0, quantity=1
                ),
            ),
            total=17.99,
            address="1 Main St, Springfield 12345",
        ),
        OrderStatus.DELIVERED,
        datetime(2024, 1, 10, 19, 0, tzinfo=timezone.utc),
    )
    backend.import_order(
        NewOrder(
            user_id=alice.id,
            items=(OrderLine(menu_item_id=cake.id, name="Cake", price=6.99, quantity=3),),
            total=20.97,
        ),
        OrderStatus.PENDING,
        datetime(2024, 2, 1, 12, 0, tzinfo=timezone.utc),
    )
    backend.delete_menu_item(retired.id)
    return backend


@pytest.fixture
def target(tmp_path, new_menu_item):
    """An empty SQLite target whose menu ids are already offset."""
    backend = SQLiteBackend(tmp_path / "target.db")
    salad = backend.create_menu_item(new_menu_item("House Salad", category="Salads"))
    backend.delete_menu_item(salad.id)
    yield backend
    backend.close()


class TestMigrationStats:
    def test_success_rate_with_nothing_to_do(self):
        from quickbite.storage.migrations import MigrationStats

        stats = MigrationStats(started_at=datetime.now())
        assert stats.success_rate == 100.0
        assert stats.duration is None

    def test_to_dict(self):
        from quickbite.storage.migrations import MigrationStats

        stats = MigrationStats(started_at=datetime(2024, 1, 1, 12, 0))
        stats.totals["users"] = 2
        stats.migrated["users"] = 1
        stats.record_failure("users", "User 2: broken")
        stats.completed_at = datetime(2024, 1, 1, 12, 0, 5)

        data = stats.to_dict()

        assert data["duration"] == 5.0
        assert data["success_rate"] == 50.0
        assert data["failed"]["users"] == 1
        assert data["errors"] == ["User 2: broken"]


class TestMigrationManager:
    def test_copies_everything(self, source, target):
        stats = MigrationManager().migrate(source, target)

        assert stats.migrated == {
            "users": 1,
            "menu_items": 2,
            "cart_items": 1,
            "orders": 2,
        }
        assert sum(stats.failed.values()) == 0
        assert stats.completed_at is not None
        assert len(target.get_all_menu_items()) == 2
        assert min(m.id for m in target.get_all_menu_items()) == 2

    def test_references_are_remapped(self, source, target):
        MigrationManager().migrate(source, target)

        alice = target.get_user_by_username("alice")
        [row] = target.get_cart_items_with_details(alice.id)
        assert row.menu_item.name == "Cake"
        assert row.item.quantity == 2

        pizza = target.get_menu_items_by_category("pizza")[0]
        assert pizza.rating == 4.5

    def test_orders_keep_status_and_time(self, source, target):
        MigrationManager().migrate(source, target)

        alice = target.get_user_by_username("alice")
        newest, oldest = target.get_orders_by_user_id(alice.id)

        assert newest.order.status is OrderStatus.PENDING
        assert oldest.order.status is OrderStatus.DELIVERED
        assert oldest.order.created_at == datetime(2024, 1, 10, 19, 0, tzinfo=timezone.utc)
        assert oldest.order.address == "1 Main St, Springfield 12345"
        assert oldest.order.id < newest.order.id

    def test_lines_for_deleted_menu_items_keep_snapshot(self, source, target):
        MigrationManager().migrate(source, target)

        alice = target.get_user_by_username("alice")
        oldest = target.get_orders_by_user_id(alice.id)[-1]
        pizza_line, retired_line = oldest.items

        assert pizza_line.menu_item.name == "Pizza"
        assert retired_line.menu_item is None
        assert retired_line.line.menu_item_id is None
        assert retired_line.line.name == "Retired Special"
        assert retired_line.line.price == 5.0

    def test_existing_usernames_are_merged(self, source, target, new_user):
        existing = target.create_user(new_user("ALICE"))

        stats = MigrationManager().migrate(source, target)

        assert stats.migrated["users"] == 1
        assert len(target.get_all_users()) == 1
        assert target.get_orders_for_user(existing.id)

    def test_progress_callback(self, source, target):
        calls = []
        manager = MigrationManager()
        manager.set_progress_callback(lambda *args: calls.append(args))

        manager.migrate(source, target)

        assert ("users", 1, 1) in calls
        assert ("menu_items", 2, 2) in calls
        assert ("orders", 2, 2) in calls

    def test_publishes_events(self, source, target):
        bus = EventBus()
        MigrationManager(bus).migrate(source, target)

        [completed] = bus.get_history(EventType.MIGRATION_COMPLETED)
        assert completed.data["stats"]["migrated"]["orders"] == 2
        assert bus.get_history(EventType.MIGRATION_PROGRESS)

    def test_second_run_is_refused(self, source, target):
        MigrationManager().migrate(source, target)

        with pytest.raises(StorageError, match="already has a menu"):
            MigrationManager().migrate(source, target)

        assert len(target.get_all_menu_items()) == 2
        alice = target.get_user_by_username("alice")
        assert [r.quantity for r in target.get_cart_items(alice.id)] == [2]

    def test_seeded_target_is_refused(self, source, target):
        target.seed_initial_data("letmein")

        with pytest.raises(StorageError):
            MigrationManager().migrate(source, target)
        assert len(target.get_all_users()) == 1

    def test_merge_into_populated_target(self, source, target, new_menu_item):
        target.create_menu_item(new_menu_item("House Salad", category="Salads"))

        stats = MigrationManager().migrate(source, target, merge=True)

        assert sum(stats.failed.values()) == 0
        assert len(target.get_all_menu_items()) == 3

    def test_same_store_is_refused(self, source, tmp_path):
        path = tmp_path / "shop.db"
        with SQLiteBackend(path) as first, SQLiteBackend(path) as second:
            with pytest.raises(StorageError, match="same store"):
                MigrationManager().migrate(first, second, merge=True)
        with pytest.raises(StorageError, match="same store"):
            MigrationManager().migrate(source, source, merge=True)

    def test_memory_to_document_store(self, source):
        target = DocumentBackend(mongomock.MongoClient().quickbite)

        stats = MigrationManager().migrate(source, target)

        assert sum(stats.failed.values()) == 0
        alice = target.get_user_by_username("alice")
        assert len(target.get_orders_for_user(alice.id)) == 2

    def test_reconcile_publishes_report(self):
        from bson import ObjectId

        db = mongomock.MongoClient().quickbite
        backend = DocumentBackend(db)
        db.users.insert_one(
            {
                "_id": ObjectId(),
                "username": "legacy",
                "username_lower": "legacy",
                "password": "hash",
            }
        )
        bus = EventBus()

        report = MigrationManager(bus).reconcile(backend)

        assert report.total_remapped == 1
        [event] = bus.get_history(EventType.IDENTIFIERS_RECONCILED)
        assert event.data["report"]["total_remapped"] == 1
