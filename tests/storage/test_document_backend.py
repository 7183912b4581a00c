"""Tests specific to the MongoDB backend: minted ids and reconciliation."""

from datetime import datetime, timezone

import mongomock
import pytest
from bson import ObjectId

from quickbite.core.exceptions import IdentifierError, StorageError
from quickbite.core.models import NewCartItem
from quickbite.storage.backends import DocumentBackend
from quickbite.storage.ids import object_id_for


@pytest.fixture
def db():
    return mongomock.MongoClient().quickbite


@pytest.fixture
def backend(db):
    return DocumentBackend(db)


def foreign_user(db, username="legacy"):
    oid = ObjectId()
    db.users.insert_one(
        {
            "_id": oid,
            "username": username,
            "username_lower": username.lower(),
            "password": "hash",
            "is_admin": False,
        }
    )
    return oid


def foreign_menu_item(db, name="Legacy Pie"):
    oid = ObjectId()
    db.menu_items.insert_one(
        {
            "_id": oid,
            "name": name,
            "description": "From the old system",
            "price": 7.5,
            "category": "Desserts",
            "rating": 4.0,
            "is_popular": False,
        }
    )
    return oid


class TestMintedIdentifiers:
    def test_documents_use_minted_object_ids(self, backend, db, new_user):
        user = backend.create_user(new_user())

        doc = db.users.find_one({"_id": object_id_for(user.id)})

        assert doc is not None
        assert doc["username_lower"] == "alice"

    def test_ids_count_up_per_collection(self, backend, new_user, new_menu_item):
        assert backend.create_user(new_user("a")).id == 1
        assert backend.create_user(new_user("b")).id == 2
        assert backend.create_menu_item(new_menu_item()).id == 1

    def test_references_stored_as_object_ids(
        self, backend, db, new_user, new_menu_item
    ):
        user = backend.create_user(new_user())
        item = backend.create_menu_item(new_menu_item())
        row = backend.add_to_cart(NewCartItem(user_id=user.id, menu_item_id=item.id))

        doc = db.cart_items.find_one({"_id": object_id_for(row.id)})

        assert doc["user_id"] == object_id_for(user.id)
        assert doc["menu_item_id"] == object_id_for(item.id)

    def test_counters_resume_from_existing_documents(self, db, new_menu_item):
        db.menu_items.insert_one(
            {
                "_id": object_id_for(41),
                "name": "Existing",
                "description": "Already here",
                "price": 1.0,
                "category": "Misc",
            }
        )

        backend = DocumentBackend(db)

        assert backend.create_menu_item(new_menu_item()).id == 42

    def test_created_at_truncated_to_milliseconds(
        self, backend, new_user, new_menu_item
    ):
        from quickbite.core.models import NewOrder, OrderLine

        user = backend.create_user(new_user())
        item = backend.create_menu_item(new_menu_item())
        placed = datetime(2024, 6, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)

        order = backend.import_order(
            NewOrder(
                user_id=user.id,
                items=(
                    OrderLine(
                        menu_item_id=item.id, name=item.name, price=item.price, quantity=1
                    ),
                ),
                total=item.price,
            ),
            "pending",
            placed,
        )

        assert order.created_at.microsecond == 123000
        assert backend.get_order(order.id).created_at == order.created_at


class TestForeignIdentifiers:
    def test_lookup_of_foreign_document_raises(self, backend, db):
        foreign_user(db, "legacy")

        with pytest.raises(IdentifierError):
            backend.get_user_by_username("legacy")

    def test_listings_skip_foreign_documents(self, backend, db, new_menu_item):
        foreign_menu_item(db)
        item = backend.create_menu_item(new_menu_item())

        assert backend.get_all_menu_items() == [item]

    def test_numeric_id_cannot_reach_foreign_document(self, backend, db):
        foreign_menu_item(db)

        assert backend.get_menu_item(1) is None


class TestReconciliation:
    def test_nothing_to_do(self, backend, new_user):
        backend.create_user(new_user())

        report = backend.reconcile_identifiers()

        assert report.total_remapped == 0
        assert report.references_updated == 0
        assert report.unresolved_references == []

    def test_foreign_records_become_addressable(self, backend, db, new_user):
        backend.create_user(new_user("alice"))
        old_user = foreign_user(db, "Legacy")
        old_item = foreign_menu_item(db)

        report = backend.reconcile_identifiers()

        assert report.remapped["users"] == {str(old_user): 2}
        assert report.remapped["menu_items"] == {str(old_item): 1}
        assert db.users.find_one({"_id": old_user}) is None

        user = backend.get_user_by_username("legacy")
        assert user.id == 2
        assert user.username == "Legacy"
        item = backend.get_menu_item(1)
        assert item.name == "Legacy Pie"
        assert item.rating == 4.0

    def test_references_follow_remapped_ids(self, backend, db):
        old_user = foreign_user(db)
        old_item = foreign_menu_item(db)
        db.cart_items.insert_one(
            {"_id": ObjectId(), "user_id": old_user, "menu_item_id": old_item, "quantity": 2}
        )
        db.orders.insert_one(
            {
                "_id": ObjectId(),
                "user_id": old_user,
                "items": [
                    {"menu_item_id": old_item, "name": "Legacy Pie", "price": 7.5, "quantity": 2}
                ],
                "status": "delivered",
                "total": 15.0,
                "created_at": datetime(2023, 1, 5, tzinfo=timezone.utc),
            }
        )

        report = backend.reconcile_identifiers()

        assert report.references_updated == 4
        user = backend.get_user_by_username("legacy")
        [row] = backend.get_cart_items_with_details(user.id)
        assert row.item.quantity == 2
        assert row.menu_item.name == "Legacy Pie"
        [detail] = backend.get_orders_by_user_id(user.id)
        assert detail.order.total == 15.0
        assert detail.items[0].menu_item.name == "Legacy Pie"

    def test_missing_references_reported(self, backend, db, new_user):
        user = backend.create_user(new_user())
        dangling = ObjectId()
        db.cart_items.insert_one(
            {
                "_id": ObjectId(),
                "user_id": object_id_for(user.id),
                "menu_item_id": dangling,
                "quantity": 1,
            }
        )

        report = backend.reconcile_identifiers()

        assert len(report.unresolved_references) == 1
        assert str(dangling) in report.unresolved_references[0]
        assert report.remapped["cart_items"]

    def test_new_records_after_reconciliation_do_not_collide(
        self, backend, db, new_user
    ):
        foreign_user(db, "legacy")
        backend.reconcile_identifiers()

        created = backend.create_user(new_user("fresh"))

        assert created.id == 2
        assert {u.username for u in backend.get_all_users()} == {"legacy", "fresh"}

    def test_report_serializes(self, backend, db):
        old_user = foreign_user(db)

        data = backend.reconcile_identifiers().to_dict()

        assert data["total_remapped"] == 1
        assert data["remapped"]["users"][str(old_user)] == 1


class TestDriverErrors:
    def test_driver_failures_become_storage_errors(self, backend, monkeypatch):
        from pymongo.errors import OperationFailure

        def fail(*args, **kwargs):
            raise OperationFailure("boom")

        monkeypatch.setattr(backend.db.menu_items, "find", fail)

        with pytest.raises(StorageError, match="boom"):
            backend.get_all_menu_items()


class TestSameStore:
    def test_same_database(self, backend, db):
        assert backend.same_store(DocumentBackend(db))

    def test_other_database(self, backend, db):
        assert not backend.same_store(DocumentBackend(db.client.other))
