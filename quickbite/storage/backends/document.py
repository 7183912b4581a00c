"""MongoDB storage backend.

Documents are addressed by ObjectIds minted from numeric ids (see
``quickbite.storage.ids``), so the rest of the application never sees an
ObjectId. References between documents (cart row to user and menu item,
order to user, order line to menu item) are stored as ObjectIds as well
and translated back when read.
"""

import logging
import re
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from quickbite.core.exceptions import DuplicateUserError, IdentifierError, StorageError
from quickbite.core.models import (
    CartItem,
    MenuItem,
    NewCartItem,
    NewMenuItem,
    NewOrder,
    NewUser,
    Order,
    OrderLine,
    OrderStatus,
    User,
    as_utc,
)
from quickbite.storage.ids import (
    is_minted,
    numeric_id_for,
    object_id_for,
    try_object_id_for,
)
from quickbite.storage.sessions import DEFAULT_SESSION_TTL, MemorySessionStore

from .base import StorageBackend

logger = logging.getLogger(__name__)

DEFAULT_URI = "mongodb://localhost:27017"
DEFAULT_DATABASE = "quickbite"

COLLECTIONS = ("users", "menu_items", "cart_items", "orders")

_DUPLICATE_KEY = 11000


def _is_duplicate_key(error: PyMongoError) -> bool:
    return isinstance(error, DuplicateKeyError) or getattr(error, "code", None) == _DUPLICATE_KEY


def _to_millis(value: datetime) -> datetime:
    # BSON dates carry millisecond precision
    value = as_utc(value)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def _exact_ignore_case(value: str) -> dict[str, str]:
    return {"$regex": f"^{re.escape(value)}$", "$options": "i"}


def _optional_numeric_id(value: ObjectId | None) -> int | None:
    return None if value is None else numeric_id_for(value)


def _optional_object_id(value: int | None) -> ObjectId | None:
    return None if value is None else object_id_for(value)


def _user_from_doc(doc: dict[str, Any]) -> User:
    return User(
        id=numeric_id_for(doc["_id"]),
        username=doc["username"],
        password=doc["password"],
        name=doc.get("name"),
        email=doc.get("email"),
        is_admin=bool(doc.get("is_admin", False)),
    )


def _menu_item_from_doc(doc: dict[str, Any]) -> MenuItem:
    return MenuItem(
        id=numeric_id_for(doc["_id"]),
        name=doc["name"],
        description=doc["description"],
        price=float(doc["price"]),
        image_url=doc.get("image_url"),
        category=doc["category"],
        rating=float(doc.get("rating", 0.0)),
        is_popular=bool(doc.get("is_popular", False)),
    )


def _cart_item_from_doc(doc: dict[str, Any]) -> CartItem:
    return CartItem(
        id=numeric_id_for(doc["_id"]),
        user_id=numeric_id_for(doc["user_id"]),
        menu_item_id=numeric_id_for(doc["menu_item_id"]),
        quantity=int(doc["quantity"]),
    )


def _order_from_doc(doc: dict[str, Any]) -> Order:
    return Order(
        id=numeric_id_for(doc["_id"]),
        user_id=numeric_id_for(doc["user_id"]),
        items=tuple(
            OrderLine(
                menu_item_id=_optional_numeric_id(line.get("menu_item_id")),
                name=line["name"],
                price=float(line["price"]),
                quantity=int(line["quantity"]),
            )
            for line in doc["items"]
        ),
        total=float(doc["total"]),
        status=OrderStatus(doc.get("status", OrderStatus.PENDING.value)),
        created_at=as_utc(doc["created_at"]),
        address=doc.get("address"),
        payment_id=doc.get("payment_id"),
    )


@dataclass
class ReconciliationReport:
    """Outcome of rewriting foreign ObjectIds to minted ones."""

    remapped: dict[str, dict[str, int]] = field(default_factory=dict)
    references_updated: int = 0
    unresolved_references: list[str] = field(default_factory=list)

    @property
    def total_remapped(self) -> int:
        return sum(len(ids) for ids in self.remapped.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "remapped": self.remapped,
            "total_remapped": self.total_remapped,
            "references_updated": self.references_updated,
            "unresolved_references": self.unresolved_references,
        }


class DocumentBackend(StorageBackend):
    """Document-store backend on MongoDB.

    Pass an existing ``pymongo`` database (or a compatible one, such as a
    mongomock database in tests), or a URI and database name to connect.
    """

    name = "mongo"

    def __init__(
        self,
        database: Database | None = None,
        *,
        uri: str = DEFAULT_URI,
        database_name: str = DEFAULT_DATABASE,
        session_ttl: float = DEFAULT_SESSION_TTL,
    ):
        self._client: MongoClient | None = None
        if database is None:
            with self._guard("connecting"):
                self._client = MongoClient(uri, tz_aware=True)
            database = self._client[database_name]
        self.db = database
        self.sessions = MemorySessionStore(ttl=session_ttl)
        self.initialize()

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        """Translate driver failures into ``StorageError``."""
        try:
            yield
        except PyMongoError as e:
            logger.error(f"Error {action}: {e}")
            raise StorageError(f"Error {action}: {e}") from e

    def initialize(self) -> None:
        """Create indexes and bring id counters up to the stored ids."""
        with self._guard("initializing indexes"):
            self.db.users.create_index([("username_lower", ASCENDING)], unique=True)
            self.db.menu_items.create_index([("category", ASCENDING)])
            self.db.cart_items.create_index(
                [("user_id", ASCENDING), ("menu_item_id", ASCENDING)], unique=True
            )
            self.db.orders.create_index(
                [("user_id", ASCENDING), ("created_at", DESCENDING)]
            )
            for name in COLLECTIONS:
                self._sync_counter(name)

    def close(self) -> None:
        """Close the client if this backend opened it."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def same_store(self, other: StorageBackend) -> bool:
        return other is self or (
            isinstance(other, DocumentBackend) and other.db == self.db
        )

    def _sync_counter(self, collection: str) -> None:
        highest = 0
        for doc in self.db[collection].find({}, {"_id": 1}):
            if is_minted(doc["_id"]):
                highest = max(highest, numeric_id_for(doc["_id"]))
        if highest:
            self.db.counters.update_one(
                {"_id": collection}, {"$max": {"seq": highest}}, upsert=True
            )

    def _next_id(self, collection: str) -> int:
        doc = self.db.counters.find_one_and_update(
            {"_id": collection},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(doc["seq"])

    def _mint(self, collection: str) -> ObjectId:
        return object_id_for(self._next_id(collection))

    def _convert_all(
        self, docs: Iterable[dict[str, Any]], convert: Callable[[dict[str, Any]], Any]
    ) -> list[Any]:
        result = []
        for doc in docs:
            try:
                result.append(convert(doc))
            except IdentifierError as e:
                logger.warning(
                    f"Skipping document {doc.get('_id')} with unreconciled id: {e}"
                )
        return result

    # Users

    def get_user(self, user_id: int) -> User | None:
        oid = try_object_id_for(user_id)
        if oid is None:
            return None
        with self._guard("getting user"):
            doc = self.db.users.find_one({"_id": oid})
        return _user_from_doc(doc) if doc else None

    def get_user_by_username(self, username: str) -> User | None:
        with self._guard("getting user by username"):
            doc = self.db.users.find_one({"username_lower": username.lower()})
        return _user_from_doc(doc) if doc else None

    def get_all_users(self) -> list[User]:
        with self._guard("getting all users"):
            docs = list(self.db.users.find().sort("_id", ASCENDING))
        return self._convert_all(docs, _user_from_doc)

    def _insert_user(self, user: NewUser) -> User:
        with self._guard("creating user"):
            oid = self._mint("users")
            doc = {"_id": oid, **user.to_dict(), "username_lower": user.username.lower()}
            try:
                self.db.users.insert_one(doc)
            except PyMongoError as e:
                if _is_duplicate_key(e):
                    raise DuplicateUserError(user.username) from e
                raise
        return _user_from_doc(doc)

    # Menu items

    def get_all_menu_items(self) -> list[MenuItem]:
        with self._guard("getting all menu items"):
            docs = list(self.db.menu_items.find().sort("_id", ASCENDING))
        return self._convert_all(docs, _menu_item_from_doc)

    def get_menu_item(self, item_id: int) -> MenuItem | None:
        oid = try_object_id_for(item_id)
        if oid is None:
            return None
        with self._guard("getting menu item by id"):
            doc = self.db.menu_items.find_one({"_id": oid})
        return _menu_item_from_doc(doc) if doc else None

    def get_menu_items_by_category(self, category: str) -> list[MenuItem]:
        with self._guard("getting menu items by category"):
            docs = list(
                self.db.menu_items.find(
                    {"category": _exact_ignore_case(category)}
                ).sort("_id", ASCENDING)
            )
        return self._convert_all(docs, _menu_item_from_doc)

    def _insert_menu_item(self, item: NewMenuItem, rating: float = 0.0) -> MenuItem:
        with self._guard("creating menu item"):
            doc = {"_id": self._mint("menu_items"), **item.to_dict(), "rating": float(rating)}
            self.db.menu_items.insert_one(doc)
        return _menu_item_from_doc(doc)

    def _update_menu_item(self, item_id: int, item: NewMenuItem) -> MenuItem | None:
        oid = try_object_id_for(item_id)
        if oid is None:
            return None
        with self._guard("updating menu item"):
            doc = self.db.menu_items.find_one_and_update(
                {"_id": oid},
                {"$set": item.to_dict()},
                return_document=ReturnDocument.AFTER,
            )
        return _menu_item_from_doc(doc) if doc else None

    def delete_menu_item(self, item_id: int) -> bool:
        oid = try_object_id_for(item_id)
        if oid is None:
            return False
        with self._guard("deleting menu item"):
            return self.db.menu_items.delete_one({"_id": oid}).deleted_count > 0

    # Cart

    def get_cart_items(self, user_id: int) -> list[CartItem]:
        oid = try_object_id_for(user_id)
        if oid is None:
            return []
        with self._guard("getting cart items"):
            docs = list(self.db.cart_items.find({"user_id": oid}).sort("_id", ASCENDING))
        return self._convert_all(docs, _cart_item_from_doc)

    def _merge_cart_item(self, item: NewCartItem) -> CartItem:
        selector = {
            "user_id": object_id_for(item.user_id),
            "menu_item_id": object_id_for(item.menu_item_id),
        }
        increment = {"$inc": {"quantity": item.quantity}}

        with self._guard("adding to cart"):
            doc = self.db.cart_items.find_one_and_update(
                selector, increment, return_document=ReturnDocument.AFTER
            )
            if doc is None:
                doc = {"_id": self._mint("cart_items"), **selector, "quantity": item.quantity}
                try:
                    self.db.cart_items.insert_one(doc)
                except PyMongoError as e:
                    if not _is_duplicate_key(e):
                        raise
                    # lost a race with another insert for the same pair
                    doc = self.db.cart_items.find_one_and_update(
                        selector, increment, return_document=ReturnDocument.AFTER
                    )
        return _cart_item_from_doc(doc)

    def remove_from_cart(self, cart_item_id: int, user_id: int) -> bool:
        oid = try_object_id_for(cart_item_id)
        user_oid = try_object_id_for(user_id)
        if oid is None or user_oid is None:
            return False
        with self._guard("removing from cart"):
            result = self.db.cart_items.delete_one({"_id": oid, "user_id": user_oid})
        return result.deleted_count > 0

    def _set_cart_item_quantity(
        self, cart_item_id: int, user_id: int, quantity: int
    ) -> CartItem | None:
        oid = try_object_id_for(cart_item_id)
        user_oid = try_object_id_for(user_id)
        if oid is None or user_oid is None:
            return None
        with self._guard("updating cart item quantity"):
            doc = self.db.cart_items.find_one_and_update(
                {"_id": oid, "user_id": user_oid},
                {"$set": {"quantity": quantity}},
                return_document=ReturnDocument.AFTER,
            )
        return _cart_item_from_doc(doc) if doc else None

    def clear_cart(self, user_id: int) -> bool:
        oid = try_object_id_for(user_id)
        if oid is None:
            return True
        with self._guard("clearing cart"):
            self.db.cart_items.delete_many({"user_id": oid})
        return True

    # Orders

    def _insert_order(
        self, order: NewOrder, status: OrderStatus, created_at: datetime
    ) -> Order:
        with self._guard("creating order"):
            doc = {
                "_id": self._mint("orders"),
                "user_id": object_id_for(order.user_id),
                "items": [
                    {
                        "menu_item_id": _optional_object_id(line.menu_item_id),
                        "name": line.name,
                        "price": line.price,
                        "quantity": line.quantity,
                    }
                    for line in order.items
                ],
                "status": status.value,
                "total": order.total,
                "created_at": _to_millis(created_at),
                "address": order.address,
                "payment_id": order.payment_id,
            }
            self.db.orders.insert_one(doc)
        return _order_from_doc(doc)

    def get_order(self, order_id: int) -> Order | None:
        oid = try_object_id_for(order_id)
        if oid is None:
            return None
        with self._guard("getting order by id"):
            doc = self.db.orders.find_one({"_id": oid})
        return _order_from_doc(doc) if doc else None

    def get_orders_for_user(self, user_id: int) -> list[Order]:
        oid = try_object_id_for(user_id)
        if oid is None:
            return []
        with self._guard("getting orders by user id"):
            docs = list(
                self.db.orders.find({"user_id": oid}).sort(
                    [("created_at", DESCENDING), ("_id", DESCENDING)]
                )
            )
        return self._convert_all(docs, _order_from_doc)

    def get_all_orders(self) -> list[Order]:
        with self._guard("getting all orders"):
            docs = list(
                self.db.orders.find().sort([("created_at", DESCENDING), ("_id", DESCENDING)])
            )
        return self._convert_all(docs, _order_from_doc)

    def _set_order_status(self, order_id: int, status: OrderStatus) -> Order | None:
        oid = try_object_id_for(order_id)
        if oid is None:
            return None
        with self._guard("updating order status"):
            doc = self.db.orders.find_one_and_update(
                {"_id": oid},
                {"$set": {"status": status.value}},
                return_document=ReturnDocument.AFTER,
            )
        return _order_from_doc(doc) if doc else None

    # Identifier reconciliation

    def reconcile_identifiers(self) -> ReconciliationReport:
        """Rewrite documents whose ObjectIds were not minted by this backend.

        Documents written by other tools carry driver-generated ObjectIds
        that have no numeric counterpart. Each such document is re-inserted
        under a freshly minted id, and every reference to the old id in
        cart rows and orders is rewritten. References to ids that exist
        nowhere are left untouched and listed as unresolved.
        """
        report = ReconciliationReport()
        with self._guard("reconciling identifiers"):
            users = self._remap_collection("users", report)
            menu_items = self._remap_collection("menu_items", report)
            self._rewrite_cart_items(users, menu_items, report)
            self._rewrite_orders(users, menu_items, report)

        logger.info(
            f"Reconciled {report.total_remapped} documents, "
            f"updated {report.references_updated} references"
        )
        return report

    def _remap_collection(
        self, collection: str, report: ReconciliationReport
    ) -> dict[ObjectId, ObjectId]:
        mapping: dict[ObjectId, ObjectId] = {}
        foreign = [d for d in self.db[collection].find() if not is_minted(d["_id"])]
        for doc in foreign:
            old_id = doc["_id"]
            new_id = self._mint(collection)
            replacement = {**doc, "_id": new_id}
            if collection == "users":
                replacement["username_lower"] = doc["username"].lower()
            # unique indexes: the old document has to go first
            self.db[collection].delete_one({"_id": old_id})
            self.db[collection].insert_one(replacement)
            mapping[old_id] = new_id
            report.remapped.setdefault(collection, {})[str(old_id)] = numeric_id_for(new_id)
        return mapping

    def _resolve(
        self,
        value: ObjectId | None,
        mapping: dict[ObjectId, ObjectId],
        label: str,
        report: ReconciliationReport,
    ) -> ObjectId | None:
        if value is None:
            return None
        if value in mapping:
            report.references_updated += 1
            return mapping[value]
        if not is_minted(value):
            report.unresolved_references.append(f"{label} -> {value}")
        return value

    def _rewrite_cart_items(
        self,
        users: dict[ObjectId, ObjectId],
        menu_items: dict[ObjectId, ObjectId],
        report: ReconciliationReport,
    ) -> None:
        for doc in list(self.db.cart_items.find()):
            label = f"cart_items {doc['_id']}"
            updated = {
                **doc,
                "user_id": self._resolve(doc["user_id"], users, label, report),
                "menu_item_id": self._resolve(
                    doc["menu_item_id"], menu_items, label, report
                ),
            }
            self._store_rewritten("cart_items", doc, updated, report)

    def _rewrite_orders(
        self,
        users: dict[ObjectId, ObjectId],
        menu_items: dict[ObjectId, ObjectId],
        report: ReconciliationReport,
    ) -> None:
        for doc in list(self.db.orders.find()):
            label = f"orders {doc['_id']}"
            updated = {
                **doc,
                "user_id": self._resolve(doc["user_id"], users, label, report),
                "items": [
                    {
                        **line,
                        "menu_item_id": self._resolve(
                            line.get("menu_item_id"), menu_items, label, report
                        ),
                    }
                    for line in doc["items"]
                ],
            }
            self._store_rewritten("orders", doc, updated, report)

    def _store_rewritten(
        self,
        collection: str,
        original: dict[str, Any],
        updated: dict[str, Any],
        report: ReconciliationReport,
    ) -> None:
        old_id = original["_id"]
        if is_minted(old_id):
            if updated != original:
                self.db[collection].replace_one({"_id": old_id}, updated)
            return

        new_id = self._mint(collection)
        self.db[collection].delete_one({"_id": old_id})
        self.db[collection].insert_one({**updated, "_id": new_id})
        report.remapped.setdefault(collection, {})[str(old_id)] = numeric_id_for(new_id)
