"""SQLite storage backend with one table per entity."""

import logging
import sqlite3
import threading
import time
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import msgspec

from quickbite.core.exceptions import StorageError
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
)
from quickbite.storage.sessions import (
    DEFAULT_SESSION_TTL,
    SessionStore,
    new_session_id,
)

from .base import StorageBackend

logger = logging.getLogger(__name__)

SCHEMA = """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL,
        username_lower TEXT NOT NULL UNIQUE,
        password TEXT NOT NULL,
        name TEXT,
        email TEXT,
        is_admin INTEGER NOT NULL DEFAULT 0
    );

    CREATE TABLE IF NOT EXISTS menu_items (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        description TEXT NOT NULL,
        price REAL NOT NULL,
        image_url TEXT,
        category TEXT NOT NULL,
        rating REAL NOT NULL DEFAULT 0,
        is_popular INTEGER NOT NULL DEFAULT 0
    );

    CREATE TABLE IF NOT EXISTS cart_items (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        menu_item_id INTEGER NOT NULL,
        quantity INTEGER NOT NULL DEFAULT 1 CHECK (quantity >= 1),
        UNIQUE (user_id, menu_item_id)
    );

    CREATE TABLE IF NOT EXISTS orders (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        items TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending',
        total REAL NOT NULL,
        created_at TEXT NOT NULL,
        address TEXT,
        payment_id TEXT
    );

    CREATE TABLE IF NOT EXISTS sessions (
        id TEXT PRIMARY KEY,
        user_id INTEGER NOT NULL,
        expires_at REAL NOT NULL
    );

    CREATE INDEX IF NOT EXISTS idx_cart_items_user ON cart_items(user_id);
    CREATE INDEX IF NOT EXISTS idx_orders_user ON orders(user_id);
    CREATE INDEX IF NOT EXISTS idx_orders_created ON orders(created_at);
    CREATE INDEX IF NOT EXISTS idx_sessions_expires ON sessions(expires_at);
"""

_ORDER_LINES = tuple[OrderLine, ...]


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _user_from_row(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        password=row["password"],
        name=row["name"],
        email=row["email"],
        is_admin=bool(row["is_admin"]),
    )


def _menu_item_from_row(row: sqlite3.Row) -> MenuItem:
    return MenuItem(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        price=row["price"],
        image_url=row["image_url"],
        category=row["category"],
        rating=row["rating"],
        is_popular=bool(row["is_popular"]),
    )


def _cart_item_from_row(row: sqlite3.Row) -> CartItem:
    return CartItem(
        id=row["id"],
        user_id=row["user_id"],
        menu_item_id=row["menu_item_id"],
        quantity=row["quantity"],
    )


def _order_from_row(row: sqlite3.Row) -> Order:
    return Order(
        id=row["id"],
        user_id=row["user_id"],
        items=msgspec.json.decode(row["items"], type=_ORDER_LINES),
        status=OrderStatus(row["status"]),
        total=row["total"],
        created_at=_parse_timestamp(row["created_at"]),
        address=row["address"],
        payment_id=row["payment_id"],
    )


class SQLiteSessionStore(SessionStore):
    """Session store kept in the backend's ``sessions`` table."""

    def __init__(
        self,
        backend: "SQLiteBackend",
        ttl: float = DEFAULT_SESSION_TTL,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(ttl, clock)
        self._backend = backend

    def create(self, user_id: int) -> str:
        session_id = new_session_id()
        self._backend._execute(
            "INSERT INTO sessions (id, user_id, expires_at) VALUES (?, ?, ?)",
            (session_id, user_id, self._expiry()),
        )
        return session_id

    def get(self, session_id: str) -> int | None:
        row = self._backend._fetchone(
            "SELECT user_id FROM sessions WHERE id = ? AND expires_at > ?",
            (session_id, self._clock()),
        )
        return row["user_id"] if row else None

    def touch(self, session_id: str) -> bool:
        cursor = self._backend._execute(
            "UPDATE sessions SET expires_at = ? WHERE id = ? AND expires_at > ?",
            (self._expiry(), session_id, self._clock()),
        )
        return cursor.rowcount > 0

    def destroy(self, session_id: str) -> bool:
        cursor = self._backend._execute(
            "DELETE FROM sessions WHERE id = ?", (session_id,)
        )
        return cursor.rowcount > 0

    def purge_expired(self) -> int:
        cursor = self._backend._execute(
            "DELETE FROM sessions WHERE expires_at <= ?", (self._clock(),)
        )
        return cursor.rowcount


class SQLiteBackend(StorageBackend):
    """Relational backend on SQLite.

    The cart's one-row-per-item rule is a table constraint, and merging is
    a single upsert. Order lines are kept as a JSON column so an order
    reads back exactly as it was placed.
    """

    name = "sqlite"

    def __init__(
        self, db_path: Path | str = ":memory:", session_ttl: float = DEFAULT_SESSION_TTL
    ):
        self.db_path = db_path if str(db_path) == ":memory:" else Path(db_path)
        self._lock = threading.RLock()
        self.conn: sqlite3.Connection | None = sqlite3.connect(
            str(self.db_path), check_same_thread=False
        )
        self.connection.row_factory = sqlite3.Row
        # NOCASE folds ASCII letters only
        self.connection.create_function("py_lower", 1, str.lower, deterministic=True)
        self.sessions = SQLiteSessionStore(self, ttl=session_ttl)
        self.initialize()

    @property
    def connection(self) -> sqlite3.Connection:
        """Get the connection, ensuring it exists."""
        if self.conn is None:
            raise StorageError("Database connection not initialized")
        return self.conn

    def initialize(self) -> None:
        """Create database schema."""
        with self._lock:
            if self.db_path != ":memory:":
                self.connection.execute("PRAGMA journal_mode=WAL")
            self.connection.executescript(SCHEMA)
            self.connection.commit()

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.connection.close()
            self.conn = None

    def same_store(self, other: StorageBackend) -> bool:
        if other is self:
            return True
        if not isinstance(other, SQLiteBackend):
            return False
        # Every ":memory:" connection is its own database
        if self.db_path == ":memory:" or other.db_path == ":memory:":
            return False
        return self.db_path.resolve() == other.db_path.resolve()

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        with self._lock:
            try:
                cursor = self.connection.execute(sql, params)
                self.connection.commit()
            except sqlite3.Error as e:
                self.connection.rollback()
                logger.error(f"SQLite write failed: {e}")
                raise StorageError(str(e)) from e
            return cursor

    def _fetchone(self, sql: str, params: tuple = ()) -> sqlite3.Row | None:
        with self._lock:
            try:
                return self.connection.execute(sql, params).fetchone()
            except sqlite3.Error as e:
                logger.error(f"SQLite read failed: {e}")
                raise StorageError(str(e)) from e

    def _fetchall(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            try:
                return self.connection.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                logger.error(f"SQLite read failed: {e}")
                raise StorageError(str(e)) from e

    # Users

    def get_user(self, user_id: int) -> User | None:
        row = self._fetchone("SELECT * FROM users WHERE id = ?", (user_id,))
        return _user_from_row(row) if row else None

    def get_user_by_username(self, username: str) -> User | None:
        row = self._fetchone(
            "SELECT * FROM users WHERE username_lower = ?", (username.lower(),)
        )
        return _user_from_row(row) if row else None

    def get_all_users(self) -> list[User]:
        return [_user_from_row(r) for r in self._fetchall("SELECT * FROM users ORDER BY id")]

    def _insert_user(self, user: NewUser) -> User:
        cursor = self._execute(
            """
            INSERT INTO users
                (username, username_lower, password, name, email, is_admin)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                user.username,
                user.username.lower(),
                user.password,
                user.name,
                user.email,
                int(user.is_admin),
            ),
        )
        return User(id=cursor.lastrowid, **user.to_dict())

    # Menu items

    def get_all_menu_items(self) -> list[MenuItem]:
        rows = self._fetchall("SELECT * FROM menu_items ORDER BY id")
        return [_menu_item_from_row(r) for r in rows]

    def get_menu_item(self, item_id: int) -> MenuItem | None:
        row = self._fetchone("SELECT * FROM menu_items WHERE id = ?", (item_id,))
        return _menu_item_from_row(row) if row else None

    def get_menu_items_by_category(self, category: str) -> list[MenuItem]:
        rows = self._fetchall(
            "SELECT * FROM menu_items WHERE py_lower(category) = ? ORDER BY id",
            (category.lower(),),
        )
        return [_menu_item_from_row(r) for r in rows]

    def _insert_menu_item(self, item: NewMenuItem, rating: float = 0.0) -> MenuItem:
        cursor = self._execute(
            """
            INSERT INTO menu_items
                (name, description, price, image_url, category, rating, is_popular)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                item.name,
                item.description,
                item.price,
                item.image_url,
                item.category,
                rating,
                int(item.is_popular),
            ),
        )
        return MenuItem(id=cursor.lastrowid, rating=rating, **item.to_dict())

    def _update_menu_item(self, item_id: int, item: NewMenuItem) -> MenuItem | None:
        cursor = self._execute(
            """
            UPDATE menu_items SET
                name = ?, description = ?, price = ?, image_url = ?,
                category = ?, is_popular = ?
            WHERE id = ?
            """,
            (
                item.name,
                item.description,
                item.price,
                item.image_url,
                item.category,
                int(item.is_popular),
                item_id,
            ),
        )
        if cursor.rowcount == 0:
            return None
        return self.get_menu_item(item_id)

    def delete_menu_item(self, item_id: int) -> bool:
        cursor = self._execute("DELETE FROM menu_items WHERE id = ?", (item_id,))
        return cursor.rowcount > 0

    # Cart

    def get_cart_items(self, user_id: int) -> list[CartItem]:
        rows = self._fetchall(
            "SELECT * FROM cart_items WHERE user_id = ? ORDER BY id", (user_id,)
        )
        return [_cart_item_from_row(r) for r in rows]

    def _merge_cart_item(self, item: NewCartItem) -> CartItem:
        with self._lock:
            self._execute(
                """
                INSERT INTO cart_items (user_id, menu_item_id, quantity)
                VALUES (?, ?, ?)
                ON CONFLICT(user_id, menu_item_id) DO UPDATE SET
                    quantity = quantity + excluded.quantity
                """,
                (item.user_id, item.menu_item_id, item.quantity),
            )
            row = self._fetchone(
                "SELECT * FROM cart_items WHERE user_id = ? AND menu_item_id = ?",
                (item.user_id, item.menu_item_id),
            )
        return _cart_item_from_row(row)

    def remove_from_cart(self, cart_item_id: int, user_id: int) -> bool:
        cursor = self._execute(
            "DELETE FROM cart_items WHERE id = ? AND user_id = ?",
            (cart_item_id, user_id),
        )
        return cursor.rowcount > 0

    def _set_cart_item_quantity(
        self, cart_item_id: int, user_id: int, quantity: int
    ) -> CartItem | None:
        with self._lock:
            cursor = self._execute(
                "UPDATE cart_items SET quantity = ? WHERE id = ? AND user_id = ?",
                (quantity, cart_item_id, user_id),
            )
            if cursor.rowcount == 0:
                return None
            row = self._fetchone("SELECT * FROM cart_items WHERE id = ?", (cart_item_id,))
        return _cart_item_from_row(row)

    def clear_cart(self, user_id: int) -> bool:
        self._execute("DELETE FROM cart_items WHERE user_id = ?", (user_id,))
        return True

    # Orders

    def _insert_order(
        self, order: NewOrder, status: OrderStatus, created_at: datetime
    ) -> Order:
        items = tuple(order.items)
        cursor = self._execute(
            """
            INSERT INTO orders
                (user_id, items, status, total, created_at, address, payment_id)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                order.user_id,
                msgspec.json.encode(items).decode("utf-8"),
                status.value,
                order.total,
                created_at.isoformat(),
                order.address,
                order.payment_id,
            ),
        )
        return Order(
            id=cursor.lastrowid,
            user_id=order.user_id,
            items=items,
            total=order.total,
            status=status,
            created_at=created_at,
            address=order.address,
            payment_id=order.payment_id,
        )

    def get_order(self, order_id: int) -> Order | None:
        row = self._fetchone("SELECT * FROM orders WHERE id = ?", (order_id,))
        return _order_from_row(row) if row else None

    def get_orders_for_user(self, user_id: int) -> list[Order]:
        rows = self._fetchall(
            "SELECT * FROM orders WHERE user_id = ? ORDER BY created_at DESC, id DESC",
            (user_id,),
        )
        return [_order_from_row(r) for r in rows]

    def get_all_orders(self) -> list[Order]:
        rows = self._fetchall("SELECT * FROM orders ORDER BY created_at DESC, id DESC")
        return [_order_from_row(r) for r in rows]

    def _set_order_status(self, order_id: int, status: OrderStatus) -> Order | None:
        with self._lock:
            cursor = self._execute(
                "UPDATE orders SET status = ? WHERE id = ?", (status.value, order_id)
            )
            if cursor.rowcount == 0:
                return None
            return self.get_order(order_id)
