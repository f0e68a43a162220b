"""Sync storage abstractions and SQLite implementation."""
from __future__ import annotations

import contextlib
import json
import sqlite3
import uuid
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

from models.records import Category, OutfitItemLink, PersistedOutfit, PersistedWardrobeItem, UserRecord
from models.taxonomy import OUTFIT_SOURCE_CURATED


class StoreError(Exception):
    """Raised by store adapters when the backend rejects or fails a call."""

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class SyncStore:
    """Persistence interface used by the sync engine.

    Every method is scoped by user where it reads; inserts take fully built
    rows and return them with their generated id.
    """

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        raise NotImplementedError

    def list_users(self) -> List[UserRecord]:
        raise NotImplementedError

    def list_categories(self, user_id: str) -> List[Category]:
        raise NotImplementedError

    def insert_categories(self, user_id: str, categories: Sequence[Mapping[str, Any]]) -> List[Category]:
        raise NotImplementedError

    def list_wardrobe_items(self, user_id: str, active_only: bool = True) -> List[PersistedWardrobeItem]:
        raise NotImplementedError

    def insert_wardrobe_item(self, row: Mapping[str, Any]) -> PersistedWardrobeItem:
        raise NotImplementedError

    def list_outfits(self, user_id: str) -> List[PersistedOutfit]:
        raise NotImplementedError

    def insert_outfit(self, row: Mapping[str, Any]) -> PersistedOutfit:
        raise NotImplementedError

    def insert_outfit_items(self, links: Sequence[OutfitItemLink]) -> None:
        raise NotImplementedError

    def delete_outfit(self, outfit_id: str) -> None:
        raise NotImplementedError


def _new_id() -> str:
    return str(uuid.uuid4())


class SQLiteSyncStore(SyncStore):
    """Local SQLite-backed store mirroring the hosted schema."""

    def __init__(self, database_path: str | Path = "data/wardrobe.db") -> None:
        self.database_path = Path(database_path)
        if self.database_path.parent and not self.database_path.parent.exists():
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.database_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextlib.contextmanager
    def _session(self, operation: str) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            with conn:
                yield conn
        except (sqlite3.Error, OverflowError, ValueError) as exc:
            raise StoreError(str(exc), operation=operation) from exc
        finally:
            conn.close()

    def _ensure_tables(self) -> None:
        with self._session("create_tables") as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    email TEXT
                );
                CREATE TABLE IF NOT EXISTS categories (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    name TEXT NOT NULL,
                    is_anchor_item INTEGER NOT NULL DEFAULT 0,
                    display_order INTEGER NOT NULL DEFAULT 0,
                    UNIQUE (user_id, name)
                );
                CREATE TABLE IF NOT EXISTS wardrobe_items (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    category_id TEXT NOT NULL REFERENCES categories(id),
                    name TEXT NOT NULL,
                    brand TEXT,
                    color TEXT,
                    formality_score REAL,
                    capsule_tags TEXT,
                    season TEXT,
                    image_url TEXT,
                    active INTEGER NOT NULL DEFAULT 1,
                    external_id TEXT
                );
                CREATE TABLE IF NOT EXISTS outfits (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    name TEXT,
                    tuck_style TEXT,
                    weight REAL NOT NULL DEFAULT 1,
                    loved INTEGER NOT NULL DEFAULT 0,
                    source TEXT NOT NULL DEFAULT 'curated',
                    external_id TEXT
                );
                CREATE TABLE IF NOT EXISTS outfit_items (
                    outfit_id TEXT NOT NULL REFERENCES outfits(id) ON DELETE CASCADE,
                    item_id TEXT NOT NULL REFERENCES wardrobe_items(id),
                    category_id TEXT REFERENCES categories(id),
                    PRIMARY KEY (outfit_id, item_id)
                );
                """
            )

    @staticmethod
    def _serialise_list(values: Optional[List[object]]) -> Optional[str]:
        return json.dumps(values) if values is not None else None

    @staticmethod
    def _deserialise_list(raw: Optional[str]) -> Optional[List[Any]]:
        return json.loads(raw) if raw else None

    def add_user(self, email: str | None = None, user_id: str | None = None) -> UserRecord:
        """Register a local user; the hosted backend manages users itself."""

        user = UserRecord(id=user_id or _new_id(), email=email)
        with self._session("add_user") as conn:
            conn.execute("INSERT INTO users (id, email) VALUES (?, ?)", (user.id, user.email))
        return user

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self._session("get_user") as conn:
            row = conn.execute("SELECT id, email FROM users WHERE id = ?", (user_id,)).fetchone()
        return UserRecord(id=row["id"], email=row["email"]) if row else None

    def list_users(self) -> List[UserRecord]:
        with self._session("list_users") as conn:
            rows = conn.execute("SELECT id, email FROM users ORDER BY rowid").fetchall()
        return [UserRecord(id=row["id"], email=row["email"]) for row in rows]

    @staticmethod
    def _row_to_category(row: sqlite3.Row) -> Category:
        return Category(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            is_anchor_item=bool(row["is_anchor_item"]),
            display_order=row["display_order"],
        )

    def list_categories(self, user_id: str) -> List[Category]:
        with self._session("list_categories") as conn:
            rows = conn.execute(
                "SELECT * FROM categories WHERE user_id = ? ORDER BY display_order, name",
                (user_id,),
            ).fetchall()
        return [self._row_to_category(row) for row in rows]

    def insert_categories(self, user_id: str, categories: Sequence[Mapping[str, Any]]) -> List[Category]:
        created = [
            Category(
                id=_new_id(),
                user_id=user_id,
                name=str(category["name"]),
                is_anchor_item=bool(category.get("is_anchor_item", False)),
                display_order=int(category.get("display_order", 0)),
            )
            for category in categories
        ]
        with self._session("insert_categories") as conn:
            conn.executemany(
                """
                INSERT INTO categories (id, user_id, name, is_anchor_item, display_order)
                VALUES (?, ?, ?, ?, ?)
                """,
                [
                    (category.id, category.user_id, category.name, int(category.is_anchor_item), category.display_order)
                    for category in created
                ],
            )
        return created

    def _row_to_item(self, row: sqlite3.Row) -> PersistedWardrobeItem:
        return PersistedWardrobeItem(
            id=row["id"],
            user_id=row["user_id"],
            category_id=row["category_id"],
            name=row["name"],
            brand=row["brand"],
            color=row["color"],
            formality_score=row["formality_score"],
            capsule_tags=self._deserialise_list(row["capsule_tags"]),
            season=self._deserialise_list(row["season"]) or [],
            image_url=row["image_url"],
            active=bool(row["active"]),
            external_id=row["external_id"],
            category=row["category_name"],
        )

    _ITEM_SELECT = """
        SELECT wardrobe_items.*, categories.name AS category_name
        FROM wardrobe_items
        LEFT JOIN categories ON categories.id = wardrobe_items.category_id
    """

    def list_wardrobe_items(self, user_id: str, active_only: bool = True) -> List[PersistedWardrobeItem]:
        query = self._ITEM_SELECT + " WHERE wardrobe_items.user_id = ?"
        if active_only:
            query += " AND wardrobe_items.active = 1"
        with self._session("list_wardrobe_items") as conn:
            rows = conn.execute(query + " ORDER BY wardrobe_items.rowid", (user_id,)).fetchall()
        return [self._row_to_item(row) for row in rows]

    def insert_wardrobe_item(self, row: Mapping[str, Any]) -> PersistedWardrobeItem:
        item_id = _new_id()
        with self._session("insert_wardrobe_item") as conn:
            conn.execute(
                """
                INSERT INTO wardrobe_items (
                    id, user_id, category_id, name, brand, color, formality_score,
                    capsule_tags, season, image_url, active, external_id
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item_id,
                    row["user_id"],
                    row["category_id"],
                    row["name"],
                    row.get("brand"),
                    row.get("color"),
                    row.get("formality_score"),
                    self._serialise_list(row.get("capsule_tags")),
                    self._serialise_list(row.get("season") or []),
                    row.get("image_url"),
                    int(row.get("active", True)),
                    row.get("external_id"),
                ),
            )
            stored = conn.execute(self._ITEM_SELECT + " WHERE wardrobe_items.id = ?", (item_id,)).fetchone()
        return self._row_to_item(stored)

    @staticmethod
    def _row_to_outfit(row: sqlite3.Row, items: List[str]) -> PersistedOutfit:
        return PersistedOutfit(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            tuck_style=row["tuck_style"],
            weight=row["weight"],
            loved=bool(row["loved"]),
            source=row["source"],
            external_id=row["external_id"],
            items=items,
        )

    def list_outfits(self, user_id: str) -> List[PersistedOutfit]:
        with self._session("list_outfits") as conn:
            rows = conn.execute("SELECT * FROM outfits WHERE user_id = ? ORDER BY rowid", (user_id,)).fetchall()
            links = conn.execute(
                """
                SELECT outfit_items.outfit_id, outfit_items.item_id
                FROM outfit_items
                JOIN outfits ON outfits.id = outfit_items.outfit_id
                WHERE outfits.user_id = ?
                ORDER BY outfit_items.rowid
                """,
                (user_id,),
            ).fetchall()
        items_by_outfit: Dict[str, List[str]] = {}
        for link in links:
            items_by_outfit.setdefault(link["outfit_id"], []).append(link["item_id"])
        return [self._row_to_outfit(row, items_by_outfit.get(row["id"], [])) for row in rows]

    def insert_outfit(self, row: Mapping[str, Any]) -> PersistedOutfit:
        outfit = PersistedOutfit(
            id=_new_id(),
            user_id=row["user_id"],
            name=row.get("name"),
            tuck_style=row.get("tuck_style"),
            weight=row.get("weight", 1),
            loved=bool(row.get("loved", False)),
            source=row.get("source") or OUTFIT_SOURCE_CURATED,
            external_id=row.get("external_id"),
        )
        with self._session("insert_outfit") as conn:
            conn.execute(
                """
                INSERT INTO outfits (id, user_id, name, tuck_style, weight, loved, source, external_id)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    outfit.id,
                    outfit.user_id,
                    outfit.name,
                    outfit.tuck_style,
                    outfit.weight,
                    int(outfit.loved),
                    outfit.source,
                    outfit.external_id,
                ),
            )
        return outfit

    def insert_outfit_items(self, links: Sequence[OutfitItemLink]) -> None:
        with self._session("insert_outfit_items") as conn:
            conn.executemany(
                "INSERT INTO outfit_items (outfit_id, item_id, category_id) VALUES (?, ?, ?)",
                [(link.outfit_id, link.item_id, link.category_id) for link in links],
            )

    def delete_outfit(self, outfit_id: str) -> None:
        with self._session("delete_outfit") as conn:
            conn.execute("DELETE FROM outfits WHERE id = ?", (outfit_id,))


__all__ = ["StoreError", "SyncStore", "SQLiteSyncStore"]
