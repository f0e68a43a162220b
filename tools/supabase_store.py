"""Supabase-backed implementation of the sync store."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, TypeVar

from supabase import Client, create_client
from supabase.client import ClientOptions

from models.records import Category, OutfitItemLink, PersistedOutfit, PersistedWardrobeItem, UserRecord
from models.taxonomy import OUTFIT_SOURCE_CURATED
from sync_app.config import SyncConfig
from sync_app.errors import ConfigurationError
from tools.sync_store import StoreError, SyncStore

USERS_PAGE_SIZE = 1000

T = TypeVar("T")


class SupabaseSyncStore(SyncStore):
    """Reads and writes wardrobe rows through a service-role Supabase client.

    Every backend exception (PostgREST, auth or transport) is re-raised as
    :class:`StoreError` so callers only deal with one failure type.
    """

    def __init__(self, client: Client) -> None:
        self.client = client

    @classmethod
    def from_config(cls, config: SyncConfig) -> "SupabaseSyncStore":
        required = (("SUPABASE_URL", config.supabase_url), ("SUPABASE_SERVICE_ROLE_KEY", config.service_role_key))
        missing = [name for name, value in required if not value]
        if missing:
            raise ConfigurationError("Missing required environment variables", {"missing_vars": missing})
        try:
            client = create_client(
                config.supabase_url,
                config.service_role_key,
                options=ClientOptions(auto_refresh_token=False, persist_session=False),
            )
        except Exception as e:
            raise ConfigurationError(f"Failed to create Supabase client: {e}") from e
        return cls(client)

    @staticmethod
    def _fail(operation: str, exc: Exception) -> StoreError:
        message = getattr(exc, "message", None) or str(exc)
        return StoreError(str(message), operation=operation)

    @staticmethod
    def _map_rows(operation: str, rows: Any, mapper: Callable[[Mapping[str, Any]], T]) -> List[T]:
        try:
            return [mapper(row) for row in rows or []]
        except (AttributeError, KeyError, TypeError) as e:
            raise StoreError(f"Malformed {operation} row: {e}", operation=operation) from e

    @staticmethod
    def _to_user(user: Any) -> UserRecord:
        return UserRecord(id=str(user.id), email=getattr(user, "email", None))

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        try:
            response = self.client.auth.admin.get_user_by_id(user_id)
        except Exception as e:
            raise self._fail("get_user", e) from e
        user = getattr(response, "user", None)
        return self._to_user(user) if user else None

    def list_users(self) -> List[UserRecord]:
        users: List[UserRecord] = []
        page = 1
        while True:
            try:
                batch = self.client.auth.admin.list_users(page=page, per_page=USERS_PAGE_SIZE)
            except Exception as e:
                raise self._fail("list_users", e) from e
            users.extend(self._to_user(user) for user in batch)
            if len(batch) < USERS_PAGE_SIZE:
                return users
            page += 1

    @staticmethod
    def _to_category(row: Mapping[str, Any]) -> Category:
        return Category(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            is_anchor_item=bool(row.get("is_anchor_item", False)),
            display_order=row.get("display_order") or 0,
        )

    def list_categories(self, user_id: str) -> List[Category]:
        try:
            result = (
                self.client.table("categories")
                .select("*")
                .eq("user_id", user_id)
                .order("display_order")
                .execute()
            )
        except Exception as e:
            raise self._fail("list_categories", e) from e
        return self._map_rows("list_categories", result.data, self._to_category)

    def insert_categories(self, user_id: str, categories: Sequence[Mapping[str, Any]]) -> List[Category]:
        rows = [
            {
                "user_id": user_id,
                "name": category["name"],
                "is_anchor_item": bool(category.get("is_anchor_item", False)),
                "display_order": int(category.get("display_order", 0)),
            }
            for category in categories
        ]
        try:
            result = self.client.table("categories").insert(rows).execute()
        except Exception as e:
            raise self._fail("insert_categories", e) from e
        return self._map_rows("insert_categories", result.data, self._to_category)

    @staticmethod
    def _to_item(row: Mapping[str, Any]) -> PersistedWardrobeItem:
        category = row.get("categories") or {}
        return PersistedWardrobeItem(
            id=row["id"],
            user_id=row["user_id"],
            category_id=row["category_id"],
            name=row["name"],
            brand=row.get("brand"),
            color=row.get("color"),
            formality_score=row.get("formality_score"),
            capsule_tags=row.get("capsule_tags"),
            season=row.get("season") or [],
            image_url=row.get("image_url"),
            active=row.get("active", True),
            external_id=row.get("external_id"),
            category=category.get("name") if isinstance(category, Mapping) else None,
        )

    def list_wardrobe_items(self, user_id: str, active_only: bool = True) -> List[PersistedWardrobeItem]:
        try:
            query = self.client.table("wardrobe_items").select("*, categories(name)").eq("user_id", user_id)
            if active_only:
                query = query.eq("active", True)
            result = query.execute()
        except Exception as e:
            raise self._fail("list_wardrobe_items", e) from e
        return self._map_rows("list_wardrobe_items", result.data, self._to_item)

    def insert_wardrobe_item(self, row: Mapping[str, Any]) -> PersistedWardrobeItem:
        try:
            result = self.client.table("wardrobe_items").insert(dict(row)).execute()
            inserted = (result.data or [None])[0]
            if inserted is None:
                raise StoreError("insert_wardrobe_item returned no row", operation="insert_wardrobe_item")
            stored = (
                self.client.table("wardrobe_items")
                .select("*, categories(name)")
                .eq("id", inserted["id"])
                .execute()
            )
        except StoreError:
            raise
        except Exception as e:
            raise self._fail("insert_wardrobe_item", e) from e
        return self._map_rows("insert_wardrobe_item", (stored.data or [inserted])[:1], self._to_item)[0]

    @staticmethod
    def _to_outfit(row: Mapping[str, Any]) -> PersistedOutfit:
        links = row.get("outfit_items") or []
        return PersistedOutfit(
            id=row["id"],
            user_id=row["user_id"],
            name=row.get("name"),
            tuck_style=row.get("tuck_style"),
            weight=row.get("weight", 1),
            loved=bool(row.get("loved", False)),
            source=row.get("source") or OUTFIT_SOURCE_CURATED,
            external_id=row.get("external_id"),
            items=[link["item_id"] for link in links if isinstance(link, Mapping) and link.get("item_id")],
        )

    def list_outfits(self, user_id: str) -> List[PersistedOutfit]:
        try:
            result = (
                self.client.table("outfits")
                .select("*, outfit_items(item_id)")
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            raise self._fail("list_outfits", e) from e
        return self._map_rows("list_outfits", result.data, self._to_outfit)

    def insert_outfit(self, row: Mapping[str, Any]) -> PersistedOutfit:
        try:
            result = self.client.table("outfits").insert(dict(row)).execute()
        except Exception as e:
            raise self._fail("insert_outfit", e) from e
        if not result.data:
            raise StoreError("insert_outfit returned no row", operation="insert_outfit")
        return self._map_rows("insert_outfit", result.data[:1], self._to_outfit)[0]

    def insert_outfit_items(self, links: Sequence[OutfitItemLink]) -> None:
        rows: List[Dict[str, Any]] = [
            {"outfit_id": link.outfit_id, "item_id": link.item_id, "category_id": link.category_id}
            for link in links
        ]
        if not rows:
            return
        try:
            self.client.table("outfit_items").insert(rows).execute()
        except Exception as e:
            raise self._fail("insert_outfit_items", e) from e

    def delete_outfit(self, outfit_id: str) -> None:
        try:
            self.client.table("outfits").delete().eq("id", outfit_id).execute()
        except Exception as e:
            raise self._fail("delete_outfit", e) from e


__all__ = ["SupabaseSyncStore"]
