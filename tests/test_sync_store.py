"""SQLite sync store tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from models.records import OutfitItemLink
from tools.sync_store import SQLiteSyncStore, StoreError


@pytest.fixture()
def store(tmp_path: Path) -> SQLiteSyncStore:
    return SQLiteSyncStore(tmp_path / "nested" / "wardrobe.db")


@pytest.fixture()
def seeded(store: SQLiteSyncStore) -> dict:
    user = store.add_user("owner@example.com")
    pants, shirt = store.insert_categories(
        user.id,
        [
            {"name": "Pants", "is_anchor_item": True, "display_order": 5},
            {"name": "Shirt", "is_anchor_item": True, "display_order": 3},
        ],
    )
    return {"user": user, "shirt": shirt, "pants": pants}


def _item_row(user_id: str, category_id: str, name: str, **extra: object) -> dict:
    return {"user_id": user_id, "category_id": category_id, "name": name, **extra}


def test_store_creates_parent_directory_and_users(store: SQLiteSyncStore) -> None:
    assert store.database_path.parent.exists()
    first = store.add_user("a@example.com")
    second = store.add_user("b@example.com")

    assert store.list_users() == [first, second]
    assert store.get_user(first.id) == first
    assert store.get_user("unknown") is None


def test_categories_are_ordered_by_display_order(store: SQLiteSyncStore, seeded: dict) -> None:
    categories = store.list_categories(seeded["user"].id)
    assert [category.name for category in categories] == ["Shirt", "Pants"]
    assert all(category.is_anchor_item for category in categories)


def test_wardrobe_item_round_trip_includes_category_name(store: SQLiteSyncStore, seeded: dict) -> None:
    user_id = seeded["user"].id
    stored = store.insert_wardrobe_item(
        _item_row(
            user_id,
            seeded["pants"].id,
            "Khaki Chinos",
            color="khaki",
            capsule_tags=["Refined"],
            season=["Fall"],
            formality_score=5,
            external_id="item-2",
        )
    )

    assert stored.id
    assert stored.category == "Pants"
    assert stored.capsule_tags == ["Refined"]
    assert stored.season == ["Fall"]
    assert stored.active is True
    assert store.list_wardrobe_items(user_id) == [stored]


def test_inactive_items_are_hidden_by_default(store: SQLiteSyncStore, seeded: dict) -> None:
    user_id = seeded["user"].id
    store.insert_wardrobe_item(_item_row(user_id, seeded["shirt"].id, "Old Shirt", active=False))

    assert store.list_wardrobe_items(user_id) == []
    assert len(store.list_wardrobe_items(user_id, active_only=False)) == 1


def test_items_are_scoped_by_user(store: SQLiteSyncStore, seeded: dict) -> None:
    other = store.add_user("other@example.com")
    other_category = store.insert_categories(other.id, [{"name": "Shirt", "display_order": 3}])[0]
    store.insert_wardrobe_item(_item_row(seeded["user"].id, seeded["shirt"].id, "Blue Shirt"))
    store.insert_wardrobe_item(_item_row(other.id, other_category.id, "Blue Shirt"))

    assert len(store.list_wardrobe_items(seeded["user"].id)) == 1
    assert len(store.list_wardrobe_items(other.id)) == 1


def test_outfit_links_and_cascading_delete(store: SQLiteSyncStore, seeded: dict) -> None:
    user_id = seeded["user"].id
    shirt = store.insert_wardrobe_item(_item_row(user_id, seeded["shirt"].id, "Blue Shirt"))
    outfit = store.insert_outfit({"user_id": user_id, "name": "Outfit 1", "tuck_style": "Tucked", "external_id": "o-1"})
    store.insert_outfit_items([OutfitItemLink(outfit.id, shirt.id, shirt.category_id)])

    listed = store.list_outfits(user_id)
    assert len(listed) == 1
    assert listed[0].items == [shirt.id]
    assert listed[0].source == "curated"
    assert listed[0].weight == 1
    assert listed[0].loved is False

    store.delete_outfit(outfit.id)
    assert store.list_outfits(user_id) == []


def test_link_to_unknown_item_raises_store_error(store: SQLiteSyncStore, seeded: dict) -> None:
    user_id = seeded["user"].id
    outfit = store.insert_outfit({"user_id": user_id, "external_id": "o-1"})

    with pytest.raises(StoreError) as excinfo:
        store.insert_outfit_items([OutfitItemLink(outfit.id, "no-such-item")])
    assert excinfo.value.operation == "insert_outfit_items"


def test_link_batch_is_atomic(store: SQLiteSyncStore, seeded: dict) -> None:
    user_id = seeded["user"].id
    shirt = store.insert_wardrobe_item(_item_row(user_id, seeded["shirt"].id, "Blue Shirt"))
    outfit = store.insert_outfit({"user_id": user_id})

    with pytest.raises(StoreError):
        store.insert_outfit_items([OutfitItemLink(outfit.id, shirt.id), OutfitItemLink(outfit.id, "missing")])
    assert store.list_outfits(user_id)[0].items == []


def test_duplicate_category_name_is_rejected(store: SQLiteSyncStore, seeded: dict) -> None:
    with pytest.raises(StoreError):
        store.insert_categories(seeded["user"].id, [{"name": "Shirt"}])


def test_unbindable_value_raises_store_error(store: SQLiteSyncStore, seeded: dict) -> None:
    with pytest.raises(StoreError) as excinfo:
        store.insert_outfit({"user_id": seeded["user"].id, "weight": 10**20})
    assert excinfo.value.operation == "insert_outfit"
    assert store.list_outfits(seeded["user"].id) == []
