"""Supabase store tests against an in-memory stand-in client."""

from __future__ import annotations

from collections import defaultdict
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest

from models.records import OutfitItemLink, UserRecord
from sync_app.config import SyncConfig
from sync_app.errors import ConfigurationError
from tools import supabase_store
from tools.supabase_store import SupabaseSyncStore
from tools.sync_store import StoreError


class APIError(Exception):
    """Mimics the PostgREST error shape, which carries ``message``."""

    def __init__(self, message: str) -> None:
        super().__init__({"message": message, "code": "23505"})
        self.message = message


class FakeQuery:
    def __init__(self, client: "FakeClient", table: str) -> None:
        self.client = client
        self.table = table
        self.action = "select"
        self.columns: str | None = None
        self.payload: Any = None
        self.filters: List[tuple] = []
        self.ordering: str | None = None

    def select(self, columns: str = "*") -> "FakeQuery":
        self.columns = columns
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self.action = "insert"
        self.payload = payload
        return self

    def delete(self) -> "FakeQuery":
        self.action = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append((column, value))
        return self

    def order(self, column: str) -> "FakeQuery":
        self.ordering = column
        return self

    def execute(self) -> SimpleNamespace:
        self.client.executed.append(self)
        outcome = self.client.responses[self.table].pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(data=outcome)


class FakeAdmin:
    def __init__(self) -> None:
        self.pages: List[Any] = []
        self.users: Dict[str, Any] = {}
        self.page_calls: List[tuple] = []

    def list_users(self, page: int, per_page: int) -> List[Any]:
        self.page_calls.append((page, per_page))
        outcome = self.pages[page - 1]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def get_user_by_id(self, user_id: str) -> SimpleNamespace:
        if user_id not in self.users:
            raise APIError("User not found")
        return SimpleNamespace(user=self.users[user_id])


class FakeClient:
    def __init__(self) -> None:
        self.responses: Dict[str, List[Any]] = defaultdict(list)
        self.executed: List[FakeQuery] = []
        self.auth = SimpleNamespace(admin=FakeAdmin())

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


def _auth_user(user_id: str, email: str) -> SimpleNamespace:
    return SimpleNamespace(id=user_id, email=email)


def _item_row(**overrides: Any) -> Dict[str, Any]:
    row = {
        "id": "w-1",
        "user_id": "u-1",
        "category_id": "c-1",
        "name": "Blue Shirt",
        "color": "blue",
        "capsule_tags": ["Refined"],
        "season": ["Fall"],
        "image_url": "/images/wardrobe/blue-shirt.png",
        "active": True,
        "external_id": "item-1",
        "categories": {"name": "Shirt"},
    }
    row.update(overrides)
    return row


@pytest.fixture()
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture()
def store(client: FakeClient) -> SupabaseSyncStore:
    return SupabaseSyncStore(client)


def test_list_users_walks_every_page(
    client: FakeClient, store: SupabaseSyncStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(supabase_store, "USERS_PAGE_SIZE", 2)
    client.auth.admin.pages = [
        [_auth_user("u-1", "a@example.com"), _auth_user("u-2", "b@example.com")],
        [_auth_user("u-3", None)],
    ]

    users = store.list_users()

    assert [user.id for user in users] == ["u-1", "u-2", "u-3"]
    assert users[2] == UserRecord(id="u-3", email=None)
    assert client.auth.admin.page_calls == [(1, 2), (2, 2)]


def test_list_users_failure_is_store_error(client: FakeClient, store: SupabaseSyncStore) -> None:
    client.auth.admin.pages = [APIError("JWT expired")]

    with pytest.raises(StoreError) as excinfo:
        store.list_users()
    assert excinfo.value.operation == "list_users"
    assert str(excinfo.value) == "JWT expired"


def test_get_user(client: FakeClient, store: SupabaseSyncStore) -> None:
    client.auth.admin.users["u-1"] = _auth_user("u-1", "a@example.com")
    client.auth.admin.users["ghost"] = None

    assert store.get_user("u-1") == UserRecord(id="u-1", email="a@example.com")
    assert store.get_user("ghost") is None
    with pytest.raises(StoreError) as excinfo:
        store.get_user("missing")
    assert excinfo.value.operation == "get_user"


def test_list_categories_orders_by_display_order(client: FakeClient, store: SupabaseSyncStore) -> None:
    client.responses["categories"].append(
        [{"id": "c-1", "user_id": "u-1", "name": "Jacket", "is_anchor_item": True, "display_order": None}]
    )

    categories = store.list_categories("u-1")

    assert categories[0].name == "Jacket"
    assert categories[0].is_anchor_item is True
    assert categories[0].display_order == 0
    query = client.executed[0]
    assert query.filters == [("user_id", "u-1")]
    assert query.ordering == "display_order"


def test_insert_categories_builds_rows(client: FakeClient, store: SupabaseSyncStore) -> None:
    client.responses["categories"].append(
        [{"id": "c-9", "user_id": "u-1", "name": "Belt", "is_anchor_item": False, "display_order": 7}]
    )

    created = store.insert_categories("u-1", [{"name": "Belt", "display_order": "7"}])

    assert [category.id for category in created] == ["c-9"]
    assert client.executed[0].payload == [
        {"user_id": "u-1", "name": "Belt", "is_anchor_item": False, "display_order": 7}
    ]


def test_list_wardrobe_items_maps_category_join(client: FakeClient, store: SupabaseSyncStore) -> None:
    client.responses["wardrobe_items"].append([_item_row(), _item_row(id="w-2", categories=None, season=None)])

    items = store.list_wardrobe_items("u-1")

    assert [item.category for item in items] == ["Shirt", None]
    assert items[0].capsule_tags == ["Refined"]
    assert items[1].season == []
    query = client.executed[0]
    assert query.columns == "*, categories(name)"
    assert query.filters == [("user_id", "u-1"), ("active", True)]


def test_list_wardrobe_items_can_include_inactive(client: FakeClient, store: SupabaseSyncStore) -> None:
    client.responses["wardrobe_items"].append([])

    assert store.list_wardrobe_items("u-1", active_only=False) == []
    assert client.executed[0].filters == [("user_id", "u-1")]


def test_insert_wardrobe_item_reads_back_with_category(client: FakeClient, store: SupabaseSyncStore) -> None:
    inserted = _item_row()
    del inserted["categories"]
    client.responses["wardrobe_items"].extend([[inserted], [_item_row()]])

    stored = store.insert_wardrobe_item({"user_id": "u-1", "category_id": "c-1", "name": "Blue Shirt"})

    assert stored.id == "w-1"
    assert stored.category == "Shirt"
    assert client.executed[1].filters == [("id", "w-1")]


def test_insert_wardrobe_item_without_returned_row(client: FakeClient, store: SupabaseSyncStore) -> None:
    client.responses["wardrobe_items"].append([])

    with pytest.raises(StoreError) as excinfo:
        store.insert_wardrobe_item({"user_id": "u-1", "category_id": "c-1", "name": "Blue Shirt"})
    assert excinfo.value.operation == "insert_wardrobe_item"
    assert "no row" in str(excinfo.value)


def test_list_outfits_maps_links_to_item_ids(client: FakeClient, store: SupabaseSyncStore) -> None:
    client.responses["outfits"].append(
        [
            {
                "id": "of-1",
                "user_id": "u-1",
                "name": "Outfit 1",
                "tuck_style": "Tucked",
                "loved": None,
                "external_id": "o-1",
                "outfit_items": [{"item_id": "w-1"}, {"item_id": None}, "junk", {"item_id": "w-2"}],
            }
        ]
    )

    outfits = store.list_outfits("u-1")

    assert outfits[0].items == ["w-1", "w-2"]
    assert outfits[0].weight == 1
    assert outfits[0].loved is False
    assert outfits[0].source == "curated"
    assert client.executed[0].columns == "*, outfit_items(item_id)"


def test_malformed_rows_are_store_errors(client: FakeClient, store: SupabaseSyncStore) -> None:
    client.responses["outfits"].append([{"name": "No id"}])
    client.responses["wardrobe_items"].append([None])

    with pytest.raises(StoreError) as outfit_error:
        store.list_outfits("u-1")
    with pytest.raises(StoreError) as item_error:
        store.list_wardrobe_items("u-1")
    assert outfit_error.value.operation == "list_outfits"
    assert item_error.value.operation == "list_wardrobe_items"


def test_insert_outfit_and_links(client: FakeClient, store: SupabaseSyncStore) -> None:
    client.responses["outfits"].append([{"id": "of-1", "user_id": "u-1", "external_id": "o-1"}])
    client.responses["outfit_items"].append([])

    outfit = store.insert_outfit({"user_id": "u-1", "external_id": "o-1"})
    store.insert_outfit_items([OutfitItemLink(outfit.id, "w-1", "c-1")])
    store.insert_outfit_items([])

    assert outfit.id == "of-1"
    assert [query.table for query in client.executed] == ["outfits", "outfit_items"]
    assert client.executed[1].payload == [{"outfit_id": "of-1", "item_id": "w-1", "category_id": "c-1"}]


def test_insert_outfit_without_returned_row(client: FakeClient, store: SupabaseSyncStore) -> None:
    client.responses["outfits"].append([])

    with pytest.raises(StoreError) as excinfo:
        store.insert_outfit({"user_id": "u-1"})
    assert excinfo.value.operation == "insert_outfit"


@pytest.mark.parametrize(
    "operation, table, call",
    [
        ("list_categories", "categories", lambda store: store.list_categories("u-1")),
        ("insert_categories", "categories", lambda store: store.insert_categories("u-1", [{"name": "Belt"}])),
        ("list_wardrobe_items", "wardrobe_items", lambda store: store.list_wardrobe_items("u-1")),
        ("insert_wardrobe_item", "wardrobe_items", lambda store: store.insert_wardrobe_item({"name": "x"})),
        ("list_outfits", "outfits", lambda store: store.list_outfits("u-1")),
        ("insert_outfit", "outfits", lambda store: store.insert_outfit({"user_id": "u-1"})),
        (
            "insert_outfit_items",
            "outfit_items",
            lambda store: store.insert_outfit_items([OutfitItemLink("of-1", "w-1")]),
        ),
        ("delete_outfit", "outfits", lambda store: store.delete_outfit("of-1")),
    ],
)
def test_backend_errors_are_wrapped(
    client: FakeClient, store: SupabaseSyncStore, operation: str, table: str, call: Any
) -> None:
    client.responses[table].append(APIError("duplicate key value violates unique constraint"))

    with pytest.raises(StoreError) as excinfo:
        call(store)
    assert excinfo.value.operation == operation
    assert str(excinfo.value) == "duplicate key value violates unique constraint"
    assert isinstance(excinfo.value.__cause__, APIError)


def test_delete_outfit_filters_by_id(client: FakeClient, store: SupabaseSyncStore) -> None:
    client.responses["outfits"].append([])

    store.delete_outfit("of-1")

    assert client.executed[0].action == "delete"
    assert client.executed[0].filters == [("id", "of-1")]


def test_from_config_requires_credentials() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        SupabaseSyncStore.from_config(SyncConfig(store_backend="supabase"))
    assert excinfo.value.details == {"missing_vars": ["SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY"]}


def test_from_config_builds_service_role_client(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: Dict[str, Any] = {}

    def fake_create_client(url: str, key: str, options: Any = None) -> FakeClient:
        captured.update(url=url, key=key, options=options)
        return FakeClient()

    monkeypatch.setattr(supabase_store, "create_client", fake_create_client)
    config = SyncConfig(
        store_backend="supabase", supabase_url="https://project.supabase.co", service_role_key="service-key"
    )

    store = SupabaseSyncStore.from_config(config)

    assert isinstance(store.client, FakeClient)
    assert captured["url"] == "https://project.supabase.co"
    assert captured["key"] == "service-key"
    assert captured["options"].persist_session is False
    assert captured["options"].auto_refresh_token is False


def test_from_config_wraps_client_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_create_client(url: str, key: str, options: Any = None) -> None:
        raise ValueError("Invalid URL")

    monkeypatch.setattr(supabase_store, "create_client", broken_create_client)
    config = SyncConfig(store_backend="supabase", supabase_url="not-a-url", service_role_key="service-key")

    with pytest.raises(ConfigurationError):
        SupabaseSyncStore.from_config(config)
