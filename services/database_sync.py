"""Per-user persistence of seeded wardrobe items and outfits."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Sequence

from logic.image_paths import canonical_image_url
from logic.validation import DataValidator, resolve_item_reference
from models.records import Category, OutfitItemLink, PersistedOutfit, PersistedWardrobeItem, UserRecord
from models.results import OutcomeStatus, RecordOutcome, SyncResult
from models.taxonomy import DEFAULT_CATEGORIES, OUTFIT_SOURCE_CURATED
from models.wardrobe_input import OutfitInput, WardrobeItemInput
from sync_app.errors import ConfigurationError, DatabaseError
from sync_app.secure_logger import SecureLogger
from tools.observability import instrument_operation
from tools.sync_store import StoreError, SyncStore


def _as_item(item: Any) -> WardrobeItemInput:
    return item if isinstance(item, WardrobeItemInput) else WardrobeItemInput.from_raw(item)


def _as_outfit(outfit: Any) -> OutfitInput:
    return outfit if isinstance(outfit, OutfitInput) else OutfitInput.from_raw(outfit)


def _row_value(row: Any, key: str) -> Any:
    return row.get(key) if isinstance(row, Mapping) else getattr(row, key, None)


def default_outfit_name(outfit_id: Any) -> str:
    """``o-12`` becomes ``Outfit 12``."""

    text = str(outfit_id)
    return f"Outfit {text[2:] if text.startswith('o-') else text}"


class DatabaseSync:
    """Writes one user's categories, wardrobe items and outfits through a :class:`SyncStore`.

    Operation-level store failures raise :class:`DatabaseError`. Failures tied
    to a single record never raise: they become entries in the returned
    :class:`SyncResult` so the rest of the batch still runs.
    """

    def __init__(
        self,
        store: SyncStore,
        validator: DataValidator | None = None,
        logger: SecureLogger | None = None,
    ) -> None:
        self.store = store
        self.logger = logger or SecureLogger("services.database_sync")
        self.validator = validator or DataValidator(self.logger)

    # Users

    def _list_users(self) -> List[UserRecord]:
        try:
            return self.store.list_users()
        except StoreError as exc:
            raise DatabaseError("Failed to list users", {"reason": str(exc)}) from exc

    @instrument_operation("get_target_users")
    def get_target_users(
        self,
        all_users: bool = False,
        admin_user_id: Optional[str] = None,
        admin_user_email: Optional[str] = None,
    ) -> List[UserRecord]:
        """Resolve the users a run writes to.

        With ``all_users`` every known user is returned. Otherwise the admin is
        looked up by id first, then by email across the full user list.
        """

        if all_users:
            users = self._list_users()
            self.logger.info("Found %d users to sync", len(users), event="target_users_resolved", count=len(users))
            return users

        if not admin_user_id and not admin_user_email:
            raise ConfigurationError(
                "ADMIN_USER_ID or ADMIN_USER_EMAIL is required when syncing the admin user only",
                {"missing_vars": ["ADMIN_USER_ID", "ADMIN_USER_EMAIL"]},
            )

        lookup_error: StoreError | None = None
        if admin_user_id:
            try:
                user = self.store.get_user(admin_user_id)
            except StoreError as exc:
                lookup_error = exc
                user = None
                self.logger.warning(
                    "Admin lookup by id failed, falling back to email: %s", exc, event="admin_lookup_by_id_failed"
                )
            if user is not None:
                self.logger.info("Resolved admin user by id", event="admin_user_resolved", lookup="id")
                return [user]

        if admin_user_email:
            target = admin_user_email.strip().casefold()
            for user in self._list_users():
                if isinstance(user.email, str) and user.email.casefold() == target:
                    self.logger.info("Resolved admin user by email", event="admin_user_resolved", lookup="email")
                    return [user]
        elif lookup_error is not None:
            raise DatabaseError("Failed to look up admin user", {"reason": str(lookup_error)}) from lookup_error

        raise ConfigurationError(
            "Admin user not found",
            {"admin_user_id_set": bool(admin_user_id), "admin_user_email_set": bool(admin_user_email)},
        )

    # Categories

    @instrument_operation("get_categories_for_user")
    def get_categories_for_user(self, user_id: str) -> List[Category]:
        try:
            categories = self.store.list_categories(user_id)
            present = {category.name.casefold() for category in categories}
            missing = [
                dict(category) for category in DEFAULT_CATEGORIES if str(category["name"]).casefold() not in present
            ]
            if missing:
                self.logger.info(
                    "Creating %d default categories", len(missing), event="default_categories_created", count=len(missing)
                )
                self.store.insert_categories(user_id, missing)
                categories = self.store.list_categories(user_id)
        except StoreError as exc:
            raise DatabaseError("Failed to load categories", {"reason": str(exc)}) from exc
        return sorted(categories, key=lambda category: category.display_order)

    @staticmethod
    def map_category_name_to_id(name: Any, categories: Sequence[Category]) -> Optional[str]:
        if not isinstance(name, str) or not name:
            return None
        folded = name.casefold()
        for category in categories:
            if category.name.casefold() == folded:
                return category.id
        return None

    # Reads

    @instrument_operation("get_existing_wardrobe_items")
    def get_existing_wardrobe_items(self, user_id: str) -> List[PersistedWardrobeItem]:
        try:
            return self.store.list_wardrobe_items(user_id, active_only=True)
        except StoreError as exc:
            raise DatabaseError("Failed to load existing wardrobe items", {"reason": str(exc)}) from exc

    @instrument_operation("get_existing_outfits")
    def get_existing_outfits(self, user_id: str) -> List[PersistedOutfit]:
        try:
            return self.store.list_outfits(user_id)
        except StoreError as exc:
            raise DatabaseError("Failed to load existing outfits", {"reason": str(exc)}) from exc

    # Wardrobe items

    def build_wardrobe_row(
        self, user_id: str, item: WardrobeItemInput, category_id: str, validator: DataValidator | None = None
    ) -> Dict[str, Any]:
        validator = validator or self.validator
        return {
            "user_id": user_id,
            "category_id": category_id,
            "name": item.name,
            "brand": item.brand,
            "color": validator.extract_color(item.name),
            "formality_score": item.formality_score,
            "capsule_tags": item.capsule_tags,
            "season": validator.map_season(item.capsule_tags or []),
            "image_url": canonical_image_url(item.image),
            "active": True,
            "external_id": item.id,
        }

    @instrument_operation("insert_wardrobe_items")
    def insert_wardrobe_items(
        self,
        user_id: str,
        items: Sequence[Any],
        categories: Sequence[Category],
        validator: DataValidator | None = None,
    ) -> SyncResult:
        validator = validator or self.validator
        result = SyncResult(kind="wardrobe_items", total=len(items))
        existing = list(self.get_existing_wardrobe_items(user_id))

        for raw in items:
            item = _as_item(raw)
            validation = validator.validate_wardrobe_item(item)
            if not validation.is_valid:
                outcome = result.add(RecordOutcome.errored(item, f"Validation failed: {'; '.join(validation.errors)}"))
                self.logger.warning("Skipping invalid item %s: %s", item.id, outcome.reason, event="item_invalid")
                continue

            category_id = self.map_category_name_to_id(item.category, categories)
            if category_id is None:
                result.add(RecordOutcome.errored(item, f"Category not found: {item.category}"))
                self.logger.warning("No category %s for item %s", item.category, item.id, event="item_category_missing")
                continue

            duplicates = validator.check_duplicates([item], existing)
            if duplicates.duplicates:
                match = duplicates.duplicates[0].existing_matches[0]
                result.add(RecordOutcome.skipped(item, "Item already exists", row=match))
                self.logger.debug("Item %s already exists", item.id, event="item_skipped_duplicate")
                continue

            row = self.build_wardrobe_row(user_id, item, category_id, validator)
            try:
                stored = self.store.insert_wardrobe_item(row)
            except StoreError as exc:
                result.add(RecordOutcome.errored(item, f"Failed to insert item: {exc}"))
                self.logger.error("Failed to insert item %s: %s", item.id, exc, event="item_insert_failed")
                continue

            if stored.category is None:
                stored = replace(stored, category=item.category)
            existing.append(stored)
            result.add(RecordOutcome.inserted(item, stored))

        self.logger.success(
            "Wardrobe items: %d inserted, %d skipped, %d errors",
            result.inserted_count,
            result.skipped_count,
            result.error_count,
            event="wardrobe_items_synced",
            **result.summary(),
        )
        return result

    # Outfits

    def build_outfit_row(self, user_id: str, outfit: OutfitInput) -> Dict[str, Any]:
        return {
            "user_id": user_id,
            "name": outfit.name if isinstance(outfit.name, str) and outfit.name else default_outfit_name(outfit.id),
            "tuck_style": outfit.tuck,
            "weight": 1 if outfit.weight is None else outfit.weight,
            "loved": False if outfit.loved is None else outfit.loved,
            "source": OUTFIT_SOURCE_CURATED,
            "external_id": outfit.id,
        }

    def _insert_outfit_with_items(
        self, user_id: str, outfit: OutfitInput, items: Sequence[Any]
    ) -> RecordOutcome:
        """Write the outfit row, then its links; delete the row again when the links fail."""

        try:
            stored = self.store.insert_outfit(self.build_outfit_row(user_id, outfit))
        except StoreError as exc:
            self.logger.error("Failed to insert outfit %s: %s", outfit.id, exc, event="outfit_insert_failed")
            return RecordOutcome.errored(outfit, f"Failed to insert outfit: {exc}")

        links = [
            OutfitItemLink(
                outfit_id=stored.id,
                item_id=_row_value(item, "id"),
                category_id=_row_value(item, "category_id"),
            )
            for item in items
        ]
        try:
            self.store.insert_outfit_items(links)
        except StoreError as exc:
            reason = f"Failed to insert outfit items: {exc}"
            try:
                self.store.delete_outfit(stored.id)
            except StoreError as delete_exc:
                self.logger.error(
                    "Rollback of outfit %s failed: %s", outfit.id, delete_exc, event="outfit_rollback_failed"
                )
                return RecordOutcome.errored(
                    outfit, f"{reason} (rollback failed, outfit row may be orphaned: {delete_exc})"
                )
            self.logger.warning("Rolled back outfit %s: %s", outfit.id, exc, event="outfit_rolled_back")
            return RecordOutcome.errored(outfit, reason)

        return RecordOutcome.inserted(outfit, replace(stored, items=[link.item_id for link in links]))

    @instrument_operation("insert_outfits")
    def insert_outfits(
        self,
        user_id: str,
        outfits: Sequence[Any],
        user_wardrobe_items: Sequence[Any],
    ) -> SyncResult:
        result = SyncResult(kind="outfits", total=len(outfits))
        existing = list(self.get_existing_outfits(user_id))

        for raw in outfits:
            outfit = _as_outfit(raw)
            structure = self.validator.validate_outfit_structure(outfit)
            if not structure.is_valid:
                result.add(RecordOutcome.errored(outfit, f"Validation failed: {'; '.join(structure.errors)}"))
                self.logger.warning("Skipping invalid outfit %s", outfit.id, event="outfit_invalid")
                continue

            duplicates = self.validator.check_outfit_duplicates([outfit], existing)
            if duplicates.duplicates:
                match = duplicates.duplicates[0].existing_matches[0]
                result.add(RecordOutcome.skipped(outfit, "Outfit already exists", row=match))
                self.logger.debug("Outfit %s already exists", outfit.id, event="outfit_skipped_duplicate")
                continue

            resolved: List[Any] = []
            missing: List[str] = []
            for reference in outfit.references:
                item = resolve_item_reference(reference, user_wardrobe_items)
                if item is None:
                    missing.append(str(reference))
                elif all(_row_value(item, "id") != _row_value(seen, "id") for seen in resolved):
                    resolved.append(item)
            if missing:
                result.add(RecordOutcome.errored(outfit, f"Missing wardrobe items: {', '.join(missing)}"))
                self.logger.warning(
                    "Outfit %s references missing items: %s", outfit.id, ", ".join(missing), event="outfit_missing_items"
                )
                continue

            outcome = result.add(self._insert_outfit_with_items(user_id, outfit, resolved))
            if outcome.status is OutcomeStatus.INSERTED:
                existing.append(outcome.row)

        self.logger.success(
            "Outfits: %d inserted, %d skipped, %d errors",
            result.inserted_count,
            result.skipped_count,
            result.error_count,
            event="outfits_synced",
            **result.summary(),
        )
        return result


__all__ = ["DatabaseSync", "default_outfit_name"]
