"""Orchestrates a full sync run: load, validate, then write per user."""

from __future__ import annotations

import contextvars
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from logic.validation import DataValidator
from models.records import UserRecord
from models.results import RunSummary, SyncResult, UserSyncSummary
from models.wardrobe_input import OutfitInput, WardrobeItemInput
from services.database_sync import DatabaseSync
from sync_app.config import DEFAULT_IMAGES_PATH, SyncConfig
from sync_app.errors import ConfigurationError, SyncError
from sync_app.logging_config import operation_context
from sync_app.secure_logger import SecureLogger
from tools.data_loader import DataLoader

UNEXPECTED_ERROR_KIND = "UNEXPECTED"


@dataclass
class SyncOptions:
    wardrobe_path: str = "data/wardrobe.json"
    outfits_path: str = "data/outfits.json"
    images_path: str = DEFAULT_IMAGES_PATH
    all_users: bool = False
    admin_user_id: Optional[str] = None
    admin_user_email: Optional[str] = None
    dry_run: bool = False
    max_workers: int = 1

    @classmethod
    def from_config(cls, config: SyncConfig, **overrides: Any) -> "SyncOptions":
        """Start from configured paths and admin identity; ``None`` overrides are ignored."""

        options = cls(
            wardrobe_path=config.wardrobe_data_path,
            outfits_path=config.outfit_data_path,
            images_path=config.images_path,
            admin_user_id=config.admin_user_id,
            admin_user_email=config.admin_user_email,
        )
        for key, value in overrides.items():
            if value is not None:
                setattr(options, key, value)
        return options


def _record_errors(result: Optional[SyncResult]) -> List[Dict[str, str]]:
    if result is None:
        return []
    return [
        {"kind": result.kind, "record": str(outcome.record.id), "message": outcome.reason or ""}
        for outcome in result.errors
    ]


class SyncRunner:
    """Runs the loader, validator and database sync in order and builds a :class:`RunSummary`.

    ``database_sync`` may be omitted for dry runs, which never touch a store.
    """

    def __init__(
        self,
        database_sync: DatabaseSync | None = None,
        loader: DataLoader | None = None,
        validator: DataValidator | None = None,
        logger: SecureLogger | None = None,
    ) -> None:
        self.logger = logger or SecureLogger("services.sync_runner")
        self.database_sync = database_sync
        self.loader = loader or DataLoader(self.logger)
        self.validator = validator or (database_sync.validator if database_sync else DataValidator(self.logger))

    def _count_invalid(
        self, items: Sequence[WardrobeItemInput], outfits: Sequence[OutfitInput]
    ) -> tuple[int, int]:
        invalid_items = 0
        for item in items:
            validation = self.validator.validate_wardrobe_item(item)
            if not validation.is_valid:
                invalid_items += 1
                self.logger.warning(
                    "Invalid wardrobe item %s: %s", item.id, "; ".join(validation.errors), event="item_invalid"
                )

        invalid_outfits = 0
        for outfit in outfits:
            validation = self.validator.validate_outfit(outfit, items)
            if not validation.is_valid:
                invalid_outfits += 1
                self.logger.warning(
                    "Invalid outfit %s: %s", outfit.id, "; ".join(validation.errors), event="outfit_invalid"
                )
        return invalid_items, invalid_outfits

    def sync_user(
        self, user: UserRecord, items: Sequence[WardrobeItemInput], outfits: Sequence[OutfitInput]
    ) -> UserSyncSummary:
        """Categories, then items, then outfits against the freshly re-read wardrobe."""

        if self.database_sync is None:
            raise ConfigurationError("A store is required to sync users")
        summary = UserSyncSummary(user_id=user.id, email=user.email)
        self.logger.info("Syncing user %s", user.id, event="user_sync_started")
        try:
            categories = self.database_sync.get_categories_for_user(user.id)
            summary.items = self.database_sync.insert_wardrobe_items(user.id, items, categories)
            wardrobe = self.database_sync.get_existing_wardrobe_items(user.id)
            summary.outfits = self.database_sync.insert_outfits(user.id, outfits, wardrobe)
        except SyncError as exc:
            summary.errors.append({"kind": exc.category, "record": "", "message": exc.message})
            self.logger.error("Sync failed for user %s: %s", user.id, exc.message, event="user_sync_failed")
            return summary.finish(False)
        except Exception as exc:  # noqa: BLE001
            summary.errors.append({"kind": UNEXPECTED_ERROR_KIND, "record": "", "message": str(exc)})
            self.logger.error(
                "Unexpected error syncing user %s: %s", user.id, exc, event="user_sync_crashed", exc_info=True
            )
            return summary.finish(False)

        summary.errors.extend(_record_errors(summary.items))
        summary.errors.extend(_record_errors(summary.outfits))
        self.logger.success("Synced user %s", user.id, event="user_sync_completed", duration_ms=summary.duration_ms)
        return summary.finish(True)

    def _sync_users(
        self,
        users: Sequence[UserRecord],
        items: Sequence[WardrobeItemInput],
        outfits: Sequence[OutfitInput],
        max_workers: int,
    ) -> List[UserSyncSummary]:
        if max_workers <= 1 or len(users) <= 1:
            return [self.sync_user(user, items, outfits) for user in users]

        results: List[Optional[UserSyncSummary]] = [None] * len(users)
        with ThreadPoolExecutor(max_workers=min(max_workers, len(users))) as executor:
            futures = {
                executor.submit(contextvars.copy_context().run, self.sync_user, user, items, outfits): index
                for index, user in enumerate(users)
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        return [result for result in results if result is not None]

    def run(self, options: SyncOptions) -> RunSummary:
        """Execute one run.

        Loading and configuration failures propagate as :class:`SyncError`. Any
        failure while syncing one user is recorded on that user's summary and
        the remaining users are still processed.
        """

        with operation_context("wardrobe_sync", dry_run=options.dry_run):
            summary = RunSummary(
                dry_run=options.dry_run,
                target_mode="all_users" if options.all_users else "admin_only",
            )
            self.logger.info(
                "Starting wardrobe sync", event="sync_started", dry_run=options.dry_run, target=summary.target_mode
            )

            wardrobe = self.loader.load_wardrobe_data(options.wardrobe_path)
            outfit_data = self.loader.load_outfit_data(options.outfits_path)
            items, image_result = self.loader.process_items_with_image_validation(wardrobe.items, options.images_path)
            outfits = outfit_data.outfits

            summary.wardrobe_item_count = len(items)
            summary.outfit_count = len(outfits)
            summary.image_validation = image_result
            summary.invalid_item_count, summary.invalid_outfit_count = self._count_invalid(items, outfits)

            if options.dry_run:
                self.logger.info("Dry run: no database changes made", event="dry_run_completed")
            else:
                if self.database_sync is None:
                    raise ConfigurationError("A store is required unless running a dry run")
                users = self.database_sync.get_target_users(
                    all_users=options.all_users,
                    admin_user_id=options.admin_user_id,
                    admin_user_email=options.admin_user_email,
                )
                summary.users = self._sync_users(users, items, outfits, options.max_workers)

            summary.finished_at = datetime.now(timezone.utc)
            self.report(summary)
            return summary

    def report(self, summary: RunSummary) -> None:
        self.logger.info(
            "Sync finished: %d/%d users succeeded",
            summary.successful_users,
            summary.total_users,
            event="sync_completed",
            dry_run=summary.dry_run,
            wardrobe_items=summary.wardrobe_item_count,
            outfits=summary.outfit_count,
            invalid_items=summary.invalid_item_count,
            invalid_outfits=summary.invalid_outfit_count,
            items_inserted=summary.total_items_inserted,
            items_skipped=summary.total_items_skipped,
            outfits_inserted=summary.total_outfits_inserted,
            outfits_skipped=summary.total_outfits_skipped,
            failed_users=summary.failed_users,
            duration_ms=summary.duration_ms,
        )
        for error in summary.errors:
            self.logger.warning("%s %s: %s", error["kind"], error["record"], error["message"], event="sync_error")


__all__ = ["SyncOptions", "SyncRunner"]
