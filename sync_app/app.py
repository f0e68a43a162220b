"""Wardrobe sync bootstrap."""

import logging

from logic.validation import DataValidator
from models.results import RunSummary
from services.database_sync import DatabaseSync
from services.sync_runner import SyncOptions, SyncRunner
from sync_app.config import SyncConfig
from sync_app.errors import DatabaseError
from sync_app.logging_config import configure_logging, get_logger, log_event
from sync_app.secure_logger import SecureLogger
from tools.data_loader import DataLoader
from tools.supabase_store import SupabaseSyncStore
from tools.sync_store import SQLiteSyncStore, StoreError, SyncStore

LOGGER = get_logger(__name__)


class WardrobeSyncApp:
    """Wires together the config, store and sync components."""

    def __init__(self, config: SyncConfig | None = None, store: SyncStore | None = None) -> None:
        self.config = config or SyncConfig.from_env()
        configure_logging(self.config.log_level)
        self.logger = SecureLogger("wardrobe_sync")
        self.validator = DataValidator(self.logger)
        self.loader = DataLoader(self.logger)
        self._store = store

    @property
    def store(self) -> SyncStore:
        """The configured store, built on first use so dry runs never open one."""

        if self._store is None:
            self._store = self._build_store()
        return self._store

    def _build_store(self) -> SyncStore:
        self.config.validate()
        if self.config.store_backend == "supabase":
            store: SyncStore = SupabaseSyncStore.from_config(self.config)
        else:
            try:
                store = SQLiteSyncStore(self.config.wardrobe_db_path or "data/wardrobe.db")
            except StoreError as exc:
                raise DatabaseError("Failed to open the local wardrobe database", {"reason": str(exc)}) from exc
        log_event(LOGGER, logging.INFO, "store_initialised", backend=self.config.store_backend)
        return store

    def build_runner(self, dry_run: bool = False) -> SyncRunner:
        database_sync = None if dry_run else DatabaseSync(self.store, self.validator, self.logger)
        return SyncRunner(database_sync, loader=self.loader, validator=self.validator, logger=self.logger)

    def options(self, **overrides) -> SyncOptions:
        return SyncOptions.from_config(self.config, **overrides)

    def run(self, options: SyncOptions | None = None) -> RunSummary:
        options = options or self.options()
        return self.build_runner(dry_run=options.dry_run).run(options)


__all__ = ["WardrobeSyncApp"]
