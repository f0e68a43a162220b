"""Result records produced by validation, image checks and sync runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from models.taxonomy import SUPPORTED_IMAGE_EXTENSIONS


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: List[str]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=list(errors))


@dataclass(frozen=True)
class DuplicateMatch:
    new_item: Any
    existing_matches: List[Any]


@dataclass(frozen=True)
class DuplicateCheckResult:
    """Partition of incoming records into duplicates and unique records."""

    duplicates: List[DuplicateMatch] = field(default_factory=list)
    unique: List[Any] = field(default_factory=list)

    @property
    def total_new(self) -> int:
        return len(self.duplicates) + len(self.unique)

    @property
    def duplicate_count(self) -> int:
        return len(self.duplicates)

    @property
    def unique_count(self) -> int:
        return len(self.unique)


@dataclass(frozen=True)
class MissingImage:
    item_id: Any
    image_path: Any
    full_path: Optional[str] = None


@dataclass(frozen=True)
class UnsupportedImage:
    item_id: Any
    extension: str
    image_path: Any = None


@dataclass(frozen=True)
class ImageValidationResult:
    total_items: int
    missing_images: List[MissingImage] = field(default_factory=list)
    unsupported_extensions: List[UnsupportedImage] = field(default_factory=list)
    supported_extensions: List[str] = field(default_factory=lambda: list(SUPPORTED_IMAGE_EXTENSIONS))

    @property
    def invalid_count(self) -> int:
        return len(self.missing_images) + len(self.unsupported_extensions)

    @property
    def valid_count(self) -> int:
        return self.total_items - self.invalid_count


class OutcomeStatus(str, Enum):
    INSERTED = "inserted"
    SKIPPED = "skipped"
    ERRORED = "errored"


@dataclass(frozen=True)
class RecordOutcome:
    """What happened to one input record during a sync."""

    status: OutcomeStatus
    record: Any
    row: Any = None
    reason: Optional[str] = None

    @classmethod
    def inserted(cls, record: Any, row: Any) -> "RecordOutcome":
        return cls(OutcomeStatus.INSERTED, record, row=row)

    @classmethod
    def skipped(cls, record: Any, reason: str, row: Any = None) -> "RecordOutcome":
        return cls(OutcomeStatus.SKIPPED, record, row=row, reason=reason)

    @classmethod
    def errored(cls, record: Any, reason: str) -> "RecordOutcome":
        return cls(OutcomeStatus.ERRORED, record, reason=reason)

    @property
    def error(self) -> Optional[str]:
        return self.reason if self.status is OutcomeStatus.ERRORED else None


@dataclass
class SyncResult:
    """Per-user accounting for one record kind.

    Every input record is added exactly once, so
    ``inserted_count + skipped_count + error_count == total`` once the batch
    has been processed.
    """

    kind: str
    total: int
    inserted: List[RecordOutcome] = field(default_factory=list)
    skipped: List[RecordOutcome] = field(default_factory=list)
    errors: List[RecordOutcome] = field(default_factory=list)

    def add(self, outcome: RecordOutcome) -> RecordOutcome:
        if outcome.status is OutcomeStatus.INSERTED:
            self.inserted.append(outcome)
        elif outcome.status is OutcomeStatus.SKIPPED:
            self.skipped.append(outcome)
        else:
            self.errors.append(outcome)
        return outcome

    @property
    def inserted_count(self) -> int:
        return len(self.inserted)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def processed(self) -> int:
        return self.inserted_count + self.skipped_count + self.error_count

    @property
    def is_balanced(self) -> bool:
        return self.processed == self.total

    @property
    def error_messages(self) -> List[str]:
        return [outcome.reason or "" for outcome in self.errors]

    def summary(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "inserted": self.inserted_count,
            "skipped": self.skipped_count,
            "errors": self.error_count,
        }


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class UserSyncSummary:
    user_id: str
    email: Optional[str] = None
    started_at: datetime = field(default_factory=_now)
    finished_at: Optional[datetime] = None
    items: Optional[SyncResult] = None
    outfits: Optional[SyncResult] = None
    success: bool = False
    errors: List[Dict[str, str]] = field(default_factory=list)

    def finish(self, success: bool) -> "UserSyncSummary":
        self.success = success
        self.finished_at = _now()
        return self

    @property
    def duration_ms(self) -> float:
        end = self.finished_at or _now()
        return round((end - self.started_at).total_seconds() * 1000, 2)


@dataclass
class RunSummary:
    """Outcome of a whole run across every targeted user."""

    dry_run: bool
    target_mode: str
    wardrobe_item_count: int = 0
    outfit_count: int = 0
    invalid_item_count: int = 0
    invalid_outfit_count: int = 0
    image_validation: Optional[ImageValidationResult] = None
    users: List[UserSyncSummary] = field(default_factory=list)
    started_at: datetime = field(default_factory=_now)
    finished_at: Optional[datetime] = None

    @property
    def total_users(self) -> int:
        return len(self.users)

    @property
    def successful_users(self) -> int:
        return sum(1 for user in self.users if user.success)

    @property
    def failed_users(self) -> int:
        return self.total_users - self.successful_users

    def _total(self, kind: str, attribute: str) -> int:
        total = 0
        for user in self.users:
            result = getattr(user, kind)
            if result is not None:
                total += getattr(result, attribute)
        return total

    @property
    def total_items_inserted(self) -> int:
        return self._total("items", "inserted_count")

    @property
    def total_items_skipped(self) -> int:
        return self._total("items", "skipped_count")

    @property
    def total_outfits_inserted(self) -> int:
        return self._total("outfits", "inserted_count")

    @property
    def total_outfits_skipped(self) -> int:
        return self._total("outfits", "skipped_count")

    @property
    def errors(self) -> List[Dict[str, str]]:
        return [error for user in self.users for error in user.errors]

    @property
    def exit_code(self) -> int:
        return 1 if self.failed_users else 0

    @property
    def duration_ms(self) -> float:
        end = self.finished_at or _now()
        return round((end - self.started_at).total_seconds() * 1000, 2)


__all__ = [
    "ValidationResult",
    "DuplicateMatch",
    "DuplicateCheckResult",
    "MissingImage",
    "UnsupportedImage",
    "ImageValidationResult",
    "OutcomeStatus",
    "RecordOutcome",
    "SyncResult",
    "UserSyncSummary",
    "RunSummary",
]
