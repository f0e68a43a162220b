"""Model package exports."""

from models.taxonomy import *  # noqa: F401,F403
from models.records import Category, OutfitItemLink, PersistedOutfit, PersistedWardrobeItem, UserRecord
from models.results import (
    DuplicateCheckResult,
    ImageValidationResult,
    RecordOutcome,
    RunSummary,
    SyncResult,
    UserSyncSummary,
    ValidationResult,
)
from models.wardrobe_input import OutfitInput, WardrobeItemInput

__all__ = [
    "Category",
    "DuplicateCheckResult",
    "ImageValidationResult",
    "OutfitInput",
    "OutfitItemLink",
    "PersistedOutfit",
    "PersistedWardrobeItem",
    "RecordOutcome",
    "RunSummary",
    "SyncResult",
    "UserRecord",
    "UserSyncSummary",
    "ValidationResult",
    "WardrobeItemInput",
]
