"""Record-level validation, duplicate detection and attribute inference.

Everything here is a pure function of its arguments: validation never raises
for bad records, it returns a :class:`ValidationResult` carrying every problem
found so one malformed record can be reported without aborting the batch.
"""

from __future__ import annotations

import re
from numbers import Real
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from models.results import DuplicateCheckResult, DuplicateMatch, ValidationResult
from models.taxonomy import (
    CAPSULE_SEASON_DEFAULTS,
    COLOR_KEYWORD_FALLBACKS,
    COLOR_VOCABULARY,
    FORMALITY_RANGE,
    SEASON_TAG_RULES,
    SEASONS,
    TUCK_STYLES,
)
from models.wardrobe_input import OutfitInput, WardrobeItemInput
from sync_app.secure_logger import SecureLogger

_COLOR_PATTERNS = [
    (token.replace(" ", "-"), re.compile(r"\b" + r"[\s-]+".join(map(re.escape, token.split())) + r"\b"))
    for token in COLOR_VOCABULARY
]


def _field(record: Any, key: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(key)
    return getattr(record, key, None)


def _fold(value: Any) -> Optional[str]:
    return value.casefold() if isinstance(value, str) else None


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _as_item(item: Any) -> WardrobeItemInput:
    return item if isinstance(item, WardrobeItemInput) else WardrobeItemInput.from_raw(item)


def _as_outfit(outfit: Any) -> OutfitInput:
    return outfit if isinstance(outfit, OutfitInput) else OutfitInput.from_raw(outfit)


def resolve_item_reference(reference: Any, wardrobe_items: Sequence[Any]) -> Any:
    """Find the wardrobe item an outfit entry points at.

    An exact id match (the row id, or the seed id stored as ``external_id``)
    wins over a case-insensitive name match. Returns None when nothing matches.
    """

    if reference is None or reference == "":
        return None
    for item in wardrobe_items:
        if reference in (_field(item, "id"), _field(item, "external_id")):
            return item
    folded = _fold(reference)
    if folded is None:
        return None
    for item in wardrobe_items:
        if _fold(_field(item, "name")) == folded:
            return item
    return None


def find_missing_references(references: Iterable[Any], wardrobe_items: Sequence[Any]) -> List[Any]:
    """Return the references that do not resolve, in input order."""

    return [ref for ref in references if resolve_item_reference(ref, wardrobe_items) is None]


class DataValidator:
    """Validates seed records and infers derived wardrobe attributes."""

    def __init__(self, logger: SecureLogger | None = None) -> None:
        self.logger = logger or SecureLogger("logic.validation")

    def validate_wardrobe_item(self, item: Any) -> ValidationResult:
        record = _as_item(item)
        errors: List[str] = []

        for key in ("id", "name", "category"):
            value = getattr(record, key)
            if not isinstance(value, str) or not value:
                errors.append(f"Item must have a valid string {key}")

        if record.brand is not None and not isinstance(record.brand, str):
            errors.append("Item brand must be a string if provided")

        if record.formality_score is not None:
            low, high = FORMALITY_RANGE
            if not _is_number(record.formality_score) or not low <= record.formality_score <= high:
                errors.append(f"Item formalityScore must be a number between {low} and {high} if provided")

        if record.capsule_tags is not None:
            if not isinstance(record.capsule_tags, list):
                errors.append("Item capsuleTags must be an array if provided")
            elif not all(isinstance(tag, str) for tag in record.capsule_tags):
                errors.append("All capsuleTags must be strings")

        if record.image is not None and not isinstance(record.image, str):
            errors.append("Item image must be a string or null if provided")

        return ValidationResult.from_errors(errors)

    def validate_outfit_structure(self, outfit: Any) -> ValidationResult:
        """Check an outfit's own fields without looking at its item references."""

        record = _as_outfit(outfit)
        errors: List[str] = []

        if not isinstance(record.id, str) or not record.id:
            errors.append("Outfit must have a valid string id")

        if not isinstance(record.items, list):
            errors.append("Outfit must have an items array")
        elif not record.items:
            errors.append("Outfit must contain at least one item")

        if record.name is not None and not isinstance(record.name, str):
            errors.append("Outfit name must be a string if provided")

        if record.tuck is not None and record.tuck not in TUCK_STYLES:
            errors.append('Outfit tuck must be "Tucked" or "Untucked" if provided')

        if record.weight is not None and (not _is_number(record.weight) or record.weight < 0):
            errors.append("Outfit weight must be a non-negative number if provided")

        if record.loved is not None and not isinstance(record.loved, bool):
            errors.append("Outfit loved must be a boolean if provided")

        return ValidationResult.from_errors(errors)

    def validate_outfit(self, outfit: Any, wardrobe_items: Sequence[Any] = ()) -> ValidationResult:
        record = _as_outfit(outfit)
        errors = list(self.validate_outfit_structure(record).errors)

        missing = find_missing_references(record.references, list(wardrobe_items))
        if missing:
            errors.append(f"Outfit references non-existent items: {', '.join(str(ref) for ref in missing)}")

        return ValidationResult.from_errors(errors)

    def check_duplicates(self, new_items: Sequence[Any], existing_items: Sequence[Any] = ()) -> DuplicateCheckResult:
        """Split ``new_items`` by whether an existing item shares its name and category."""

        duplicates: List[DuplicateMatch] = []
        unique: List[Any] = []
        for new_item in new_items:
            name, category = _fold(_field(new_item, "name")), _fold(_field(new_item, "category"))
            matches = []
            if name is not None and category is not None:
                matches = [
                    existing
                    for existing in existing_items
                    if _fold(_field(existing, "name")) == name and _fold(_field(existing, "category")) == category
                ]
            if matches:
                duplicates.append(DuplicateMatch(new_item=new_item, existing_matches=matches))
            else:
                unique.append(new_item)

        result = DuplicateCheckResult(duplicates=duplicates, unique=unique)
        self.logger.debug(
            "Duplicate check: %d new, %d duplicates, %d unique",
            result.total_new,
            result.duplicate_count,
            result.unique_count,
        )
        return result

    def check_outfit_duplicates(
        self, new_outfits: Sequence[Any], existing_outfits: Sequence[Any] = ()
    ) -> DuplicateCheckResult:
        """Split ``new_outfits`` by whether an existing outfit was created from the same seed id."""

        duplicates: List[DuplicateMatch] = []
        unique: List[Any] = []
        for new_outfit in new_outfits:
            seed_id = _field(new_outfit, "id")
            matches = []
            if isinstance(seed_id, str) and seed_id:
                matches = [existing for existing in existing_outfits if _field(existing, "external_id") == seed_id]
            if matches:
                duplicates.append(DuplicateMatch(new_item=new_outfit, existing_matches=matches))
            else:
                unique.append(new_outfit)
        return DuplicateCheckResult(duplicates=duplicates, unique=unique)

    @staticmethod
    def extract_color(text: Any) -> Optional[str]:
        """Return the first vocabulary color mentioned in ``text``, hyphenating multi-word shades."""

        if not isinstance(text, str) or not text:
            return None
        source = text.lower()
        for color, pattern in _COLOR_PATTERNS:
            if pattern.search(source):
                return color
        for keyword, color in COLOR_KEYWORD_FALLBACKS:
            if keyword in source:
                return color
        return None

    @staticmethod
    def map_season(tags: Any) -> List[str]:
        """Map capsule tags to the seasons an item suits."""

        if not isinstance(tags, list):
            return []
        tag_set = {tag.strip().lower() for tag in tags if isinstance(tag, str)}

        seasons: List[str] = []
        for triggers, season in SEASON_TAG_RULES:
            if tag_set.intersection(triggers) and season not in seasons:
                seasons.append(season)

        if not seasons:
            for capsule, defaults in CAPSULE_SEASON_DEFAULTS:
                if capsule in tag_set:
                    seasons = list(defaults)
                    break
            else:
                seasons = list(SEASONS)

        return seasons


__all__ = ["DataValidator", "find_missing_references", "resolve_item_reference"]
