"""Rows as they are read from and written to the store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from models.taxonomy import OUTFIT_SOURCE_CURATED


@dataclass(frozen=True)
class UserRecord:
    id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class Category:
    """A per-user wardrobe category."""

    id: Optional[str]
    user_id: str
    name: str
    is_anchor_item: bool = False
    display_order: int = 0


@dataclass(frozen=True)
class PersistedWardrobeItem:
    """A ``wardrobe_items`` row.

    ``category`` carries the joined category name on reads so that duplicate
    detection can compare names; it is not written back. ``external_id`` is the
    seed item id the row was created from.
    """

    id: Optional[str]
    user_id: str
    category_id: str
    name: str
    brand: Optional[str] = None
    color: Optional[str] = None
    formality_score: Optional[float] = None
    capsule_tags: Optional[List[str]] = None
    season: List[str] = field(default_factory=list)
    image_url: Optional[str] = None
    active: bool = True
    external_id: Optional[str] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class PersistedOutfit:
    """An ``outfits`` row; ``items`` lists the linked wardrobe item ids on reads."""

    id: Optional[str]
    user_id: str
    name: Optional[str] = None
    tuck_style: Optional[str] = None
    weight: float = 1
    loved: bool = False
    source: str = OUTFIT_SOURCE_CURATED
    external_id: Optional[str] = None
    items: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class OutfitItemLink:
    outfit_id: str
    item_id: str
    category_id: Optional[str] = None


__all__ = ["UserRecord", "Category", "PersistedWardrobeItem", "PersistedOutfit", "OutfitItemLink"]
