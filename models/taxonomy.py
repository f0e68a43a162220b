"""Canonical vocabularies for seeded wardrobes.

Default categories, the color vocabulary used to infer an item's primary color,
capsule-tag season rules and the accepted outfit/image values all live here so
that the loader, validator and database sync agree on them.
"""

from typing import Dict, List, Tuple

DEFAULT_CATEGORIES: List[Dict[str, object]] = [
    {"name": "Jacket", "is_anchor_item": True, "display_order": 1},
    {"name": "Overshirt", "is_anchor_item": True, "display_order": 2},
    {"name": "Shirt", "is_anchor_item": True, "display_order": 3},
    {"name": "Undershirt", "is_anchor_item": False, "display_order": 4},
    {"name": "Pants", "is_anchor_item": True, "display_order": 5},
    {"name": "Shoes", "is_anchor_item": True, "display_order": 6},
    {"name": "Belt", "is_anchor_item": False, "display_order": 7},
    {"name": "Watch", "is_anchor_item": False, "display_order": 8},
]

# Searched in order, so multi-word shades come before the base color they contain.
COLOR_VOCABULARY: List[str] = [
    "deep navy",
    "light grey",
    "light gray",
    "lightgrey",
    "dark brown",
    "white",
    "black",
    "navy",
    "blue",
    "grey",
    "gray",
    "khaki",
    "olive",
    "charcoal",
    "tan",
    "brown",
    "cream",
    "beige",
]

COLOR_KEYWORD_FALLBACKS: List[Tuple[str, str]] = [
    ("denim", "navy"),
    ("jeans", "navy"),
]

SEASONS: List[str] = ["Spring", "Summer", "Fall", "Winter"]

SEASON_TAG_RULES: List[Tuple[Tuple[str, ...], str]] = [
    (("shorts", "summer"), "Summer"),
    (("winter", "coat", "heavy"), "Winter"),
    (("spring", "light"), "Spring"),
    (("fall", "autumn", "jacket"), "Fall"),
]

CAPSULE_SEASON_DEFAULTS: List[Tuple[str, List[str]]] = [
    ("refined", ["Fall", "Winter", "Spring"]),
    ("adventurer", ["Spring", "Summer", "Fall"]),
    ("crossover", ["Spring", "Summer", "Fall", "Winter"]),
]

TUCK_STYLES: Tuple[str, str] = ("Tucked", "Untucked")

SUPPORTED_IMAGE_EXTENSIONS: List[str] = [".png", ".jpg", ".jpeg", ".webp"]

IMAGE_URL_PREFIX = "/images/wardrobe/"

OUTFIT_SOURCE_CURATED = "curated"

FORMALITY_RANGE: Tuple[int, int] = (1, 10)


__all__ = [
    "DEFAULT_CATEGORIES",
    "COLOR_VOCABULARY",
    "COLOR_KEYWORD_FALLBACKS",
    "SEASONS",
    "SEASON_TAG_RULES",
    "CAPSULE_SEASON_DEFAULTS",
    "TUCK_STYLES",
    "SUPPORTED_IMAGE_EXTENSIONS",
    "IMAGE_URL_PREFIX",
    "OUTFIT_SOURCE_CURATED",
    "FORMALITY_RANGE",
]
