"""Input records parsed from the seed wardrobe and outfit documents."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional

_ITEM_KEYS = {
    "id": "id",
    "name": "name",
    "category": "category",
    "brand": "brand",
    "formalityScore": "formality_score",
    "capsuleTags": "capsule_tags",
    "image": "image",
}

_OUTFIT_KEYS = {
    "id": "id",
    "name": "name",
    "items": "items",
    "tuck": "tuck",
    "weight": "weight",
    "loved": "loved",
}


def _split_known(raw: Any, known: Mapping[str, str]) -> tuple[Dict[str, Any], Dict[str, Any]]:
    """Separate recognised keys (renamed to attribute names) from everything else."""

    if not isinstance(raw, Mapping):
        return {}, {}
    values: Dict[str, Any] = {}
    extra: Dict[str, Any] = {}
    for key, value in raw.items():
        if key in known:
            values[known[key]] = value
        elif key in known.values():
            values[key] = value
        else:
            extra[str(key)] = value
    return values, extra


@dataclass(frozen=True)
class WardrobeItemInput:
    """An untrusted wardrobe item as it appears in ``wardrobe.json``.

    Field values are kept exactly as parsed; nothing is coerced, so the
    validator can report a non-string ``id`` instead of silently fixing it.
    """

    id: Any = None
    name: Any = None
    category: Any = None
    brand: Any = None
    formality_score: Any = None
    capsule_tags: Any = None
    image: Any = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_raw(cls, raw: Any) -> "WardrobeItemInput":
        values, extra = _split_known(raw, _ITEM_KEYS)
        return cls(**values, extra=extra)

    def with_image(self, image: Optional[str]) -> "WardrobeItemInput":
        return replace(self, image=image)

    def to_raw(self) -> Dict[str, Any]:
        raw: Dict[str, Any] = dict(self.extra)
        for source_key, attribute in _ITEM_KEYS.items():
            value = getattr(self, attribute)
            if value is not None:
                raw[source_key] = value
        return raw


@dataclass(frozen=True)
class OutfitInput:
    """An untrusted outfit from ``outfits.json``; ``items`` hold item ids or names."""

    id: Any = None
    items: Any = None
    name: Any = None
    tuck: Any = None
    weight: Any = None
    loved: Any = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_raw(cls, raw: Any) -> "OutfitInput":
        values, extra = _split_known(raw, _OUTFIT_KEYS)
        return cls(**values, extra=extra)

    @property
    def references(self) -> List[Any]:
        return list(self.items) if isinstance(self.items, list) else []


__all__ = ["WardrobeItemInput", "OutfitInput"]
