"""Pydantic schemas for the top-level seed documents and their parsed form."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from models.wardrobe_input import OutfitInput, WardrobeItemInput


class WardrobeDocument(BaseModel):
    """``wardrobe.json``: an object whose ``items`` value is a list."""

    model_config = ConfigDict(strict=True, extra="allow")

    items: List[Any] = Field(...)


class OutfitDocument(BaseModel):
    """``outfits.json``: an object whose ``outfits`` value is a list."""

    model_config = ConfigDict(strict=True, extra="allow")

    outfits: List[Any] = Field(...)


@dataclass
class WardrobeData:
    items: List[WardrobeItemInput] = field(default_factory=list)

    @classmethod
    def from_document(cls, document: WardrobeDocument) -> "WardrobeData":
        return cls(items=[WardrobeItemInput.from_raw(raw) for raw in document.items])


@dataclass
class OutfitData:
    outfits: List[OutfitInput] = field(default_factory=list)

    @classmethod
    def from_document(cls, document: OutfitDocument) -> "OutfitData":
        return cls(outfits=[OutfitInput.from_raw(raw) for raw in document.outfits])


def summarize_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep the location and message of pydantic errors, dropping the echoed input."""

    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in errors
    ]


__all__ = ["WardrobeDocument", "OutfitDocument", "WardrobeData", "OutfitData", "summarize_errors"]
