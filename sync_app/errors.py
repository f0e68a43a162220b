"""Typed error hierarchy for the wardrobe sync pipeline."""

from __future__ import annotations

from typing import Any, Dict, Optional


class SyncError(Exception):
    """Base class for errors that abort a load, an operation or a run."""

    category = "SYNC"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}


class ConfigurationError(SyncError):
    """Raised when required settings are missing or the target user cannot be resolved."""

    category = "CONFIGURATION"


class ValidationError(SyncError):
    """Raised when an input document is not parseable as the expected shape."""

    category = "VALIDATION"


class DatabaseError(SyncError):
    """Raised when a store call fails outside of a single record's business checks."""

    category = "DATABASE"


class FileSystemError(SyncError):
    """Raised when an input file is missing or unreadable."""

    category = "FILESYSTEM"


__all__ = [
    "SyncError",
    "ConfigurationError",
    "ValidationError",
    "DatabaseError",
    "FileSystemError",
]
