"""Helpers for turning arbitrary image references into canonical wardrobe URLs."""

from __future__ import annotations

import posixpath
import re
from typing import Any, Optional

from models.taxonomy import IMAGE_URL_PREFIX, SUPPORTED_IMAGE_EXTENSIONS

_SLASHES = re.compile(r"/+")


def _collapse(path: str) -> str:
    return _SLASHES.sub("/", path.replace("\\", "/"))


def image_filename(image: Any) -> Optional[str]:
    """Return the final path segment of an image reference, or None for directory-only refs."""

    if not isinstance(image, str) or not image:
        return None
    filename = _collapse(image).rsplit("/", 1)[-1]
    return filename or None


def image_extension(image: Any) -> str:
    filename = image_filename(image) or ""
    return posixpath.splitext(filename)[1].lower()


def is_supported_extension(image: Any) -> bool:
    return image_extension(image) in SUPPORTED_IMAGE_EXTENSIONS


def normalize_image_path(image: Any) -> Any:
    """Rewrite an image reference to ``/images/wardrobe/<filename>``.

    ``None``, empty strings and non-string values are returned untouched. The
    bare ``/images/wardrobe/`` prefix is kept as is; any other reference
    without a filename (``foo/``, ``./``, ``C:\\``) becomes ``None``.
    """

    if not isinstance(image, str) or not image:
        return image
    filename = image_filename(image)
    if filename is None:
        return IMAGE_URL_PREFIX if _collapse(image) == IMAGE_URL_PREFIX else None
    return f"{IMAGE_URL_PREFIX}{filename}"


def canonical_image_url(image: Any) -> Optional[str]:
    """Return the canonical URL for ``image`` or None when it has no usable filename."""

    filename = image_filename(image)
    return f"{IMAGE_URL_PREFIX}{filename}" if filename else None


__all__ = [
    "canonical_image_url",
    "image_extension",
    "image_filename",
    "is_supported_extension",
    "normalize_image_path",
]
