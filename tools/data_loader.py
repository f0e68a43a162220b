"""Loading of the seed documents and checks on the images they reference."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Sequence, Tuple

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from logic.image_paths import image_extension, image_filename, normalize_image_path
from models.documents import OutfitData, OutfitDocument, WardrobeData, WardrobeDocument, summarize_errors
from models.results import ImageValidationResult, MissingImage, UnsupportedImage
from models.taxonomy import SUPPORTED_IMAGE_EXTENSIONS
from models.wardrobe_input import WardrobeItemInput
from sync_app.errors import FileSystemError, ValidationError
from sync_app.secure_logger import SecureLogger
from tools.observability import instrument_operation


class DataLoader:
    """Reads ``wardrobe.json`` / ``outfits.json`` and reconciles image references."""

    def __init__(self, logger: SecureLogger | None = None) -> None:
        self.logger = logger or SecureLogger("tools.data_loader")

    def _read_document(self, path: str | Path, schema: type[BaseModel], label: str) -> BaseModel:
        file_path = Path(path)
        if not file_path.exists():
            raise FileSystemError(f"{label} file not found: {file_path}", {"path": str(file_path)})
        if not file_path.is_file():
            raise FileSystemError(f"{label} path is not a file: {file_path}", {"path": str(file_path)})

        try:
            text = file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ValidationError(
                f"{label} file is not valid UTF-8: {file_path}", {"path": str(file_path), "reason": str(exc)}
            ) from exc
        except OSError as exc:
            raise FileSystemError(
                f"Unable to read {label} file: {file_path}", {"path": str(file_path), "reason": str(exc)}
            ) from exc

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValidationError(
                f"Invalid JSON in {label} file: {exc.msg}",
                {"path": str(file_path), "line": exc.lineno, "column": exc.colno},
            ) from exc

        try:
            return schema.model_validate(payload)
        except SchemaError as exc:
            raise ValidationError(
                f"Invalid {label} data format: {file_path}",
                {"path": str(file_path), "errors": summarize_errors(exc.errors())},
            ) from exc

    @instrument_operation("load_wardrobe_data")
    def load_wardrobe_data(self, path: str | Path) -> WardrobeData:
        document = self._read_document(path, WardrobeDocument, "wardrobe")
        data = WardrobeData.from_document(document)
        self.logger.info("Loaded %d wardrobe items", len(data.items), event="wardrobe_data_loaded", count=len(data.items))
        return data

    @instrument_operation("load_outfit_data")
    def load_outfit_data(self, path: str | Path) -> OutfitData:
        document = self._read_document(path, OutfitDocument, "outfit")
        data = OutfitData.from_document(document)
        self.logger.info("Loaded %d outfits", len(data.outfits), event="outfit_data_loaded", count=len(data.outfits))
        return data

    def validate_image_assets(
        self, items: Sequence[WardrobeItemInput], image_dir: str | Path
    ) -> ImageValidationResult:
        """Check that every referenced image exists under ``image_dir`` with a supported extension.

        Items without an image are valid. A missing file is reported as missing
        even when its extension is also unsupported.
        """

        base = Path(image_dir)
        missing: List[MissingImage] = []
        unsupported: List[UnsupportedImage] = []

        for item in items:
            image = item.image
            if image is None or image == "":
                continue
            filename = image_filename(image)
            full_path = base / filename if filename else None
            if full_path is None or not full_path.is_file():
                missing.append(
                    MissingImage(item_id=item.id, image_path=image, full_path=str(full_path) if full_path else None)
                )
                continue
            extension = image_extension(image)
            if extension not in SUPPORTED_IMAGE_EXTENSIONS:
                unsupported.append(UnsupportedImage(item_id=item.id, extension=extension, image_path=image))

        return ImageValidationResult(
            total_items=len(items),
            missing_images=missing,
            unsupported_extensions=unsupported,
        )

    @staticmethod
    def handle_missing_images(
        items: Sequence[WardrobeItemInput], result: ImageValidationResult
    ) -> List[WardrobeItemInput]:
        missing_ids = {entry.item_id for entry in result.missing_images}
        return [item.with_image(None) if item.id in missing_ids else item for item in items]

    @staticmethod
    def format_image_paths(items: Sequence[WardrobeItemInput]) -> List[WardrobeItemInput]:
        return [item.with_image(normalize_image_path(item.image)) for item in items]

    def process_items_with_image_validation(
        self, items: Sequence[WardrobeItemInput], image_dir: str | Path
    ) -> Tuple[List[WardrobeItemInput], ImageValidationResult]:
        """Canonicalise image paths, then drop references that cannot be served."""

        formatted = self.format_image_paths(items)
        result = self.validate_image_assets(formatted, image_dir)
        processed = self.handle_missing_images(formatted, result)

        unsupported_ids = {entry.item_id for entry in result.unsupported_extensions}
        if unsupported_ids:
            processed = [item.with_image(None) if item.id in unsupported_ids else item for item in processed]

        for entry in result.missing_images:
            self.logger.warning("Image not found for item %s: %s", entry.item_id, entry.image_path, event="image_missing")
        for entry in result.unsupported_extensions:
            self.logger.warning(
                "Unsupported image extension %s for item %s",
                entry.extension,
                entry.item_id,
                event="image_unsupported_extension",
            )
        self.logger.info(
            "Image validation: %d valid, %d missing, %d unsupported",
            result.valid_count,
            len(result.missing_images),
            len(result.unsupported_extensions),
            event="image_validation_completed",
            total=result.total_items,
        )
        return processed, result


__all__ = ["DataLoader"]
