from __future__ import annotations

import io
import logging
from pathlib import PurePath

import pillow_heif
from PIL import Image, UnidentifiedImageError

from .errors import ImageConversionError
from .types import ImageAsset

logger = logging.getLogger(__name__)

pillow_heif.register_heif_opener()

DEFAULT_JPEG_QUALITY = 90
_CONVERTIBLE_MARKERS = ("heic", "heif")


def needs_conversion(content_type: str | None) -> bool:
    declared = (content_type or "").lower()
    return any(marker in declared for marker in _CONVERTIBLE_MARKERS)


def _jpeg_filename(filename: str) -> str:
    stem = PurePath(filename or "upload").stem or "upload"
    return f"{stem}.jpg"


def normalize_image(asset: ImageAsset, quality: int = DEFAULT_JPEG_QUALITY) -> ImageAsset:
    """Convert HEIC/HEIF uploads to JPEG; anything else passes through untouched."""
    if not needs_conversion(asset.content_type):
        return asset

    try:
        with Image.open(io.BytesIO(asset.data)) as img:
            buffer = io.BytesIO()
            img.convert("RGB").save(buffer, format="JPEG", quality=quality)
    except (UnidentifiedImageError, OSError, ValueError) as error:
        logger.warning("image.convert_fail filename=%s error=%s", asset.filename, error)
        raise ImageConversionError(f"Failed to convert HEIC image: {error}") from error

    converted = ImageAsset(
        data=buffer.getvalue(),
        content_type="image/jpeg",
        filename=_jpeg_filename(asset.filename),
    )
    logger.info(
        "image.converted filename=%s bytes_in=%d bytes_out=%d",
        converted.filename,
        asset.size,
        converted.size,
    )
    return converted
