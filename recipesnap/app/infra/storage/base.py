# recipesnap/app/infra/storage/base.py
"""
Abstract base class for storage providers.
This interface allows swapping between storage backends (Supabase Storage, R2).
"""
from __future__ import annotations

import mimetypes
import re
from abc import ABC, abstractmethod
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import urlparse
from uuid import uuid4

DEFAULT_EXTENSION = "jpg"

_EXTENSION_OVERRIDES = {
    "image/jpeg": "jpg",
    "image/heic": "heic",
    "image/heif": "heif",
    "image/webp": "webp",
}


class StorageProvider(ABC):
    """
    Abstract interface for object storage operations on a single bucket.

    Implementations:
    - SupabaseStorageProvider: Supabase Storage bucket (default)
    - R2StorageProvider: Cloudflare R2 (S3-compatible)
    """

    bucket_name: str

    @abstractmethod
    def upload(self, object_key: str, data: bytes, content_type: str) -> None:
        """
        Store an object under the given key.

        Raises:
            StorageError: if the backend rejects or cannot be reached
        """
        pass

    @abstractmethod
    def get_public_url(self, object_key: str) -> str:
        """Return the durable public address of an object."""
        pass

    @abstractmethod
    def delete_object(self, object_key: str) -> bool:
        """
        Delete an object from storage.

        Returns:
            True if deletion was successful
        """
        pass

    def object_key_from_url(self, url: Optional[str]) -> Optional[str]:
        """
        Map a public URL back to its object key.

        Returns None when the URL does not point into this bucket, e.g. a
        preview image hosted by the recipe's source page.
        """
        if not url:
            return None
        prefix = self.get_public_url("").rstrip("/")
        candidate = url.split("?", 1)[0]
        if not prefix or not candidate.startswith(prefix + "/"):
            return None
        key = candidate[len(prefix) + 1:]
        return key or None

    def generate_object_key(self, filename: str, content_type: Optional[str] = None) -> str:
        """
        Generate a collision-resistant object key keeping the source extension.

        Format: {uuid4 hex}.{ext}
        """
        return f"{uuid4().hex}.{guess_extension(filename, content_type)}"


def guess_extension(filename: Optional[str], content_type: Optional[str] = None) -> str:
    suffix = PurePosixPath(urlparse(filename or "").path).suffix.lstrip(".").lower()
    if suffix and re.fullmatch(r"[a-z0-9]{1,8}", suffix):
        return suffix

    declared = (content_type or "").split(";", 1)[0].strip().lower()
    if declared in _EXTENSION_OVERRIDES:
        return _EXTENSION_OVERRIDES[declared]
    guessed = mimetypes.guess_extension(declared) if declared else None
    if guessed:
        return guessed.lstrip(".")
    return DEFAULT_EXTENSION
