# recipesnap/app/infra/storage/supabase_provider.py
"""
Supabase Storage provider implementation.
"""
from __future__ import annotations

import logging

from supabase import Client

from recipesnap.app.domain.errors import StorageError, StorageUploadError
from recipesnap.app.infra.storage.base import StorageProvider

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "recipes"


class SupabaseStorageProvider(StorageProvider):
    """Public Supabase Storage bucket holding recipe images."""

    def __init__(self, client: Client, bucket_name: str = DEFAULT_BUCKET):
        self._client = client
        self.bucket_name = bucket_name
        logger.info("SupabaseStorageProvider initialized: bucket=%s", bucket_name)

    def _bucket(self):
        return self._client.storage.from_(self.bucket_name)

    def upload(self, object_key: str, data: bytes, content_type: str) -> None:
        try:
            self._bucket().upload(
                object_key,
                data,
                {"content-type": content_type, "upsert": "false"},
            )
        except Exception as e:  # storage3 raises its own hierarchy plus httpx errors
            logger.error("Failed to upload to Supabase Storage: key=%s error=%s", object_key, e)
            raise StorageUploadError(object_key, str(e)) from e

        logger.info("Uploaded object: bucket=%s key=%s size=%d", self.bucket_name, object_key, len(data))

    def get_public_url(self, object_key: str) -> str:
        try:
            url = self._bucket().get_public_url(object_key)
        except Exception as e:
            raise StorageError(f"Failed to resolve public URL for {object_key}: {e}") from e
        # Some client versions append a bare "?" to the address
        return str(url).rstrip("?")

    def delete_object(self, object_key: str) -> bool:
        try:
            self._bucket().remove([object_key])
            logger.info("Deleted object: bucket=%s key=%s", self.bucket_name, object_key)
            return True
        except Exception as e:
            logger.error("Failed to delete object from Supabase Storage: %s", e)
            return False
