from __future__ import annotations

import logging
from typing import Optional

from starlette.concurrency import run_in_threadpool

from recipesnap.app.domain.errors import StorageError
from recipesnap.app.infra.storage.base import StorageProvider

from .errors import StorageUnavailableError
from .types import AssetSource, ImageAsset

logger = logging.getLogger(__name__)


class AssetStore:
    """Turns uploaded images into public addresses; external URLs pass through."""

    def __init__(self, storage: StorageProvider) -> None:
        self._storage = storage

    async def persist(self, source: AssetSource) -> str:
        if isinstance(source, str):
            return source
        return await run_in_threadpool(self.upload, source)

    def upload(self, asset: ImageAsset) -> str:
        object_key = self._storage.generate_object_key(asset.filename, asset.content_type)
        try:
            self._storage.upload(object_key, asset.data, asset.content_type)
            public_url = self._storage.get_public_url(object_key)
        except StorageError as error:
            raise StorageUnavailableError(f"Image storage unavailable: {error}") from error

        logger.info("asset.stored key=%s bytes=%d", object_key, asset.size)
        return public_url

    def remove(self, public_url: Optional[str]) -> bool:
        """Delete an object we own. External addresses are left alone."""
        object_key = self._storage.object_key_from_url(public_url)
        if not object_key:
            return False
        return self._storage.delete_object(object_key)
