"""Google Cloud Storage read access for the property photo bucket.

Only two read operations are needed by the image resolver: listing the
immediate children of a folder prefix and checking whether one object
exists. Objects are laid out under "folders" that are nothing more than
``/``-separated key prefixes, e.g.::

    {property_id}/{filename}
    {owner_id}/{property_id}/{filename}

The google-cloud-storage client is blocking, so every call is executed in
a worker thread to keep the request's event loop free.
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from functools import lru_cache
from typing import List

from google.api_core import exceptions as gcs_exceptions
from google.cloud import storage

from listing_photos.config import get_settings
from listing_photos.models import StorageEntry

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class StorageError(Exception):
    """Raised when the storage service cannot complete a read."""


class StorageBackend(ABC):
    """Read-only view of a bucket's folder hierarchy."""

    @abstractmethod
    async def list(self, prefix: str, *, limit: int = 1000) -> List[StorageEntry]:
        """Return the immediate children of ``prefix``, newest first."""

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Return True if an object is stored at ``path``."""


def sort_newest_first(entries: List[StorageEntry]) -> List[StorageEntry]:
    return sorted(entries, key=lambda e: e.updated_at or _EPOCH, reverse=True)


class GCSStorage(StorageBackend):  # pylint: disable=too-few-public-methods
    """Wrapper around Google Cloud Storage listings and existence checks."""

    def __init__(self, bucket_name: str, *, client: storage.Client | None = None) -> None:
        self._client = client or storage.Client()
        self._bucket_name = bucket_name
        self._bucket = self._client.bucket(bucket_name)

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------

    async def list(self, prefix: str, *, limit: int = 1000) -> List[StorageEntry]:
        return await asyncio.to_thread(self._list_sync, prefix, limit)

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(self._exists_sync, path)

    # ------------------------------------------------------------------
    # Blocking implementations
    # ------------------------------------------------------------------

    def _list_sync(self, prefix: str, limit: int) -> List[StorageEntry]:
        key_prefix = f"{prefix.strip('/')}/" if prefix.strip("/") else ""
        logger.debug("Listing gs://%s/%s", self._bucket_name, key_prefix)
        try:
            iterator = self._client.list_blobs(
                self._bucket_name,
                prefix=key_prefix,
                delimiter="/",
                max_results=limit,
            )
            entries: List[StorageEntry] = []
            for blob in iterator:
                name = blob.name[len(key_prefix):]
                if not name:  # folder placeholder object
                    continue
                entries.append(StorageEntry(name=name, type="file", updated_at=blob.updated))
            # Sub-folders are only known after the pages have been consumed.
            for folder in sorted(iterator.prefixes):
                name = folder[len(key_prefix):].strip("/")
                if name:
                    entries.append(StorageEntry(name=name, type="folder"))
        except gcs_exceptions.GoogleAPIError as exc:
            raise StorageError(f"Listing '{key_prefix}' failed: {exc}") from exc
        return sort_newest_first(entries)[:limit]

    def _exists_sync(self, path: str) -> bool:
        try:
            return self._bucket.blob(path).exists()
        except gcs_exceptions.GoogleAPIError as exc:
            raise StorageError(f"Existence check for '{path}' failed: {exc}") from exc


@lru_cache()
def get_storage() -> StorageBackend:  # pragma: no cover
    """Return the process-wide GCS backend for the configured bucket."""

    settings = get_settings()
    backend = GCSStorage(settings.storage_config().bucket)
    logger.info("Storage backend ready for bucket '%s'", settings.bucket_name)
    return backend
