"""Breadth-first search of the bucket's folder tree for a file name.

Used when none of the candidate paths of a reference can be confirmed.
Seed folders (property, owner, owner/property) are searched first, then
the bucket root. Each folder is listed at most once.
"""
from __future__ import annotations

import logging
from collections import deque
from typing import Dict, Iterable, List, Optional

from listing_photos.models import StorageConfig, StorageEntry
from listing_photos.services.storage import StorageBackend

logger = logging.getLogger(__name__)


def _join_prefix(prefix: str, name: str) -> str:
    return f"{prefix}/{name}" if prefix else name


class BucketLocator:
    """Find the full path of an object given only its basename."""

    def __init__(self, storage: StorageBackend, config: StorageConfig) -> None:
        self._storage = storage
        self._config = config

    async def locate(
        self,
        basename: str,
        seeds: Iterable[Optional[str]] = (),
        *,
        listings: Optional[Dict[str, List[StorageEntry]]] = None,
    ) -> str | None:
        """Return the first ``<folder>/<basename>`` found, or None.

        ``listings`` caches folder listings by prefix across searches made
        for the same property, so each folder is fetched at most once.
        Listing failures are logged and cached as empty; this never raises
        for a storage error.
        """

        if not basename:
            return None

        queue: deque[str] = deque()
        for seed in seeds:
            seed = (seed or "").strip("/")
            if seed and seed not in queue:
                queue.append(seed)
        queue.append("")

        visited: set[str] = set()
        while queue:
            if len(visited) >= self._config.bfs_max_prefixes:
                logger.info(
                    "Search for '%s' stopped after listing %d folders", basename, len(visited)
                )
                break

            prefix = queue.popleft()
            if prefix in visited:
                continue
            visited.add(prefix)

            entries = await self._list(prefix, listings)

            for entry in entries:
                child = _join_prefix(prefix, entry.name)
                if entry.is_folder:
                    if child not in visited:
                        queue.append(child)
                elif entry.name == basename:
                    logger.debug("Located '%s' at %s", basename, child)
                    return child

        logger.debug("'%s' not found after listing %d folders", basename, len(visited))
        return None

    async def _list(self, prefix: str, listings: Optional[Dict[str, List[StorageEntry]]]) -> List[StorageEntry]:
        if listings is not None and prefix in listings:
            return listings[prefix]
        try:
            entries = await self._storage.list(prefix, limit=self._config.list_limit)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Listing '%s' failed, skipping: %s", prefix or "/", exc)
            entries = []
        if listings is not None:
            listings[prefix] = entries
        return entries
