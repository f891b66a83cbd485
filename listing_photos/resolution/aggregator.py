"""Resolution of a property's stored image references into public URLs.

For every image row, in the order the rows were fetched:

1. classify the raw reference (external URL, bucket path, bare filename);
2. external URLs are kept verbatim;
3. otherwise candidate paths are probed in priority order and the first
   existing object wins;
4. when no candidate exists the bucket is searched breadth-first for the
   basename;
5. when that misses too, the first candidate (or the raw string) is used
   as-is so that the property still renders something.

The legacy ``photos`` array and the cover image are appended afterwards,
the list is de-duplicated and capped at ``max_photos``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from listing_photos.models import AbsoluteUrl, PropertyImageRow, Reference, StorageConfig, StorageEntry
from listing_photos.services.storage import StorageBackend

from .candidates import candidates_for
from .locator import BucketLocator
from .references import classify_reference, is_absolute_url, normalize_reference
from .urls import build_public_url

logger = logging.getLogger(__name__)

# Column lookup order for image rows; the first non-empty value wins.
ROW_REFERENCE_FIELDS = ("storage_path", "path", "file_path", "url", "image_url", "name")

ImageRow = Union[PropertyImageRow, Mapping[str, Any], str]


def reference_from_row(row: ImageRow | None) -> str | None:
    """Extract the raw image reference from a row of the image table."""

    if row is None:
        return None
    if isinstance(row, str):
        return row.strip() or None
    if isinstance(row, PropertyImageRow):
        row = row.model_dump()
    for field in ROW_REFERENCE_FIELDS:
        value = row.get(field)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def dedupe(urls: Iterable[Optional[str]]) -> List[str]:
    """Drop empty and repeated URLs, keeping first occurrences in order."""

    seen: set[str] = set()
    out: List[str] = []
    for url in urls:
        if not url or url in seen:
            continue
        seen.add(url)
        out.append(url)
    return out


class ImageResolver:
    """Turns the stored image references of one property into public URLs."""

    def __init__(
        self,
        storage: StorageBackend,
        config: StorageConfig,
        *,
        locator: BucketLocator | None = None,
    ) -> None:
        self._storage = storage
        self._config = config
        self._locator = locator or BucketLocator(storage, config)

    @property
    def config(self) -> StorageConfig:
        return self._config

    async def resolve(
        self,
        property_id: str,
        owner_id: str | None = None,
        raw_rows: Sequence[ImageRow] | None = None,
        legacy_photos: Sequence[Optional[str]] | None = None,
        cover_image: str | None = None,
    ) -> List[str]:
        resolved: List[Optional[str]] = []
        listings: Dict[str, List[StorageEntry]] = {}
        for row in raw_rows or ():
            raw = reference_from_row(row)
            if raw is None:
                continue
            resolved.append(await self.resolve_reference(raw, property_id, owner_id, listings=listings))

        for raw in legacy_photos or ():
            resolved.append(self.to_public_url(raw))
        resolved.append(self.to_public_url(cover_image))

        photos = dedupe(resolved)[: self._config.max_photos]
        logger.debug("Resolved %d photo(s) for property %s", len(photos), property_id)
        return photos

    async def resolve_reference(
        self,
        raw: str,
        property_id: str,
        owner_id: str | None = None,
        *,
        listings: Optional[Dict[str, List[StorageEntry]]] = None,
    ) -> str | None:
        """Resolve one raw reference; falls back to a best-effort URL, never raises."""

        try:
            reference = classify_reference(raw, self._config)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not classify image reference %r: %s", raw, exc)
            return self._fallback_url(raw, [])
        if reference is None:
            return None
        if isinstance(reference, AbsoluteUrl):
            return reference.url

        candidates = candidates_for(reference, property_id, owner_id)
        path = await self._pick_candidate(candidates)
        if path is None:
            path = await self._locate(reference, property_id, owner_id, listings)
        if path is None:
            logger.info("No stored object found for %r (property %s)", raw, property_id)
            return self._fallback_url(raw, candidates)
        return build_public_url(path, self._config)

    def to_public_url(self, raw: str | None) -> str | None:
        """Map a reference to a URL without any storage round-trip."""

        path = normalize_reference(raw, self._config)
        if not path:
            return None
        if is_absolute_url(path):
            return path
        return build_public_url(path, self._config)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _pick_candidate(self, candidates: List[str]) -> str | None:
        if not candidates:
            return None
        if not self._config.verify_candidates:
            return candidates[0]
        for candidate in candidates:
            try:
                if await self._storage.exists(candidate):
                    return candidate
            except Exception as exc:  # noqa: BLE001
                logger.warning("Existence check for '%s' failed: %s", candidate, exc)
        return None

    async def _locate(
        self,
        reference: Reference,
        property_id: str,
        owner_id: str | None,
        listings: Optional[Dict[str, List[StorageEntry]]],
    ) -> str | None:
        seeds = [property_id, owner_id]
        if owner_id:
            seeds.append(f"{owner_id}/{property_id}")
        return await self._locator.locate(reference.basename, seeds, listings=listings)

    def _fallback_url(self, raw: str, candidates: List[str]) -> str | None:
        if candidates:
            return build_public_url(candidates[0], self._config)
        return self.to_public_url(raw)
