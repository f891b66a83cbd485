"""Property fetching with resolved photo URLs attached.

This is the only entry point the HTTP layer uses for images; nothing else
talks to the resolver, the candidate generator or the locator directly.
"""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from listing_photos.models import Property, PropertyWithPhotos
from listing_photos.resolution import ImageResolver
from listing_photos.resolution.aggregator import ImageRow
from listing_photos.services.firebase_db import PropertyStore

logger = logging.getLogger(__name__)


class PropertyRepository:
    """Fetches properties from the store and resolves their photos."""

    def __init__(self, store: PropertyStore, resolver: ImageResolver) -> None:
        self._store = store
        self._resolver = resolver
        self._concurrency = resolver.config.resolve_concurrency

    async def resolve_images(
        self,
        property_id: str,
        owner_id: str | None = None,
        raw_rows: Sequence[ImageRow] | None = None,
        legacy_photos: Sequence[Optional[str]] | None = None,
        cover_image: str | None = None,
    ) -> List[str]:
        """Resolve a property's photos; any failure yields an empty list."""

        try:
            return await self._resolver.resolve(property_id, owner_id, raw_rows, legacy_photos, cover_image)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Image resolution failed for property %s: %s", property_id, exc)
            return []

    async def get_property(self, property_id: str) -> PropertyWithPhotos | None:
        prop = await self._store.get_property(property_id)
        if prop is None:
            return None
        return await self._attach_photos(prop)

    async def get_properties(self, property_ids: Sequence[str]) -> List[PropertyWithPhotos]:
        properties = await self._store.get_properties(property_ids)
        return await self._attach_photos_many(properties)

    async def list_properties(self, *, limit: int = 20, status: str | None = "published") -> List[PropertyWithPhotos]:
        properties = await self._store.list_properties(limit=limit, status=status)
        return await self._attach_photos_many(properties)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _attach_photos(self, prop: Property) -> PropertyWithPhotos:
        try:
            rows = await self._store.fetch_image_rows(prop.id)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not fetch image rows for property %s: %s", prop.id, exc)
            rows = []
        photos = await self.resolve_images(prop.id, prop.owner_id, rows, prop.photos, prop.cover_image)
        payload = prop.model_dump(exclude={"photos"})
        return PropertyWithPhotos(**payload, photos=photos)

    async def _attach_photos_many(self, properties: Sequence[Property]) -> List[PropertyWithPhotos]:
        semaphore = asyncio.Semaphore(self._concurrency)

        async def bounded(prop: Property) -> PropertyWithPhotos:
            async with semaphore:
                return await self._attach_photos(prop)

        # gather keeps the results in the order of the store's rows
        return list(await asyncio.gather(*(bounded(p) for p in properties)))
