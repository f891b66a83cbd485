"""Firebase Realtime Database access for property records.

Properties and their image rows are stored under the following path
structure:

/properties/{property_id}
/property_images/{property_id}/{image_id}

All data is validated with Pydantic models before being returned. The
Admin SDK is blocking, so the async methods run each query in a worker
thread.
"""
from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, List, Optional, Sequence

import firebase_admin
from firebase_admin import credentials, db
from pydantic import ValidationError

from listing_photos.config import Settings, get_settings
from listing_photos.models import Property, PropertyImageRow

logger = logging.getLogger(__name__)


class PropertyStoreError(Exception):
    """Raised when a stored property record cannot be read."""


class PropertyStore(ABC):
    """Read access to property rows and their image rows."""

    @abstractmethod
    async def get_property(self, property_id: str) -> Property | None: ...

    @abstractmethod
    async def get_properties(self, property_ids: Sequence[str]) -> List[Property]: ...

    @abstractmethod
    async def list_properties(self, *, limit: int = 20, status: str | None = "published") -> List[Property]: ...

    @abstractmethod
    async def fetch_image_rows(self, property_id: str) -> List[PropertyImageRow]: ...


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def initialise_firebase(settings: Settings) -> None:
    """Initialise the Firebase Admin SDK exactly once."""

    if firebase_admin._apps:  # type: ignore[attr-defined]
        return
    try:
        if settings.firebase_credentials_json:
            # Accept path or JSON string
            cred_obj: credentials.Base = (
                credentials.Certificate(settings.firebase_credentials_json)
                if settings.firebase_credentials_json.endswith(".json")
                else credentials.Certificate(json.loads(settings.firebase_credentials_json))
            )
        else:
            # Attempt default credentials (useful on Cloud Run with workload identity)
            cred_obj = credentials.ApplicationDefault()

        firebase_admin.initialize_app(cred_obj, {"databaseURL": settings.database_url})
        logger.info("Firebase Admin SDK initialised.")
    except Exception as exc:  # pragma: no cover
        logger.exception("Failed to initialise Firebase Admin SDK: %s", exc)
        raise


def _validate_property(data: dict[str, Any], property_id: str) -> Property:
    data = {**data, "id": data.get("id") or property_id}
    try:
        return Property.model_validate(data)
    except ValidationError as exc:
        raise PropertyStoreError(f"Malformed property record {property_id}: {exc}") from exc


def sort_image_rows(rows: List[PropertyImageRow]) -> List[PropertyImageRow]:
    """Order rows by their display position; a missing position counts as 0 (stable)."""

    return sorted(rows, key=lambda r: r.display_order or 0)


def _validate_image_rows(raw_items: dict[str, Any] | list[Any] | None, property_id: str) -> List[PropertyImageRow]:
    if isinstance(raw_items, list):  # RTDB returns lists for integer keys
        raw_items = {str(i): item for i, item in enumerate(raw_items) if item is not None}
    rows: List[PropertyImageRow] = []
    for image_id, item in (raw_items or {}).items():
        if isinstance(item, str):
            item = {"storage_path": item}
        if not isinstance(item, dict):
            logger.warning("Skipping image row %s of property %s: not an object", image_id, property_id)
            continue
        try:
            rows.append(PropertyImageRow.model_validate({"id": image_id, "property_id": property_id, **item}))
        except ValidationError as exc:
            logger.warning("Skipping malformed image row %s of property %s: %s", image_id, property_id, exc)
    return sort_image_rows(rows)


class FirebaseDB(PropertyStore):  # pylint: disable=too-few-public-methods
    """Wrapper around Firebase Realtime Database reads."""

    def __init__(self, root: Optional[db.Reference] = None) -> None:
        self._root = root if root is not None else db.reference("/")

    # -------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------

    async def get_property(self, property_id: str) -> Property | None:
        return await asyncio.to_thread(self._get_property_sync, property_id)

    async def get_properties(self, property_ids: Sequence[str]) -> List[Property]:
        found = await asyncio.gather(*(self._get_property_or_skip(pid) for pid in property_ids))
        return [p for p in found if p is not None]

    async def _get_property_or_skip(self, property_id: str) -> Property | None:
        try:
            return await self.get_property(property_id)
        except PropertyStoreError as exc:
            logger.warning("Skipping property: %s", exc)
            return None

    async def list_properties(self, *, limit: int = 20, status: str | None = "published") -> List[Property]:
        return await asyncio.to_thread(self._list_properties_sync, limit, status)

    # -------------------------------------------------------------------
    # Image rows
    # -------------------------------------------------------------------

    async def fetch_image_rows(self, property_id: str) -> List[PropertyImageRow]:
        return await asyncio.to_thread(self._fetch_image_rows_sync, property_id)

    # -------------------------------------------------------------------
    # Blocking implementations
    # -------------------------------------------------------------------

    def _get_property_sync(self, property_id: str) -> Property | None:
        data = self._root.child("properties").child(property_id).get()
        if data is None:
            return None
        if not isinstance(data, dict):
            raise PropertyStoreError(f"Malformed property record {property_id}: not an object")
        return _validate_property(data, property_id)

    def _list_properties_sync(self, limit: int, status: str | None) -> List[Property]:
        query = self._root.child("properties").order_by_child("created_at")
        raw_items = query.get() or {}
        # raw_items is a dict keyed by property_id -> data, oldest first
        items = list(raw_items.items())
        items.reverse()

        properties: List[Property] = []
        for property_id, data in items:
            if not isinstance(data, dict):
                logger.warning("Skipping property %s: not an object", property_id)
                continue
            if status is not None and data.get("status", "published") != status:
                continue
            try:
                properties.append(_validate_property(data, property_id))
            except PropertyStoreError as exc:
                logger.warning("Skipping property: %s", exc)
                continue
            if len(properties) >= limit:
                break
        return properties

    def _fetch_image_rows_sync(self, property_id: str) -> List[PropertyImageRow]:
        raw_items = self._root.child("property_images").child(property_id).get()
        rows = _validate_image_rows(raw_items, property_id)
        logger.debug("Fetched %d image row(s) for property %s", len(rows), property_id)
        return rows


@lru_cache()
def get_property_store() -> PropertyStore:  # pragma: no cover
    """Return the process-wide Firebase-backed store."""

    initialise_firebase(get_settings())
    return FirebaseDB()
