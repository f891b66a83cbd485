"""Property endpoints returning listings with resolved photo URLs."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from listing_photos.config import get_settings
from listing_photos.models import PropertyImageRow, PropertyWithPhotos
from listing_photos.resolution import ImageResolver
from listing_photos.services.firebase_db import PropertyStoreError, get_property_store
from listing_photos.services.repository import PropertyRepository
from listing_photos.services.storage import get_storage

router = APIRouter()
logger = logging.getLogger(__name__)


@lru_cache()
def get_repository() -> PropertyRepository:  # pragma: no cover
    settings = get_settings()
    resolver = ImageResolver(get_storage(), settings.storage_config())
    return PropertyRepository(get_property_store(), resolver)


class ResolveRequest(BaseModel):
    property_id: str = Field(..., min_length=1)
    owner_id: str | None = None
    rows: List[PropertyImageRow | str] = []
    photos: List[Optional[str]] = []
    cover_image: str | None = None


class ResolveResponse(BaseModel):
    photos: List[str]


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


@router.get("/properties", response_model=List[PropertyWithPhotos])
async def list_properties(
    limit: int | None = Query(None, ge=1, le=100),
    repository: PropertyRepository = Depends(get_repository),
):
    properties = await repository.list_properties(limit=limit or get_settings().listing_page_size)
    logger.info("Listed %d properties", len(properties))
    return properties


@router.get("/properties/{property_id}", response_model=PropertyWithPhotos)
async def get_property(property_id: str, repository: PropertyRepository = Depends(get_repository)):
    try:
        prop = await repository.get_property(property_id)
    except PropertyStoreError as exc:
        logger.warning("Unreadable property %s: %s", property_id, exc)
        prop = None
    if prop is None:
        raise HTTPException(status_code=404, detail="Property not found")
    return prop


# ---------------------------------------------------------------------------
# Resolution without a stored property
# ---------------------------------------------------------------------------


@router.post("/images/resolve", response_model=ResolveResponse)
async def resolve_images(body: ResolveRequest, repository: PropertyRepository = Depends(get_repository)):
    photos = await repository.resolve_images(
        body.property_id,
        body.owner_id,
        body.rows,
        body.photos,
        body.cover_image,
    )
    return ResolveResponse(photos=photos)
