from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class PropertyImageRow(BaseModel):
    """A row of the per-property image table.

    Different upload paths wrote the reference into different columns, so
    every known column is optional.
    """

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    property_id: str | None = None
    storage_path: str | None = None
    path: str | None = None
    file_path: str | None = None
    url: str | None = None
    image_url: str | None = None
    name: str | None = None
    position: int | None = None
    sort_order: int | None = None
    order: int | None = None
    created_at: datetime | None = None

    @property
    def display_order(self) -> int | None:
        for value in (self.position, self.sort_order, self.order):
            if value is not None:
                return value
        return None


class Property(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    title: str = ""
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    location: str | None = None
    city: str | None = None
    type: str | None = None
    status: Literal["draft", "published", "archived"] = "published"
    listing_type: str | None = None
    bedrooms: int | None = None
    bathrooms: int | None = None
    agent_id: str | None = None
    user_id: str | None = None
    photos: list[str | None] | None = None  # legacy array column
    og_image_url: str | None = None
    cover_url: str | None = None
    slug: str | None = None
    created_at: datetime | None = None

    @property
    def owner_id(self) -> str | None:
        return self.agent_id or self.user_id

    @property
    def cover_image(self) -> str | None:
        return self.og_image_url or self.cover_url


class PropertyWithPhotos(Property):
    """Property payload handed to listing and detail pages."""

    photos: list[str] = []
