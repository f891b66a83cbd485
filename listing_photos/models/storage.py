from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StorageConfig(BaseModel):
    """Bucket and resolution settings injected into the image resolver."""

    model_config = ConfigDict(frozen=True)

    bucket: str = Field(..., min_length=1)
    endpoint: str = Field(..., min_length=1)  # e.g. https://storage.googleapis.com
    public_path: str = ""  # e.g. storage/v1/object/public
    list_limit: int = Field(1000, ge=1)
    bfs_max_prefixes: int = Field(256, ge=1)
    max_photos: int = Field(24, ge=1)
    verify_candidates: bool = True
    resolve_concurrency: int = Field(8, ge=1)

    @field_validator("endpoint")
    @classmethod
    def _strip_endpoint(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("public_path")
    @classmethod
    def _strip_public_path(cls, value: str) -> str:
        return value.strip("/")

    @property
    def public_root(self) -> str:
        """URL prefix every public object URL of the bucket starts with."""

        parts = [self.endpoint]
        if self.public_path:
            parts.append(self.public_path)
        parts.append(self.bucket)
        return "/".join(parts) + "/"


class StorageEntry(BaseModel):
    """One child returned by a bucket folder listing."""

    name: str
    type: Literal["file", "folder"]
    updated_at: datetime | None = None

    @property
    def is_folder(self) -> bool:
        return self.type == "folder"
