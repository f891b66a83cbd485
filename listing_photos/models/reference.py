"""Classified forms of a raw image reference.

A raw reference is classified exactly once into one of these variants and
candidate generation dispatches on the variant.
"""
from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict


class _ReferenceBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    raw: str


class AbsoluteUrl(_ReferenceBase):
    """An http(s) URL that does not point into the configured bucket."""

    kind: Literal["absolute_url"] = "absolute_url"
    url: str


class BucketRelativePath(_ReferenceBase):
    """A multi-segment path inside the bucket, e.g. ``owner/prop/a.jpg``."""

    kind: Literal["bucket_path"] = "bucket_path"
    path: str

    @property
    def segments(self) -> list[str]:
        return self.path.split("/")

    @property
    def basename(self) -> str:
        return self.segments[-1]

    @property
    def parent(self) -> str | None:
        segments = self.segments
        return segments[-2] if len(segments) > 1 else None


class BareFilename(_ReferenceBase):
    """A single path segment such as ``2.jpg``."""

    kind: Literal["bare_filename"] = "bare_filename"
    filename: str

    @property
    def basename(self) -> str:
        return self.filename


Reference = Union[AbsoluteUrl, BucketRelativePath, BareFilename]
