"""Candidate bucket paths for a normalized reference.

Uploads were written under several layouts over the product's lifetime::

    <property_id>/<file>
    <owner_id>/<property_id>/<file>
    <owner_id>/<date>/<file>
    <file>

Every plausible reconstruction is produced in priority order, most
specific first, so that the common case is settled by the first guess.
"""
from __future__ import annotations

from typing import Iterable, Optional

from listing_photos.models import AbsoluteUrl, BareFilename, BucketRelativePath, Reference


def _ordered_unique(paths: Iterable[Optional[str]]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for path in paths:
        if not path or path in seen:
            continue
        seen.add(path)
        out.append(path)
    return out


def _join(*segments: Optional[str]) -> Optional[str]:
    if any(not segment for segment in segments):
        return None
    return "/".join(segments)  # type: ignore[arg-type]


def generate_candidates(path: str, property_id: str, owner_id: str | None = None) -> list[str]:
    """Return candidate bucket-relative paths for ``path`` in priority order."""

    if not path:
        return []
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return []

    full = "/".join(segments)
    basename = segments[-1]
    parent = segments[-2] if len(segments) > 1 else None

    return _ordered_unique(
        [
            full,
            "/".join(segments[1:]) if len(segments) > 1 else None,
            "/".join(segments[2:]) if len(segments) > 2 else None,
            basename,
            _join(property_id, basename),
            _join(property_id, parent, basename),
            _join(owner_id, basename),
            _join(owner_id, property_id, basename),
            _join(owner_id, parent, basename),
        ]
    )


def candidates_for(reference: Reference, property_id: str, owner_id: str | None = None) -> list[str]:
    """Dispatch candidate generation on the classified reference."""

    if isinstance(reference, AbsoluteUrl):
        return []
    if isinstance(reference, BucketRelativePath):
        return generate_candidates(reference.path, property_id, owner_id)
    if isinstance(reference, BareFilename):
        return generate_candidates(reference.filename, property_id, owner_id)
    raise TypeError(f"Unsupported reference type: {type(reference).__name__}")
