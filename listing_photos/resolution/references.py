"""Normalization and classification of raw image references.

Stored references drifted over time. All of the following name the same
object of the ``property-photos`` bucket::

    https://<host>/storage/v1/object/public/property-photos/prop1/a.jpg
    property-photos/prop1/a.jpg
    public/prop1/a.jpg
    /prop1/a.jpg
    prop1/a.jpg

``normalize_reference`` reduces each of them to ``prop1/a.jpg`` and
``classify_reference`` tags the result so candidate generation can
dispatch on its shape.
"""
from __future__ import annotations

import logging
import re
from urllib.parse import unquote, urlsplit

from listing_photos.models import (
    AbsoluteUrl,
    BareFilename,
    BucketRelativePath,
    Reference,
    StorageConfig,
)

logger = logging.getLogger(__name__)

_ABSOLUTE_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
_SUPABASE_PUBLIC_PATH = "storage/v1/object/public"


def is_absolute_url(raw: str) -> bool:
    return bool(_ABSOLUTE_URL_RE.match(raw))


def _bucket_key_from_url(url: str, config: StorageConfig) -> str | None:
    """Return the object key of a public bucket URL, or None for foreign URLs."""

    parts = urlsplit(url)
    path = parts.path.lstrip("/")
    bucket_prefixes = [f"{_SUPABASE_PUBLIC_PATH}/{config.bucket}/"]
    if config.public_path:
        bucket_prefixes.append(f"{config.public_path}/{config.bucket}/")
    for prefix in bucket_prefixes:
        if path.startswith(prefix):
            return path[len(prefix):]

    # Path-style URL on the configured endpoint, e.g. storage.googleapis.com/<bucket>/key
    endpoint_host = urlsplit(config.endpoint).netloc.lower()
    if parts.netloc.lower() == endpoint_host and path.startswith(f"{config.bucket}/"):
        return path[len(config.bucket) + 1:]
    return None


def _strip_relative_prefixes(path: str, config: StorageConfig) -> str:
    prefixes = [f"{_SUPABASE_PUBLIC_PATH}/{config.bucket}/", f"{config.bucket}/", "public/"]
    if config.public_path:
        prefixes.insert(0, f"{config.public_path}/{config.bucket}/")

    changed = True
    while changed:
        changed = False
        path = path.lstrip("/")
        for prefix in prefixes:
            if path.startswith(prefix):
                path = path[len(prefix):]
                changed = True
            elif path == prefix.rstrip("/"):
                path = ""
    return path


def _decode(path: str) -> str:
    try:
        return unquote(path, errors="strict")
    except UnicodeDecodeError:
        logger.debug("Keeping undecodable reference as-is: %s", path)
        return path


def normalize_reference(raw: str | None, config: StorageConfig) -> str:
    """Reduce a raw reference to a decoded bucket-relative path.

    Absolute URLs that do not point into the bucket are returned unchanged.
    Returns ``""`` for empty input.
    """

    if not raw or not raw.strip():
        return ""
    value = raw.strip()

    if is_absolute_url(value):
        key = _bucket_key_from_url(value, config)
        if key is None:
            return value
        value = key

    # Decode first: an encoded slash may hide a "public/" or bucket prefix.
    path = _decode(value)
    path = "/".join(segment for segment in path.split("/") if segment)
    return _strip_relative_prefixes(path, config)


def classify_reference(raw: str | None, config: StorageConfig) -> Reference | None:
    """Tag a raw reference as an external URL, a bucket path or a bare filename."""

    if not raw or not raw.strip():
        return None
    raw = raw.strip()

    if is_absolute_url(raw) and _bucket_key_from_url(raw, config) is None:
        return AbsoluteUrl(raw=raw, url=raw)

    path = normalize_reference(raw, config)
    if not path:
        return None
    if "/" in path:
        return BucketRelativePath(raw=raw, path=path)
    return BareFilename(raw=raw, filename=path)
