from __future__ import annotations

from urllib.parse import quote

from listing_photos.models import StorageConfig


def build_public_url(path: str, config: StorageConfig) -> str:
    """Return the public URL of ``path`` inside the configured bucket.

    Pure string construction; the object is not checked for existence.
    """

    return config.public_root + quote(path.lstrip("/"), safe="/")
