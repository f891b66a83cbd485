"""Shared test fixtures for listing_photos tests."""

import os
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence

import pytest

# ---------------------------------------------------------------------------
# Keep tests independent of any local .env before importing app modules
# ---------------------------------------------------------------------------
os.environ.setdefault("BUCKET_NAME", "property-photos")
os.environ.setdefault("STORAGE_ENDPOINT", "https://storage.googleapis.com")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from listing_photos.models import Property, PropertyImageRow, StorageConfig, StorageEntry  # noqa: E402
from listing_photos.services.firebase_db import PropertyStore, sort_image_rows  # noqa: E402
from listing_photos.services.storage import StorageBackend, StorageError, sort_newest_first  # noqa: E402

BASE_TIME = datetime(2024, 5, 1, tzinfo=timezone.utc)


class InMemoryStorage(StorageBackend):
    """Bucket fake holding object keys with modification times."""

    def __init__(self, objects: Iterable[str] = (), *, failing_prefixes: Iterable[str] = ()) -> None:
        self.objects: Dict[str, datetime] = {}
        for i, key in enumerate(objects):
            self.add(key, updated_at=BASE_TIME + timedelta(minutes=i))
        self.failing_prefixes = set(failing_prefixes)
        self.fail_exists = False
        self.list_calls: Counter = Counter()
        self.exists_calls: List[str] = []

    def add(self, key: str, *, updated_at: Optional[datetime] = None) -> None:
        self.objects[key] = updated_at or BASE_TIME

    async def list(self, prefix: str, *, limit: int = 1000) -> List[StorageEntry]:
        self.list_calls[prefix] += 1
        if prefix in self.failing_prefixes:
            raise StorageError(f"listing {prefix!r} unavailable")
        key_prefix = f"{prefix}/" if prefix else ""
        files: Dict[str, datetime] = {}
        folders = set()
        for key, updated_at in self.objects.items():
            if not key.startswith(key_prefix):
                continue
            rest = key[len(key_prefix):]
            head, sep, _ = rest.partition("/")
            if sep:
                folders.add(head)
            else:
                files[head] = updated_at
        entries = [StorageEntry(name=n, type="file", updated_at=t) for n, t in files.items()]
        entries += [StorageEntry(name=n, type="folder") for n in sorted(folders)]
        return sort_newest_first(entries)[:limit]

    async def exists(self, path: str) -> bool:
        self.exists_calls.append(path)
        if self.fail_exists:
            raise StorageError("probe unavailable")
        return path in self.objects


class FakePropertyStore(PropertyStore):
    """Property store fake backed by dictionaries."""

    def __init__(
        self,
        properties: Sequence[Property] = (),
        image_rows: Optional[Dict[str, List[PropertyImageRow]]] = None,
    ) -> None:
        self.properties = {p.id: p for p in properties}
        self.image_rows = image_rows or {}
        self.failing_rows = set()

    async def get_property(self, property_id: str) -> Optional[Property]:
        return self.properties.get(property_id)

    async def get_properties(self, property_ids: Sequence[str]) -> List[Property]:
        return [self.properties[pid] for pid in property_ids if pid in self.properties]

    async def list_properties(self, *, limit: int = 20, status: Optional[str] = "published") -> List[Property]:
        found = [p for p in self.properties.values() if status is None or p.status == status]
        return found[:limit]

    async def fetch_image_rows(self, property_id: str) -> List[PropertyImageRow]:
        if property_id in self.failing_rows:
            raise RuntimeError("image table unavailable")
        return sort_image_rows(list(self.image_rows.get(property_id, [])))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def storage_config() -> StorageConfig:
    return StorageConfig(bucket="property-photos", endpoint="https://storage.googleapis.com")


@pytest.fixture
def supabase_config() -> StorageConfig:
    """Configuration for a gateway serving objects under /storage/v1/object/public."""
    return StorageConfig(
        bucket="property-photos",
        endpoint="https://abc.supabase.co/",
        public_path="/storage/v1/object/public/",
    )


@pytest.fixture
def bucket() -> InMemoryStorage:
    return InMemoryStorage(
        [
            "prop1/cover.jpg",
            "prop1/kitchen.jpg",
            "owner9/prop1/2.jpg",
            "owner9/2023-08/garden.jpg",
            "archive/2019/old/pool.jpg",
        ]
    )
