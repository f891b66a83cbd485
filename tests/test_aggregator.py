"""Unit tests for per-property image resolution."""

import asyncio

from listing_photos.models import PropertyImageRow, StorageConfig
from listing_photos.resolution import ImageResolver, dedupe, reference_from_row

from conftest import InMemoryStorage

GCS = "https://storage.googleapis.com/property-photos/"

SCENARIO_ROWS = [
    "prop1/cover.jpg",
    "https://host/storage/v1/object/public/property-photos/owner9/prop1/2.jpg",
    "2.jpg",
]


def test_end_to_end_scenario(bucket, storage_config):
    resolver = ImageResolver(bucket, storage_config)
    photos = asyncio.run(resolver.resolve("prop1", "owner9", SCENARIO_ROWS))

    assert photos == [GCS + "prop1/cover.jpg", GCS + "owner9/prop1/2.jpg"]
    assert all("/property-photos/" in url for url in photos)


def test_end_to_end_scenario_without_probing(bucket):
    config = StorageConfig(bucket="property-photos", endpoint="https://storage.googleapis.com", verify_candidates=False)
    photos = asyncio.run(ImageResolver(bucket, config).resolve("prop1", "owner9", SCENARIO_ROWS))

    assert 2 <= len(photos) <= 3
    assert photos[0] == GCS + "prop1/cover.jpg"
    assert photos == [GCS + "prop1/cover.jpg", GCS + "owner9/prop1/2.jpg", GCS + "2.jpg"]
    assert not bucket.exists_calls
    assert not bucket.list_calls


def test_candidates_probed_in_priority_order(bucket, storage_config):
    resolver = ImageResolver(bucket, storage_config)
    url = asyncio.run(resolver.resolve_reference("2.jpg", "prop1", "owner9"))

    assert url == GCS + "owner9/prop1/2.jpg"
    assert bucket.exists_calls == ["2.jpg", "prop1/2.jpg", "owner9/2.jpg", "owner9/prop1/2.jpg"]


def test_search_used_when_no_candidate_exists(bucket, storage_config):
    resolver = ImageResolver(bucket, storage_config)
    url = asyncio.run(resolver.resolve_reference("garden.jpg", "prop1", "owner9"))

    assert url == GCS + "owner9/2023-08/garden.jpg"


def test_unresolvable_reference_falls_back(bucket, storage_config):
    resolver = ImageResolver(bucket, storage_config)
    url = asyncio.run(resolver.resolve_reference("property-photos/ghost/missing.jpg", "prop1", None))

    assert url == GCS + "ghost/missing.jpg"


def test_probe_failures_fall_through_to_search(bucket, storage_config):
    bucket.fail_exists = True
    resolver = ImageResolver(bucket, storage_config)
    url = asyncio.run(resolver.resolve_reference("cover.jpg", "prop1", None))

    assert url == GCS + "prop1/cover.jpg"


def test_dead_references_share_folder_listings(bucket, storage_config):
    resolver = ImageResolver(bucket, storage_config)
    photos = asyncio.run(
        resolver.resolve("prop1", "owner9", ["ghost1.jpg", "ghost2.jpg", "ghost/three.jpg"])
    )

    assert photos == [GCS + "ghost1.jpg", GCS + "ghost2.jpg", GCS + "ghost/three.jpg"]
    assert bucket.list_calls[""] == 1
    assert set(bucket.list_calls.values()) == {1}


def test_storage_outage_still_returns_urls(storage_config):
    storage = InMemoryStorage(failing_prefixes={"", "prop1"})
    storage.fail_exists = True
    resolver = ImageResolver(storage, storage_config)
    photos = asyncio.run(resolver.resolve("prop1", None, ["prop1/a.jpg", "b.jpg"]))

    assert photos == [GCS + "prop1/a.jpg", GCS + "b.jpg"]


def test_external_urls_kept_verbatim(bucket, storage_config):
    resolver = ImageResolver(bucket, storage_config)
    photos = asyncio.run(resolver.resolve("prop1", None, ["https://cdn.example.com/x.jpg"]))

    assert photos == ["https://cdn.example.com/x.jpg"]
    assert not bucket.exists_calls


def test_legacy_columns_appended_and_deduplicated(bucket, storage_config):
    resolver = ImageResolver(bucket, storage_config)
    photos = asyncio.run(
        resolver.resolve(
            "prop1",
            None,
            [{"storage_path": "prop1/kitchen.jpg"}],
            legacy_photos=["property-photos/prop1/kitchen.jpg", "prop1/cover.jpg", None, ""],
            cover_image="public/prop1/cover.jpg",
        )
    )

    assert photos == [GCS + "prop1/kitchen.jpg", GCS + "prop1/cover.jpg"]


def test_output_is_capped(storage_config):
    keys = [f"prop1/img{i:02d}.jpg" for i in range(40)]
    storage = InMemoryStorage(keys)
    photos = asyncio.run(ImageResolver(storage, storage_config).resolve("prop1", None, keys + keys))

    assert len(photos) == 24
    assert photos == [GCS + key for key in keys[:24]]
    assert len(set(photos)) == len(photos)


def test_empty_input_yields_empty_list(bucket, storage_config):
    photos = asyncio.run(ImageResolver(bucket, storage_config).resolve("prop1", "owner9", [], [], None))

    assert photos == []
    assert not bucket.exists_calls
    assert not bucket.list_calls


def test_resolution_is_repeatable(bucket, storage_config):
    resolver = ImageResolver(bucket, storage_config)
    rows = SCENARIO_ROWS + ["garden.jpg", "ghost.jpg"]

    first = asyncio.run(resolver.resolve("prop1", "owner9", rows))
    second = asyncio.run(resolver.resolve("prop1", "owner9", rows))
    assert first == second


def test_reference_from_row_lookup_order():
    assert reference_from_row({"path": "", "file_path": "prop1/a.jpg", "url": "https://x/a.jpg"}) == "prop1/a.jpg"
    assert reference_from_row({"name": "b.jpg", "storage_path": "prop1/a.jpg"}) == "prop1/a.jpg"
    assert reference_from_row({"image_url": "  ", "name": "b.jpg"}) == "b.jpg"
    assert reference_from_row(PropertyImageRow(url="https://x/c.jpg", name="c.jpg")) == "https://x/c.jpg"
    assert reference_from_row(" d.jpg ") == "d.jpg"
    assert reference_from_row({}) is None
    assert reference_from_row(None) is None


def test_rows_without_reference_are_skipped(bucket, storage_config):
    photos = asyncio.run(
        ImageResolver(bucket, storage_config).resolve("prop1", None, [{"position": 1}, {"path": "prop1/cover.jpg"}])
    )
    assert photos == [GCS + "prop1/cover.jpg"]


def test_dedupe_keeps_first_occurrence():
    assert dedupe(["b", None, "a", "b", "", "c", "a"]) == ["b", "a", "c"]
