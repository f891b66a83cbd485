#!/usr/bin/env python
"""Script to print the resolved photo URLs of a stored property."""
from __future__ import annotations

import argparse
import asyncio
import logging

from listing_photos.handlers.properties_handler import get_repository


async def _run(property_id: str) -> int:
    repository = get_repository()
    prop = await repository.get_property(property_id)
    if prop is None:
        print(f"Property {property_id} not found")
        return 1
    print(f"{prop.title or prop.id}: {len(prop.photos)} photo(s)")
    for url in prop.photos:
        print(url)
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Resolve the photo URLs of a property")
    parser.add_argument("property_id")
    parser.add_argument("--verbose", action="store_true", help="Log storage listings and probes")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    raise SystemExit(asyncio.run(_run(args.property_id)))


if __name__ == "__main__":
    main()
