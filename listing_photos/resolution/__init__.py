from .aggregator import ImageResolver, dedupe, reference_from_row
from .candidates import candidates_for, generate_candidates
from .locator import BucketLocator
from .references import classify_reference, normalize_reference
from .urls import build_public_url

__all__ = [
    "BucketLocator",
    "ImageResolver",
    "build_public_url",
    "candidates_for",
    "classify_reference",
    "dedupe",
    "generate_candidates",
    "normalize_reference",
    "reference_from_row",
]
