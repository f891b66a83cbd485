from .property import Property, PropertyImageRow, PropertyWithPhotos
from .reference import AbsoluteUrl, BareFilename, BucketRelativePath, Reference
from .storage import StorageConfig, StorageEntry

__all__ = [
    "AbsoluteUrl",
    "BareFilename",
    "BucketRelativePath",
    "Property",
    "PropertyImageRow",
    "PropertyWithPhotos",
    "Reference",
    "StorageConfig",
    "StorageEntry",
]
