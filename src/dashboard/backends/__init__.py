"""Record, blob and identity store backends."""

from .base import BlobStore, EntityRecord, IdentityStore, RecordStore, StoreBundle
from .exceptions import BackendNotConfiguredError, ResourceNotFoundError
from .factory import build_local_bundle, build_store_bundle

__all__ = [
    "BlobStore",
    "EntityRecord",
    "IdentityStore",
    "RecordStore",
    "StoreBundle",
    "BackendNotConfiguredError",
    "ResourceNotFoundError",
    "build_local_bundle",
    "build_store_bundle",
]
