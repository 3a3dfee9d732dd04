"""Storage package - blob store adapters."""

from shared_notes.storage.blob_store import (
    BlobStore,
    MemoryBlobStore,
    RedisBlobStore,
    create_blob_store,
)

__all__ = [
    "BlobStore",
    "MemoryBlobStore",
    "RedisBlobStore",
    "create_blob_store",
]
