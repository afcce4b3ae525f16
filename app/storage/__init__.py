"""
Blob storage abstraction layer.

This package stores raw file bytes under storage-assigned names, keeping
byte handling separate from the file metadata kept in the database.
"""

from app.storage.base import BlobStore
from app.storage.local import LocalBlobStore
from app.storage.exceptions import (
    BlobNotFoundError,
    BlobTooLargeError,
    InvalidBlobRefError,
    StorageError,
)

__all__ = [
    "BlobStore",
    "LocalBlobStore",
    "BlobNotFoundError",
    "BlobTooLargeError",
    "InvalidBlobRefError",
    "StorageError",
]
