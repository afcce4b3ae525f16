"""
Storage-specific exceptions.

These exceptions provide detailed error handling for blob store operations.
"""


class StorageError(Exception):
    """Base exception for storage operations."""

    pass


class BlobTooLargeError(StorageError):
    """Raised when uploaded bytes exceed the maximum size limit."""

    def __init__(self, size: int, max_size: int):
        self.size = size
        self.max_size = max_size
        super().__init__(
            f"Blob size ({size} bytes) exceeds maximum allowed size ({max_size} bytes)"
        )


class BlobNotFoundError(StorageError):
    """Raised when a blob reference does not exist in storage."""

    def __init__(self, blob_ref: str):
        self.blob_ref = blob_ref
        super().__init__(f"Blob not found: {blob_ref}")


class InvalidBlobRefError(StorageError):
    """Raised when a blob reference is not a storage-generated name."""

    def __init__(self, blob_ref: str):
        self.blob_ref = blob_ref
        super().__init__(f"Invalid blob reference: {blob_ref!r}")
