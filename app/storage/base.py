"""
Abstract base class for blob stores.

This module defines the interface that all blob store backends must implement.
A blob store only knows about bytes and the names it assigns to them; file
names, owners and folders are metadata kept by the hierarchy service.
"""
from abc import ABC, abstractmethod
from typing import AsyncIterator


class BlobStore(ABC):
    """
    Abstract base class for blob stores.

    All storage implementations (local filesystem, S3, etc.) must implement
    these methods so the API layer can switch backends through configuration.
    """

    @abstractmethod
    async def store(self, byte_stream: AsyncIterator[bytes]) -> str:
        """
        Persist bytes under a newly generated unique name.

        Args:
            byte_stream: Async iterator yielding file chunks

        Returns:
            The blob reference (storage-assigned name)

        Raises:
            BlobTooLargeError: If the stream exceeds the maximum size
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def retrieve(self, blob_ref: str) -> AsyncIterator[bytes]:
        """
        Open a stored blob for reading.

        Args:
            blob_ref: Reference returned by store()

        Returns:
            Async iterator yielding the blob's bytes in chunks

        Raises:
            BlobNotFoundError: If the reference does not exist
        """
        pass

    @abstractmethod
    def get_path(self, blob_ref: str) -> str:
        """
        Get the path/key for serving a blob.

        Raises:
            BlobNotFoundError: If the reference does not exist
        """
        pass

    @abstractmethod
    async def delete(self, blob_ref: str) -> bool:
        """
        Delete a blob, best effort.

        Failures (including an already absent blob) are logged, not raised.

        Returns:
            True if bytes were removed, False otherwise
        """
        pass

    @abstractmethod
    def exists(self, blob_ref: str) -> bool:
        """Check if a blob exists in storage."""
        pass

    @abstractmethod
    def list_refs(self) -> list[str]:
        """List the references of all stored blobs."""
        pass
