"""
Local filesystem blob store.

This module provides a local filesystem implementation of the blob store
with async file operations and an S3-compatible sharded directory structure.
"""
import os
import re
from pathlib import Path
from typing import AsyncIterator

import aiofiles

from app.config import settings
from app.logging_config import setup_logging
from app.storage.base import BlobStore
from app.storage.exceptions import (
    BlobNotFoundError,
    BlobTooLargeError,
    InvalidBlobRefError,
    StorageError,
)
from app.utils.ids import generate_short_id

logger = setup_logging("storage")

# Refs are generated by generate_short_id(), so anything else cannot name a blob
BLOB_REF_PATTERN = re.compile(r"^[0-9A-Za-z]{4,64}$")
CHUNK_SIZE = 64 * 1024  # 64KB
MAX_NAME_ATTEMPTS = 5


class LocalBlobStore(BlobStore):
    """
    Local filesystem blob store with async operations.

    Uses sharded directory structure for efficient file organization:
    <base_path>/blobs/<prefix>/<blob_ref>

    This structure maps directly to S3 buckets for easy migration.
    """

    def __init__(self, base_path: str | None = None, max_size_mb: int = 1000):
        """
        Initialize local blob store.

        Args:
            base_path: Base directory for blob storage (default from config)
            max_size_mb: Maximum blob size in MB
        """
        self.base_path = Path(base_path or settings.STORAGE_BASE_PATH)
        self.max_size_bytes = max_size_mb * 1024 * 1024

    async def store(self, byte_stream: AsyncIterator[bytes]) -> str:
        """
        Stream bytes to disk under a new unique name.

        The file is opened in exclusive-create mode, so an existing blob is
        never overwritten; on a name clash a fresh name is drawn.

        Raises:
            BlobTooLargeError: If the stream exceeds max_size_bytes
            StorageError: If the write fails
        """
        for _ in range(MAX_NAME_ATTEMPTS):
            blob_ref = generate_short_id()
            file_path = self._get_blob_path(blob_ref)
            self._ensure_directory_exists(file_path)
            try:
                await self._write_exclusive(file_path, byte_stream)
            except FileExistsError:
                continue
            return blob_ref

        raise StorageError("Could not allocate a unique blob name")

    async def _write_exclusive(
        self, file_path: Path, byte_stream: AsyncIterator[bytes]
    ) -> None:
        total_size = 0
        try:
            async with aiofiles.open(file_path, "xb") as f:
                async for chunk in byte_stream:
                    total_size += len(chunk)
                    if total_size > self.max_size_bytes:
                        raise BlobTooLargeError(total_size, self.max_size_bytes)
                    await f.write(chunk)
        except FileExistsError:
            raise
        except BlobTooLargeError:
            self._remove_partial(file_path)
            raise
        except OSError as e:
            self._remove_partial(file_path)
            raise StorageError(f"Failed to save blob: {str(e)}") from e

    async def retrieve(self, blob_ref: str) -> AsyncIterator[bytes]:
        """
        Open a blob for streaming.

        Existence is checked before returning, so a missing blob fails here
        rather than on the first read.

        Raises:
            BlobNotFoundError: If the blob doesn't exist
        """
        file_path = Path(self.get_path(blob_ref))
        return self._iter_chunks(file_path)

    async def _iter_chunks(self, file_path: Path) -> AsyncIterator[bytes]:
        async with aiofiles.open(file_path, "rb") as f:
            while True:
                chunk = await f.read(CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

    def get_path(self, blob_ref: str) -> str:
        """
        Get the full path for reading a blob.

        Raises:
            BlobNotFoundError: If the blob doesn't exist
        """
        file_path = self._get_blob_path(blob_ref)

        if not file_path.is_file():
            raise BlobNotFoundError(blob_ref)

        return str(file_path)

    async def delete(self, blob_ref: str) -> bool:
        """
        Delete a blob from storage, best effort.

        Returns:
            True if the blob was removed, False if it was absent or removal failed
        """
        try:
            file_path = self._get_blob_path(blob_ref)
            os.remove(file_path)
        except (OSError, InvalidBlobRefError) as e:
            logger.warning(f"Failed to remove blob {blob_ref}: {str(e)}")
            return False

        self._remove_empty_shard(file_path.parent)
        return True

    def exists(self, blob_ref: str) -> bool:
        try:
            return self._get_blob_path(blob_ref).is_file()
        except InvalidBlobRefError:
            return False

    def list_refs(self) -> list[str]:
        """
        List all stored blob references.

        Scans the blobs/ directory and returns every blob name.
        """
        blob_dir = self.base_path / "blobs"

        if not blob_dir.exists():
            return []

        refs = []
        for prefix_dir in blob_dir.iterdir():
            if prefix_dir.is_dir():
                for blob_file in prefix_dir.iterdir():
                    if blob_file.is_file() and BLOB_REF_PATTERN.match(blob_file.name):
                        refs.append(blob_file.name)

        return refs

    def _get_blob_path(self, blob_ref: str) -> Path:
        """
        Calculate blob path using sharded structure.

        Structure: <base_path>/blobs/<prefix>/<blob_ref>
        Example: uploads/blobs/a3/a3b8f2d4e1c9

        Raises:
            InvalidBlobRefError: If blob_ref is not a generated name
        """
        if not BLOB_REF_PATTERN.match(blob_ref or ""):
            raise InvalidBlobRefError(blob_ref)

        # Use first 2 characters as prefix for sharding
        prefix = blob_ref[:2]
        return self.base_path / "blobs" / prefix / blob_ref

    def _ensure_directory_exists(self, file_path: Path) -> None:
        file_path.parent.mkdir(parents=True, exist_ok=True)

    def _remove_partial(self, file_path: Path) -> None:
        try:
            file_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove partial blob {file_path.name}: {str(e)}")

    def _remove_empty_shard(self, directory: Path) -> None:
        try:
            directory.rmdir()
        except OSError:
            # Directory not empty, ignore
            pass
