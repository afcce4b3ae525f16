"""
Storage dependency injection for FastAPI.

This module provides FastAPI dependency functions for injecting
blob store backends into endpoints.
"""
from app.config import settings
from app.storage.base import BlobStore
from app.storage.local import LocalBlobStore


def get_storage() -> BlobStore:
    """
    Return blob store based on configuration.

    This allows switching between local and cloud storage
    by changing the STORAGE_BACKEND environment variable.

    Raises:
        ValueError: If STORAGE_BACKEND is not supported
    """
    if settings.STORAGE_BACKEND == "local":
        return LocalBlobStore(
            base_path=settings.STORAGE_BASE_PATH,
            max_size_mb=settings.MAX_UPLOAD_SIZE_MB,
        )

    raise ValueError(f"Unknown storage backend: {settings.STORAGE_BACKEND}")
