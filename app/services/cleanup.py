"""
Blob cleanup service.

Blob deletion is best effort: the metadata row is removed first and a failed
blob delete is only logged. This module purges blobs after metadata deletes
and sweeps blobs that no file record references any more.
"""
from typing import TYPE_CHECKING, Iterable

from sqlalchemy import select

from app.logging_config import setup_logging
from app.models.file import StoredFile
from app.storage.base import BlobStore

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = setup_logging("cleanup")

# Refs per IN (...) query, well below the bound-parameter limits of SQLite and PostgreSQL
REF_BATCH_SIZE = 500


async def purge_blobs(storage: BlobStore, blob_refs: Iterable[str]) -> int:
    """
    Delete the bytes of already-deleted file records.

    Never raises; failures are logged by the blob store.

    Returns:
        Number of blobs actually removed
    """
    removed = 0
    for blob_ref in blob_refs:
        if await storage.delete(blob_ref):
            removed += 1
    return removed


async def cleanup_orphaned_blobs(db: "Session", storage: BlobStore) -> list[str]:
    """
    Remove blobs that no file record references.

    Should be run periodically (e.g. from cron). Blobs written by an upload
    that has not committed its metadata yet may be swept as well, so run it
    outside peak upload times.

    Args:
        db: Database session
        storage: Blob store to sweep

    Returns:
        The references of removed blobs
    """
    stored_refs = set(storage.list_refs())
    if not stored_refs:
        return []

    candidates = sorted(stored_refs)
    referenced = set()
    for start in range(0, len(candidates), REF_BATCH_SIZE):
        batch = candidates[start:start + REF_BATCH_SIZE]
        referenced.update(
            db.execute(
                select(StoredFile.blob_ref).where(StoredFile.blob_ref.in_(batch))
            ).scalars().all()
        )

    removed = []
    for blob_ref in sorted(stored_refs - referenced):
        if await storage.delete(blob_ref):
            removed.append(blob_ref)

    logger.info(f"Orphaned blob cleanup finished: removed={len(removed)}")
    return removed
