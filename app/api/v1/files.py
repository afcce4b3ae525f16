"""
File API endpoints.

Upload, download, preview, rename, move, star and delete of the caller's
files. Bytes go through the blob store; metadata goes through the
hierarchy service, which scopes every lookup to the caller.
"""
from typing import Annotated, AsyncIterator

from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, UploadFile, status
from fastapi.responses import FileResponse

from app.dependencies.auth import get_hierarchy
from app.dependencies.storage import get_storage
from app.exceptions import MissingFile, StorageFailure
from app.logging_config import setup_logging
from app.models.file import StoredFile
from app.schemas.common import APIResponse
from app.schemas.drive import (
    FileDeletedResponse,
    FileMoveRequest,
    MAX_ID,
    RenameRequest,
    StoredFileResponse,
)
from app.services.cleanup import purge_blobs
from app.services.hierarchy import HierarchyStore, clean_name
from app.storage.base import BlobStore
from app.storage.exceptions import BlobTooLargeError, StorageError

router = APIRouter(prefix="/files", tags=["files"])

logger = setup_logging("files")

UPLOAD_CHUNK_SIZE = 64 * 1024  # 64KB
DEFAULT_MIME_TYPE = "application/octet-stream"

FileId = Annotated[int, Path(ge=1, le=MAX_ID)]


class UploadStream:
    """Async byte stream over an UploadFile that counts bytes read."""

    def __init__(self, upload: UploadFile):
        self.upload = upload
        self.size = 0

    async def __aiter__(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self.upload.read(UPLOAD_CHUNK_SIZE)
            if not chunk:
                break
            self.size += len(chunk)
            yield chunk


@router.post(
    "",
    response_model=APIResponse[StoredFileResponse],
    status_code=status.HTTP_201_CREATED,
)
async def upload_file(
    file: UploadFile | None = File(None),
    folder_id: int | None = Form(None, alias="folderId", ge=1, le=MAX_ID),
    hierarchy: HierarchyStore = Depends(get_hierarchy),
    storage: BlobStore = Depends(get_storage),
):
    """
    Upload a file into the caller's root or into an owned folder.

    **Request (multipart/form-data):**
    - file: The file to upload
    - folderId: Optional target folder id

    The name and folder are checked before any bytes are written; if
    recording the metadata fails afterwards, the stored blob is removed again.
    """
    if file is None or not file.filename:
        raise MissingFile()

    # 1. Validate name and target folder before writing bytes
    name = clean_name(file.filename)
    if folder_id is not None:
        hierarchy.get_folder(folder_id)

    # 2. Store bytes
    stream = UploadStream(file)
    try:
        blob_ref = await storage.store(stream)
    except BlobTooLargeError as e:
        logger.warning(f"Upload rejected: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail={
                "success": False,
                "error": "Payload Too Large",
                "message": "File exceeds the maximum upload size",
            },
        )
    except StorageError as e:
        logger.error(f"Failed to store upload: {str(e)}", exc_info=True)
        raise StorageFailure()

    # 3. Record metadata
    try:
        stored_file = hierarchy.create_file(
            name=name,
            mime_type=file.content_type,
            size_bytes=stream.size,
            blob_ref=blob_ref,
            folder_id=folder_id,
        )
    except Exception:
        await storage.delete(blob_ref)
        raise

    return APIResponse(success=True, data=StoredFileResponse.model_validate(stored_file))


@router.get("/{file_id}/download")
async def download_file(
    file_id: FileId,
    hierarchy: HierarchyStore = Depends(get_hierarchy),
    storage: BlobStore = Depends(get_storage),
):
    """
    Download a file as an attachment under its display name.
    """
    stored_file = hierarchy.get_file_for_read(file_id)
    return FileResponse(
        path=_blob_path(storage, stored_file),
        filename=stored_file.name,
        media_type=DEFAULT_MIME_TYPE,
        content_disposition_type="attachment",
    )


@router.get("/{file_id}/preview")
async def preview_file(
    file_id: FileId,
    hierarchy: HierarchyStore = Depends(get_hierarchy),
    storage: BlobStore = Depends(get_storage),
):
    """
    Serve a file inline with its original MIME type so browsers can render it.
    """
    stored_file = hierarchy.get_file_for_read(file_id)
    return FileResponse(
        path=_blob_path(storage, stored_file),
        filename=stored_file.name,
        media_type=stored_file.mime_type or DEFAULT_MIME_TYPE,
        content_disposition_type="inline",
    )


@router.put("/{file_id}/star", response_model=APIResponse[StoredFileResponse])
def toggle_star(
    file_id: FileId,
    hierarchy: HierarchyStore = Depends(get_hierarchy),
):
    stored_file = hierarchy.toggle_star(file_id)
    return APIResponse(success=True, data=StoredFileResponse.model_validate(stored_file))


@router.put("/{file_id}/move", response_model=APIResponse[StoredFileResponse])
def move_file(
    file_id: FileId,
    request: FileMoveRequest,
    hierarchy: HierarchyStore = Depends(get_hierarchy),
):
    stored_file = hierarchy.move_file(file_id, request.folder_id)
    return APIResponse(success=True, data=StoredFileResponse.model_validate(stored_file))


@router.put("/{file_id}", response_model=APIResponse[StoredFileResponse])
def rename_file(
    file_id: FileId,
    request: RenameRequest,
    hierarchy: HierarchyStore = Depends(get_hierarchy),
):
    stored_file = hierarchy.rename_file(file_id, request.name)
    return APIResponse(success=True, data=StoredFileResponse.model_validate(stored_file))


@router.delete("/{file_id}", response_model=APIResponse[FileDeletedResponse])
async def delete_file(
    file_id: FileId,
    hierarchy: HierarchyStore = Depends(get_hierarchy),
    storage: BlobStore = Depends(get_storage),
):
    stored_file = hierarchy.delete_file(file_id)
    await purge_blobs(storage, [stored_file.blob_ref])
    return APIResponse(success=True, data=FileDeletedResponse(id=file_id))


def _blob_path(storage: BlobStore, stored_file: StoredFile) -> str:
    try:
        return storage.get_path(stored_file.blob_ref)
    except StorageError as e:
        # Metadata exists but the bytes are gone
        logger.error(f"Blob missing for file_id={stored_file.id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "success": False,
                "error": "Not Found",
                "message": "File not available",
            },
        )
