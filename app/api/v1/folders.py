from typing import Annotated

from fastapi import APIRouter, Depends, Path, status

from app.dependencies.auth import get_hierarchy
from app.dependencies.storage import get_storage
from app.schemas.common import APIResponse
from app.schemas.drive import (
    FolderCreateRequest,
    FolderDeletedResponse,
    FolderMoveRequest,
    FolderResponse,
    MAX_ID,
    RenameRequest,
)
from app.services.cleanup import purge_blobs
from app.services.hierarchy import HierarchyStore
from app.storage.base import BlobStore

router = APIRouter(prefix="/folders", tags=["folders"])

FolderId = Annotated[int, Path(ge=1, le=MAX_ID)]


@router.post(
    "",
    response_model=APIResponse[FolderResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_folder(
    request: FolderCreateRequest,
    hierarchy: HierarchyStore = Depends(get_hierarchy),
):
    folder = hierarchy.create_folder(request.name, request.parent_id)
    return APIResponse(success=True, data=FolderResponse.model_validate(folder))


@router.put("/{folder_id}", response_model=APIResponse[FolderResponse])
def rename_folder(
    folder_id: FolderId,
    request: RenameRequest,
    hierarchy: HierarchyStore = Depends(get_hierarchy),
):
    folder = hierarchy.rename_folder(folder_id, request.name)
    return APIResponse(success=True, data=FolderResponse.model_validate(folder))


@router.put("/{folder_id}/move", response_model=APIResponse[FolderResponse])
def move_folder(
    folder_id: FolderId,
    request: FolderMoveRequest,
    hierarchy: HierarchyStore = Depends(get_hierarchy),
):
    folder = hierarchy.move_folder(folder_id, request.parent_id)
    return APIResponse(success=True, data=FolderResponse.model_validate(folder))


@router.delete("/{folder_id}", response_model=APIResponse[FolderDeletedResponse])
async def delete_folder(
    folder_id: FolderId,
    hierarchy: HierarchyStore = Depends(get_hierarchy),
    storage: BlobStore = Depends(get_storage),
):
    """
    Delete a folder together with its whole subtree.

    Blobs are purged only after the metadata transaction committed; a failed
    blob delete does not undo the metadata delete.
    """
    deleted_files = hierarchy.delete_folder(folder_id)
    await purge_blobs(storage, [stored_file.blob_ref for stored_file in deleted_files])
    return APIResponse(
        success=True,
        data=FolderDeletedResponse(id=folder_id, deleted_files=len(deleted_files)),
    )
