from fastapi import APIRouter, Depends

from app.dependencies.auth import get_hierarchy
from app.schemas.common import APIResponse
from app.schemas.drive import DriveDataResponse, FolderResponse, StoredFileResponse
from app.services.hierarchy import HierarchyStore

router = APIRouter(tags=["data"])


@router.get("/data", response_model=APIResponse[DriveDataResponse])
def list_all(hierarchy: HierarchyStore = Depends(get_hierarchy)):
    """
    Return every folder and file owned by the caller.

    Both lists are ordered by creation time; the client builds the tree from
    parent_id/folder_id. No pagination.
    """
    folders, files = hierarchy.list_all()
    return APIResponse(
        success=True,
        data=DriveDataResponse(
            folders=[FolderResponse.model_validate(folder) for folder in folders],
            files=[StoredFileResponse.model_validate(stored_file) for stored_file in files],
        ),
    )
