"""
Drive API schemas.

Request bodies accept the camelCase field names used by the web client
(parentId, folderId) as well as snake_case. Responses are snake_case and
never include the blob reference.
"""
from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# ids are INTEGER primary keys; larger values cannot name a row
MAX_ID = 2**31 - 1


class FolderCreateRequest(BaseModel):
    name: str = Field(max_length=255)
    parent_id: int | None = Field(
        default=None, ge=1, le=MAX_ID, validation_alias=AliasChoices("parentId", "parent_id")
    )


class RenameRequest(BaseModel):
    name: str = Field(max_length=255)


class FolderMoveRequest(BaseModel):
    parent_id: int | None = Field(
        default=None, ge=1, le=MAX_ID, validation_alias=AliasChoices("parentId", "parent_id")
    )


class FileMoveRequest(BaseModel):
    folder_id: int | None = Field(
        default=None, ge=1, le=MAX_ID, validation_alias=AliasChoices("folderId", "folder_id")
    )


class FolderResponse(BaseModel):
    id: int
    name: str
    parent_id: int | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StoredFileResponse(BaseModel):
    id: int
    name: str
    mime_type: str | None
    size_bytes: int
    folder_id: int | None
    starred: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DriveDataResponse(BaseModel):
    """Every folder and file of the caller, oldest first."""

    folders: list[FolderResponse]
    files: list[StoredFileResponse]


class FolderDeletedResponse(BaseModel):
    id: int
    deleted_files: int


class FileDeletedResponse(BaseModel):
    id: int
