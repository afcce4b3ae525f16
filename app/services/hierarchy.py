"""
Hierarchy service.

This module owns the per-user folder/file tree. Every read and write is
scoped to the caller's user id: an id owned by another user behaves exactly
like an id that does not exist.

Folder deletion walks the subtree in application code inside one
transaction. The ON DELETE CASCADE foreign keys are only a storage-level
backstop.
"""
from sqlalchemy import not_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import (
    FolderNotFound,
    InvalidMove,
    InvalidName,
    NotFound,
    ParentNotFound,
    StorageFailure,
)
from app.logging_config import setup_logging
from app.models.file import StoredFile
from app.models.folder import Folder

logger = setup_logging("hierarchy")

# folders.name and files.name are String(255)
MAX_NAME_LENGTH = 255


def clean_name(name: str | None) -> str:
    """
    Strip surrounding whitespace and reject empty or overlong names.

    Raises:
        InvalidName: If nothing is left after stripping, or the name does
            not fit the name column
    """
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidName()
    if len(cleaned) > MAX_NAME_LENGTH:
        raise InvalidName(f"Name must be at most {MAX_NAME_LENGTH} characters")
    return cleaned


class HierarchyStore:
    """
    Ownership-scoped access to folders and files.

    Args:
        db: Database session; the store commits its own transactions
        caller: Id of the authenticated user every query is scoped to
    """

    def __init__(self, db: Session, caller: int):
        self.db = db
        self.caller = caller

    # Folders

    def create_folder(self, name: str, parent_id: int | None = None) -> Folder:
        """
        Create a folder at the root or under an owned parent.

        Raises:
            InvalidName: If name is empty
            ParentNotFound: If parent_id is not an owned folder
        """
        name = clean_name(name)
        if parent_id is not None:
            self._require_parent(parent_id, ParentNotFound)

        folder = Folder(user_id=self.caller, name=name, parent_id=parent_id)
        self.db.add(folder)
        self._commit()
        self.db.refresh(folder)
        return folder

    def get_folder(self, folder_id: int) -> Folder:
        folder = self._find_folder(folder_id)
        if not folder:
            raise NotFound("Folder not found")
        return folder

    def rename_folder(self, folder_id: int, new_name: str) -> Folder:
        name = clean_name(new_name)
        folder = self._find_folder(folder_id, lock=True)
        if not folder:
            raise NotFound("Folder not found")

        folder.name = name
        self._commit()
        self.db.refresh(folder)
        return folder

    def move_folder(self, folder_id: int, new_parent_id: int | None) -> Folder:
        """
        Reparent a folder.

        The new parent must not be the folder itself or any of its
        descendants, otherwise the parent chain would no longer end at root.

        Raises:
            NotFound: If the folder is not owned by the caller
            ParentNotFound: If new_parent_id is not an owned folder
            InvalidMove: If the move would create a cycle
        """
        folder = self._find_folder(folder_id, lock=True)
        if not folder:
            raise NotFound("Folder not found")

        if new_parent_id is not None:
            self._require_parent(new_parent_id, ParentNotFound)
            subtree_ids = {fid for level in self._collect_subtree(folder.id) for fid in level}
            if new_parent_id in subtree_ids:
                raise InvalidMove()

        folder.parent_id = new_parent_id
        self._commit()
        self.db.refresh(folder)
        return folder

    def delete_folder(self, folder_id: int) -> list[StoredFile]:
        """
        Delete a folder with all descendant folders and files.

        Descendants are collected breadth-first with their rows locked, files
        are deleted first, then folders deepest level first. The whole
        cascade is one transaction: on failure nothing is removed.

        Returns:
            The deleted file records; the caller purges their blobs after
            the commit

        Raises:
            NotFound: If the folder is not owned by the caller
            StorageFailure: If the cascade fails and was rolled back
        """
        folder = self._find_folder(folder_id, lock=True)
        if not folder:
            raise NotFound("Folder not found")

        try:
            levels = self._collect_subtree(folder.id)
            subtree_ids = [fid for level in levels for fid in level]

            files = list(
                self.db.execute(
                    select(StoredFile)
                    .where(
                        StoredFile.user_id == self.caller,
                        StoredFile.folder_id.in_(subtree_ids),
                    )
                    .with_for_update()
                ).scalars().all()
            )
            for stored_file in files:
                self.db.delete(stored_file)
            self.db.flush()

            for level in reversed(levels):
                self._delete_folders(level)

            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Folder cascade rolled back: folder_id={folder_id}: {str(e)}")
            raise StorageFailure() from e

        logger.info(
            f"Folder deleted: folder_id={folder_id}, user_id={self.caller}, "
            f"folders={len(subtree_ids)}, files={len(files)}"
        )
        return files

    def list_all(self) -> tuple[list[Folder], list[StoredFile]]:
        """Return every owned folder and file, oldest first."""
        folders = self.db.execute(
            select(Folder)
            .where(Folder.user_id == self.caller)
            .order_by(Folder.created_at, Folder.id)
        ).scalars().all()
        files = self.db.execute(
            select(StoredFile)
            .where(StoredFile.user_id == self.caller)
            .order_by(StoredFile.created_at, StoredFile.id)
        ).scalars().all()
        return list(folders), list(files)

    # Files

    def create_file(
        self,
        name: str,
        mime_type: str | None,
        size_bytes: int,
        blob_ref: str,
        folder_id: int | None = None,
    ) -> StoredFile:
        """
        Record an uploaded file.

        Raises:
            InvalidName: If name is empty
            FolderNotFound: If folder_id is not an owned folder
        """
        name = clean_name(name)
        if folder_id is not None:
            self._require_parent(folder_id, FolderNotFound)

        stored_file = StoredFile(
            user_id=self.caller,
            name=name,
            mime_type=mime_type,
            size_bytes=size_bytes,
            blob_ref=blob_ref,
            folder_id=folder_id,
            starred=False,
        )
        self.db.add(stored_file)
        self._commit()
        self.db.refresh(stored_file)
        return stored_file

    def get_file_for_read(self, file_id: int) -> StoredFile:
        stored_file = self._find_file(file_id)
        if not stored_file:
            raise NotFound("File not found")
        return stored_file

    def rename_file(self, file_id: int, new_name: str) -> StoredFile:
        name = clean_name(new_name)
        stored_file = self._find_file(file_id, lock=True)
        if not stored_file:
            raise NotFound("File not found")

        stored_file.name = name
        self._commit()
        self.db.refresh(stored_file)
        return stored_file

    def move_file(self, file_id: int, folder_id: int | None) -> StoredFile:
        stored_file = self._find_file(file_id, lock=True)
        if not stored_file:
            raise NotFound("File not found")
        if folder_id is not None:
            self._require_parent(folder_id, FolderNotFound)

        stored_file.folder_id = folder_id
        self._commit()
        self.db.refresh(stored_file)
        return stored_file

    def toggle_star(self, file_id: int) -> StoredFile:
        """
        Flip the starred flag with a single UPDATE statement.

        The negation happens in the database, so concurrent toggles never
        overwrite each other.
        """
        try:
            updated_id = self.db.execute(
                update(StoredFile)
                .where(StoredFile.id == file_id, StoredFile.user_id == self.caller)
                .values(starred=not_(StoredFile.starred))
                .returning(StoredFile.id)
                .execution_options(synchronize_session=False)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageFailure() from e

        if updated_id is None:
            raise NotFound("File not found")

        self._commit()
        return self.get_file_for_read(file_id)

    def delete_file(self, file_id: int) -> StoredFile:
        """
        Delete a file record.

        Returns:
            The deleted record; the caller uses blob_ref to purge the bytes
        """
        stored_file = self._find_file(file_id, lock=True)
        if not stored_file:
            raise NotFound("File not found")

        self.db.delete(stored_file)
        self._commit()
        return stored_file

    # Helpers

    def _find_folder(self, folder_id: int, lock: bool = False) -> Folder | None:
        stmt = select(Folder).where(Folder.id == folder_id, Folder.user_id == self.caller)
        if lock:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def _find_file(self, file_id: int, lock: bool = False) -> StoredFile | None:
        stmt = select(StoredFile).where(
            StoredFile.id == file_id, StoredFile.user_id == self.caller
        )
        if lock:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def _require_parent(self, folder_id: int, error: type[NotFound]) -> Folder:
        # FOR SHARE conflicts with the FOR UPDATE taken by a running cascade
        folder = self.db.execute(
            select(Folder)
            .where(Folder.id == folder_id, Folder.user_id == self.caller)
            .with_for_update(read=True)
        ).scalar_one_or_none()
        if not folder:
            raise error()
        return folder

    def _collect_subtree(self, root_id: int) -> list[list[int]]:
        """
        Collect folder ids of a subtree, one list per depth level.

        The first level is [root_id]. Ids already seen are skipped, so
        corrupt data containing a cycle cannot loop forever.
        """
        levels = [[root_id]]
        seen = {root_id}
        frontier = [root_id]

        while frontier:
            children = self.db.execute(
                select(Folder.id)
                .where(Folder.user_id == self.caller, Folder.parent_id.in_(frontier))
                .with_for_update()
            ).scalars().all()
            frontier = [child for child in children if child not in seen]
            seen.update(frontier)
            if frontier:
                levels.append(frontier)

        return levels

    def _delete_folders(self, folder_ids: list[int]) -> None:
        folders = self.db.execute(
            select(Folder).where(Folder.user_id == self.caller, Folder.id.in_(folder_ids))
        ).scalars().all()
        for folder in folders:
            self.db.delete(folder)
        self.db.flush()

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Transaction rolled back: {e.__class__.__name__}: {str(e)}")
            raise StorageFailure() from e
