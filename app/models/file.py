"""
Stored file database model.

This module defines the StoredFile model holding the metadata of an uploaded
file. The bytes themselves live in the blob store under blob_ref.
"""
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, Boolean, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.user import User


class StoredFile(Base):
    """
    Uploaded file metadata.

    Attributes:
        id: Primary key
        user_id: Owner of the file
        name: Display name (original filename on upload)
        mime_type: MIME type reported at upload time
        size_bytes: File size in bytes
        blob_ref: Blob store reference, never exposed to clients
        folder_id: Containing folder or None for root-level placement
        starred: Star flag
        created_at: Upload timestamp
    """

    __tablename__ = "files"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(255))
    mime_type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    size_bytes: Mapped[int] = mapped_column(BigInteger, default=0)
    blob_ref: Mapped[str] = mapped_column(String(64), unique=True)
    folder_id: Mapped[int | None] = mapped_column(
        ForeignKey("folders.id", ondelete="CASCADE"), nullable=True, index=True
    )
    starred: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    user: Mapped["User"] = relationship("User", back_populates="files")

    def __repr__(self) -> str:
        return f"<StoredFile(id={self.id}, name={self.name}, folder_id={self.folder_id})>"
