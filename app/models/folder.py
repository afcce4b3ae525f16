"""
Folder database model.

Folders form a per-user tree through the self-referential parent_id column.
A null parent_id places the folder at the user's root.
"""
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.user import User


class Folder(Base):
    """
    Folder node in a user's hierarchy.

    Attributes:
        id: Primary key
        user_id: Owner of the folder
        name: Display name
        parent_id: Parent folder (same owner) or None for root-level folders
        created_at: Creation timestamp
    """

    __tablename__ = "folders"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(255))
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("folders.id", ondelete="CASCADE"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    user: Mapped["User"] = relationship("User", back_populates="folders")

    def __repr__(self) -> str:
        return f"<Folder(id={self.id}, name={self.name}, parent_id={self.parent_id})>"
