from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.file import StoredFile
    from app.models.folder import Folder


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    folders: Mapped[list["Folder"]] = relationship(
        "Folder", back_populates="user", passive_deletes=True
    )
    files: Mapped[list["StoredFile"]] = relationship(
        "StoredFile", back_populates="user", passive_deletes=True
    )
