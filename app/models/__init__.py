from app.models.file import StoredFile
from app.models.folder import Folder
from app.models.user import User

__all__ = ["Folder", "StoredFile", "User"]
