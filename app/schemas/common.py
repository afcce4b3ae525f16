from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Success envelope shared by every endpoint."""

    success: bool = True
    data: T | None = None


class ErrorResponse(BaseModel):
    """Error envelope; message is always a static, client-safe text."""

    success: bool = False
    error: str
    message: str
