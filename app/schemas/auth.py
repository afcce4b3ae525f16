from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# Pydantic的BaseModel提供型別驗證、資料轉換與序列化
# 驗證失敗時FastAPI會回傳422
class UserRegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=72)


class UserLoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserResponse(BaseModel):
    id: int
    email: str

    # from_attributes=True：可以用model_validate()直接從ORM物件建立
    model_config = ConfigDict(from_attributes=True)


class SessionResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserResponse


class CurrentUserResponse(BaseModel):
    id: int
    email: str
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
