from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies.auth import get_current_identity
from app.exceptions import Unauthenticated
from app.models.user import User
from app.schemas.auth import (
    CurrentUserResponse,
    SessionResponse,
    UserLoginRequest,
    UserRegisterRequest,
    UserResponse,
)
from app.schemas.common import APIResponse
from app.services.identity import (
    Identity,
    authenticate_user,
    issue_session_token,
    register_user,
)

# tags用於API文件分組，在Swagger頁面會顯示為「auth」區塊
router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=APIResponse[SessionResponse],
    status_code=status.HTTP_201_CREATED,
)
def register(request: UserRegisterRequest, db: Session = Depends(get_db)):
    user = register_user(db, request.email, request.password)
    return APIResponse(
        success=True,
        data=SessionResponse(
            token=issue_session_token(user),
            user=UserResponse.model_validate(user),
        ),
    )


@router.post("/login", response_model=APIResponse[SessionResponse])
def login(request: UserLoginRequest, db: Session = Depends(get_db)):
    user = authenticate_user(db, request.email, request.password)
    return APIResponse(
        success=True,
        data=SessionResponse(
            token=issue_session_token(user),
            user=UserResponse.model_validate(user),
        ),
    )


@router.get("/me", response_model=APIResponse[CurrentUserResponse])
def me(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    user = db.execute(select(User).where(User.id == identity.user_id)).scalar_one_or_none()
    if not user:
        # Token is validly signed but the account no longer exists
        raise Unauthenticated("User not found")
    return APIResponse(success=True, data=CurrentUserResponse.model_validate(user))
