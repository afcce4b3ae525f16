"""
Access gateway dependencies.

authorize() resolves a bearer token to an Identity before any hierarchy or
blob operation runs. The caller id injected into HierarchyStore always comes
from the verified token, never from request bodies or paths.
"""
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.database import get_db
from app.exceptions import InvalidToken, Unauthenticated
from app.services.hierarchy import HierarchyStore
from app.services.identity import Identity, verify_session_token

# auto_error=False：缺少Authorization標頭時不自動回傳403，改由authorize()回傳401
security = HTTPBearer(auto_error=False)


def authorize(token: str | None) -> Identity:
    """
    Resolve a session token to the caller's identity.

    Raises:
        Unauthenticated: If the token is missing or fails verification
    """
    if not token:
        raise Unauthenticated("Missing token")

    try:
        return verify_session_token(token)
    except InvalidToken:
        raise Unauthenticated("Invalid token")


def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Identity:
    return authorize(credentials.credentials if credentials else None)


def get_hierarchy(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> HierarchyStore:
    """Hierarchy store bound to the authenticated caller."""
    return HierarchyStore(db, caller=identity.user_id)
