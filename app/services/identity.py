"""
Identity service.

Maps credentials to users and issues/verifies stateless session tokens.
Passwords are stored only as bcrypt hashes; tokens are signed JWTs carrying
the user id and email, so verification needs no server-side session table.
"""
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.exceptions import DuplicateIdentity, InvalidCredentials, InvalidToken
from app.logging_config import setup_logging
from app.models.user import User
from app.services.auth import hash_password, verify_password
from app.services.jwt import create_access_token, decode_access_token

logger = setup_logging("identity")


@dataclass(frozen=True)
class Identity:
    """Authenticated caller resolved from a session token."""

    user_id: int
    email: str


def normalize_email(email: str) -> str:
    return email.strip().lower()


def register_user(db: Session, email: str, password: str) -> User:
    """
    Create a new user.

    Raises:
        DuplicateIdentity: If the email is already registered
    """
    email = normalize_email(email)

    existing = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if existing:
        raise DuplicateIdentity()

    user = User(email=email, hashed_password=hash_password(password))
    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        # A concurrent registration won the unique constraint
        db.rollback()
        raise DuplicateIdentity()

    db.refresh(user)
    logger.info(f"User registered: user_id={user.id}")
    return user


def authenticate_user(db: Session, email: str, password: str) -> User:
    """
    Check credentials and return the matching user.

    Unknown email and wrong password raise the same error.

    Raises:
        InvalidCredentials: If the credentials do not match a user
    """
    email = normalize_email(email)
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()

    if not user or not verify_password(password, user.hashed_password):
        logger.warning("Login failed: invalid credentials")
        raise InvalidCredentials()

    return user


def issue_session_token(user: User) -> str:
    return create_access_token(user.id, user.email)


def verify_session_token(token: str) -> Identity:
    """
    Verify a session token and return the identity it encodes.

    Raises:
        InvalidToken: If the token is malformed, badly signed, expired,
            or missing required claims
    """
    payload = decode_access_token(token)
    if not payload:
        raise InvalidToken()

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise InvalidToken()

    email = payload.get("email")
    if not isinstance(email, str):
        raise InvalidToken()

    return Identity(user_id=user_id, email=email)
