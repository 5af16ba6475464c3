"""
Security utilities for authentication.

Provides password hashing (bcrypt) and the stateless bearer token service:
tokens are signed JWTs carrying the user's email and role. There is no
server-side session or revocation list; expiry is the only invalidation.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt.exceptions import InvalidTokenError
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models import User, UserRole

# Password hashing context using bcrypt
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


@dataclass(frozen=True)
class Principal:
    """Identity and role proven by a valid token."""

    email: str
    role: UserRole
    issued_at: datetime
    expires_at: datetime


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Args:
        plain_password: The plain text password to verify
        hashed_password: The hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: The plain text password to hash

    Returns:
        The hashed password string
    """
    return pwd_context.hash(password)


def issue_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed access token for a user.

    Args:
        user: The account the token is issued for
        expires_delta: Optional custom lifetime; defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        The encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    claims = {
        "sub": user.email,
        "role": UserRole(user.role).value,
        "iat": now,
        "exp": now + expires_delta,
    }

    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def validate_token(token: str) -> Optional[Principal]:
    """
    Verify signature and expiry and return the principal.

    Any failure (malformed token, bad signature, expired, missing or unknown
    claims) returns None; callers treat that as unauthenticated.
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
        return Principal(
            email=payload["sub"],
            role=UserRole(payload["role"]),
            issued_at=datetime.fromtimestamp(payload.get("iat", 0), tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except (InvalidTokenError, KeyError, ValueError, TypeError):
        return None


def extract_identity(token: str) -> Optional[str]:
    """
    Read the subject claim without verifying the token.

    Only used to find the candidate account before ``validate_token`` proves
    the token authentic. Never trust the result on its own.
    """
    try:
        payload = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
    except InvalidTokenError:
        return None
    subject = payload.get("sub")
    return subject if isinstance(subject, str) else None


def resolve_user(token: Optional[str], db: Session) -> Optional[User]:
    """
    Resolve a bearer token to its user account, or None.

    The token must be valid, and its subject must still exist.
    """
    if not token:
        return None

    email = extract_identity(token)
    if email is None:
        return None

    user = db.query(User).filter(User.email == email).first()
    if user is None:
        return None

    principal = validate_token(token)
    if principal is None or principal.email != user.email:
        return None

    return user


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer ...`` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
