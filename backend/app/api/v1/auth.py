"""
Authentication API endpoints.

Handles registration, login with JWT token generation, and the current-user
profile. Also provides the ``get_current_user`` / ``require_role``
dependencies used by every other router.
"""

import logging
import re
from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy.orm import Session

from app.api.responses import ApiResponse, ok
from app.core.errors import ForbiddenError, UnauthenticatedError
from app.core.security import issue_token, resolve_user
from app.db.session import get_db
from app.models import User, UserRole
from app.services import users as user_service

logger = logging.getLogger("auth")

router = APIRouter()

# Bearer scheme; missing credentials are reported by get_current_user
bearer_scheme = HTTPBearer(auto_error=False)


# ============== Pydantic Schemas ==============


class UserRegister(BaseModel):
    """Schema for user registration."""

    email: str
    password: str
    full_name: str
    role: UserRole = UserRole.JOB_SEEKER
    phone: Optional[str] = None
    skills: Optional[str] = None
    experience: Optional[str] = None
    bio: Optional[str] = None
    resume_url: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate email format."""
        email_pattern = r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$"
        if not re.match(email_pattern, v):
            raise ValueError("Invalid email format")
        return v.lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Full name is required")
        return v.strip()


class LoginRequest(BaseModel):
    email: str
    password: str


class ProfileUpdate(BaseModel):
    """Profile fields a user may change; omitted fields are left untouched."""

    full_name: Optional[str] = None
    phone: Optional[str] = None
    skills: Optional[str] = None
    experience: Optional[str] = None
    bio: Optional[str] = None
    resume_url: Optional[str] = None


class UserResponse(BaseModel):
    """Schema for user response (without password)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: str
    role: UserRole
    phone: Optional[str] = None
    skills: Optional[str] = None
    experience: Optional[str] = None
    bio: Optional[str] = None
    resume_url: Optional[str] = None
    created_at: Optional[datetime] = None


class AuthPayload(BaseModel):
    token: str
    token_type: str = "bearer"
    role: UserRole
    user: UserResponse


# ============== Dependencies ==============


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Dependency to get the current authenticated user from the bearer token.

    Raises UnauthenticatedError if the token is missing, invalid, expired, or
    its account no longer exists.
    """
    token = credentials.credentials if credentials else None
    user = resolve_user(token, db)
    if user is None:
        raise UnauthenticatedError("Could not validate credentials")
    return user


def require_role(*roles: UserRole) -> Callable:
    """Dependency factory: the current user must hold one of ``roles``."""

    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            allowed = " or ".join(role.value for role in roles)
            raise ForbiddenError(f"This action requires role {allowed}")
        return current_user

    return checker


# ============== API Endpoints ==============


@router.post(
    "/register",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
async def register(user_data: UserRegister, db: Session = Depends(get_db)):
    """Register a new job seeker, recruiter, or admin account."""
    user = user_service.register_user(db, user_data.model_dump())
    return ok("User registered successfully", UserResponse.model_validate(user))


@router.post("/login", response_model=ApiResponse[AuthPayload])
async def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for a bearer token."""
    user = user_service.authenticate_user(db, credentials.email, credentials.password)
    if not user:
        raise UnauthenticatedError("Invalid email or password")

    logger.info("User %s logged in", user.id)
    return ok(
        "Login successful",
        AuthPayload(
            token=issue_token(user),
            role=user.role,
            user=UserResponse.model_validate(user),
        ),
    )


@router.post("/logout", response_model=ApiResponse[None])
async def logout():
    """
    Tokens are stateless, so logging out is the client discarding its token.

    Nothing is recorded server-side.
    """
    return ok("Logged out successfully")


@router.get("/me", response_model=ApiResponse[UserResponse])
async def get_me(current_user: User = Depends(get_current_user)):
    return ok("Current user details", UserResponse.model_validate(current_user))


@router.put("/me", response_model=ApiResponse[UserResponse])
async def update_me(
    changes: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = user_service.update_profile(db, current_user, changes.model_dump())
    return ok("Profile updated successfully", UserResponse.model_validate(user))
