"""
Admin API endpoints.

User directory maintenance for platform administrators. Deleting a user also
removes their jobs, applications, and notifications.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.responses import ApiResponse, ok
from app.api.v1.auth import UserResponse, require_role
from app.db.session import get_db
from app.models import User, UserRole
from app.services import users as user_service

router = APIRouter()

admin_only = require_role(UserRole.ADMIN)


@router.get("/users", response_model=ApiResponse[list[UserResponse]])
def list_users(
    role: Optional[UserRole] = None,
    _: User = Depends(admin_only),
    db: Session = Depends(get_db),
):
    users = user_service.list_users(db, role)
    return ok("Users retrieved successfully", [UserResponse.model_validate(u) for u in users])


@router.get("/users/{user_id}", response_model=ApiResponse[UserResponse])
def get_user(user_id: int, _: User = Depends(admin_only), db: Session = Depends(get_db)):
    return ok("User retrieved successfully", UserResponse.model_validate(user_service.get_user(db, user_id)))


@router.delete("/users/{user_id}", response_model=ApiResponse[None])
def delete_user(user_id: int, _: User = Depends(admin_only), db: Session = Depends(get_db)):
    user_service.delete_user(db, user_id)
    return ok("User deleted successfully")
