"""
User directory: registration, lookup, and profile maintenance.
"""

import logging
from typing import Any, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError
from app.core.security import get_password_hash, verify_password
from app.models import Job, JobApplication, Notification, User, UserRole

logger = logging.getLogger("users")

DUPLICATE_EMAIL_MESSAGE = "User with this email already exists"

PROFILE_FIELDS = ("full_name", "phone", "skills", "experience", "bio", "resume_url")


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get a user by email address."""
    return db.query(User).filter(User.email == email.lower()).first()


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User not found with id: {user_id}")
    return user


def register_user(db: Session, data: Mapping[str, Any]) -> User:
    """
    Create a new account.

    ``data`` carries email, password, full_name, role and the optional profile
    fields. Emails are stored lower-cased and must be unique.
    """
    email = data["email"].lower()
    if get_user_by_email(db, email):
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE)

    user = User(
        email=email,
        hashed_password=get_password_hash(data["password"]),
        full_name=data["full_name"],
        role=UserRole(data.get("role") or UserRole.JOB_SEEKER),
        phone=data.get("phone"),
        skills=data.get("skills"),
        experience=data.get("experience"),
        bio=data.get("bio"),
        resume_url=data.get("resume_url"),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent registration took the email first
        db.rollback()
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE)
    db.refresh(user)

    logger.info("Registered user %s as %s", user.id, user.role.value)
    return user


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Authenticate a user by email and password."""
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def list_users(db: Session, role: Optional[UserRole] = None) -> list[User]:
    query = db.query(User)
    if role is not None:
        query = query.filter(User.role == role)
    return query.order_by(User.id).all()


def update_profile(db: Session, user: User, changes: Mapping[str, Any]) -> User:
    """Apply the non-null profile fields in ``changes``. Email and role never change."""
    for name in PROFILE_FIELDS:
        value = changes.get(name)
        if value is not None:
            setattr(user, name, value)
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: int) -> None:
    """Remove an account with everything that references it."""
    user = get_user(db, user_id)

    job_ids = [job_id for (job_id,) in db.query(Job.id).filter(Job.posted_by_id == user_id)]
    if job_ids:
        db.query(JobApplication).filter(JobApplication.job_id.in_(job_ids)).delete(
            synchronize_session=False
        )
        db.query(Job).filter(Job.id.in_(job_ids)).delete(synchronize_session=False)

    db.query(JobApplication).filter(JobApplication.applicant_id == user_id).delete(
        synchronize_session=False
    )
    db.query(Notification).filter(Notification.user_id == user_id).delete(synchronize_session=False)

    db.delete(user)
    db.commit()
    logger.info("Deleted user %s", user_id)
