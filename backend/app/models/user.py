import enum

from sqlalchemy import Column, DateTime, Enum, Integer, String, Text

from app.core.timeutils import utcnow
from app.db.base import Base


class UserRole(str, enum.Enum):
    JOB_SEEKER = "JOB_SEEKER"
    RECRUITER = "RECRUITER"
    ADMIN = "ADMIN"


class User(Base):
    """User account. Identity is the unique email; role is fixed at registration."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    phone = Column(String)
    role = Column(Enum(UserRole, native_enum=False, length=20), nullable=False)

    # Seeker profile
    skills = Column(Text)
    experience = Column(Text)
    bio = Column(Text)
    resume_url = Column(String)

    created_at = Column(DateTime, default=utcnow)
