import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String

from app.core.timeutils import utcnow
from app.db.base import Base


class NotificationType(str, enum.Enum):
    NEW_JOB = "NEW_JOB"
    JOB_ACTIVATED = "JOB_ACTIVATED"
    NEW_APPLICATION = "NEW_APPLICATION"
    APPLICATION_STATUS_CHANGED = "APPLICATION_STATUS_CHANGED"
    APPLICATION_WITHDRAWN = "APPLICATION_WITHDRAWN"
    GENERAL = "GENERAL"


class Notification(Base):
    """
    Durable per-user notification log.

    Only addressed notifications are stored here; topic broadcasts are push-only.
    """

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    message = Column(String, nullable=False)
    type = Column(Enum(NotificationType, native_enum=False, length=40), nullable=False)
    related_id = Column(Integer, nullable=True)  # Job or application id, depending on type

    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, index=True)
