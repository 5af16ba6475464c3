from app.models.user import User, UserRole
from app.models.job import Job, JobType, ExperienceLevel
from app.models.application import JobApplication, ApplicationStatus
from app.models.notification import Notification, NotificationType

__all__ = [
    "User",
    "UserRole",
    "Job",
    "JobType",
    "ExperienceLevel",
    "JobApplication",
    "ApplicationStatus",
    "Notification",
    "NotificationType",
]
