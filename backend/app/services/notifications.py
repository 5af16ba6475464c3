"""
Notification log and dispatcher.

The log is the durable per-user record (``notifications`` table). The
dispatcher turns workflow events into log rows and real-time pushes. Dispatch
is best-effort: it runs after the triggering transaction has committed, uses its
own session, and logs and swallows every failure.
"""

import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError, NotFoundError
from app.core.timeutils import utcnow
from app.db.session import SessionLocal
from app.models import Notification, NotificationType, User
from app.services.realtime import (
    TOPIC_JOB_UPDATES,
    TOPIC_NEW_JOBS,
    TOPIC_NOTIFICATIONS,
    TOPIC_RECRUITERS,
    RealtimeHub,
    hub,
)

logger = logging.getLogger("notifications")


# ============== Notification Log ==============


def create_notification(
    db: Session,
    user_id: int,
    message: str,
    type: NotificationType,
    related_id: Optional[int] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        message=message,
        type=type,
        related_id=related_id,
        is_read=False,
        created_at=utcnow(),
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


def list_for_user(db: Session, user_id: int) -> list[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .all()
    )


def list_unread(db: Session, user_id: int) -> list[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .all()
    )


def unread_count(db: Session, user_id: int) -> int:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .count()
    )


def _owned_notification(db: Session, notification_id: int, user: User, action: str) -> Notification:
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise NotFoundError("Notification not found")
    if notification.user_id != user.id:
        raise ForbiddenError(f"You are not authorized to {action} this notification")
    return notification


def mark_as_read(db: Session, notification_id: int, user: User) -> Notification:
    notification = _owned_notification(db, notification_id, user, "update")
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_as_read(db: Session, user: User) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user.id, Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return updated


def delete_notification(db: Session, notification_id: int, user: User) -> None:
    notification = _owned_notification(db, notification_id, user, "delete")
    db.delete(notification)
    db.commit()


# ============== Dispatcher ==============


class NotificationDispatcher:
    """
    Fans workflow events out to the durable log and the real-time hub.

    Persistence and push are independent: a failed insert does not stop the
    push, and neither ever raises to the caller.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        realtime: RealtimeHub = hub,
    ):
        self.session_factory = session_factory
        self.realtime = realtime

    def _persist(
        self,
        user_id: int,
        message: str,
        type: NotificationType,
        related_id: Optional[int],
    ) -> Optional[Notification]:
        try:
            db = self.session_factory()
        except Exception:
            logger.exception("No session available to store %s notification for user %s", type.value, user_id)
            return None
        try:
            return create_notification(db, user_id, message, type, related_id)
        except Exception:
            db.rollback()
            logger.exception("Failed to store %s notification for user %s", type.value, user_id)
            return None
        finally:
            db.close()

    def _push_user(self, user_id: int, payload: Dict[str, Any]) -> None:
        try:
            if not self.realtime.send_to_user(user_id, payload):
                logger.debug("User %s not connected; %s push not delivered", user_id, payload.get("type"))
        except Exception:
            logger.exception("Failed to push %s to user %s", payload.get("type"), user_id)

    def _broadcast(self, topic: str, payload: Dict[str, Any]) -> None:
        try:
            self.realtime.publish(topic, payload)
        except Exception:
            logger.exception("Failed to broadcast %s to %s", payload.get("type"), topic)

    def notify_user(
        self,
        user_id: int,
        message: str,
        type: NotificationType = NotificationType.GENERAL,
        related_id: Optional[int] = None,
    ) -> None:
        """Addressed notification: stored in the log and pushed privately."""
        notification = self._persist(user_id, message, type, related_id)
        payload = {
            "type": type.value,
            "message": message,
            "userId": user_id,
            "relatedId": related_id,
            "timestamp": utcnow().isoformat(),
        }
        if notification is not None:
            payload["notificationId"] = notification.id
        self._push_user(user_id, payload)

    def job_posted(self, job_id: int, title: str, company: str, location: str) -> None:
        """Broadcast only; no log rows."""
        payload = {
            "type": NotificationType.NEW_JOB.value,
            "message": f"New Job Posted: {title} at {company}",
            "jobId": job_id,
            "jobTitle": title,
            "company": company,
            "location": location,
            "timestamp": utcnow().isoformat(),
        }
        self._broadcast(TOPIC_NEW_JOBS, payload)
        self._broadcast(TOPIC_NOTIFICATIONS, payload)
        logger.info("Broadcasted new job %s: %s", job_id, title)

    def job_reactivated(self, job_id: int, title: str, company: str) -> None:
        """Broadcast only; no log rows."""
        self._broadcast(
            TOPIC_JOB_UPDATES,
            {
                "type": NotificationType.JOB_ACTIVATED.value,
                "message": f"Job is accepting applications again: {title} at {company}",
                "jobId": job_id,
                "jobTitle": title,
                "company": company,
                "timestamp": utcnow().isoformat(),
            },
        )

    def application_received(
        self,
        recruiter_id: int,
        job_id: int,
        job_title: str,
        application_id: int,
        applicant_name: str,
    ) -> None:
        message = f"{applicant_name} applied for {job_title}"
        notification = self._persist(recruiter_id, message, NotificationType.NEW_APPLICATION, application_id)

        payload = {
            "type": NotificationType.NEW_APPLICATION.value,
            "message": message,
            "jobId": job_id,
            "applicationId": application_id,
            "applicantName": applicant_name,
            "timestamp": utcnow().isoformat(),
        }
        if notification is not None:
            payload["notificationId"] = notification.id
        self._push_user(recruiter_id, payload)
        self._broadcast(TOPIC_RECRUITERS, {**payload, "recruiterId": recruiter_id})

    def application_status_changed(
        self,
        applicant_id: int,
        application_id: int,
        job_title: str,
        status: str,
    ) -> None:
        self.notify_user(
            applicant_id,
            f"Your application for {job_title} is now {status}",
            NotificationType.APPLICATION_STATUS_CHANGED,
            application_id,
        )

    def application_withdrawn(self, recruiter_id: int, job_id: int, job_title: str, applicant_name: str) -> None:
        self.notify_user(
            recruiter_id,
            f"{applicant_name} withdrew their application for {job_title}",
            NotificationType.APPLICATION_WITHDRAWN,
            job_id,
        )


dispatcher = NotificationDispatcher()


def get_dispatcher() -> NotificationDispatcher:
    """FastAPI dependency; tests override it to observe dispatches."""
    return dispatcher
