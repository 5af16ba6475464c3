"""
Notification API endpoints.

Every endpoint works on the caller's own notification log.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from app.api.responses import ApiResponse, ok
from app.api.v1.auth import get_current_user
from app.db.session import get_db
from app.models import NotificationType, User
from app.services import notifications as notification_service
from app.services.notifications import NotificationDispatcher, get_dispatcher
from app.services.users import get_user

router = APIRouter()


# ============== Pydantic Schemas ==============


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    message: str
    type: NotificationType
    related_id: Optional[int] = None
    is_read: bool
    created_at: Optional[datetime] = None


class NotificationTestRequest(BaseModel):
    user_id: Optional[int] = None  # Defaults to the caller
    message: str = "Test notification"


def _serialize(notifications) -> list[NotificationResponse]:
    return [NotificationResponse.model_validate(n) for n in notifications]


# ============== API Endpoints ==============


@router.get("/my-notifications", response_model=ApiResponse[list[NotificationResponse]])
async def my_notifications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notifications = notification_service.list_for_user(db, current_user.id)
    return ok("Notifications retrieved successfully", _serialize(notifications))


@router.get("/unread", response_model=ApiResponse[list[NotificationResponse]])
async def unread_notifications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notifications = notification_service.list_unread(db, current_user.id)
    return ok("Unread notifications retrieved successfully", _serialize(notifications))


@router.get("/unread-count", response_model=ApiResponse[int])
async def unread_count(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ok("Unread count retrieved successfully", notification_service.unread_count(db, current_user.id))


@router.put("/mark-as-read/{notification_id}", response_model=ApiResponse[NotificationResponse])
async def mark_as_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notification = notification_service.mark_as_read(db, notification_id, current_user)
    return ok("Notification marked as read", NotificationResponse.model_validate(notification))


@router.put("/mark-all-as-read", response_model=ApiResponse[int])
async def mark_all_as_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updated = notification_service.mark_all_as_read(db, current_user)
    return ok("All notifications marked as read", updated)


@router.delete("/delete/{notification_id}", response_model=ApiResponse[None])
async def delete_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notification_service.delete_notification(db, notification_id, current_user)
    return ok("Notification deleted successfully")


@router.post("/test-notification", response_model=ApiResponse[None])
async def send_test_notification(
    request: NotificationTestRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Send a GENERAL notification to yourself or to the given user id."""
    recipient = get_user(db, request.user_id) if request.user_id is not None else current_user
    background_tasks.add_task(dispatcher.notify_user, recipient.id, request.message, NotificationType.GENERAL)
    return ok(f"Test notification sent to user {recipient.id}")
