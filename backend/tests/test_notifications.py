from __future__ import annotations

import asyncio

import pytest

from app.core.errors import ForbiddenError, NotFoundError
from app.db.session import SessionLocal
from app.models import Notification, NotificationType, UserRole
from app.services import notifications as notification_service
from app.services.notifications import NotificationDispatcher
from app.services.realtime import (
    TOPIC_JOB_UPDATES,
    TOPIC_NEW_JOBS,
    TOPIC_NOTIFICATIONS,
    TOPIC_RECRUITERS,
    RealtimeHub,
    user_destination,
)


def drain(queue: asyncio.Queue) -> list[dict]:
    messages = []
    while not queue.empty():
        messages.append(queue.get_nowait())
    return messages


@pytest.fixture
def realtime() -> RealtimeHub:
    return RealtimeHub(queue_size=10)


@pytest.fixture
def dispatcher(realtime) -> NotificationDispatcher:
    return NotificationDispatcher(session_factory=SessionLocal, realtime=realtime)


# ============== Real-time hub ==============


def test_publish_reaches_only_subscribers_of_destination(realtime) -> None:
    jobs_feed = realtime.subscribe([TOPIC_NEW_JOBS])
    updates_feed = realtime.subscribe([TOPIC_JOB_UPDATES])

    assert realtime.publish(TOPIC_NEW_JOBS, {"type": "NEW_JOB"}) == 1

    assert drain(jobs_feed.queue) == [{"destination": TOPIC_NEW_JOBS, "payload": {"type": "NEW_JOB"}}]
    assert drain(updates_feed.queue) == []


def test_publish_without_subscribers_is_a_no_op(realtime) -> None:
    assert realtime.publish(TOPIC_RECRUITERS, {"type": "NEW_APPLICATION"}) == 0
    assert realtime.send_to_user(7, {"type": "GENERAL"}) == 0


def test_full_queue_drops_instead_of_blocking() -> None:
    realtime = RealtimeHub(queue_size=2)
    subscription = realtime.subscribe([user_destination(1)])

    delivered = [realtime.send_to_user(1, {"n": n}) for n in range(4)]

    assert delivered == [1, 1, 0, 0]
    assert subscription.dropped == 2
    assert [m["payload"]["n"] for m in drain(subscription.queue)] == [0, 1]


def test_unsubscribe_stops_delivery(realtime) -> None:
    subscription = realtime.subscribe([TOPIC_NEW_JOBS, user_destination(3)])
    realtime.unsubscribe(subscription)

    assert realtime.subscriber_count(TOPIC_NEW_JOBS) == 0
    assert realtime.publish(TOPIC_NEW_JOBS, {}) == 0


# ============== Dispatcher ==============


def test_new_job_is_broadcast_without_log_rows(db, dispatcher, realtime) -> None:
    new_jobs = realtime.subscribe([TOPIC_NEW_JOBS])
    general = realtime.subscribe([TOPIC_NOTIFICATIONS])

    dispatcher.job_posted(1, "Backend Engineer", "Acme", "Remote")

    [message] = drain(new_jobs.queue)
    assert message["payload"]["type"] == "NEW_JOB"
    assert message["payload"]["jobId"] == 1
    assert len(drain(general.queue)) == 1
    assert db.query(Notification).count() == 0


def test_job_reactivation_goes_to_job_updates_topic(db, dispatcher, realtime) -> None:
    updates = realtime.subscribe([TOPIC_JOB_UPDATES])

    dispatcher.job_reactivated(4, "Backend Engineer", "Acme")

    [message] = drain(updates.queue)
    assert message["payload"]["type"] == "JOB_ACTIVATED"
    assert db.query(Notification).count() == 0


def test_new_application_is_logged_pushed_and_broadcast(db, dispatcher, realtime, recruiter) -> None:
    private = realtime.subscribe([user_destination(recruiter.id)])
    recruiters = realtime.subscribe([TOPIC_RECRUITERS])

    dispatcher.application_received(recruiter.id, 10, "Backend Engineer", 55, "Sam Seeker")

    [row] = notification_service.list_for_user(db, recruiter.id)
    assert row.type is NotificationType.NEW_APPLICATION
    assert row.related_id == 55
    assert row.is_read is False
    assert "Sam Seeker" in row.message

    [pushed] = drain(private.queue)
    assert pushed["payload"]["notificationId"] == row.id
    [broadcast] = drain(recruiters.queue)
    assert broadcast["payload"]["recruiterId"] == recruiter.id


def test_status_change_notifies_applicant(db, dispatcher, realtime, seeker) -> None:
    private = realtime.subscribe([user_destination(seeker.id)])

    dispatcher.application_status_changed(seeker.id, 9, "Backend Engineer", "ACCEPTED")

    [row] = notification_service.list_for_user(db, seeker.id)
    assert row.type is NotificationType.APPLICATION_STATUS_CHANGED
    assert "ACCEPTED" in row.message
    assert drain(private.queue)[0]["payload"]["type"] == "APPLICATION_STATUS_CHANGED"


def test_withdrawal_is_logged_and_pushed_to_recruiter(db, dispatcher, realtime, recruiter) -> None:
    private = realtime.subscribe([user_destination(recruiter.id)])
    recruiters = realtime.subscribe([TOPIC_RECRUITERS])

    dispatcher.application_withdrawn(recruiter.id, 12, "Backend Engineer", "Sam Seeker")

    [row] = notification_service.list_for_user(db, recruiter.id)
    assert row.type is NotificationType.APPLICATION_WITHDRAWN
    assert row.related_id == 12
    assert row.message == "Sam Seeker withdrew their application for Backend Engineer"

    [pushed] = drain(private.queue)
    assert pushed["payload"]["type"] == "APPLICATION_WITHDRAWN"
    assert pushed["payload"]["notificationId"] == row.id
    assert drain(recruiters.queue) == []


def test_offline_recipient_still_gets_log_row(db, dispatcher, seeker) -> None:
    dispatcher.notify_user(seeker.id, "You have mail")

    assert notification_service.unread_count(db, seeker.id) == 1


def test_push_failure_is_swallowed(db, seeker) -> None:
    class BrokenHub(RealtimeHub):
        def publish(self, destination, payload):
            raise RuntimeError("socket exploded")

    dispatcher = NotificationDispatcher(session_factory=SessionLocal, realtime=BrokenHub())

    dispatcher.notify_user(seeker.id, "Still stored")
    dispatcher.job_posted(1, "Title", "Company", "Place")

    assert notification_service.unread_count(db, seeker.id) == 1


def test_persistence_failure_does_not_stop_push(realtime) -> None:
    def broken_session():
        raise RuntimeError("database unavailable")

    private = realtime.subscribe([user_destination(3)])
    dispatcher = NotificationDispatcher(session_factory=broken_session, realtime=realtime)

    dispatcher.notify_user(3, "Push only")

    [message] = drain(private.queue)
    assert "notificationId" not in message["payload"]


# ============== Notification log ==============


def test_log_queries_and_mark_read(db, seeker) -> None:
    first = notification_service.create_notification(db, seeker.id, "first", NotificationType.GENERAL)
    second = notification_service.create_notification(db, seeker.id, "second", NotificationType.GENERAL)

    assert [n.id for n in notification_service.list_for_user(db, seeker.id)] == [second.id, first.id]

    notification_service.mark_as_read(db, first.id, seeker)

    assert [n.id for n in notification_service.list_unread(db, seeker.id)] == [second.id]
    assert notification_service.unread_count(db, seeker.id) == 1

    assert notification_service.mark_all_as_read(db, seeker) == 1
    assert notification_service.unread_count(db, seeker.id) == 0


def test_only_recipient_may_update_or_delete(db, seeker, make_user) -> None:
    notification = notification_service.create_notification(db, seeker.id, "private", NotificationType.GENERAL)
    other = make_user(UserRole.JOB_SEEKER)

    with pytest.raises(ForbiddenError):
        notification_service.mark_as_read(db, notification.id, other)
    with pytest.raises(ForbiddenError):
        notification_service.delete_notification(db, notification.id, other)

    notification_id = notification.id
    notification_service.delete_notification(db, notification_id, seeker)
    with pytest.raises(NotFoundError):
        notification_service.mark_as_read(db, notification_id, seeker)
