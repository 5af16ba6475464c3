"""
Real-time notification socket.

Clients connect to ``/ws/notifications?token=<bearer token>`` and receive JSON
messages ``{"destination": ..., "payload": {...}}`` from their private queue and
the broadcast topics. Incoming client frames are ignored.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, WebSocket, status

from app.core.security import resolve_user
from app.db.session import SessionLocal
from app.models import UserRole
from app.services.realtime import (
    TOPIC_JOB_UPDATES,
    TOPIC_NEW_JOBS,
    TOPIC_NOTIFICATIONS,
    TOPIC_RECRUITERS,
    Subscription,
    hub,
    user_destination,
)

logger = logging.getLogger("realtime")

router = APIRouter()


async def _forward(websocket: WebSocket, subscription: Subscription) -> None:
    while True:
        message = await subscription.queue.get()
        await websocket.send_json(message)


async def _drain_client(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/notifications")
async def notifications_socket(websocket: WebSocket, token: Optional[str] = None):
    db = SessionLocal()
    try:
        user = resolve_user(token, db)
    finally:
        db.close()

    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    destinations = [user_destination(user.id), TOPIC_NEW_JOBS, TOPIC_JOB_UPDATES, TOPIC_NOTIFICATIONS]
    if user.role == UserRole.RECRUITER:
        destinations.append(TOPIC_RECRUITERS)

    # Subscribe before accepting so nothing published after the handshake is missed
    subscription = hub.subscribe(destinations)
    await websocket.accept()
    logger.info("User %s connected for real-time notifications", user.id)

    sender = asyncio.create_task(_forward(websocket, subscription))
    receiver = asyncio.create_task(_drain_client(websocket))
    try:
        done, pending = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.warning("Socket for user %s closed: %r", user.id, task.exception())
    finally:
        hub.unsubscribe(subscription)
        logger.info("User %s disconnected (%s pushes dropped)", user.id, subscription.dropped)
