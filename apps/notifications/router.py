import asyncio
import logging
from typing import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from apps.notifications.broker import NotificationBroker, Subscriber, get_notifier
from models.base import get_db
from models.user import User
from security.auth_backend import get_stream_user
from settings.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


def format_sse(data: str, event: str = "message") -> str:
    return f"event: {event}\ndata: {data}\n\n"


async def event_stream(
    request: Request,
    notifier: NotificationBroker,
    subscriber: Subscriber,
    heartbeat_seconds: float,
) -> AsyncIterator[str]:
    """
    Yield queued events for one subscriber, with periodic pings so proxies
    keep the connection open. Unsubscribes when the client goes away.
    """
    try:
        yield format_sse(f"connected as user {subscriber.user_id} ({subscriber.role})", event="connected")
        while True:
            if await request.is_disconnected():
                break
            try:
                message = await asyncio.wait_for(subscriber.queue.get(), timeout=heartbeat_seconds)
            except asyncio.TimeoutError:
                yield format_sse("ping", event="ping")
                continue
            yield format_sse(message)
    finally:
        notifier.unsubscribe(subscriber)


@router.get("/stream")
async def notifications_stream(
    request: Request,
    current_user: User = Depends(get_stream_user),
    notifier: NotificationBroker = Depends(get_notifier),
    db: AsyncSession = Depends(get_db),
):
    """
    Server-sent events carrying lifecycle event strings, e.g. "review-item:12:approved".
    """
    settings = get_settings()
    # Release the pooled connection; the stream itself may stay open for hours
    await db.close()
    subscriber = notifier.subscribe(current_user.id, current_user.role)
    return StreamingResponse(
        event_stream(request, notifier, subscriber, settings.SSE_HEARTBEAT_SECONDS),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive", "X-Accel-Buffering": "no"},
    )
