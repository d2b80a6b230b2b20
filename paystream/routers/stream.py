from typing import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from paystream.core.dependencies import get_broadcaster
from paystream.services.broadcaster import (
    EventBroadcaster,
    SubscriberLimitReached,
    Subscription,
)

router = APIRouter()

STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def event_stream(
    broadcaster: EventBroadcaster, subscription: Subscription
) -> AsyncIterator[str]:
    """Relay queued frames until the client goes away"""
    try:
        async for frame in subscription.frames():
            yield frame
    finally:
        # Runs on client disconnect (generator cancelled) and on shutdown
        broadcaster.unsubscribe(subscription)


@router.get("/stream")
async def payment_stream(broadcaster: EventBroadcaster = Depends(get_broadcaster)):
    """
    Live payment feed (Server-Sent Events)
    Sends "hello" on connect, then a "payment" event per new payment
    """
    try:
        subscription = broadcaster.subscribe()
    except SubscriberLimitReached as e:
        raise HTTPException(status_code=503, detail=str(e))

    return StreamingResponse(
        event_stream(broadcaster, subscription),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )
