import asyncio
import logging
from typing import Any, AsyncIterator, Optional, Set
from uuid import uuid4

from paystream.core.utils import SSE_PING, format_sse

logger = logging.getLogger(__name__)

_CLOSED = object()


class BroadcasterError(Exception):
    """Base error for the live payment stream"""


class SubscriberLimitReached(BroadcasterError):
    """Raised when the stream already serves the maximum number of clients"""


class Subscription:
    """
    One open push connection.

    Frames are buffered in a bounded queue so a slow reader never blocks
    the publisher. When the queue is full the oldest frame is dropped.
    """

    def __init__(self, queue_size: int = 100):
        self.id = uuid4().hex
        self.dropped = 0
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._closed = False
        self._keepalive: Optional[asyncio.Task] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def offer(self, frame: str, droppable: bool = False) -> bool:
        """
        Queue a frame for this connection.

        Args:
            frame: Serialized frame
            droppable: Skip the frame instead of evicting an older one
                when the queue is full (used for keep-alive pings)

        Returns:
            False if the connection is already closed
        """
        if self._closed:
            return False
        if self._queue.full():
            if droppable:
                return True
            self._queue.get_nowait()
            self.dropped += 1
            logger.debug(f"Subscriber {self.id} is lagging, dropped oldest frame")
        self._queue.put_nowait(frame)
        return True

    def close(self):
        if self._closed:
            return
        self._closed = True
        if self._keepalive is not None:
            self._keepalive.cancel()
            self._keepalive = None
        # Discard the backlog and wake the reader
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    async def frames(self) -> AsyncIterator[str]:
        """Yield queued frames until the subscription is closed"""
        while True:
            frame = await self._queue.get()
            if frame is _CLOSED or self._closed:
                return
            yield frame


class EventBroadcaster:
    """Fan-out of named events to every open subscription"""

    def __init__(
        self,
        keepalive_interval: float = 25.0,
        queue_size: int = 100,
        max_subscribers: int = 0,
    ):
        self.keepalive_interval = keepalive_interval
        self.queue_size = queue_size
        self.max_subscribers = max_subscribers
        self._subscribers: Set[Subscription] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscription:
        """
        Register a new connection.

        Queues the "hello" acknowledgement and starts the keep-alive task.
        Must be called from inside the running event loop.

        Returns:
            Handle to read frames from and to pass to unsubscribe()

        Raises:
            SubscriberLimitReached: If max_subscribers connections are open
        """
        if self.max_subscribers and len(self._subscribers) >= self.max_subscribers:
            raise SubscriberLimitReached(
                f"Live stream is full ({self.max_subscribers} subscribers)"
            )

        subscription = Subscription(queue_size=self.queue_size)
        subscription.offer(format_sse("hello", "connected"))
        self._subscribers.add(subscription)
        subscription._keepalive = asyncio.get_running_loop().create_task(
            self._keep_alive(subscription)
        )
        logger.info(f"Subscriber {subscription.id} connected ({len(self._subscribers)} open)")
        return subscription

    def unsubscribe(self, subscription: Subscription):
        """Stop keep-alive and forget the connection. Safe to call repeatedly."""
        if subscription not in self._subscribers:
            return
        self._subscribers.discard(subscription)
        subscription.close()
        logger.info(f"Subscriber {subscription.id} disconnected ({len(self._subscribers)} open)")

    def publish(self, event: str, payload: Any) -> int:
        """
        Send an event to every connection open at call time.

        A connection that fails is removed; the others still get the event.

        Args:
            event: Event name
            payload: JSON-serializable data

        Returns:
            Number of connections the event was queued for
        """
        frame = format_sse(event, payload)
        delivered = 0
        stale = []

        for subscription in tuple(self._subscribers):
            try:
                accepted = subscription.offer(frame)
            except Exception as e:
                logger.warning(f"Delivery to subscriber {subscription.id} failed: {e}")
                accepted = False
            if accepted:
                delivered += 1
            else:
                stale.append(subscription)

        for subscription in stale:
            self.unsubscribe(subscription)

        return delivered

    def close(self):
        """Disconnect every subscriber (server shutdown)"""
        for subscription in tuple(self._subscribers):
            self.unsubscribe(subscription)

    async def _keep_alive(self, subscription: Subscription):
        while not subscription.closed:
            await asyncio.sleep(self.keepalive_interval)
            if not subscription.offer(SSE_PING, droppable=True):
                break
