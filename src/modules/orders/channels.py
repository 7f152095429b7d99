"""Per-order broadcast of patch events to live subscribers.

The lifecycle engine is the only producer; every open
``/orders/{id}/updates`` stream is a consumer with its own bounded
queue.  ``publish`` never waits: a subscriber whose queue is full is
disconnected instead, and must re-fetch the order before subscribing
again.  Subscribers only see events published after they attached, in
sequence order.
"""

from __future__ import annotations

import json
import queue
import threading
from functools import lru_cache
from typing import Dict, Iterator, Optional, Set

import structlog
from django.conf import settings

from modules.orders.entities import PatchEvent

logger = structlog.get_logger(__name__)


class SubscriptionClosed(Exception):
    """The subscription was dropped (overflow) or released."""


class Subscription:
    """One reader's view of an order channel.

    Events are handed to the reader in ``sequence`` order.  Publication
    happens after commit, so two writers can publish out of order; an
    event ahead of the next expected sequence is held back until the gap
    is filled.  Events at or below the last delivered sequence are
    ignored.  Without ``after`` the first event offered sets the start.
    """

    def __init__(self, order_id: str, buffer_size: int, after: Optional[int] = None) -> None:
        self.order_id = order_id
        self.overflowed = False
        self.buffer_size = buffer_size
        self._queue: "queue.Queue[PatchEvent]" = queue.Queue(maxsize=buffer_size)
        self._held: Dict[int, PatchEvent] = {}
        self._expected = None if after is None else after + 1
        self._lock = threading.Lock()
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def offer(self, event: PatchEvent) -> bool:
        """Accept without blocking; ``False`` when the buffer is full."""
        with self._lock:
            if self.closed:
                return False
            if self._expected is None:
                self._expected = event.sequence
            if event.sequence < self._expected:
                return True
            if event.sequence > self._expected:
                if len(self._held) >= self.buffer_size:
                    return False
                self._held[event.sequence] = event
                logger.debug(
                    "order_channel.event_held",
                    order_id=self.order_id,
                    sequence=event.sequence,
                    expected=self._expected,
                )
                return True
            while event is not None:
                try:
                    self._queue.put_nowait(event)
                except queue.Full:
                    return False
                self._expected += 1
                event = self._held.pop(self._expected, None)
            return True

    def next_event(self, timeout: Optional[float] = None) -> Optional[PatchEvent]:
        """Next event, or ``None`` after ``timeout`` seconds without one."""
        if self.closed:
            raise SubscriptionClosed(self.order_id)
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            if self.closed:
                raise SubscriptionClosed(self.order_id)
            return None

    def close(self, overflowed: bool = False) -> None:
        self.overflowed = self.overflowed or overflowed
        self._closed.set()
        with self._lock:
            self._held.clear()
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break


class OrderChannelHub:
    def __init__(self, buffer_size: int = 100) -> None:
        self.buffer_size = buffer_size
        self._subscribers: Dict[str, Set[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, order_id: str, after: Optional[int] = None) -> Subscription:
        """Attach a reader; ``after`` is the last sequence it already has."""
        subscription = Subscription(order_id, self.buffer_size, after)
        with self._lock:
            self._subscribers.setdefault(order_id, set()).add(subscription)
        logger.info("order_channel.subscribed", order_id=order_id)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.order_id)
            if subscribers is not None:
                subscribers.discard(subscription)
                if not subscribers:
                    del self._subscribers[subscription.order_id]
        if not subscription.closed:
            subscription.close()
            logger.info("order_channel.unsubscribed", order_id=subscription.order_id)

    def publish(self, event: PatchEvent) -> int:
        """Fan ``event`` out; returns how many subscribers accepted it."""
        with self._lock:
            subscribers = list(self._subscribers.get(event.order_id, ()))
        delivered = 0
        for subscription in subscribers:
            if subscription.offer(event):
                delivered += 1
                continue
            logger.warning(
                "order_channel.subscriber_overflow",
                order_id=event.order_id,
                sequence=event.sequence,
            )
            subscription.close(overflowed=True)
            self.unsubscribe(subscription)
        return delivered

    def subscriber_count(self, order_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(order_id, ()))


class PatchEventStream:
    """Server-sent events for one subscription.

    ``StreamingHttpResponse`` calls ``close`` when the client goes away or
    the response finishes, which releases the subscription even if
    iteration never started.
    """

    def __init__(
        self, hub: OrderChannelHub, subscription: Subscription, keepalive_seconds: float
    ) -> None:
        self._hub = hub
        self._subscription = subscription
        self._keepalive = keepalive_seconds

    def __iter__(self) -> Iterator[str]:
        try:
            yield ": subscribed\n\n"
            while True:
                try:
                    event = self._subscription.next_event(timeout=self._keepalive)
                except SubscriptionClosed:
                    if self._subscription.overflowed:
                        yield "event: order.reset\ndata: {}\n\n"
                    return
                if event is None:
                    yield ": keep-alive\n\n"
                    continue
                yield format_event(event)
        finally:
            self.close()

    def close(self) -> None:
        self._hub.unsubscribe(self._subscription)


def format_event(event: PatchEvent) -> str:
    return f"event: order.patch\nid: {event.sequence}\ndata: {json.dumps(event.operations)}\n\n"


@lru_cache(maxsize=1)
def get_hub() -> OrderChannelHub:
    return OrderChannelHub(int(settings.COMMERCE.get("SUBSCRIBER_BUFFER_SIZE", 100)))


def reset_hub() -> None:
    get_hub.cache_clear()
