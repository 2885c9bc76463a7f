"""
Progress Broadcaster - job lifecycle pub/sub

Architecture:
┌─────────────────────────────────────────────────────────────────┐
│                     PROGRESS BROADCASTER                         │
├─────────────────────────────────────────────────────────────────┤
│                                                                  │
│  Publisher:                     Subscribers:                     │
│  └─ Job queue worker ──notify──► ├─ [queue] → delivery task → cb │
│                                  ├─ [queue] → delivery task → cb │
│                                  └─ ...                          │
│                                                                  │
│  Event Types:                                                    │
│  • job:created    • job:updated    • job:completed               │
│                                                                  │
└─────────────────────────────────────────────────────────────────┘

notify() never blocks and never raises into the publisher: each subscriber
has its own bounded queue drained by its own task, a full queue drops the
event with a warning, and handler exceptions are logged and swallowed.
Events reach each subscriber in publish order.
"""

import asyncio
import threading
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional

from genforge.core.logging_config import logger
from genforge.schemas.job import utc_now


class EventType(str, Enum):
    JOB_CREATED = "job:created"
    JOB_UPDATED = "job:updated"
    JOB_COMPLETED = "job:completed"

    @property
    def short_name(self) -> str:
        return self.value.split(":", 1)[1]


@dataclass
class ProgressEvent:
    """A job lifecycle event"""
    type: EventType
    job_id: str
    status: str
    progress: int
    steps: List[Dict[str, Any]] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "type": self.type.short_name,
            "event": self.type.value,
            "id": self.job_id,
            "status": self.status,
            "progress": self.progress,
            "steps": self.steps,
            "timestamp": self.timestamp.isoformat(),
        }
        payload.update(self.data)
        return payload


# Handlers may be sync or async
EventHandler = Callable[[ProgressEvent], Any]


class Subscription:
    """One subscriber: handler, optional job filter, bounded queue"""

    def __init__(self, handler: EventHandler, job_id: Optional[str], max_size: int):
        self.id = uuid.uuid4().hex[:12]
        self.handler = handler
        self.job_id = job_id
        self.queue: "asyncio.Queue[ProgressEvent]" = asyncio.Queue(maxsize=max_size)
        self.task: Optional[asyncio.Task] = None
        self.delivered = 0
        self.dropped = 0
        self.failed = 0

    def wants(self, event: ProgressEvent) -> bool:
        return self.job_id is None or self.job_id == event.job_id


class ProgressBroadcaster:
    """
    Observer list with explicit subscribe/unsubscribe and a non-blocking
    notify(). Must be driven from a single event loop.
    """

    def __init__(self, queue_size: int = 100, max_history: int = 1000):
        self._lock = threading.Lock()
        self._subscriptions: Dict[str, Subscription] = {}
        self._history: Deque[ProgressEvent] = deque(maxlen=max_history)
        self._queue_size = queue_size
        self._event_count = 0

    # ========== Subscription ==========

    def subscribe(self, handler: EventHandler, job_id: Optional[str] = None) -> Subscription:
        """
        Register a handler for every event (or only one job's events).

        Args:
            handler: Sync or async callable receiving ProgressEvent
            job_id: Optional job filter

        Returns:
            Subscription handle for unsubscribe()
        """
        subscription = Subscription(handler, job_id, self._queue_size)
        with self._lock:
            self._subscriptions[subscription.id] = subscription
        self._ensure_delivery(subscription)
        logger.debug(
            f"[Broadcaster] Subscribed {subscription.id}"
            + (f" to job {job_id}" if job_id else " to all jobs")
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            removed = self._subscriptions.pop(subscription.id, None)
        if removed and removed.task and not removed.task.done():
            removed.task.cancel()
        if removed:
            logger.debug(f"[Broadcaster] Unsubscribed {subscription.id}")

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    # ========== Publishing ==========

    def notify(self, event: ProgressEvent) -> None:
        """Queue an event for every interested subscriber; never blocks"""
        with self._lock:
            self._event_count += 1
            self._history.append(event)
            subscriptions = list(self._subscriptions.values())

        logger.debug(f"[Broadcaster] {event.type.value} for {event.job_id} ({event.progress}%)")

        for subscription in subscriptions:
            if not subscription.wants(event):
                continue
            self._ensure_delivery(subscription)
            try:
                subscription.queue.put_nowait(event)
            except asyncio.QueueFull:
                subscription.dropped += 1
                logger.warning(
                    f"[Broadcaster] Queue full for subscriber {subscription.id}, "
                    f"dropping {event.type.value} for {event.job_id}"
                )

    def _ensure_delivery(self, subscription: Subscription) -> None:
        """Start the subscriber's delivery task once a loop is running"""
        if subscription.task is not None and not subscription.task.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        subscription.task = loop.create_task(self._deliver(subscription))

    async def _deliver(self, subscription: Subscription) -> None:
        while True:
            event = await subscription.queue.get()
            try:
                result = subscription.handler(event)
                if asyncio.iscoroutine(result):
                    await result
                subscription.delivered += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                subscription.failed += 1
                logger.error(f"[Broadcaster] Subscriber {subscription.id} failed on {event.type.value}: {e}")
            finally:
                subscription.queue.task_done()

    async def flush(self) -> None:
        """Wait until every subscriber has processed everything queued so far"""
        with self._lock:
            subscriptions = list(self._subscriptions.values())
        for subscription in subscriptions:
            self._ensure_delivery(subscription)
            await subscription.queue.join()

    async def close(self) -> None:
        """Cancel all delivery tasks and drop every subscription"""
        with self._lock:
            subscriptions = list(self._subscriptions.values())
            self._subscriptions.clear()
        tasks = [s.task for s in subscriptions if s.task and not s.task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ========== History & Debugging ==========

    def get_history(self, job_id: Optional[str] = None, limit: int = 100) -> List[ProgressEvent]:
        with self._lock:
            events = list(self._history)
        if job_id:
            events = [e for e in events if e.job_id == job_id]
        return events[-limit:]

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            subscriptions = list(self._subscriptions.values())
            return {
                "total_events": self._event_count,
                "history_size": len(self._history),
                "subscribers": len(subscriptions),
                "dropped_events": sum(s.dropped for s in subscriptions),
                "failed_deliveries": sum(s.failed for s in subscriptions),
            }
