"""
Event bus for the melee core.

The round resolver, the wave manager and the phases publish events here; the
log manager and any caller-side listeners subscribe. Publishing queues an
event and ``process_events`` delivers the queue in priority order, so a round
can raise events freely and the caller decides when listeners run.
"""

import heapq
from collections import defaultdict, deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .events import GameEvent, EventType


class EventPriority(Enum):
    """Delivery priority. Lower values are delivered first."""
    CRITICAL = 0
    HIGH = 1
    NORMAL = 2
    LOW = 3


@dataclass(frozen=True)
class QueuedEvent:
    """A published event waiting for delivery."""
    event: "GameEvent"
    priority: EventPriority = EventPriority.NORMAL
    sequence: int = 0
    source: Optional[str] = None

    @property
    def sort_key(self) -> tuple[int, int]:
        return self.priority.value, self.sequence

    def __lt__(self, other: "QueuedEvent") -> bool:
        return self.sort_key < other.sort_key


@dataclass(frozen=True)
class DeliveryError:
    """A subscriber that raised while handling an event."""
    event_name: str
    subscriber_name: str
    turn: int
    error: str


@dataclass
class _Subscription:
    callback: "EventSubscriber"
    name: str = "anonymous"


EventSubscriber = Callable[["GameEvent"], None]


def _callable_name(subscriber: EventSubscriber) -> str:
    return getattr(subscriber, '__qualname__', None) or getattr(subscriber, '__name__', 'anonymous')


class EventManager:
    """Publish/subscribe hub with a priority queue.

    A subscriber that raises is recorded in ``delivery_errors`` and the
    remaining subscribers still receive the event.
    """

    def __init__(self, enable_debug_logging: bool = False, history_size: int = 500):
        self.enable_debug_logging = enable_debug_logging

        self._by_type: dict["EventType", list[_Subscription]] = defaultdict(list)
        self._catch_all: list[_Subscription] = []
        self._heap: list[QueuedEvent] = []
        self._sequence = 0
        self._delivered = 0
        self._history: deque[QueuedEvent] = deque(maxlen=history_size)
        self.delivery_errors: list[DeliveryError] = []
        self._debug_callback: Optional[Callable[[str], None]] = None

    def set_debug_callback(self, callback: Optional[Callable[[str], None]]) -> None:
        """Route bus tracing to ``callback`` while debug logging is on."""
        self._debug_callback = callback

    def _trace(self, message: str) -> None:
        if self.enable_debug_logging and self._debug_callback:
            self._debug_callback(f"[EVENT] {message}")

    # Subscriptions

    def subscribe(
        self,
        event_type: "EventType",
        subscriber: EventSubscriber,
        subscriber_name: Optional[str] = None,
    ) -> None:
        name = subscriber_name or _callable_name(subscriber)
        self._by_type[event_type].append(_Subscription(subscriber, name))
        self._trace(f"{name} listens for {event_type.name}")

    def subscribe_all(self, subscriber: EventSubscriber, subscriber_name: Optional[str] = None) -> None:
        """Receive every event regardless of type."""
        name = subscriber_name or _callable_name(subscriber)
        self._catch_all.append(_Subscription(subscriber, name))
        self._trace(f"{name} listens for every event")

    def unsubscribe(self, event_type: "EventType", subscriber: EventSubscriber) -> bool:
        """Remove a typed subscription.

        Returns:
            True if the subscriber was registered for ``event_type``
        """
        subscriptions = self._by_type.get(event_type, [])
        for subscription in subscriptions:
            if subscription.callback is subscriber:
                subscriptions.remove(subscription)
                self._trace(f"{subscription.name} stops listening for {event_type.name}")
                return True
        return False

    # Publishing

    def _enqueue(self, event: "GameEvent", priority: EventPriority, source: Optional[str]) -> QueuedEvent:
        queued = QueuedEvent(event, priority, self._sequence, source or "unknown")
        self._sequence += 1
        return queued

    def publish(
        self,
        event: "GameEvent",
        priority: EventPriority = EventPriority.NORMAL,
        source: Optional[str] = None,
    ) -> None:
        """Queue ``event`` for the next ``process_events`` call."""
        queued = self._enqueue(event, priority, source)
        heapq.heappush(self._heap, queued)
        self._trace(f"{queued.source} queued {type(event).__name__} for turn {event.turn} "
                    f"at {priority.name}")

    def publish_immediate(self, event: "GameEvent", source: Optional[str] = None) -> None:
        """Deliver ``event`` now, ahead of anything already queued."""
        self._deliver(self._enqueue(event, EventPriority.CRITICAL, source or "immediate"))

    def process_events(self, max_events: Optional[int] = None) -> int:
        """Deliver queued events, highest priority first, then in publish order.

        Args:
            max_events: Stop after this many deliveries; the rest stay queued

        Returns:
            Number of events delivered
        """
        delivered = 0
        while self._heap and (max_events is None or delivered < max_events):
            self._deliver(heapq.heappop(self._heap))
            delivered += 1
        return delivered

    def _deliver(self, queued: QueuedEvent) -> None:
        event = queued.event
        self._history.append(queued)
        self._delivered += 1

        for subscription in self._by_type.get(event.event_type, [])[:] + self._catch_all[:]:
            try:
                subscription.callback(event)
            except Exception as e:
                self.delivery_errors.append(
                    DeliveryError(type(event).__name__, subscription.name, event.turn, repr(e))
                )
                self._trace(f"{subscription.name} failed on {type(event).__name__}: {e!r}")

    # Inspection

    def has_queued_events(self) -> bool:
        return bool(self._heap)

    def clear_queue(self) -> int:
        """Drop every queued event and return how many were dropped."""
        dropped = len(self._heap)
        self._heap.clear()
        self._trace(f"dropped {dropped} queued events")
        return dropped

    def get_recent_events(self, count: int = 10, turn: Optional[int] = None) -> list[dict[str, Any]]:
        """Describe the most recently delivered events, optionally for one turn."""
        history = [q for q in self._history if turn is None or q.event.turn == turn]
        return [
            {
                'event_type': type(q.event).__name__,
                'turn': q.event.turn,
                'priority': q.priority.name,
                'source': q.source,
            }
            for q in history[-count:]
        ]

    def get_statistics(self) -> dict[str, Any]:
        return {
            'events_published': self._sequence,
            'events_processed': self._delivered,
            'events_queued': len(self._heap),
            'subscribers_count': sum(len(subs) for subs in self._by_type.values()),
            'universal_subscribers_count': len(self._catch_all),
            'delivery_errors': len(self.delivery_errors),
        }

    def shutdown(self) -> None:
        """Forget every subscriber, queued event and delivery record."""
        self._by_type.clear()
        self._catch_all.clear()
        self._heap.clear()
        self._history.clear()
        self.delivery_errors.clear()
