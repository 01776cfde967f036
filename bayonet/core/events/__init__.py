"""Event system for publisher-subscriber communication.

This package contains the event-driven architecture:
- event_manager.py: Priority-queued publish/subscribe bus
- events.py: Event definitions for inter-system communication
"""

from .event_manager import DeliveryError, EventManager, EventPriority, QueuedEvent
from .events import (
    AllyFell,
    CombatantArrived,
    EventType,
    GameEvent,
    LogMessage,
    LogSaveRequested,
    OpponentDefeated,
    RoundResolved,
    RoundStarted,
)

__all__ = [
    "DeliveryError",
    "EventManager",
    "EventPriority",
    "QueuedEvent",
    "AllyFell",
    "CombatantArrived",
    "EventType",
    "GameEvent",
    "LogMessage",
    "LogSaveRequested",
    "OpponentDefeated",
    "RoundResolved",
    "RoundStarted",
]
