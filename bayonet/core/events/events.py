"""Event-driven system events.

This module defines the events the melee core publishes on the event bus.

Event Design Principles:
- Events are immutable dataclasses
- All events carry the battle turn they were raised on
- Events use proper enums instead of magic strings
- Keep event types focused and avoid over-granular events
"""

from dataclasses import dataclass, field
from abc import ABC
from enum import Enum, auto
from typing import Optional, TYPE_CHECKING

from ..data.game_enums import BattleEnd, Side

if TYPE_CHECKING:
    from ...game.managers.log_manager import LogLevel


class EventType(Enum):
    """Types of events that managers can subscribe to."""
    # Round Events
    ROUND_STARTED = auto()
    ROUND_RESOLVED = auto()

    # Combatant Events
    COMBATANT_ARRIVED = auto()
    OPPONENT_DEFEATED = auto()
    ALLY_FELL = auto()

    # Logging Events
    LOG_MESSAGE = auto()
    LOG_SAVE_REQUESTED = auto()


@dataclass(frozen=True)
class GameEvent(ABC):
    """Base class for all events."""
    turn: int
    event_type: EventType = field(init=False)


@dataclass(frozen=True)
class RoundStarted(GameEvent):
    """Event emitted when a melee round begins."""
    round_number: int

    def __post_init__(self):
        # Set event_type since dataclass frozen=True prevents normal assignment
        object.__setattr__(self, 'event_type', EventType.ROUND_STARTED)


@dataclass(frozen=True)
class RoundResolved(GameEvent):
    """Event emitted when a melee round has fully resolved."""
    round_number: int
    enemy_defeats: int
    battle_end: Optional[BattleEnd] = None

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ROUND_RESOLVED)


@dataclass(frozen=True)
class CombatantArrived(GameEvent):
    """Event emitted when an ally joins or a pooled enemy is backfilled."""
    name: str
    side: Side

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.COMBATANT_ARRIVED)


@dataclass(frozen=True)
class OpponentDefeated(GameEvent):
    """Event emitted when an opponent is killed or routed."""
    name: str
    opponent_index: int
    defeated_by: Side

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.OPPONENT_DEFEATED)


@dataclass(frozen=True)
class AllyFell(GameEvent):
    """Event emitted when an ally is struck down."""
    name: str
    npc_id: Optional[str]
    is_named: bool

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ALLY_FELL)


@dataclass(frozen=True)
class LogMessage(GameEvent):
    """Event emitted when a log message is created."""
    message: str
    category: str
    level: "LogLevel"
    source: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.LOG_MESSAGE)


@dataclass(frozen=True)
class LogSaveRequested(GameEvent):
    """Event emitted when the log should be written to disk."""

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.LOG_SAVE_REQUESTED)
