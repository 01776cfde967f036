"""
Melee log: categorized, turn-stamped messages collected from the event bus.

Components never hold a reference to the log manager. They call
``emit_log``, which publishes a LogMessage event, and the manager files
whatever arrives under its category and battle turn.
"""
import os
from collections import deque
from datetime import datetime
from dataclasses import dataclass
from enum import Enum, auto
from itertools import groupby
from typing import Iterable, Optional, TYPE_CHECKING

from ...core.events.events import EventType, LogMessage as LogEvent, LogSaveRequested

if TYPE_CHECKING:
    from ...core.events.event_manager import EventManager


class LogCategory(Enum):
    """What a message is about."""
    SYSTEM = auto()     # Loading, file output
    COMBAT = auto()     # Blows, blocks, kills
    AI = auto()         # Why an opponent or ally chose its action
    WAVE = auto()       # Reinforcements and backfill
    ENCOUNTER = auto()  # Encounter start and end
    DEBUG = auto()
    WARNING = auto()
    ERROR = auto()


CATEGORY_TAGS = {
    LogCategory.SYSTEM: "SYS",
    LogCategory.COMBAT: "CBT",
    LogCategory.AI: "AI",
    LogCategory.WAVE: "WAV",
    LogCategory.ENCOUNTER: "ENC",
    LogCategory.DEBUG: "DBG",
    LogCategory.WARNING: "WRN",
    LogCategory.ERROR: "ERR",
}


class LogLevel(Enum):
    """Severity, ordered by value."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


def category_for(name: str) -> LogCategory:
    """Map a category name from a LogMessage event; unknown names are SYSTEM."""
    return LogCategory.__members__.get(str(name).upper(), LogCategory.SYSTEM)


@dataclass(frozen=True)
class LogRecord:
    """One stored message."""
    text: str
    category: LogCategory
    level: LogLevel = LogLevel.INFO
    source: str = ""
    turn: int = 0

    def format(self, include_turn: bool = False, include_category: bool = True) -> str:
        parts = []
        if include_turn:
            parts.append(f"[T{self.turn}]")
        if include_category:
            parts.append(f"[{CATEGORY_TAGS[self.category]}]")
        parts.append(self.text)
        return " ".join(parts)


class LogManager:
    """Collects melee log messages published on the event bus."""

    def __init__(
        self,
        event_manager: "EventManager",
        max_messages: int = 1000,
        default_level: LogLevel = LogLevel.INFO,
        log_dir: str = "logs",
    ):
        """
        Args:
            event_manager: Bus to collect LogMessage and LogSaveRequested events from
            max_messages: Size of the message buffer; the oldest messages drop first
            default_level: Messages below this level are hidden from get_messages
            log_dir: Directory save_log_to_file writes into
        """
        self.messages: deque[LogRecord] = deque(maxlen=max_messages)
        self.log_level = default_level
        self.enabled_categories = set(LogCategory)
        self.log_dir = log_dir

        event_manager.subscribe(EventType.LOG_MESSAGE, self._on_log_message,
                                subscriber_name="LogManager.log_message")
        event_manager.subscribe(EventType.LOG_SAVE_REQUESTED, self._on_save_requested,
                                subscriber_name="LogManager.save_requested")

    def _on_log_message(self, event: LogEvent) -> None:
        level = event.level if isinstance(event.level, LogLevel) else LogLevel.INFO
        self.messages.append(LogRecord(event.message, category_for(event.category), level,
                                       event.source, event.turn))

    def _on_save_requested(self, event: LogSaveRequested) -> None:
        self.save_log_to_file()

    def log(self, text: str, category: LogCategory = LogCategory.SYSTEM,
            level: LogLevel = LogLevel.INFO, turn: int = 0) -> None:
        """Store a message directly, without going through the bus."""
        self.messages.append(LogRecord(text, category, level, "LogManager", turn))

    def combat(self, text: str, turn: int = 0) -> None:
        self.log(text, LogCategory.COMBAT, turn=turn)

    def wave(self, text: str, turn: int = 0) -> None:
        self.log(text, LogCategory.WAVE, turn=turn)

    def system(self, text: str) -> None:
        self.log(text, LogCategory.SYSTEM)

    def warning(self, text: str, turn: int = 0) -> None:
        self.log(text, LogCategory.WARNING, LogLevel.WARNING, turn)

    def error(self, text: str, turn: int = 0) -> None:
        self.log(text, LogCategory.ERROR, LogLevel.ERROR, turn)

    def _visible(self, record: LogRecord) -> bool:
        return (record.category in self.enabled_categories
                and record.level.value >= self.log_level.value)

    def get_messages(self, count: Optional[int] = None,
                     categories: Optional[set[LogCategory]] = None) -> list[LogRecord]:
        """Visible messages, oldest first.

        Args:
            count: Keep only the newest ``count`` messages
            categories: Restrict to these categories, ignoring the level filter
        """
        if categories:
            selected = [m for m in self.messages
                        if m.category in categories and m.category in self.enabled_categories]
        else:
            selected = [m for m in self.messages if self._visible(m)]

        if count is not None:
            return selected[-count:] if count > 0 else []
        return selected

    def messages_for_turn(self, turn: int) -> list[LogRecord]:
        return [m for m in self.messages if m.turn == turn and self._visible(m)]

    def warnings(self) -> list[LogRecord]:
        """Stored messages at WARNING or above, whatever the filters."""
        return [m for m in self.messages if m.level.value >= LogLevel.WARNING.value]

    def clear(self) -> None:
        self.messages.clear()

    def enable_category(self, category: LogCategory) -> None:
        self.enabled_categories.add(category)

    def disable_category(self, category: LogCategory) -> None:
        self.enabled_categories.discard(category)

    def set_log_level(self, level: LogLevel) -> None:
        self.log_level = level

    def transcript(self, records: Optional[Iterable[LogRecord]] = None) -> list[str]:
        """Lines for display, with a header before each new turn."""
        lines = []
        source = self.get_messages() if records is None else records
        for turn, group in groupby(source, key=lambda m: m.turn):
            lines.append(f"--- Turn {turn} ---")
            lines.extend(m.format() for m in group)
        return lines

    def save_log_to_file(self) -> Optional[str]:
        """Write every buffered message, ignoring filters, to a timestamped file.

        Returns:
            The written path, or None if the write failed
        """
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = os.path.join(self.log_dir, f"melee_{stamp}.log")

        try:
            os.makedirs(self.log_dir, exist_ok=True)
            with open(filepath, 'w', encoding='utf-8') as f:
                f.write(f"Bayonet melee log, written {datetime.now():%Y-%m-%d %H:%M:%S}\n\n")
                if not self.messages:
                    f.write("No messages.\n")
                for turn, group in groupby(self.messages, key=lambda m: m.turn):
                    f.write(f"--- Turn {turn} ---\n")
                    for m in group:
                        f.write(f"[{m.category.name}] [{m.level.name}] {m.source}: {m.text}\n")
        except OSError as e:
            self.error(f"Could not write {filepath}: {e}")
            return None

        self.system(f"Melee log saved to {filepath}")
        return filepath


def emit_log(
    event_manager: Optional["EventManager"],
    message: str,
    category: str = "SYSTEM",
    level: LogLevel = LogLevel.INFO,
    source: str = "Melee",
    turn: int = 0,
) -> None:
    """Publish a log message on the bus. No-op without an event manager."""
    if event_manager is None:
        return
    event_manager.publish(
        LogEvent(turn=turn, message=message, category=category, level=level, source=source),
        source=source,
    )
