"""Manager systems for melee coordination.

This package contains the managers that coordinate cross-cutting melee
concerns through the event-driven architecture.
"""

from .log_manager import LogCategory, LogLevel, LogManager
from .wave_manager import WaveManager, backfill_enemies, is_opponent_defeated, process_wave_events

__all__ = [
    "LogCategory",
    "LogLevel",
    "LogManager",
    "WaveManager",
    "backfill_enemies",
    "is_opponent_defeated",
    "process_wave_events",
]
