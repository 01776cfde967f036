"""Core data structures and definitions.

This package contains fundamental data types and combat definitions:
- data_structures.py: combatant, template and encounter state dataclasses
- game_enums.py: centralized enums for stances, actions, body parts, sides
"""

from .data_structures import (
    AllyDeath,
    AllyTemplate,
    BattleState,
    CombatantRef,
    CombatantSnapshot,
    EncounterConfig,
    LogEntry,
    MeleeAlly,
    MeleeOpponent,
    MeleeState,
    MoraleChange,
    NpcStatus,
    OpponentTemplate,
    Player,
    RoundAction,
    WaveEvent,
)
from .game_enums import (
    ACTION_NAMES,
    ALLY_KIND,
    PLAYER_KIND,
    STANCE_NAMES,
    ActionId,
    AllyKind,
    AllyPersonality,
    BattleEnd,
    BodyPart,
    LogEntryType,
    MeleeContext,
    MeleeStance,
    MoraleSource,
    MoraleThreshold,
    OpponentType,
    RoundEventType,
    Side,
    WaveAction,
)

__all__ = [
    "AllyDeath",
    "AllyTemplate",
    "BattleState",
    "CombatantRef",
    "CombatantSnapshot",
    "EncounterConfig",
    "LogEntry",
    "MeleeAlly",
    "MeleeOpponent",
    "MeleeState",
    "MoraleChange",
    "NpcStatus",
    "OpponentTemplate",
    "Player",
    "RoundAction",
    "WaveEvent",
    "ACTION_NAMES",
    "ALLY_KIND",
    "PLAYER_KIND",
    "STANCE_NAMES",
    "ActionId",
    "AllyKind",
    "AllyPersonality",
    "BattleEnd",
    "BodyPart",
    "LogEntryType",
    "MeleeContext",
    "MeleeStance",
    "MoraleSource",
    "MoraleThreshold",
    "OpponentType",
    "RoundEventType",
    "Side",
    "WaveAction",
]
