"""Centralized melee enums and constants.

This module contains all core combat enums that are used across multiple modules,
eliminating duplication and providing a single source of truth.
"""

from enum import Enum


class MeleeStance(Enum):
    """Combat postures trading attack for defense."""
    AGGRESSIVE = "aggressive"
    BALANCED = "balanced"
    DEFENSIVE = "defensive"


class ActionId(Enum):
    """Combat moves available in melee."""
    BAYONET_THRUST = "bayonet_thrust"
    AGGRESSIVE_LUNGE = "aggressive_lunge"
    BUTT_STRIKE = "butt_strike"
    FEINT = "feint"
    GUARD = "guard"
    RESPITE = "respite"
    SHOOT = "shoot"
    RELOAD = "reload"


class BodyPart(Enum):
    """Body targets with distinct hit and damage profiles."""
    HEAD = "head"
    TORSO = "torso"
    ARMS = "arms"
    LEGS = "legs"


class OpponentType(Enum):
    """Enemy soldier grades, from raw recruit to NCO."""
    CONSCRIPT = "conscript"
    LINE = "line"
    VETERAN = "veteran"
    SERGEANT = "sergeant"


class AllyPersonality(Enum):
    """Fighting temperament of an ally."""
    AGGRESSIVE = "aggressive"
    BALANCED = "balanced"
    CAUTIOUS = "cautious"


class AllyKind(Enum):
    """Named allies are story characters; generic allies are not."""
    NAMED = "named"
    GENERIC = "generic"


class Side(Enum):
    """Which side of the fight a combatant stands on."""
    PLAYER = "player"
    ALLY = "ally"
    ENEMY = "enemy"


class MeleeContext(Enum):
    """Where the melee takes place."""
    TERRAIN = "terrain"
    BATTERY = "battery"


class WaveAction(Enum):
    """Scripted mid-encounter population changes."""
    ADD_ALLY = "add_ally"
    INCREASE_MAX_ENEMIES = "increase_max_enemies"


class RoundEventType(Enum):
    """Discriminator for structured round log entries."""
    ACTION = "action"
    ARRIVAL = "arrival"
    DEFEAT = "defeat"


class LogEntryType(Enum):
    """Narrative log entry flavours consumed by the text layer."""
    NARRATIVE = "narrative"
    ACTION = "action"
    EVENT = "event"
    MORALE = "morale"
    RESULT = "result"


class MoraleSource(Enum):
    """Origin of a morale change."""
    PASSIVE = "passive"
    EVENT = "event"
    ACTION = "action"


class MoraleThreshold(Enum):
    """Player morale bands gating which actions are available."""
    STEADY = "steady"       # 75-100%
    SHAKEN = "shaken"       # 40-75%
    WAVERING = "wavering"   # 15-40%
    BREAKING = "breaking"   # 0-15%


class BattleEnd(Enum):
    """Terminal outcome of an encounter."""
    VICTORY = "victory"
    DEFEAT = "defeat"
    SURVIVED = "survived"


# Kind tags for CombatantRef (player, ally, or one of the opponent types)
PLAYER_KIND = "player"
ALLY_KIND = "ally"

STANCE_NAMES = {
    MeleeStance.AGGRESSIVE: "Aggressive",
    MeleeStance.BALANCED: "Balanced",
    MeleeStance.DEFENSIVE: "Defensive",
}

ACTION_NAMES = {
    ActionId.BAYONET_THRUST: "Bayonet Thrust",
    ActionId.AGGRESSIVE_LUNGE: "Aggressive Lunge",
    ActionId.BUTT_STRIKE: "Butt Strike",
    ActionId.FEINT: "Feint",
    ActionId.GUARD: "Guard",
    ActionId.RESPITE: "Catch Breath",
    ActionId.SHOOT: "Shoot",
    ActionId.RELOAD: "Reload",
}
