"""Round result types, per-round context and tuning constants."""

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

from ...core.data.data_structures import AllyDeath, LogEntry, MoraleChange
from ...core.data.game_enums import ActionId, BattleEnd

if TYPE_CHECKING:
    from ...core.events.event_manager import EventManager
    from ...core.random_source import RandomSource

# "Survived" escape hatch: the caller may end the melee early when the
# player scored a kill this round, is badly hurt, has at least this many
# kills and opponents still remain.
SURVIVED_HEALTH_THRESHOLD = 25
SURVIVED_MIN_KILLS = 2

# Player actions that leave the player open to a free attack
FREE_ATTACK_ACTIONS = frozenset({ActionId.RESPITE, ActionId.RELOAD})
RELOAD_STEPS = 2

# Morale
MORALE_PER_DAMAGE_DEALT = 1 / 4
MORALE_PER_SHOT_DAMAGE = 1 / 3
MORALE_PER_DAMAGE_TAKEN = 1 / 3
MORALE_STAGGER_DEALT = 2
MORALE_STAGGERED = -3
MORALE_STUNNED = -5
MORALE_NAMED_ALLY_FELL = -8
MORALE_ALLY_FELL = -3


@dataclass
class MeleeRoundResult:
    """Everything the caller needs from one resolved round."""
    log: list[LogEntry] = field(default_factory=list)
    morale_changes: list[MoraleChange] = field(default_factory=list)
    player_health_delta: int = 0
    player_stamina_delta: int = 0
    ally_deaths: list[AllyDeath] = field(default_factory=list)
    enemy_defeats: int = 0
    battle_end: Optional[BattleEnd] = None


@dataclass
class RoundContext:
    """Mutable scratch state shared by the phases of one round."""
    turn: int
    rng: "RandomSource"
    event_manager: Optional["EventManager"] = None
    player_stunned: bool = False
    player_block_chance: float = 0.0
    ally_block_chances: dict[str, float] = field(default_factory=dict)
    # Combatants who lost a turn to a stun this round; only these tick down
    stun_consumed: list = field(default_factory=list)


@dataclass
class PlayerPhaseResult:
    log: list[LogEntry] = field(default_factory=list)
    morale_changes: list[MoraleChange] = field(default_factory=list)
    enemy_defeats: int = 0


@dataclass
class AlliesPhaseResult:
    log: list[LogEntry] = field(default_factory=list)
    enemy_defeats: int = 0


@dataclass
class EnemiesPhaseResult:
    log: list[LogEntry] = field(default_factory=list)
    morale_changes: list[MoraleChange] = field(default_factory=list)
    player_health_delta: int = 0
    ally_deaths: list[AllyDeath] = field(default_factory=list)
    battle_end: Optional[BattleEnd] = None
