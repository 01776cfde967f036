"""Core data structures for melee encounters.

Every state object here is a plain mutable dataclass so the surrounding save
system can serialize a BattleState wholesale. CombatantRef is the one frozen
type: a read-only projection rebuilt on demand for combat math.
"""

from dataclasses import dataclass, field
from typing import Optional

from .game_enums import (
    ActionId,
    AllyKind,
    AllyPersonality,
    BodyPart,
    LogEntryType,
    MeleeContext,
    MeleeStance,
    MoraleSource,
    OpponentType,
    RoundEventType,
    Side,
    WaveAction,
)


@dataclass(frozen=True)
class CombatantRef:
    """Uniform read view of any combatant (player, ally or opponent)."""
    name: str
    health: int
    max_health: int
    stamina: int
    max_stamina: int
    fatigue: int
    max_fatigue: int
    morale: float
    max_morale: float
    strength: int
    elan: int
    musketry: int
    kind: str  # 'player' | 'ally' | an OpponentType value
    stunned: bool = False
    stunned_turns: int = 0
    arm_injured: bool = False
    leg_injured: bool = False

    @property
    def health_fraction(self) -> float:
        return self.health / self.max_health if self.max_health > 0 else 0.0

    @property
    def stamina_fraction(self) -> float:
        return self.stamina / self.max_stamina if self.max_stamina > 0 else 0.0


@dataclass
class CombatantSnapshot:
    """Meter snapshot captured after a RoundAction's mutations are applied."""
    health: int
    max_health: int
    stamina: int
    max_stamina: int
    fatigue: int
    max_fatigue: int
    morale: Optional[float] = None  # only present for the player
    max_morale: Optional[float] = None


@dataclass
class RoundAction:
    """One structured, narrative-agnostic entry in the round log."""
    actor_name: str
    actor_side: Side
    target_name: str
    action: ActionId
    hit: bool
    damage: int
    target_side: Optional[Side] = None
    event_type: RoundEventType = RoundEventType.ACTION
    body_part: Optional[BodyPart] = None
    special: Optional[str] = None
    blocked: bool = False
    target_killed: bool = False
    actor_after: Optional[CombatantSnapshot] = None
    target_after: Optional[CombatantSnapshot] = None
    narrative: Optional[str] = None


@dataclass
class LogEntry:
    """A short line of battle text for the narrative layer."""
    turn: int
    text: str
    type: LogEntryType


@dataclass
class MoraleChange:
    """A pending adjustment to the player's morale."""
    amount: float
    reason: str
    source: MoraleSource


@dataclass
class AllyDeath:
    """Record of an ally falling during a round."""
    name: str
    npc_id: Optional[str]
    is_named: bool


@dataclass
class OpponentTemplate:
    """Blueprint for one enemy soldier in a roster."""
    name: str
    type: OpponentType
    health: tuple[int, int]
    stamina: tuple[int, int]
    strength: int
    description: str = ""


@dataclass
class AllyTemplate:
    """Blueprint for an ally who can join the fight."""
    id: str
    name: str
    kind: AllyKind
    health: tuple[int, int]
    stamina: tuple[int, int]
    strength: int
    elan: int
    personality: AllyPersonality
    description: str = ""
    npc_id: Optional[str] = None


@dataclass
class WaveEvent:
    """Scripted, round-triggered reinforcement or escalation."""
    at_round: int
    action: WaveAction
    narrative: str = ""
    ally_template: Optional[AllyTemplate] = None
    new_max_enemies: Optional[int] = None
    condition_npc_alive: Optional[str] = None  # only fires if this NPC is alive


@dataclass
class EncounterConfig:
    """Everything needed to seed one melee encounter."""
    context: MeleeContext
    opponents: list[OpponentTemplate]
    allies: list[AllyTemplate] = field(default_factory=list)
    max_exchanges: int = 12
    initial_active_enemies: Optional[int] = None
    max_active_enemies: Optional[int] = None
    wave_events: list[WaveEvent] = field(default_factory=list)


@dataclass
class MeleeOpponent:
    """An enemy soldier. Stays in MeleeState.opponents after defeat."""
    name: str
    type: OpponentType
    health: int
    max_health: int
    stamina: int
    max_stamina: int
    fatigue: int
    max_fatigue: int
    strength: int
    stunned: bool = False
    stunned_turns: int = 0
    arm_injured: bool = False
    leg_injured: bool = False
    description: str = ""
    last_action: Optional[ActionId] = None


@dataclass
class MeleeAlly:
    """A friendly soldier fighting beside the player."""
    id: str
    name: str
    kind: AllyKind
    personality: AllyPersonality
    health: int
    max_health: int
    stamina: int
    max_stamina: int
    fatigue: int
    max_fatigue: int
    strength: int
    elan: int
    alive: bool = True
    stunned: bool = False
    stunned_turns: int = 0
    arm_injured: bool = False
    leg_injured: bool = False
    description: str = ""
    npc_id: Optional[str] = None
    last_action: Optional[ActionId] = None


@dataclass
class Player:
    """Projection of the player supplied by the surrounding battle."""
    name: str
    health: int = 100
    max_health: int = 100
    stamina: int = 200
    max_stamina: int = 200
    fatigue: int = 0
    max_fatigue: int = 200
    morale: float = 100.0
    max_morale: float = 100.0
    strength: int = 40
    elan: int = 35
    musketry: int = 35
    musket_loaded: bool = False
    arm_injured: bool = False
    leg_injured: bool = False


@dataclass
class NpcStatus:
    """Line-phase status of a story NPC, used by wave conditions."""
    npc_id: str
    alive: bool = True
    wounded: bool = False


@dataclass
class MeleeState:
    """Root state of one melee encounter, mutated in place round by round."""
    opponents: list[MeleeOpponent]
    active_enemies: list[int] = field(default_factory=list)
    enemy_pool: list[int] = field(default_factory=list)
    max_active_enemies: int = 1
    allies: list[MeleeAlly] = field(default_factory=list)
    wave_events: list[WaveEvent] = field(default_factory=list)
    processed_waves: list[int] = field(default_factory=list)

    # Per-combat counters
    round_number: int = 0
    exchange_count: int = 0
    kill_count: int = 0
    max_exchanges: int = 12
    context: MeleeContext = MeleeContext.TERRAIN

    # Presentation pointer only; never used for targeting
    current_opponent: int = 0

    # Player combat flags
    player_stance: MeleeStance = MeleeStance.BALANCED
    player_guarding: bool = False
    player_stunned: int = 0
    player_riposte: bool = False
    reload_progress: int = 0  # 0=empty, 1=halfway

    # Per-encounter record of the player's recent actions, read by the AI
    player_history: list[ActionId] = field(default_factory=list)

    round_log: list[RoundAction] = field(default_factory=list)


@dataclass
class BattleState:
    """The slice of the wider battle the melee core reads and writes."""
    player: Player
    melee_state: Optional[MeleeState] = None
    turn: int = 0
    npcs: dict[str, NpcStatus] = field(default_factory=dict)  # role -> status
    roles: dict[str, str] = field(default_factory=dict)       # role -> npc id
