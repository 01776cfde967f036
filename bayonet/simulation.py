"""Headless melee simulation.

Plays whole encounters with a simple scripted player so balance changes can
be measured across many seeded runs.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Optional, TYPE_CHECKING

import numpy as np

from .core.data.data_structures import BattleState, NpcStatus, Player
from .core.data.game_enums import ActionId, BattleEnd, BodyPart, MeleeContext
from .core.random_source import NumpyRandomSource, RandomSource
from .game.combat.actions import get_melee_actions
from .game.encounters.encounter_builder import create_melee_state
from .game.encounters.encounter_loader import EncounterData, get_battle_data
from .game.managers.log_manager import emit_log
from .game.managers.wave_manager import live_enemy_indices
from .game.round.round_resolver import resolve_melee_round

if TYPE_CHECKING:
    from .core.events.event_manager import EventManager

PlayerChoice = tuple[ActionId, Optional[BodyPart], int]
PlayerPolicy = Callable[[BattleState, RandomSource], PlayerChoice]

# Story NPCs fighting on either side of the player in the line
DEFAULT_ROLES = {"left_neighbour": "pierre", "right_neighbour": "jean-baptiste"}

UNRESOLVED = "unresolved"


def default_battle_state(player: Optional[Player] = None) -> BattleState:
    """A battle with a fresh player and both neighbours alive and unhurt."""
    return BattleState(
        player=player or Player(name="Private"),
        npcs={role: NpcStatus(npc_id=npc_id) for role, npc_id in DEFAULT_ROLES.items()},
        roles=dict(DEFAULT_ROLES),
    )


def simple_policy(state: BattleState, rng: RandomSource) -> PlayerChoice:
    """Shoot when loaded, rest when blown, guard when hurt, else thrust."""
    player = state.player
    available = {choice.id for choice in get_melee_actions(state) if choice.available}
    live = live_enemy_indices(state.melee_state)
    target = live[0] if live else 0

    if ActionId.SHOOT in available:
        return ActionId.SHOOT, BodyPart.TORSO, target
    if ActionId.RESPITE in available and player.stamina < player.max_stamina * 0.25:
        return ActionId.RESPITE, None, target
    if ActionId.GUARD in available and player.health < player.max_health * 0.3 and rng() < 0.5:
        return ActionId.GUARD, None, target
    if ActionId.BAYONET_THRUST in available:
        return ActionId.BAYONET_THRUST, BodyPart.TORSO, target
    return ActionId.RESPITE, None, target


def apply_morale(player: Player, amount: float) -> None:
    player.morale = max(0.0, min(player.max_morale, player.morale + amount))


@dataclass
class EncounterOutcome:
    """How one simulated encounter ended."""
    outcome: str
    rounds: int
    kills: int
    player_health: int
    ally_deaths: int


def run_encounter(
    encounter_key: str,
    seed: Optional[int] = None,
    policy: PlayerPolicy = simple_policy,
    player: Optional[Player] = None,
    data: Optional[EncounterData] = None,
    event_manager: Optional["EventManager"] = None,
) -> EncounterOutcome:
    """Play one encounter to its end or until the exchange limit.

    Morale changes from each round are applied to the player, as the
    surrounding battle would.
    """
    rng = NumpyRandomSource(seed)
    data = data if data is not None else get_battle_data()
    state = default_battle_state(player)
    context = data.encounters[encounter_key].context if encounter_key in data.encounters else MeleeContext.TERRAIN
    melee_state = create_melee_state(state, context, encounter_key, data=data, rng=rng)
    emit_log(event_manager, f"Encounter {encounter_key} begins with {len(melee_state.opponents)} opponents",
             "ENCOUNTER", source="Simulation")

    ally_deaths = 0
    outcome = UNRESOLVED
    while melee_state.exchange_count < melee_state.max_exchanges:
        state.turn += 1
        action, body_part, target = policy(state, rng)
        result = resolve_melee_round(state, action, body_part, target, rng=rng,
                                     event_manager=event_manager)
        for change in result.morale_changes:
            apply_morale(state.player, change.amount)
        ally_deaths += len(result.ally_deaths)
        if event_manager is not None:
            for entry in result.log:
                emit_log(event_manager, entry.text, "COMBAT", source="Round", turn=state.turn)
            event_manager.process_events()
        if result.battle_end is not None:
            outcome = result.battle_end.value
            break

    return EncounterOutcome(
        outcome=outcome,
        rounds=melee_state.round_number,
        kills=melee_state.kill_count,
        player_health=state.player.health,
        ally_deaths=ally_deaths,
    )


@dataclass
class SimulationSummary:
    """Aggregate statistics over many encounters."""
    encounter_key: str
    runs: int
    outcome_counts: dict[str, int] = field(default_factory=dict)
    mean_rounds: float = 0.0
    mean_kills: float = 0.0
    mean_player_health: float = 0.0
    mean_ally_deaths: float = 0.0

    def rate(self, outcome: str) -> float:
        return self.outcome_counts.get(outcome, 0) / self.runs if self.runs else 0.0


def simulate(
    encounter_key: str,
    runs: int = 100,
    seed: Optional[int] = None,
    policy: PlayerPolicy = simple_policy,
    data: Optional[EncounterData] = None,
) -> SimulationSummary:
    """Run an encounter many times with independent seeded streams."""
    if runs <= 0:
        raise ValueError(f"runs must be positive, got {runs}")

    seeds = np.random.SeedSequence(seed).generate_state(runs)
    outcomes = [
        run_encounter(encounter_key, int(run_seed), policy=policy, data=data)
        for run_seed in seeds
    ]

    stats = np.array(
        [(o.rounds, o.kills, o.player_health, o.ally_deaths) for o in outcomes], dtype=float
    )
    means = stats.mean(axis=0)
    counts = Counter(o.outcome for o in outcomes)
    for end in BattleEnd:
        counts.setdefault(end.value, 0)
    counts.setdefault(UNRESOLVED, 0)

    return SimulationSummary(
        encounter_key=encounter_key,
        runs=runs,
        outcome_counts=dict(counts),
        mean_rounds=float(means[0]),
        mean_kills=float(means[1]),
        mean_player_health=float(means[2]),
        mean_ally_deaths=float(means[3]),
    )
