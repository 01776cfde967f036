"""Melee effects catalog.

Immutable tables for stances, actions and body parts, plus the small helpers
every phase shares: CombatantRef converters, round-log snapshots and stamina
spending.
"""

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Union

from ...core.data.data_structures import (
    CombatantRef,
    CombatantSnapshot,
    MeleeAlly,
    MeleeOpponent,
    MeleeState,
    Player,
    RoundAction,
)
from ...core.data.game_enums import (
    ALLY_KIND,
    PLAYER_KIND,
    ActionId,
    BodyPart,
    MeleeStance,
    OpponentType,
)


@dataclass(frozen=True)
class StanceMod:
    attack: float
    defense: float
    stamina_cost: int


@dataclass(frozen=True)
class ActionDef:
    stamina: int
    hit_bonus: float
    damage_mod: float
    is_attack: bool
    stun_bonus: float


@dataclass(frozen=True)
class BodyPartDef:
    hit_mod: float
    damage_range: tuple[int, int]


STANCE_MODS: Mapping[MeleeStance, StanceMod] = MappingProxyType({
    MeleeStance.AGGRESSIVE: StanceMod(attack=0.20, defense=-0.15, stamina_cost=14),
    MeleeStance.BALANCED: StanceMod(attack=0.0, defense=0.0, stamina_cost=10),
    MeleeStance.DEFENSIVE: StanceMod(attack=-0.15, defense=0.20, stamina_cost=8),
})

ACTION_DEFS: Mapping[ActionId, ActionDef] = MappingProxyType({
    ActionId.BAYONET_THRUST: ActionDef(stamina=20, hit_bonus=0.0, damage_mod=1.0, is_attack=True, stun_bonus=0.0),
    ActionId.AGGRESSIVE_LUNGE: ActionDef(stamina=38, hit_bonus=-0.10, damage_mod=1.5, is_attack=True, stun_bonus=0.0),
    ActionId.BUTT_STRIKE: ActionDef(stamina=26, hit_bonus=0.15, damage_mod=0.0, is_attack=True, stun_bonus=0.25),
    ActionId.FEINT: ActionDef(stamina=14, hit_bonus=0.10, damage_mod=0.0, is_attack=True, stun_bonus=0.0),
    ActionId.GUARD: ActionDef(stamina=12, hit_bonus=0.0, damage_mod=0.0, is_attack=False, stun_bonus=0.0),
    # Respite is the only action that restores stamina
    ActionId.RESPITE: ActionDef(stamina=-35, hit_bonus=0.0, damage_mod=0.0, is_attack=False, stun_bonus=0.0),
    ActionId.SHOOT: ActionDef(stamina=8, hit_bonus=0.0, damage_mod=2.0, is_attack=True, stun_bonus=0.0),
    ActionId.RELOAD: ActionDef(stamina=14, hit_bonus=0.0, damage_mod=0.0, is_attack=False, stun_bonus=0.0),
})

BODY_PART_DEFS: Mapping[BodyPart, BodyPartDef] = MappingProxyType({
    BodyPart.HEAD: BodyPartDef(hit_mod=-0.25, damage_range=(25, 35)),
    BodyPart.TORSO: BodyPartDef(hit_mod=0.0, damage_range=(15, 25)),
    BodyPart.ARMS: BodyPartDef(hit_mod=-0.10, damage_range=(10, 15)),
    BodyPart.LEGS: BodyPartDef(hit_mod=-0.15, damage_range=(10, 20)),
})

PART_NAMES: Mapping[BodyPart, str] = MappingProxyType({
    BodyPart.HEAD: "face",
    BodyPart.TORSO: "chest",
    BodyPart.ARMS: "arm",
    BodyPart.LEGS: "thigh",
})

# Base hit rates when an enemy attacks
BASE_HIT_RATES: Mapping[OpponentType, float] = MappingProxyType({
    OpponentType.CONSCRIPT: 0.35,
    OpponentType.LINE: 0.45,
    OpponentType.VETERAN: 0.55,
    OpponentType.SERGEANT: 0.60,
})
# Allies add elan on top
ALLY_BASE_HIT_RATE = 0.40

# Health fraction at or below which an opponent breaks and is out of the fight
BREAK_THRESHOLDS: Mapping[OpponentType, float] = MappingProxyType({
    OpponentType.CONSCRIPT: 0.10,
    OpponentType.LINE: 0.0,
    OpponentType.VETERAN: 0.0,
    OpponentType.SERGEANT: 0.0,
})

# Fraction of damage taken that accumulates as fatigue
DAMAGE_FATIGUE_RATE = 0.25
# Fraction of stamina spent that accumulates as fatigue
FATIGUE_ACCUMULATION_RATE = 0.5
LEG_INJURY_STAMINA_MULT = 1.5

Combatant = Union[Player, MeleeOpponent, MeleeAlly]


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# ============================================================
# Snapshot helpers
# ============================================================

def snapshot_of(combatant: Combatant) -> CombatantSnapshot:
    """Capture a meter snapshot of any combatant after mutations are applied."""
    snapshot = CombatantSnapshot(
        health=combatant.health,
        max_health=combatant.max_health,
        stamina=combatant.stamina,
        max_stamina=combatant.max_stamina,
        fatigue=combatant.fatigue,
        max_fatigue=combatant.max_fatigue,
    )
    if isinstance(combatant, Player):
        snapshot.morale = combatant.morale
        snapshot.max_morale = combatant.max_morale
    return snapshot


def push_action(
    melee_state: MeleeState,
    action: RoundAction,
    actor: Combatant,
    target: Combatant,
) -> None:
    """Attach per-action meter snapshots and append to the round log."""
    action.actor_after = snapshot_of(actor)
    action.target_after = snapshot_of(target)
    melee_state.round_log.append(action)


# ============================================================
# CombatantRef converters
# ============================================================

def player_to_combatant(player: Player, stunned_turns: int = 0) -> CombatantRef:
    return CombatantRef(
        name=player.name,
        health=player.health,
        max_health=player.max_health,
        stamina=player.stamina,
        max_stamina=player.max_stamina,
        fatigue=player.fatigue,
        max_fatigue=player.max_fatigue,
        morale=player.morale,
        max_morale=player.max_morale,
        strength=player.strength,
        elan=player.elan,
        musketry=player.musketry,
        kind=PLAYER_KIND,
        stunned=stunned_turns > 0,
        stunned_turns=stunned_turns,
        arm_injured=player.arm_injured,
        leg_injured=player.leg_injured,
    )


def opponent_to_combatant(opponent: MeleeOpponent) -> CombatantRef:
    # Enemies don't track morale, so it never penalizes their hit chance
    return CombatantRef(
        name=opponent.name,
        health=opponent.health,
        max_health=opponent.max_health,
        stamina=opponent.stamina,
        max_stamina=opponent.max_stamina,
        fatigue=opponent.fatigue,
        max_fatigue=opponent.max_fatigue,
        morale=opponent.max_health,
        max_morale=opponent.max_health,
        strength=opponent.strength,
        elan=35,
        musketry=30,
        kind=opponent.type.value,
        stunned=opponent.stunned,
        stunned_turns=opponent.stunned_turns,
        arm_injured=opponent.arm_injured,
        leg_injured=opponent.leg_injured,
    )


def ally_to_combatant(ally: MeleeAlly) -> CombatantRef:
    return CombatantRef(
        name=ally.name,
        health=ally.health,
        max_health=ally.max_health,
        stamina=ally.stamina,
        max_stamina=ally.max_stamina,
        fatigue=ally.fatigue,
        max_fatigue=ally.max_fatigue,
        morale=ally.max_health,
        max_morale=ally.max_health,
        strength=ally.strength,
        elan=ally.elan,
        musketry=30,
        kind=ALLY_KIND,
        stunned=ally.stunned,
        stunned_turns=ally.stunned_turns,
        arm_injured=ally.arm_injured,
        leg_injured=ally.leg_injured,
    )


def short_name(full_name: str) -> str:
    """Strip the descriptive suffix: 'Hans Vogl — Austrian conscript' -> 'Hans Vogl'."""
    return full_name.split(" — ")[0]


# ============================================================
# Stamina
# ============================================================

def spend_stamina(combatant: Combatant, cost: int) -> int:
    """Apply a stamina cost in place and accumulate fatigue.

    Leg injuries make positive costs 50% dearer. Negative costs (respite)
    restore stamina up to the maximum and add no fatigue.

    Returns:
        The cost actually charged after the injury multiplier
    """
    if cost > 0 and combatant.leg_injured:
        cost = round_half_up(cost * LEG_INJURY_STAMINA_MULT)
    combatant.stamina = int(clamp(combatant.stamina - cost, 0, combatant.max_stamina))
    if cost > 0:
        combatant.fatigue = min(
            combatant.max_fatigue,
            combatant.fatigue + round_half_up(cost * FATIGUE_ACCUMULATION_RATE),
        )
    return cost


def add_damage_fatigue(combatant: Combatant, damage: int) -> None:
    """Taking a wound wears a soldier down."""
    if damage > 0:
        combatant.fatigue = min(
            combatant.max_fatigue,
            combatant.fatigue + round_half_up(damage * DAMAGE_FATIGUE_RATE),
        )
