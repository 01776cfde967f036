"""Hit, damage and block calculations.

Pure functions over CombatantRef values and the effects catalog. Nothing
here mutates its arguments; the only side effect is drawing from the
injected random source in calc_damage.
"""

from typing import Optional

from ...core.data.data_structures import CombatantRef
from ...core.data.game_enums import ALLY_KIND, PLAYER_KIND, ActionId, BodyPart, MeleeStance, OpponentType
from ...core.random_source import RandomSource, rand_range, resolve_random
from ...core.stats import get_fatigue_debuff
from .effects import (
    ACTION_DEFS,
    ALLY_BASE_HIT_RATE,
    BASE_HIT_RATES,
    BODY_PART_DEFS,
    STANCE_MODS,
    clamp,
    round_half_up,
)

BASE_MELEE_HIT = 0.35
SKILL_HIT_DIVISOR = 120
RIPOSTE_BONUS = 0.15
MORALE_HIT_PENALTY_SCALE = 0.15
ARM_INJURY_HIT_PENALTY = 0.10
PLAYER_HIT_BOUNDS = (0.05, 0.95)

STRENGTH_DAMAGE_BASE = 0.75
STRENGTH_DAMAGE_DIVISOR = 200
EXHAUSTED_STAMINA_FRACTION = 0.25
EXHAUSTED_DAMAGE_MULT = 0.75

FEINT_FOLLOWUP_BONUS = 0.25
ALLY_ELAN_DIVISOR = 200
NPC_HIT_BOUNDS = (0.15, 0.85)

BASE_BLOCK = 0.10
BLOCK_ELAN_DIVISOR = 85
BLOCK_BOUNDS = (0.05, 0.95)


def calc_hit_chance(
    stance: MeleeStance,
    action: ActionId,
    body_part: BodyPart,
    attacker: CombatantRef,
    riposte: bool = False,
) -> float:
    """Hit chance for the player.

    Args:
        stance: Player's current stance
        action: Attack being attempted
        body_part: Targeted body part
        attacker: Player projection; elan is the skill, musketry for shoot
        riposte: Whether the player earned a riposte with a successful block

    Returns:
        Probability in [0.05, 0.95]
    """
    skill = attacker.musketry if action == ActionId.SHOOT else attacker.elan
    morale_penalty = 0.0
    if attacker.max_morale > 0:
        morale_penalty = (1 - attacker.morale / attacker.max_morale) * MORALE_HIT_PENALTY_SCALE
    stamina_debuff = get_fatigue_debuff(attacker.stamina, attacker.max_stamina) / 100

    raw = (
        BASE_MELEE_HIT
        + STANCE_MODS[stance].attack
        + ACTION_DEFS[action].hit_bonus
        + BODY_PART_DEFS[body_part].hit_mod
        + (RIPOSTE_BONUS if riposte else 0.0)
        + skill / SKILL_HIT_DIVISOR
        - morale_penalty
        + stamina_debuff
    )
    if attacker.arm_injured:
        raw -= ARM_INJURY_HIT_PENALTY
    return clamp(raw, *PLAYER_HIT_BOUNDS)


def calc_damage(
    action: ActionId,
    body_part: BodyPart,
    stamina: int,
    max_stamina: int,
    strength: int = 40,
    rng: Optional[RandomSource] = None,
) -> int:
    """Roll damage for a landed blow. Consumes exactly one draw.

    Returns:
        Damage of at least 1
    """
    rand = resolve_random(rng)
    low, high = BODY_PART_DEFS[body_part].damage_range
    if action == ActionId.SHOOT:
        # A musket ball hits as hard whoever pulls the trigger
        strength_mod = 1.0
    else:
        strength_mod = STRENGTH_DAMAGE_BASE + strength / STRENGTH_DAMAGE_DIVISOR

    damage = rand_range(rand, low, high) * ACTION_DEFS[action].damage_mod * strength_mod
    if max_stamina <= 0 or stamina / max_stamina < EXHAUSTED_STAMINA_FRACTION:
        damage *= EXHAUSTED_DAMAGE_MULT
    return max(1, round_half_up(damage))


def calc_enemy_hit_chance(
    attacker: CombatantRef,
    action: ActionId,
    body_part: BodyPart,
    feinted: bool = False,
) -> float:
    """Hit chance for an NPC attacker (enemy or ally).

    Enemies start from their grade's base rate; allies from 0.40 plus elan.
    A feint on the attacker's previous action sets up the follow-up blow.
    """
    if attacker.kind == ALLY_KIND:
        base = ALLY_BASE_HIT_RATE + attacker.elan / ALLY_ELAN_DIVISOR
    elif attacker.kind == PLAYER_KIND:
        base = BASE_MELEE_HIT
    else:
        base = BASE_HIT_RATES[OpponentType(attacker.kind)]

    raw = base + ACTION_DEFS[action].hit_bonus + BODY_PART_DEFS[body_part].hit_mod
    if feinted:
        raw += FEINT_FOLLOWUP_BONUS
    if attacker.arm_injured:
        raw -= ARM_INJURY_HIT_PENALTY
    return clamp(raw, *NPC_HIT_BOUNDS)


def calc_block_chance(stance: MeleeStance, elan: int, stamina: int, max_stamina: int) -> float:
    """Chance a guarding combatant blocks a blow that would have landed."""
    raw = (
        BASE_BLOCK
        + STANCE_MODS[stance].defense
        + elan / BLOCK_ELAN_DIVISOR
        + get_fatigue_debuff(stamina, max_stamina) / 100
    )
    return clamp(raw, *BLOCK_BOUNDS)


def target_exhaustion_bonus(target: CombatantRef) -> float:
    """Blown targets are easier to hit: 0 when fresh, up to +0.25."""
    return -get_fatigue_debuff(target.stamina, target.max_stamina) / 100
