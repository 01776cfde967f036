"""Generic attack resolution: any combatant attacks any other.

resolve_attack never mutates combatants. It returns an AttackResult holding
the damage and status flags, and the round phases apply them.

Random draws are consumed in a fixed order so a scripted source can drive
every branch:

1. hit roll (attacks only)
2. block roll (only when the target is guarding and the action is not shoot)
3. effect draws:
   - butt strike: stamina drain, then stun
   - feint: stamina drain, then fatigue drain
   - other attacks: damage, then one head roll (kill) and a second head
     roll (stun) if the kill failed, or one arm/leg injury roll. The kill
     roll is skipped when instant kills are disabled for the target.
"""

from dataclasses import dataclass, field
from typing import Optional

from ...core.data.data_structures import CombatantRef, LogEntry, RoundAction
from ...core.data.game_enums import (
    PLAYER_KIND,
    ActionId,
    BodyPart,
    LogEntryType,
    MeleeStance,
    Side,
)
from ...core.random_source import RandomSource, rand_range, resolve_random
from .effects import ACTION_DEFS, PART_NAMES, clamp, round_half_up, short_name
from .hit_calc import (
    calc_damage,
    calc_enemy_hit_chance,
    calc_hit_chance,
    target_exhaustion_bonus,
)

FREE_ATTACK_DAMAGE_MULT = 0.7
FAILED_BLOCK_DAMAGE_MULT = 0.85
HEAD_KILL_CHANCE = 0.10
HEAD_KILL_CHANCE_SHOOT = 0.25
HEAD_STUN_BASE = 0.35
ARM_INJURY_CHANCE = 0.15
LEG_INJURY_CHANCE = 0.10
BUTT_STRIKE_DRAIN = (10, 15)
BUTT_STRIKE_STUN_DIVISOR = 400
FEINT_STAMINA_DRAIN = (25, 35)
FEINT_FATIGUE_DRAIN = (20, 30)


@dataclass
class AttackResult:
    """Outcome of one attack, applied to the target by the caller."""
    hit: bool
    round_action: RoundAction
    damage: int = 0
    blocked: bool = False
    stamina_drain: int = 0
    fatigue_drain: int = 0
    stunned: bool = False
    arm_injured: bool = False
    leg_injured: bool = False
    target_killed: bool = False
    special: str = ""
    log: list[LogEntry] = field(default_factory=list)


def resolve_attack(
    attacker: CombatantRef,
    target: CombatantRef,
    action: ActionId,
    body_part: BodyPart,
    turn: int,
    side: Side,
    target_side: Optional[Side] = None,
    stance: Optional[MeleeStance] = None,
    riposte: bool = False,
    free_attack: bool = False,
    target_guarding: bool = False,
    target_block_chance: float = 0.0,
    feinted: bool = False,
    allow_instant_kill: bool = True,
    rng: Optional[RandomSource] = None,
) -> AttackResult:
    """Resolve a single attack.

    Args:
        attacker: Read view of the attacker
        target: Read view of the target
        action: Action the attacker performs
        body_part: Targeted body part
        turn: Battle turn for log entries
        side: Attacker's side
        target_side: Target's side
        stance: Player stance; selects the player hit formula when the
            attacker is the player
        riposte: Player riposte bonus applies
        free_attack: Target forwent its defense this round
        target_guarding: Target is guarding and may block
        target_block_chance: Block probability when guarding
        feinted: Attacker feinted with its previous action
        allow_instant_kill: Whether a head hit may kill outright; when
            False the kill roll is not drawn and the head roll is for stun
        rng: Random source

    Returns:
        AttackResult describing what happened
    """
    rand = resolve_random(rng)
    a_def = ACTION_DEFS[action]
    a_short = short_name(attacker.name)
    t_short = short_name(target.name)
    result_type = LogEntryType.EVENT if side == Side.ENEMY else LogEntryType.RESULT

    def _round_action(hit: bool, damage: int = 0, **extra) -> RoundAction:
        return RoundAction(
            actor_name=attacker.name,
            actor_side=side,
            target_name=target.name,
            target_side=target_side,
            action=action,
            hit=hit,
            damage=damage,
            **extra,
        )

    if not a_def.is_attack:
        log = []
        if action == ActionId.RESPITE:
            log.append(LogEntry(turn, f"{a_short} catches breath.", LogEntryType.RESULT))
        elif action == ActionId.GUARD:
            log.append(LogEntry(turn, f"{a_short} guards.", LogEntryType.RESULT))
        return AttackResult(hit=False, round_action=_round_action(False), log=log)

    if attacker.kind == PLAYER_KIND and stance is not None:
        hit_chance = calc_hit_chance(stance, action, body_part, attacker, riposte=riposte)
    else:
        hit_chance = calc_enemy_hit_chance(attacker, action, body_part, feinted=feinted)
    hit_chance = clamp(hit_chance + target_exhaustion_bonus(target), 0.05, 0.95)

    if rand() >= hit_chance:
        text = "Miss." if side == Side.PLAYER else f"{a_short} misses {t_short}."
        return AttackResult(
            hit=False,
            round_action=_round_action(False, body_part=body_part),
            log=[LogEntry(turn, text, LogEntryType.RESULT)],
        )

    log: list[LogEntry] = []
    can_block = target_guarding and action != ActionId.SHOOT
    if can_block and target_block_chance > 0:
        if rand() < target_block_chance:
            log.append(LogEntry(turn, f"{a_short} attacks {t_short}. Blocked!", LogEntryType.RESULT))
            return AttackResult(
                hit=False,
                blocked=True,
                round_action=_round_action(False, body_part=body_part, blocked=True),
                log=log,
            )
        log.append(LogEntry(turn, "Guard broken.", LogEntryType.ACTION))

    if action == ActionId.BUTT_STRIKE:
        drain = round_half_up(
            rand_range(rand, *BUTT_STRIKE_DRAIN) * (0.75 + attacker.strength / 200)
        )
        stunned = rand() < a_def.stun_bonus + attacker.strength / BUTT_STRIKE_STUN_DIVISOR
        special = " Stunned!" if stunned else ""
        if side == Side.PLAYER:
            text = f"Butt strike connects.{special}"
        else:
            text = f"{a_short} smashes {t_short} with the stock.{special}"
        log.append(LogEntry(turn, text, result_type))
        return AttackResult(
            hit=True,
            stamina_drain=drain,
            stunned=stunned,
            special=special,
            round_action=_round_action(True, body_part=body_part, special=special or None),
            log=log,
        )

    if action == ActionId.FEINT:
        stamina_drain = rand_range(rand, *FEINT_STAMINA_DRAIN)
        fatigue_drain = rand_range(rand, *FEINT_FATIGUE_DRAIN)
        if side == Side.PLAYER:
            text = f"Feint connects. {t_short} reacts to the fake."
        else:
            text = f"{a_short} feints. {t_short} falls for it."
        log.append(LogEntry(turn, text, result_type))
        return AttackResult(
            hit=True,
            stamina_drain=stamina_drain,
            fatigue_drain=fatigue_drain,
            round_action=_round_action(True, body_part=body_part),
            log=log,
        )

    damage = calc_damage(
        action, body_part, attacker.stamina, attacker.max_stamina, attacker.strength, rng=rand
    )
    if free_attack:
        damage = round_half_up(damage * FREE_ATTACK_DAMAGE_MULT)
    if can_block:
        damage = round_half_up(damage * FAILED_BLOCK_DAMAGE_MULT)
    damage = max(1, damage)

    result = AttackResult(hit=True, damage=damage, round_action=_round_action(True))
    if body_part == BodyPart.HEAD:
        kill_chance = HEAD_KILL_CHANCE_SHOOT if action == ActionId.SHOOT else HEAD_KILL_CHANCE
        if allow_instant_kill and rand() < kill_chance:
            result.target_killed = True
            result.special = " Killed."
        elif rand() < HEAD_STUN_BASE + a_def.stun_bonus:
            result.stunned = True
            result.special = " Stunned!"
    elif body_part == BodyPart.ARMS:
        if rand() < ARM_INJURY_CHANCE:
            result.arm_injured = True
            result.special = " Arm injured."
    elif body_part == BodyPart.LEGS:
        if rand() < LEG_INJURY_CHANCE:
            result.leg_injured = True
            result.special = " Leg injured."

    if side == Side.PLAYER:
        text = f"Hit. {PART_NAMES[body_part]}.{result.special}"
    else:
        text = f"{a_short} hits {t_short}. {PART_NAMES[body_part]}.{result.special}"
    log.append(LogEntry(turn, text, result_type))

    result.round_action = _round_action(
        True,
        damage,
        body_part=body_part,
        special=result.special or None,
        target_killed=result.target_killed,
    )
    result.log = log
    return result
