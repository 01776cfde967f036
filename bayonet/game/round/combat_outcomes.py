"""Applying attack results to combatants and recording defeats.

Shared by the three phases so every hit lands the same way whoever strikes.
"""

from typing import Iterable, Union

from ...core.data.data_structures import (
    LogEntry,
    MeleeAlly,
    MeleeOpponent,
    MeleeState,
    Player,
    RoundAction,
)
from ...core.data.game_enums import ActionId, LogEntryType, RoundEventType, Side
from ...core.events.events import OpponentDefeated
from ..combat.attack_resolver import AttackResult
from ..combat.effects import add_damage_fatigue, short_name, snapshot_of
from ..managers.log_manager import emit_log
from ..managers.wave_manager import is_opponent_defeated
from .round_types import RoundContext

STUN_TURNS = 1


def _apply_meters(target: Union[Player, MeleeOpponent, MeleeAlly], result: AttackResult) -> None:
    target.health = max(0, target.health - result.damage)
    target.stamina = max(0, target.stamina - result.stamina_drain)
    target.fatigue = min(target.max_fatigue, target.fatigue + result.fatigue_drain)
    add_damage_fatigue(target, result.damage)
    if result.arm_injured:
        target.arm_injured = True
    if result.leg_injured:
        target.leg_injured = True


def apply_to_npc(target: Union[MeleeOpponent, MeleeAlly], result: AttackResult) -> None:
    """Apply a landed attack to an opponent or ally in place."""
    if not result.hit:
        return
    _apply_meters(target, result)
    if result.target_killed:
        target.health = 0
    if result.stunned and target.health > 0:
        target.stunned = True
        target.stunned_turns = STUN_TURNS


def apply_to_player(melee_state: MeleeState, player: Player, result: AttackResult) -> None:
    """Apply a landed attack to the player in place."""
    if not result.hit:
        return
    _apply_meters(player, result)
    if result.stunned and player.health > 0:
        melee_state.player_stunned = STUN_TURNS


def refresh_stun(ctx: RoundContext, combatant) -> None:
    """A fresh stun replaces one already spent this round, so it must not tick."""
    ctx.stun_consumed[:] = [c for c in ctx.stun_consumed if c is not combatant]


def record_opponent_defeats(
    melee_state: MeleeState,
    indices: Iterable[int],
    ctx: RoundContext,
    defeated_by: Side,
    log: list[LogEntry],
) -> int:
    """Log, count and announce every newly defeated opponent among indices.

    The most recent landed blow on each fallen opponent is flagged as the
    killing blow.

    Returns:
        Number of opponents defeated
    """
    defeats = 0
    for index in indices:
        opponent = melee_state.opponents[index]
        if not is_opponent_defeated(opponent):
            continue

        for entry in reversed(melee_state.round_log):
            if entry.target_name == opponent.name and entry.hit:
                entry.target_killed = True
                break

        name = short_name(opponent.name)
        log.append(LogEntry(ctx.turn, f"{name} down.", LogEntryType.EVENT))
        melee_state.round_log.append(RoundAction(
            actor_name=opponent.name,
            actor_side=Side.ENEMY,
            target_name=opponent.name,
            target_side=Side.ENEMY,
            action=ActionId.GUARD,
            hit=False,
            damage=0,
            event_type=RoundEventType.DEFEAT,
            narrative=f"{name} is down",
            actor_after=snapshot_of(opponent),
            target_after=snapshot_of(opponent),
        ))
        melee_state.kill_count += 1
        defeats += 1

        emit_log(ctx.event_manager, f"{name} defeated by {defeated_by.value}", "COMBAT",
                 source="RoundResolver", turn=ctx.turn)
        if ctx.event_manager is not None:
            ctx.event_manager.publish(
                OpponentDefeated(turn=ctx.turn, name=opponent.name,
                                 opponent_index=index, defeated_by=defeated_by),
                source="RoundResolver",
            )
    return defeats
