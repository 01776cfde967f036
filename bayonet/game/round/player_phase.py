"""Player phase: resolve the player's chosen action."""

from typing import Optional

from ...core.data.data_structures import BattleState, LogEntry, MoraleChange, RoundAction
from ...core.data.game_enums import ActionId, BodyPart, LogEntryType, MeleeStance, MoraleSource, Side
from ..combat.attack_resolver import resolve_attack
from ..combat.effects import (
    ACTION_DEFS,
    STANCE_MODS,
    opponent_to_combatant,
    player_to_combatant,
    push_action,
)
from ..combat.hit_calc import calc_block_chance
from .combat_outcomes import apply_to_npc, record_opponent_defeats
from .round_types import (
    MORALE_PER_DAMAGE_DEALT,
    MORALE_PER_SHOT_DAMAGE,
    MORALE_STAGGER_DEALT,
    RELOAD_STEPS,
    PlayerPhaseResult,
    RoundContext,
)

# Actions whose body part is fixed regardless of the player's pick
TORSO_ONLY = frozenset({ActionId.BUTT_STRIKE, ActionId.FEINT})


def opponent_block_chance(opponent) -> float:
    """Opponents who guarded on their last turn hold that guard until they act."""
    if opponent.last_action != ActionId.GUARD or opponent.stunned:
        return 0.0
    ref = opponent_to_combatant(opponent)
    return calc_block_chance(MeleeStance.BALANCED, ref.elan, ref.stamina, ref.max_stamina)


def _self_action(state: BattleState, action: ActionId, hit: bool = False) -> RoundAction:
    return RoundAction(
        actor_name=state.player.name,
        actor_side=Side.PLAYER,
        target_name=state.player.name,
        target_side=Side.PLAYER,
        action=action,
        hit=hit,
        damage=0,
    )


def resolve_player_phase(
    state: BattleState,
    player_action: ActionId,
    player_body_part: Optional[BodyPart],
    player_target_idx: int,
    live_enemy_indices: list[int],
    ctx: RoundContext,
) -> PlayerPhaseResult:
    """Resolve the player's action against the live enemies.

    Mutates the player, the targeted opponent and the melee state (round
    log, kill count, reload progress, riposte, guard and history).
    """
    melee_state = state.melee_state
    player = state.player
    result = PlayerPhaseResult()
    log = result.log
    turn = ctx.turn

    melee_state.player_guarding = player_action == ActionId.GUARD and not ctx.player_stunned
    if melee_state.player_guarding:
        ctx.player_block_chance = calc_block_chance(
            melee_state.player_stance, player.elan, player.stamina, player.max_stamina
        )

    if ctx.player_stunned:
        log.append(LogEntry(turn, "Stunned. Can't act.", LogEntryType.RESULT))
        ctx.stun_consumed.append(player)
        return result

    melee_state.player_history.append(player_action)
    if player_action != ActionId.RELOAD:
        melee_state.reload_progress = 0

    if player_action == ActionId.RESPITE:
        log.append(LogEntry(turn, "Catching breath.", LogEntryType.ACTION))
        push_action(melee_state, _self_action(state, player_action, hit=True), player, player)
        return result

    if player_action == ActionId.RELOAD:
        if player.musket_loaded:
            log.append(LogEntry(turn, "The musket is already loaded.", LogEntryType.ACTION))
        else:
            melee_state.reload_progress += 1
            if melee_state.reload_progress >= RELOAD_STEPS:
                player.musket_loaded = True
                melee_state.reload_progress = 0
                log.append(LogEntry(turn, "Ram the ball home. Prime the pan. Loaded.", LogEntryType.ACTION))
            else:
                log.append(LogEntry(turn, "Bite the cartridge. Pour the powder. Half loaded.",
                                    LogEntryType.ACTION))
        push_action(melee_state, _self_action(state, player_action), player, player)
        return result

    if player_action == ActionId.GUARD:
        log.append(LogEntry(turn, "You raise your guard.", LogEntryType.ACTION))
        guard_target = None
        if live_enemy_indices:
            index = player_target_idx if player_target_idx in live_enemy_indices else live_enemy_indices[0]
            guard_target = melee_state.opponents[index]
        action = _self_action(state, player_action)
        action.target_name = guard_target.name if guard_target else ""
        action.target_side = Side.ENEMY
        push_action(melee_state, action, player, guard_target or player)
        return result

    # Attacks from here on
    if not live_enemy_indices:
        log.append(LogEntry(turn, "No one within reach.", LogEntryType.RESULT))
        return result

    if player_action == ActionId.SHOOT:
        if not player.musket_loaded:
            log.append(LogEntry(turn, "The hammer falls on an empty pan.", LogEntryType.RESULT))
            push_action(melee_state, _self_action(state, player_action), player, player)
            return result
        player.musket_loaded = False

    target_index = player_target_idx if player_target_idx in live_enemy_indices else live_enemy_indices[0]
    target = melee_state.opponents[target_index]
    body_part = BodyPart.TORSO if player_action in TORSO_ONLY else (player_body_part or BodyPart.TORSO)
    block_chance = opponent_block_chance(target)

    attack = resolve_attack(
        player_to_combatant(player),
        opponent_to_combatant(target),
        player_action,
        body_part,
        turn,
        Side.PLAYER,
        target_side=Side.ENEMY,
        stance=melee_state.player_stance,
        riposte=melee_state.player_riposte,
        target_guarding=block_chance > 0,
        target_block_chance=block_chance,
        rng=ctx.rng,
    )
    log.extend(attack.log)
    apply_to_npc(target, attack)
    melee_state.player_riposte = False

    if attack.hit:
        if attack.damage > 0:
            if player_action == ActionId.SHOOT:
                result.morale_changes.append(MoraleChange(
                    attack.damage * MORALE_PER_SHOT_DAMAGE, "Musket ball found its mark", MoraleSource.ACTION))
            else:
                result.morale_changes.append(MoraleChange(
                    attack.damage * MORALE_PER_DAMAGE_DEALT, "Your strike connects", MoraleSource.ACTION))
        if player_action == ActionId.FEINT:
            result.morale_changes.append(MoraleChange(
                MORALE_STAGGER_DEALT, "You wrong-foot your opponent", MoraleSource.ACTION))
        elif attack.stamina_drain > 0:
            result.morale_changes.append(MoraleChange(
                MORALE_STAGGER_DEALT, "You stagger your opponent", MoraleSource.ACTION))

    push_action(melee_state, attack.round_action, player, target)
    result.enemy_defeats += record_opponent_defeats(
        melee_state, live_enemy_indices, ctx, Side.PLAYER, log
    )
    return result


def player_stamina_cost(action: ActionId, stance: MeleeStance, stunned: bool) -> int:
    """Stamina the player pays this round: the action plus holding the stance."""
    stance_cost = STANCE_MODS[stance].stamina_cost
    if stunned:
        return stance_cost
    return ACTION_DEFS[action].stamina + stance_cost
