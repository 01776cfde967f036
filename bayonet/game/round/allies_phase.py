"""Allies phase: every standing ally acts against the weakest enemy."""

from ...core.data.data_structures import LogEntry, MeleeState, RoundAction
from ...core.data.game_enums import ActionId, LogEntryType, MeleeStance, Side
from ..ai.ai_behaviors import choose_ally_ai
from ..combat.attack_resolver import resolve_attack
from ..combat.effects import (
    ACTION_DEFS,
    ally_to_combatant,
    opponent_to_combatant,
    push_action,
    spend_stamina,
)
from ..combat.hit_calc import calc_block_chance
from ..managers.log_manager import LogLevel, emit_log
from ..managers.wave_manager import live_enemy_indices
from .combat_outcomes import apply_to_npc, record_opponent_defeats
from .player_phase import opponent_block_chance
from .round_types import AlliesPhaseResult, RoundContext


def resolve_allies_phase(melee_state: MeleeState, ctx: RoundContext) -> AlliesPhaseResult:
    """Resolve each live ally in roster order.

    Raises:
        AssertionError: If the ally AI picks an enemy outside the live set
    """
    result = AlliesPhaseResult()
    log = result.log
    turn = ctx.turn

    for ally in [a for a in melee_state.allies if a.alive and a.health > 0]:
        if ally.stunned:
            log.append(LogEntry(turn, f"{ally.name} is stunned.", LogEntryType.RESULT))
            ctx.stun_consumed.append(ally)
            ally.last_action = None
            continue

        live = live_enemy_indices(melee_state)
        if not live:
            break

        decision = choose_ally_ai(ally, melee_state.opponents, live, rng=ctx.rng)
        assert decision.target_index in live, (
            f"Ally AI chose enemy {decision.target_index}, live set is {live}"
        )
        emit_log(ctx.event_manager, f"{ally.name}: {decision.action.value} ({decision.reasoning})",
                 "AI", LogLevel.DEBUG, "AlliesPhase", turn)

        target = melee_state.opponents[decision.target_index]
        spend_stamina(ally, ACTION_DEFS[decision.action].stamina)
        ally.last_action = decision.action

        if decision.action in (ActionId.GUARD, ActionId.RESPITE):
            if decision.action == ActionId.GUARD:
                ctx.ally_block_chances[ally.id] = calc_block_chance(
                    MeleeStance.BALANCED, ally.elan, ally.stamina, ally.max_stamina
                )
                text = f"{ally.name} raises guard."
            else:
                text = f"{ally.name} catches breath."
            log.append(LogEntry(turn, text, LogEntryType.RESULT))
            push_action(melee_state, RoundAction(
                actor_name=ally.name,
                actor_side=Side.ALLY,
                target_name=target.name,
                target_side=Side.ENEMY,
                action=decision.action,
                hit=decision.action == ActionId.RESPITE,
                damage=0,
            ), ally, target)
            continue

        block_chance = opponent_block_chance(target)
        attack = resolve_attack(
            ally_to_combatant(ally),
            opponent_to_combatant(target),
            decision.action,
            decision.body_part,
            turn,
            Side.ALLY,
            target_side=Side.ENEMY,
            target_guarding=block_chance > 0,
            target_block_chance=block_chance,
            rng=ctx.rng,
        )
        log.extend(attack.log)
        apply_to_npc(target, attack)
        push_action(melee_state, attack.round_action, ally, target)

        result.enemy_defeats += record_opponent_defeats(
            melee_state, [decision.target_index], ctx, Side.ALLY, log
        )

    return result
