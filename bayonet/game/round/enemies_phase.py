"""Enemies phase: every live active enemy picks a target and acts."""

from ...core.data.data_structures import (
    AllyDeath,
    BattleState,
    LogEntry,
    MoraleChange,
    RoundAction,
)
from ...core.data.game_enums import (
    ActionId,
    AllyKind,
    BattleEnd,
    LogEntryType,
    MoraleSource,
    RoundEventType,
    Side,
)
from ...core.events.events import AllyFell
from ..ai.ai_behaviors import choose_enemy_target, choose_melee_ai
from ..combat.attack_resolver import resolve_attack
from ..combat.effects import (
    ACTION_DEFS,
    ally_to_combatant,
    opponent_to_combatant,
    player_to_combatant,
    push_action,
    short_name,
    snapshot_of,
    spend_stamina,
)
from ..managers.log_manager import LogLevel, emit_log
from ..managers.wave_manager import live_enemy_indices
from .combat_outcomes import apply_to_npc, apply_to_player, refresh_stun
from .round_types import (
    FREE_ATTACK_ACTIONS,
    MORALE_ALLY_FELL,
    MORALE_NAMED_ALLY_FELL,
    MORALE_PER_DAMAGE_TAKEN,
    MORALE_STAGGERED,
    MORALE_STUNNED,
    EnemiesPhaseResult,
    RoundContext,
)


def resolve_enemies_phase(
    state: BattleState,
    player_action: ActionId,
    ctx: RoundContext,
) -> EnemiesPhaseResult:
    """Resolve each live active enemy in active order.

    Stops as soon as the player's health reaches zero and reports defeat.
    """
    melee_state = state.melee_state
    player = state.player
    result = EnemiesPhaseResult()
    log = result.log
    turn = ctx.turn
    player_exposed = player_action in FREE_ATTACK_ACTIONS or ctx.player_stunned

    for index in live_enemy_indices(melee_state):
        if player.health <= 0:
            break

        opponent = melee_state.opponents[index]
        name = short_name(opponent.name)
        if opponent.stunned:
            log.append(LogEntry(turn, f"{name} stunned.", LogEntryType.RESULT))
            ctx.stun_consumed.append(opponent)
            opponent.last_action = None
            continue

        decision = choose_melee_ai(opponent, state, rng=ctx.rng)
        emit_log(ctx.event_manager, f"{name}: {decision.action.value} ({decision.reasoning})",
                 "AI", LogLevel.DEBUG, "EnemiesPhase", turn)
        feinted = opponent.last_action == ActionId.FEINT
        spend_stamina(opponent, ACTION_DEFS[decision.action].stamina)
        opponent.last_action = decision.action

        if decision.action in (ActionId.GUARD, ActionId.RESPITE):
            verb = "guards" if decision.action == ActionId.GUARD else "catches breath"
            log.append(LogEntry(turn, f"{name} {verb}.", LogEntryType.RESULT))
            push_action(melee_state, RoundAction(
                actor_name=opponent.name,
                actor_side=Side.ENEMY,
                target_name=opponent.name,
                target_side=Side.ENEMY,
                action=decision.action,
                hit=decision.action == ActionId.RESPITE,
                damage=0,
            ), opponent, opponent)
            continue

        target = choose_enemy_target(opponent, player, melee_state.allies, rng=ctx.rng)

        if target.side == Side.PLAYER:
            attack = resolve_attack(
                opponent_to_combatant(opponent),
                player_to_combatant(player, melee_state.player_stunned),
                decision.action,
                decision.body_part,
                turn,
                Side.ENEMY,
                target_side=Side.PLAYER,
                free_attack=player_exposed,
                target_guarding=melee_state.player_guarding,
                target_block_chance=ctx.player_block_chance,
                feinted=feinted,
                allow_instant_kill=False,
                rng=ctx.rng,
            )
            log.extend(attack.log)
            health_before = player.health
            apply_to_player(melee_state, player, attack)
            result.player_health_delta += player.health - health_before
            if attack.stunned:
                refresh_stun(ctx, player)

            if attack.blocked:
                melee_state.player_riposte = True
            if attack.hit:
                if attack.damage > 0:
                    result.morale_changes.append(MoraleChange(
                        -(attack.damage * MORALE_PER_DAMAGE_TAKEN), f"Hit by {name}", MoraleSource.EVENT))
                if attack.stamina_drain > 0:
                    result.morale_changes.append(MoraleChange(
                        MORALE_STAGGERED, f"Staggered by {name}", MoraleSource.EVENT))
                if attack.stunned and player.health > 0:
                    result.morale_changes.append(MoraleChange(
                        MORALE_STUNNED, "Stunned!", MoraleSource.EVENT))
            push_action(melee_state, attack.round_action, opponent, player)

            if player.health <= 0:
                result.battle_end = BattleEnd.DEFEAT
                break
            continue

        ally = next((a for a in melee_state.allies if a.id == target.id), None)
        if ally is None or not ally.alive or ally.health <= 0:
            continue

        block_chance = ctx.ally_block_chances.get(ally.id, 0.0)
        attack = resolve_attack(
            opponent_to_combatant(opponent),
            ally_to_combatant(ally),
            decision.action,
            decision.body_part,
            turn,
            Side.ENEMY,
            target_side=Side.ALLY,
            target_guarding=block_chance > 0,
            target_block_chance=block_chance,
            feinted=feinted,
            rng=ctx.rng,
        )
        log.extend(attack.log)
        apply_to_npc(ally, attack)
        if attack.stunned:
            refresh_stun(ctx, ally)
        push_action(melee_state, attack.round_action, opponent, ally)

        if ally.health <= 0 and ally.alive:
            _ally_falls(state, ally, ctx, result)

    return result


def _ally_falls(state: BattleState, ally, ctx: RoundContext, result: EnemiesPhaseResult) -> None:
    ally.alive = False
    is_named = ally.kind == AllyKind.NAMED
    result.ally_deaths.append(AllyDeath(name=ally.name, npc_id=ally.npc_id, is_named=is_named))

    if is_named:
        text = f"{ally.name} goes down! The loss hits you like a physical blow."
        narrative = f"{ally.name} goes down"
        result.morale_changes.append(MoraleChange(
            MORALE_NAMED_ALLY_FELL, f"{ally.name} fell", MoraleSource.EVENT))
    else:
        text = f"{ally.name} falls."
        narrative = text[:-1]
        result.morale_changes.append(MoraleChange(MORALE_ALLY_FELL, "Ally fell", MoraleSource.EVENT))
    result.log.append(LogEntry(ctx.turn, text, LogEntryType.EVENT))

    state.melee_state.round_log.append(RoundAction(
        actor_name=ally.name,
        actor_side=Side.ALLY,
        target_name=ally.name,
        target_side=Side.ALLY,
        action=ActionId.GUARD,
        hit=False,
        damage=0,
        event_type=RoundEventType.DEFEAT,
        narrative=narrative,
        actor_after=snapshot_of(ally),
        target_after=snapshot_of(ally),
    ))

    emit_log(ctx.event_manager, f"Ally {ally.name} fell", "COMBAT", source="EnemiesPhase", turn=ctx.turn)
    if ctx.event_manager is not None:
        ctx.event_manager.publish(
            AllyFell(turn=ctx.turn, name=ally.name, npc_id=ally.npc_id, is_named=is_named),
            source="EnemiesPhase",
        )
