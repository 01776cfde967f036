"""
Round resolver: the orchestrator of one melee round.

Turn order is fixed:

1. wave events and backfill
2. player phase
3. backfill
4. allies phase
5. backfill
6. enemies phase
7. stun counters tick down

The resolver and the wave manager are the only code that mutates the melee
state; combat math and AI hand back decisions and results it applies.
"""

from typing import Optional, TYPE_CHECKING

from ...core.data.data_structures import BattleState
from ...core.data.game_enums import ActionId, BattleEnd, BodyPart
from ...core.events.events import RoundResolved, RoundStarted
from ...core.random_source import RandomSource, resolve_random
from ..combat.effects import spend_stamina
from ..managers.log_manager import emit_log
from ..managers.wave_manager import WaveManager, live_enemy_indices
from .allies_phase import resolve_allies_phase
from .enemies_phase import resolve_enemies_phase
from .player_phase import player_stamina_cost, resolve_player_phase
from .round_types import (
    SURVIVED_HEALTH_THRESHOLD,
    SURVIVED_MIN_KILLS,
    MeleeRoundResult,
    RoundContext,
)

if TYPE_CHECKING:
    from ...core.events.event_manager import EventManager


def _tick_stuns(state: BattleState, ctx: RoundContext) -> None:
    """Only combatants who sat out a turn stunned this round tick down."""
    melee_state = state.melee_state
    for combatant in ctx.stun_consumed:
        if combatant is state.player:
            melee_state.player_stunned = max(0, melee_state.player_stunned - 1)
            continue
        combatant.stunned_turns -= 1
        if combatant.stunned_turns <= 0:
            combatant.stunned_turns = 0
            combatant.stunned = False


def _battle_end(state: BattleState, enemy_defeats: int) -> Optional[BattleEnd]:
    melee_state = state.melee_state
    if state.player.health <= 0:
        return BattleEnd.DEFEAT

    opponents_remain = bool(live_enemy_indices(melee_state)) or bool(melee_state.enemy_pool)
    if not opponents_remain:
        return BattleEnd.VICTORY

    if (enemy_defeats > 0
            and state.player.health < SURVIVED_HEALTH_THRESHOLD
            and melee_state.kill_count >= SURVIVED_MIN_KILLS):
        return BattleEnd.SURVIVED
    return None


def resolve_melee_round(
    state: BattleState,
    player_action: ActionId,
    player_body_part: Optional[BodyPart] = None,
    player_target_idx: int = 0,
    rng: Optional[RandomSource] = None,
    event_manager: Optional["EventManager"] = None,
) -> MeleeRoundResult:
    """Resolve one round of melee.

    Args:
        state: Battle state holding the player and an active melee state
        player_action: The player's chosen action
        player_body_part: Targeted body part for player attacks
        player_target_idx: Index into opponents of the player's target;
            falls back to the first live enemy when not live
        rng: Random source for every draw this round
        event_manager: Optional event bus for log and domain events

    Returns:
        MeleeRoundResult for this round
    """
    melee_state = state.melee_state
    assert melee_state is not None, "resolve_melee_round needs an active melee state"

    player = state.player
    turn = state.turn
    result = MeleeRoundResult()

    if player.health <= 0:
        result.battle_end = BattleEnd.DEFEAT
        return result

    rand = resolve_random(rng)
    ctx = RoundContext(turn=turn, rng=rand, event_manager=event_manager)
    waves = WaveManager(event_manager, rand)

    melee_state.round_log = []
    melee_state.round_number += 1
    if event_manager is not None:
        event_manager.publish(RoundStarted(turn=turn, round_number=melee_state.round_number),
                              source="RoundResolver")

    # (1) Waves and backfill
    result.log.extend(waves.process(melee_state, turn, state.npcs, state.roles))

    # Stamina for the action and for holding the stance
    ctx.player_stunned = melee_state.player_stunned > 0
    stamina_before = player.stamina
    spend_stamina(player, player_stamina_cost(player_action, melee_state.player_stance,
                                              ctx.player_stunned))
    result.player_stamina_delta = player.stamina - stamina_before

    # (2) Player phase
    live = live_enemy_indices(melee_state)
    player_result = resolve_player_phase(
        state, player_action, player_body_part, player_target_idx, live, ctx
    )
    result.log.extend(player_result.log)
    result.morale_changes.extend(player_result.morale_changes)
    result.enemy_defeats += player_result.enemy_defeats

    # (3) Backfill after player kills
    waves.backfill(melee_state, turn, result.log)

    # (4) Allies phase, then (5) backfill after ally kills
    allies_result = resolve_allies_phase(melee_state, ctx)
    result.log.extend(allies_result.log)
    result.enemy_defeats += allies_result.enemy_defeats
    waves.backfill(melee_state, turn, result.log)

    # (6) Enemies phase
    enemies_result = resolve_enemies_phase(state, player_action, ctx)
    result.log.extend(enemies_result.log)
    result.morale_changes.extend(enemies_result.morale_changes)
    result.player_health_delta += enemies_result.player_health_delta
    result.ally_deaths.extend(enemies_result.ally_deaths)

    melee_state.exchange_count += 1

    if enemies_result.battle_end == BattleEnd.DEFEAT:
        result.battle_end = BattleEnd.DEFEAT
        emit_log(event_manager, f"{player.name} has fallen", "COMBAT", source="RoundResolver", turn=turn)
        _publish_resolved(event_manager, turn, melee_state.round_number, result)
        return result

    # (7) Stun counters
    _tick_stuns(state, ctx)

    result.battle_end = _battle_end(state, result.enemy_defeats)

    first_live = live_enemy_indices(melee_state)
    if first_live:
        melee_state.current_opponent = first_live[0]

    if result.battle_end is not None:
        emit_log(event_manager, f"Melee ends: {result.battle_end.value}", "ENCOUNTER",
                 source="RoundResolver", turn=turn)
    _publish_resolved(event_manager, turn, melee_state.round_number, result)
    return result


def _publish_resolved(
    event_manager: Optional["EventManager"],
    turn: int,
    round_number: int,
    result: MeleeRoundResult,
) -> None:
    if event_manager is None:
        return
    event_manager.publish(
        RoundResolved(
            turn=turn,
            round_number=round_number,
            enemy_defeats=result.enemy_defeats,
            battle_end=result.battle_end,
        ),
        source="RoundResolver",
    )
