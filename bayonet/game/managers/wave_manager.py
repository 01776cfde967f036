"""
Wave manager for scripted reinforcements and enemy backfill.

Fires round-triggered wave events (allies arriving, more enemies pressing in)
and keeps the active enemy set topped up from the pool. Together with the
round resolver it is the only code that changes who is in the fight.
"""

from typing import Optional, TYPE_CHECKING

from ...core.data.data_structures import (
    LogEntry,
    MeleeOpponent,
    MeleeState,
    NpcStatus,
    RoundAction,
    WaveEvent,
)
from ...core.data.game_enums import ActionId, LogEntryType, RoundEventType, Side, WaveAction
from ...core.events.events import CombatantArrived
from ..combat.effects import BREAK_THRESHOLDS, short_name, snapshot_of
from ..encounters.encounter_builder import make_ally
from .log_manager import LogLevel, emit_log

if TYPE_CHECKING:
    from ...core.events.event_manager import EventManager
    from ...core.random_source import RandomSource


def is_opponent_defeated(opponent: MeleeOpponent) -> bool:
    """Single defeat predicate: dead, or hurt past the grade's breaking point."""
    if opponent.health <= 0:
        return True
    if opponent.max_health <= 0:
        return True
    return opponent.health / opponent.max_health <= BREAK_THRESHOLDS[opponent.type]


def live_enemy_indices(melee_state: MeleeState) -> list[int]:
    """Active opponents still able to fight, in active order."""
    return [
        index for index in melee_state.active_enemies
        if not is_opponent_defeated(melee_state.opponents[index])
    ]


def _role_for(npc_id: str, roles: dict[str, str]) -> Optional[str]:
    for role, role_npc in roles.items():
        if role_npc == npc_id:
            return role
    return None


def _npc_alive(npc_id: str, npcs: dict[str, NpcStatus], roles: dict[str, str]) -> bool:
    role = _role_for(npc_id, roles)
    if role is None:
        # Not tracked by the line phase, so nothing says they fell
        return True
    status = npcs.get(role)
    return status is not None and status.alive


def _npc_wounded(npc_id: Optional[str], npcs: dict[str, NpcStatus], roles: dict[str, str]) -> bool:
    if npc_id is None:
        return False
    role = _role_for(npc_id, roles)
    status = npcs.get(role) if role is not None else None
    return status is not None and status.wounded


class WaveManager:
    """Applies wave events and backfill to one melee state.

    The module-level process_wave_events/backfill_enemies functions wrap a
    throwaway instance; the class exists so a long-lived caller can keep the
    event manager and random source wired once.
    """

    def __init__(
        self,
        event_manager: Optional["EventManager"] = None,
        rng: Optional["RandomSource"] = None,
    ):
        self.event_manager = event_manager
        self.rng = rng

    def _emit_log(self, message: str, turn: int, level: LogLevel = LogLevel.INFO) -> None:
        category = "WARNING" if level == LogLevel.WARNING else "WAVE"
        emit_log(self.event_manager, message, category, level, "WaveManager", turn)

    def _announce(self, turn: int, name: str, side: Side) -> None:
        if self.event_manager is not None:
            self.event_manager.publish(CombatantArrived(turn=turn, name=name, side=side),
                                       source="WaveManager")

    def process(
        self,
        melee_state: MeleeState,
        turn: int,
        npcs: dict[str, NpcStatus],
        roles: dict[str, str],
    ) -> list[LogEntry]:
        """Fire every due, unprocessed wave event, then backfill.

        Each event index is recorded in processed_waves exactly once, whether
        it fired, was skipped by its NPC condition or was malformed.
        """
        log: list[LogEntry] = []

        for index, wave in enumerate(melee_state.wave_events):
            if index in melee_state.processed_waves:
                continue
            if melee_state.round_number < wave.at_round:
                continue

            melee_state.processed_waves.append(index)

            if wave.condition_npc_alive and not _npc_alive(wave.condition_npc_alive, npcs, roles):
                self._emit_log(
                    f"Wave {index} skipped: {wave.condition_npc_alive} is not alive", turn
                )
                continue

            self._apply_wave(melee_state, index, wave, turn, npcs, roles, log)

        self.backfill(melee_state, turn, log)
        return log

    def _apply_wave(
        self,
        melee_state: MeleeState,
        index: int,
        wave: WaveEvent,
        turn: int,
        npcs: dict[str, NpcStatus],
        roles: dict[str, str],
        log: list[LogEntry],
    ) -> None:
        if wave.action == WaveAction.ADD_ALLY:
            if wave.ally_template is None:
                self._emit_log(f"Wave {index} has no ally template; ignored", turn, LogLevel.WARNING)
                return
            try:
                ally = make_ally(wave.ally_template, rng=self.rng)
            except (KeyError, TypeError, ValueError) as e:
                self._emit_log(f"Wave {index} ally template is malformed ({e}); ignored",
                               turn, LogLevel.WARNING)
                return

            if _npc_wounded(ally.npc_id, npcs, roles):
                ally.arm_injured = True

            melee_state.allies.append(ally)
            if wave.narrative:
                log.append(LogEntry(turn, wave.narrative, LogEntryType.EVENT))
            snapshot = snapshot_of(ally)
            melee_state.round_log.append(RoundAction(
                actor_name=ally.name,
                actor_side=Side.ALLY,
                target_name=ally.name,
                target_side=Side.ALLY,
                action=ActionId.GUARD,
                hit=False,
                damage=0,
                event_type=RoundEventType.ARRIVAL,
                narrative=wave.narrative,
                actor_after=snapshot,
                target_after=snapshot_of(ally),
            ))
            self._emit_log(f"{ally.name} joins the melee", turn)
            self._announce(turn, ally.name, Side.ALLY)

        elif wave.action == WaveAction.INCREASE_MAX_ENEMIES:
            new_max = wave.new_max_enemies
            if new_max is None or new_max < melee_state.max_active_enemies:
                self._emit_log(f"Wave {index} has invalid new_max_enemies {new_max!r}; ignored",
                               turn, LogLevel.WARNING)
                return
            melee_state.max_active_enemies = new_max
            if wave.narrative:
                log.append(LogEntry(turn, wave.narrative, LogEntryType.EVENT))
            self._emit_log(f"Max active enemies raised to {new_max}", turn)

        else:
            self._emit_log(f"Wave {index} has unknown action {wave.action!r}; ignored",
                           turn, LogLevel.WARNING)

    def backfill(self, melee_state: MeleeState, turn: int, log: list[LogEntry]) -> int:
        """Top up the active set from the pool, first in first out.

        Defeated opponents leave the active set and are dropped from the
        pool before promotion.

        Returns:
            Number of opponents promoted
        """
        opponents = melee_state.opponents
        melee_state.active_enemies[:] = [
            i for i in melee_state.active_enemies if not is_opponent_defeated(opponents[i])
        ]
        melee_state.enemy_pool[:] = [
            i for i in melee_state.enemy_pool if not is_opponent_defeated(opponents[i])
        ]

        promoted = 0
        while (len(melee_state.active_enemies) < melee_state.max_active_enemies
               and melee_state.enemy_pool):
            next_index = melee_state.enemy_pool.pop(0)
            melee_state.active_enemies.append(next_index)
            promoted += 1

            opponent = opponents[next_index]
            name = short_name(opponent.name)
            log.append(LogEntry(turn, f"{name} joins the fight.", LogEntryType.EVENT))
            melee_state.round_log.append(RoundAction(
                actor_name=opponent.name,
                actor_side=Side.ENEMY,
                target_name=opponent.name,
                target_side=Side.ENEMY,
                action=ActionId.GUARD,
                hit=False,
                damage=0,
                event_type=RoundEventType.ARRIVAL,
                narrative=f"{name} joins the fight",
                actor_after=snapshot_of(opponent),
                target_after=snapshot_of(opponent),
            ))
            self._emit_log(f"{name} backfilled from the pool", turn)
            self._announce(turn, opponent.name, Side.ENEMY)

        return promoted


def process_wave_events(
    melee_state: MeleeState,
    turn: int,
    npcs: dict[str, NpcStatus],
    roles: dict[str, str],
    event_manager: Optional["EventManager"] = None,
    rng: Optional["RandomSource"] = None,
) -> list[LogEntry]:
    """Fire due wave events and backfill. See WaveManager.process."""
    return WaveManager(event_manager, rng).process(melee_state, turn, npcs, roles)


def backfill_enemies(
    melee_state: MeleeState,
    turn: int,
    log: list[LogEntry],
    event_manager: Optional["EventManager"] = None,
) -> int:
    """Top up active enemies from the pool. See WaveManager.backfill."""
    return WaveManager(event_manager).backfill(melee_state, turn, log)
