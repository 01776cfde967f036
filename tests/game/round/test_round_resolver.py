"""
Unit tests for melee round resolution.

Each scenario scripts its random draws so the phase order, early defeat exit
and end-of-battle checks are exercised deterministically.
"""

from unittest.mock import Mock

import pytest

from bayonet.core.data.data_structures import AllyTemplate, WaveEvent
from bayonet.core.data.game_enums import (
    ActionId,
    AllyKind,
    AllyPersonality,
    BattleEnd,
    BodyPart,
    MoraleSource,
    OpponentType,
    RoundEventType,
    Side,
    WaveAction,
)
from bayonet.core.events.events import EventType
from bayonet.core.random_source import ScriptedRandom
from bayonet.game.round.player_phase import player_stamina_cost
from bayonet.game.round.round_resolver import resolve_melee_round


class TestRoundBasics:
    """Test bookkeeping common to every round."""

    def test_counters_and_history(self, make_battle, make_opponent):
        state = make_battle([make_opponent()])
        rng = ScriptedRandom([], fallback=0.99)

        resolve_melee_round(state, ActionId.GUARD, rng=rng)

        melee_state = state.melee_state
        assert melee_state.round_number == 1
        assert melee_state.exchange_count == 1
        assert melee_state.player_history == [ActionId.GUARD]
        assert melee_state.player_guarding

    def test_stamina_delta(self, make_battle, make_opponent):
        state = make_battle([make_opponent()])

        result = resolve_melee_round(state, ActionId.GUARD, rng=ScriptedRandom([], fallback=0.99))

        # guard 12 + balanced stance 10
        assert result.player_stamina_delta == -22
        assert state.player.stamina == 178

    def test_player_stamina_cost(self):
        from bayonet.core.data.game_enums import MeleeStance

        assert player_stamina_cost(ActionId.RESPITE, MeleeStance.BALANCED, False) == -25
        assert player_stamina_cost(ActionId.AGGRESSIVE_LUNGE, MeleeStance.AGGRESSIVE, False) == 52
        assert player_stamina_cost(ActionId.AGGRESSIVE_LUNGE, MeleeStance.AGGRESSIVE, True) == 14

    def test_round_events_published(self, make_battle, make_opponent, event_manager):
        started = Mock()
        resolved = Mock()
        event_manager.subscribe(EventType.ROUND_STARTED, started)
        event_manager.subscribe(EventType.ROUND_RESOLVED, resolved)
        state = make_battle([make_opponent()])

        resolve_melee_round(state, ActionId.GUARD, rng=ScriptedRandom([], fallback=0.99),
                            event_manager=event_manager)
        event_manager.process_events()

        assert started.call_args.args[0].round_number == 1
        assert resolved.call_args.args[0].battle_end is None

    def test_already_dead_player(self, make_battle, make_opponent):
        state = make_battle([make_opponent()])
        state.player.health = 0

        result = resolve_melee_round(state, ActionId.BAYONET_THRUST, BodyPart.TORSO, rng=ScriptedRandom([]))

        assert result.battle_end == BattleEnd.DEFEAT
        assert state.melee_state.round_number == 0
        assert state.player.stamina == 200


class TestBattleEnd:
    """Test defeat, victory and survived outcomes."""

    def test_defeat_stops_the_enemies_phase(self, make_battle, make_opponent):
        first = make_opponent(name="Austrian line — Karl Wenger")
        second = make_opponent(name="Austrian line — Franz Egger")
        state = make_battle([first, second])
        state.player.health = 1

        # Player thrust: hit, damage. First enemy: thrust, torso, hit, damage.
        result = resolve_melee_round(state, ActionId.BAYONET_THRUST, BodyPart.TORSO, 0,
                                     rng=ScriptedRandom([], fallback=0.0))

        assert result.battle_end == BattleEnd.DEFEAT
        assert state.player.health == 0
        assert first.health == 86
        assert second.last_action is None
        assert second.stamina == 200
        assert state.melee_state.exchange_count == 1

    def test_health_delta_is_the_actual_change(self, make_battle, make_opponent):
        state = make_battle([make_opponent()])
        state.player.health = 2

        # Resting invites a lunge: torso, hit, damage far above what is left
        result = resolve_melee_round(state, ActionId.RESPITE, rng=ScriptedRandom([], fallback=0.0))

        assert result.battle_end == BattleEnd.DEFEAT
        assert state.player.health == 0
        assert result.player_health_delta == -2

    def test_victory(self, make_battle, make_opponent):
        opponent = make_opponent(health=10, max_health=100)
        state = make_battle([opponent])
        rng = ScriptedRandom([0.0, 0.0])

        result = resolve_melee_round(state, ActionId.BAYONET_THRUST, BodyPart.TORSO, 0, rng=rng)

        assert result.battle_end == BattleEnd.VICTORY
        assert result.enemy_defeats == 1
        assert state.melee_state.kill_count == 1
        assert rng.draws == 2

        round_log = state.melee_state.round_log
        assert round_log[0].target_killed
        assert round_log[-1].event_type == RoundEventType.DEFEAT
        assert any(entry.text == "Austrian line down." for entry in result.log)

    def test_survived(self, make_battle, make_opponent):
        weak = make_opponent(health=10, max_health=100, name="Austrian line — Karl Wenger")
        fresh = make_opponent(name="Austrian line — Franz Egger")
        state = make_battle([weak, fresh], active=[0], pool=[1], max_active=1)
        state.player.health = 20
        state.melee_state.kill_count = 1
        # Kill (hit, damage), then the backfilled enemy guards
        rng = ScriptedRandom([0.0, 0.0, 0.8])

        result = resolve_melee_round(state, ActionId.BAYONET_THRUST, BodyPart.TORSO, 0, rng=rng)

        assert result.battle_end == BattleEnd.SURVIVED
        assert state.melee_state.active_enemies == [1]
        assert state.melee_state.current_opponent == 1
        assert fresh.last_action == ActionId.GUARD
        assert rng.draws == 3

    def test_no_survived_without_a_kill_this_round(self, make_battle, make_opponent):
        state = make_battle([make_opponent()])
        state.player.health = 20
        state.melee_state.kill_count = 3

        result = resolve_melee_round(state, ActionId.GUARD, rng=ScriptedRandom([], fallback=0.99))

        assert result.battle_end is None


class TestStuns:
    """Stunned combatants lose exactly one turn."""

    def test_respite_while_enemy_is_stunned(self, make_battle, make_opponent):
        opponent = make_opponent(stunned=True, stunned_turns=1)
        state = make_battle([opponent])
        state.player.stamina = 100
        rng = ScriptedRandom([])

        result = resolve_melee_round(state, ActionId.RESPITE, rng=rng)

        assert rng.draws == 0
        assert result.player_stamina_delta == 25
        assert state.player.stamina == 125
        assert not opponent.stunned
        assert opponent.stunned_turns == 0
        assert opponent.last_action is None

    def test_stunned_player_cannot_act(self, make_battle, make_opponent):
        opponent = make_opponent(stunned=True, stunned_turns=1)
        state = make_battle([opponent])
        state.melee_state.player_stunned = 1

        result = resolve_melee_round(state, ActionId.BAYONET_THRUST, BodyPart.TORSO, rng=ScriptedRandom([]))

        assert any(entry.text == "Stunned. Can't act." for entry in result.log)
        assert state.melee_state.player_history == []
        assert state.melee_state.player_stunned == 0
        assert result.player_stamina_delta == -10
        assert opponent.health == 100

    def test_stunned_npc_is_never_attacking(self, make_battle, make_opponent):
        opponent = make_opponent(stunned=True, stunned_turns=1)
        state = make_battle([opponent])

        resolve_melee_round(state, ActionId.GUARD, rng=ScriptedRandom([]))

        actions = [a for a in state.melee_state.round_log if a.actor_name == opponent.name]
        assert actions == []


class TestGuardAndRiposte:
    """Test guards on both sides and the riposte they earn."""

    def test_player_block_earns_riposte(self, make_battle, make_opponent):
        state = make_battle([make_opponent()])
        # Enemy: thrust, torso, hit, block
        rng = ScriptedRandom([0.0, 0.0, 0.0, 0.0])

        result = resolve_melee_round(state, ActionId.GUARD, rng=rng)

        assert rng.draws == 4
        assert state.melee_state.player_riposte
        assert state.player.health == 100
        assert result.player_health_delta == 0

        # Any attack spends the riposte
        resolve_melee_round(state, ActionId.BAYONET_THRUST, BodyPart.TORSO, rng=ScriptedRandom([], fallback=0.99))
        assert not state.melee_state.player_riposte

    def test_enemy_guard_blocks_the_player(self, make_battle, make_opponent):
        opponent = make_opponent(last_action=ActionId.GUARD)
        state = make_battle([opponent])
        # Player: hit, blocked. Enemy then guards again.
        rng = ScriptedRandom([0.0, 0.0], fallback=0.99)

        result = resolve_melee_round(state, ActionId.BAYONET_THRUST, BodyPart.TORSO, rng=rng)

        assert opponent.health == 100
        assert any("Blocked!" in entry.text for entry in result.log)
        assert state.melee_state.round_log[0].blocked


class TestMusket:
    """Test reloading and shooting."""

    def test_two_step_reload(self, make_battle, make_opponent):
        state = make_battle([make_opponent()])
        rng = ScriptedRandom([], fallback=0.99)

        resolve_melee_round(state, ActionId.RELOAD, rng=rng)
        assert state.melee_state.reload_progress == 1
        assert not state.player.musket_loaded

        resolve_melee_round(state, ActionId.RELOAD, rng=rng)
        assert state.player.musket_loaded
        assert state.melee_state.reload_progress == 0

    def test_other_action_resets_reload(self, make_battle, make_opponent):
        state = make_battle([make_opponent()])
        rng = ScriptedRandom([], fallback=0.99)

        resolve_melee_round(state, ActionId.RELOAD, rng=rng)
        resolve_melee_round(state, ActionId.BAYONET_THRUST, BodyPart.TORSO, rng=rng)

        assert state.melee_state.reload_progress == 0
        assert not state.player.musket_loaded

    def test_reload_when_loaded_is_a_no_op(self, make_battle, make_opponent):
        state = make_battle([make_opponent()])
        state.player.musket_loaded = True

        result = resolve_melee_round(state, ActionId.RELOAD, rng=ScriptedRandom([], fallback=0.99))

        assert state.player.musket_loaded
        assert any("already loaded" in entry.text for entry in result.log)

    def test_shoot_empty_musket(self, make_battle, make_opponent):
        opponent = make_opponent()
        state = make_battle([opponent])

        result = resolve_melee_round(state, ActionId.SHOOT, BodyPart.TORSO, rng=ScriptedRandom([], fallback=0.99))

        assert any(entry.text == "The hammer falls on an empty pan." for entry in result.log)
        assert opponent.health == 100

    def test_shot_unloads_and_scores_morale(self, make_battle, make_opponent):
        opponent = make_opponent()
        state = make_battle([opponent])
        state.player.musket_loaded = True
        # Shot: hit, damage. Enemy guards.
        rng = ScriptedRandom([0.0, 0.0], fallback=0.99)

        result = resolve_melee_round(state, ActionId.SHOOT, BodyPart.TORSO, rng=rng)

        assert not state.player.musket_loaded
        assert opponent.health == 70
        change = result.morale_changes[0]
        assert change.amount == pytest.approx(10.0)
        assert change.source == MoraleSource.ACTION


class TestAlliesAndWaves:
    """Test allies acting, dying and arriving mid-encounter."""

    def test_ally_falls(self, make_battle, make_opponent, make_ally, event_manager):
        fell = Mock()
        event_manager.subscribe(EventType.ALLY_FELL, fell)
        ally = make_ally("pierre", health=1, max_health=100)
        opponent = make_opponent(OpponentType.CONSCRIPT, strength=40)
        state = make_battle([opponent], allies=[ally])

        # Ally thrusts and hits; the conscript goes for the weakest: the ally
        result = resolve_melee_round(state, ActionId.GUARD, rng=ScriptedRandom([], fallback=0.0),
                                     event_manager=event_manager)
        event_manager.process_events()

        assert not ally.alive
        assert opponent.health < 100
        assert len(result.ally_deaths) == 1
        assert result.ally_deaths[0].npc_id == "pierre"
        assert result.ally_deaths[0].is_named
        assert any(change.amount == -8 for change in result.morale_changes)
        assert fell.call_args.args[0].name == "Pierre"
        assert state.player.health == 100

    def test_wave_brings_an_ally(self, make_battle, make_opponent):
        template = AllyTemplate(id="pierre", name="Pierre", kind=AllyKind.NAMED, health=(75, 90),
                                stamina=(180, 220), strength=50, elan=45,
                                personality=AllyPersonality.AGGRESSIVE, npc_id="pierre")
        state = make_battle([make_opponent()], wave_events=[
            WaveEvent(at_round=2, action=WaveAction.ADD_ALLY, ally_template=template, narrative="Pierre is here."),
        ])
        rng = ScriptedRandom([], fallback=0.99)

        resolve_melee_round(state, ActionId.GUARD, rng=rng)
        assert state.melee_state.allies == []

        result = resolve_melee_round(state, ActionId.GUARD, rng=rng)
        assert [a.name for a in state.melee_state.allies] == ["Pierre"]
        assert result.log[0].text == "Pierre is here."

        resolve_melee_round(state, ActionId.GUARD, rng=rng)
        assert len(state.melee_state.allies) == 1

    def test_player_kill_backfills_before_allies_act(self, make_battle, make_opponent, make_ally):
        weak = make_opponent(health=10, max_health=100, name="Austrian line — Karl Wenger")
        fresh = make_opponent(name="Austrian line — Franz Egger")
        state = make_battle([weak, fresh], active=[0], pool=[1], max_active=1, allies=[make_ally("pierre")])
        # Player: hit, damage. Ally: lunge, torso, miss. Fresh enemy guards.
        rng = ScriptedRandom([0.0, 0.0, 0.0, 0.0, 0.99, 0.99])

        result = resolve_melee_round(state, ActionId.BAYONET_THRUST, BodyPart.TORSO, 0, rng=rng)

        assert weak.health == 0
        assert result.enemy_defeats == 1
        assert state.melee_state.active_enemies == [1]
        ally_actions = [a for a in state.melee_state.round_log if a.actor_side == Side.ALLY]
        assert [(a.actor_name, a.target_name) for a in ally_actions] == [("Pierre", fresh.name)]
        assert fresh.last_action == ActionId.GUARD
        assert rng.draws == 6

    def test_ally_kill_triggers_backfill(self, make_battle, make_opponent, make_ally):
        weak = make_opponent(health=5, max_health=100, name="Austrian line — Karl Wenger")
        fresh = make_opponent(name="Austrian line — Franz Egger")
        ally = make_ally("pierre")
        state = make_battle([weak, fresh], active=[0], pool=[1], max_active=1, allies=[ally])
        # Player guards. Ally: lunge, torso, hit, damage. Fresh enemy guards.
        rng = ScriptedRandom([0.0, 0.0, 0.0, 0.0, 0.99])

        result = resolve_melee_round(state, ActionId.GUARD, rng=rng)

        assert weak.health == 0
        assert result.enemy_defeats == 1
        assert state.melee_state.active_enemies == [1]
        assert fresh.last_action == ActionId.GUARD
        defeat = [a for a in state.melee_state.round_log if a.event_type == RoundEventType.DEFEAT]
        assert defeat[0].actor_side == Side.ENEMY
