"""
Unit tests for attack resolution.

Scripted random sources drive each branch; the draw order is hit, block,
then the action's effect draws.
"""

import pytest

from bayonet.core.data.game_enums import ActionId, BodyPart, LogEntryType, MeleeStance, OpponentType, Side
from bayonet.core.random_source import ScriptedRandom
from bayonet.game.combat.attack_resolver import resolve_attack
from bayonet.game.combat.effects import opponent_to_combatant, player_to_combatant


@pytest.fixture
def line_ref(make_opponent):
    return opponent_to_combatant(make_opponent(OpponentType.LINE, strength=50))


def player_attack(player, target, action, part, rng, **kwargs):
    return resolve_attack(
        player_to_combatant(player), target, action, part, 1, Side.PLAYER,
        target_side=Side.ENEMY, stance=MeleeStance.BALANCED, rng=rng, **kwargs,
    )


class TestHitAndMiss:
    """Test the hit roll."""

    def test_miss_draws_once(self, player, line_ref):
        rng = ScriptedRandom([0.99])
        result = player_attack(player, line_ref, ActionId.BAYONET_THRUST, BodyPart.TORSO, rng)

        assert not result.hit
        assert result.damage == 0
        assert rng.draws == 1
        assert result.log[0].text == "Miss."
        assert result.round_action.body_part == BodyPart.TORSO

    def test_torso_hit(self, player, line_ref):
        rng = ScriptedRandom([0.0, 0.0])
        result = player_attack(player, line_ref, ActionId.BAYONET_THRUST, BodyPart.TORSO, rng)

        assert result.hit
        assert result.damage == 14
        assert rng.draws == 2
        assert result.round_action.damage == 14
        assert result.round_action.actor_side == Side.PLAYER
        assert result.round_action.target_side == Side.ENEMY

    def test_non_attack_draws_nothing(self, player, line_ref):
        rng = ScriptedRandom([])
        result = player_attack(player, line_ref, ActionId.GUARD, BodyPart.TORSO, rng)

        assert not result.hit
        assert rng.draws == 0

    def test_does_not_mutate_combatants(self, player, make_opponent):
        opponent = make_opponent(health=10)
        player_attack(player, opponent_to_combatant(opponent), ActionId.BAYONET_THRUST, BodyPart.TORSO,
                      ScriptedRandom([0.0, 0.0]))
        assert opponent.health == 10


class TestGuardResolution:
    """Hit first, then block, then the failed-block damage reduction."""

    def test_block(self, player, line_ref):
        rng = ScriptedRandom([0.0, 0.0])
        result = player_attack(player, line_ref, ActionId.BAYONET_THRUST, BodyPart.TORSO, rng,
                               target_guarding=True, target_block_chance=0.5)

        assert result.blocked
        assert not result.hit
        assert result.damage == 0
        assert result.round_action.blocked
        assert "Blocked!" in result.log[0].text
        assert rng.draws == 2

    def test_failed_block_reduces_damage(self, player, line_ref):
        rng = ScriptedRandom([0.0, 0.9, 0.0])
        result = player_attack(player, line_ref, ActionId.BAYONET_THRUST, BodyPart.TORSO, rng,
                               target_guarding=True, target_block_chance=0.5)

        assert result.hit
        assert not result.blocked
        # 14 * 0.85
        assert result.damage == 12
        assert result.log[0].text == "Guard broken."
        assert result.log[0].type == LogEntryType.ACTION

    def test_missed_attack_never_rolls_block(self, player, line_ref):
        rng = ScriptedRandom([0.99])
        result = player_attack(player, line_ref, ActionId.BAYONET_THRUST, BodyPart.TORSO, rng,
                               target_guarding=True, target_block_chance=0.95)
        assert not result.blocked
        assert rng.draws == 1

    def test_shoot_cannot_be_blocked(self, player, line_ref):
        rng = ScriptedRandom([0.0, 0.0])
        result = player_attack(player, line_ref, ActionId.SHOOT, BodyPart.TORSO, rng,
                               target_guarding=True, target_block_chance=0.95)

        assert result.hit
        assert not result.blocked
        # No failed-block reduction either: 15 * 2.0
        assert result.damage == 30
        assert rng.draws == 2


class TestSpecialActions:
    """Test butt strike and feint effects."""

    def test_butt_strike_drain_without_stun(self, player, line_ref):
        rng = ScriptedRandom([0.0, 0.0, 0.99])
        result = player_attack(player, line_ref, ActionId.BUTT_STRIKE, BodyPart.TORSO, rng)

        assert result.hit
        assert result.damage == 0
        assert result.stamina_drain == 10
        assert not result.stunned
        assert rng.draws == 3

    def test_butt_strike_stun(self, player, line_ref):
        rng = ScriptedRandom([0.0, 0.99, 0.0])
        result = player_attack(player, line_ref, ActionId.BUTT_STRIKE, BodyPart.TORSO, rng)

        assert result.stunned
        assert result.stamina_drain == 14
        assert "Stunned!" in result.log[-1].text

    def test_feint_drains(self, player, line_ref):
        rng = ScriptedRandom([0.0, 0.0, 0.99])
        result = player_attack(player, line_ref, ActionId.FEINT, BodyPart.TORSO, rng)

        assert result.hit
        assert result.damage == 0
        assert result.stamina_drain == 25
        assert result.fatigue_drain == 30
        assert rng.draws == 3


class TestBodyPartEffects:
    """Test head, arm and leg effects."""

    def test_head_kill(self, player, line_ref):
        rng = ScriptedRandom([0.0, 0.0, 0.05])
        result = player_attack(player, line_ref, ActionId.BAYONET_THRUST, BodyPart.HEAD, rng)

        assert result.target_killed
        assert not result.stunned
        assert result.round_action.target_killed
        assert rng.draws == 3

    def test_head_stun_after_failed_kill(self, player, line_ref):
        rng = ScriptedRandom([0.0, 0.0, 0.5, 0.1])
        result = player_attack(player, line_ref, ActionId.BAYONET_THRUST, BodyPart.HEAD, rng)

        assert not result.target_killed
        assert result.stunned
        assert rng.draws == 4

    def test_instant_kill_disabled_skips_kill_roll(self, player, make_opponent):
        attacker = opponent_to_combatant(make_opponent(OpponentType.LINE))
        rng = ScriptedRandom([0.0, 0.0, 0.05])
        result = resolve_attack(attacker, player_to_combatant(player), ActionId.BAYONET_THRUST, BodyPart.HEAD,
                                1, Side.ENEMY, target_side=Side.PLAYER, allow_instant_kill=False, rng=rng)

        assert not result.target_killed
        assert result.stunned
        assert rng.draws == 3

    def test_arm_injury(self, player, line_ref):
        result = player_attack(player, line_ref, ActionId.BAYONET_THRUST, BodyPart.ARMS,
                               ScriptedRandom([0.0, 0.0, 0.1]))
        assert result.arm_injured
        assert not result.leg_injured

    def test_leg_injury(self, player, line_ref):
        result = player_attack(player, line_ref, ActionId.BAYONET_THRUST, BodyPart.LEGS,
                               ScriptedRandom([0.0, 0.0, 0.05]))
        assert result.leg_injured

    def test_no_injury_on_high_roll(self, player, line_ref):
        result = player_attack(player, line_ref, ActionId.BAYONET_THRUST, BodyPart.LEGS,
                               ScriptedRandom([0.0, 0.0, 0.5]))
        assert not result.leg_injured
        assert result.special == ""


class TestEnemyAttacks:
    """Test NPC attacks on the player."""

    def test_free_attack_damage(self, player, make_opponent):
        attacker = opponent_to_combatant(make_opponent(OpponentType.LINE, strength=50))
        result = resolve_attack(attacker, player_to_combatant(player), ActionId.BAYONET_THRUST, BodyPart.TORSO,
                                1, Side.ENEMY, target_side=Side.PLAYER, free_attack=True,
                                rng=ScriptedRandom([0.0, 0.0]))

        # 15 * 1.0 strength factor * 0.7
        assert result.damage == 11
        assert result.log[0].type == LogEntryType.EVENT
        assert "hits" in result.log[0].text

    def test_enemy_miss_text(self, player, make_opponent):
        attacker = opponent_to_combatant(make_opponent(OpponentType.CONSCRIPT, name="Austrian conscript — Hans Vogl"))
        result = resolve_attack(attacker, player_to_combatant(player), ActionId.BAYONET_THRUST, BodyPart.TORSO,
                                1, Side.ENEMY, target_side=Side.PLAYER, rng=ScriptedRandom([0.99]))
        assert result.log[0].text == f"Austrian conscript misses {player.name}."
