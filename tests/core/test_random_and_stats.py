"""
Unit tests for the random sources and stat utilities.
"""

import pytest

from bayonet.core.random_source import (
    NumpyRandomSource,
    ScriptedRandom,
    default_random,
    rand_range,
    resolve_random,
)
from bayonet.core.stats import get_fatigue_debuff, roll_stat


class TestScriptedRandom:
    """Test deterministic scripted draws."""

    def test_replays_in_order(self):
        rng = ScriptedRandom([0.1, 0.2])
        assert rng() == 0.1
        assert rng() == 0.2
        assert rng.draws == 2

    def test_exhausted_raises(self):
        rng = ScriptedRandom([0.5])
        rng()
        with pytest.raises(IndexError):
            rng()

    def test_fallback_after_script(self):
        rng = ScriptedRandom([0.1], fallback=0.9)
        assert rng() == 0.1
        assert rng() == 0.9
        assert rng() == 0.9


class TestNumpyRandomSource:
    """Test the numpy-backed default source."""

    def test_seeded_streams_repeat(self):
        first = NumpyRandomSource(42)
        second = NumpyRandomSource(42)
        assert [first() for _ in range(5)] == [second() for _ in range(5)]

    def test_reseed_restarts_stream(self):
        rng = NumpyRandomSource(7)
        values = [rng() for _ in range(3)]
        rng.reseed(7)
        assert [rng() for _ in range(3)] == values

    def test_values_in_unit_interval(self):
        rng = NumpyRandomSource(1)
        assert all(0.0 <= rng() < 1.0 for _ in range(1000))

    def test_resolve_random(self):
        scripted = ScriptedRandom([])
        assert resolve_random(scripted) is scripted
        assert resolve_random(None) is default_random()


class TestRandRange:
    """Test inclusive integer ranges."""

    def test_bounds(self):
        assert rand_range(ScriptedRandom([0.0]), 15, 25) == 15
        assert rand_range(ScriptedRandom([0.999]), 15, 25) == 25

    def test_degenerate_range(self):
        assert rand_range(ScriptedRandom([0.7]), 70, 70) == 70

    def test_consumes_one_draw(self):
        rng = ScriptedRandom([0.5, 0.5])
        rand_range(rng, 1, 6)
        assert rng.draws == 1


class TestFatigueDebuff:
    """Test the exhaustion debuff bands."""

    @pytest.mark.parametrize("current,expected", [
        (200, 0), (150, 0), (149, -5), (80, -5), (79, -15), (30, -15), (29, -25), (0, -25),
    ])
    def test_bands(self, current, expected):
        assert get_fatigue_debuff(current, 200) == expected

    def test_zero_maximum(self):
        assert get_fatigue_debuff(0, 0) == -25


class TestRollStat:
    """Test d100 stat checks."""

    def test_success_and_margin(self):
        result = roll_stat(50, rng=ScriptedRandom([0.195]))
        assert result.roll == 20
        assert result.target == 50
        assert result.success
        assert result.margin == 30

    def test_difficulty_shifts_the_target(self):
        assert roll_stat(50, rng=ScriptedRandom([0.4])).target == 50
        hard = roll_stat(50, difficulty=-15, rng=ScriptedRandom([0.4]))
        assert hard.target == 35
        assert hard.roll == 41
        assert not hard.success

    def test_target_clamped(self):
        assert roll_stat(200, rng=ScriptedRandom([0.0])).target == 95
        assert roll_stat(-50, rng=ScriptedRandom([0.0])).target == 5

    def test_nothing_is_certain(self):
        assert not roll_stat(200, rng=ScriptedRandom([0.99])).success
        assert roll_stat(-50, rng=ScriptedRandom([0.0])).success
