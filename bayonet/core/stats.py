"""Stat utilities shared by combat and the surrounding game.

d100 stat checks and the exhaustion debuff read by hit-chance math.
"""

from dataclasses import dataclass
from typing import Optional

from .random_source import RandomSource, resolve_random


@dataclass
class StatCheckResult:
    """Outcome of a d100 roll against a stat."""
    success: bool
    roll: int
    target: int
    margin: int  # positive = succeeded by, negative = failed by


def get_fatigue_debuff(current: float, maximum: float) -> int:
    """Percentage penalty for fighting with a depleted meter.

    Args:
        current: Current meter value (stamina in melee)
        maximum: Meter maximum

    Returns:
        0 when fresh, then -5, -15 and -25 as the meter drains
    """
    if maximum <= 0:
        return -25
    pct = current / maximum
    if pct >= 0.75:
        return 0
    if pct >= 0.40:
        return -5
    if pct >= 0.15:
        return -15
    return -25


def roll_stat(
    stat_value: float,
    modifier: float = 0,
    difficulty: float = 0,
    rng: Optional[RandomSource] = None,
) -> StatCheckResult:
    """Roll d100 against a stat value with modifier and difficulty.

    The target is clamped to [5, 95] so nothing is certain.
    """
    rand = resolve_random(rng)
    target = int(min(95, max(5, stat_value + modifier + difficulty)))
    roll = int(rand() * 100) + 1
    return StatCheckResult(
        success=roll <= target,
        roll=roll,
        target=target,
        margin=target - roll,
    )
