"""AI decision making for enemies and allies."""

from .ai_behaviors import (
    AIDecision,
    AllyDecision,
    EnemyTarget,
    choose_ally_ai,
    choose_enemy_target,
    choose_melee_ai,
)

__all__ = [
    "AIDecision",
    "AllyDecision",
    "EnemyTarget",
    "choose_ally_ai",
    "choose_enemy_target",
    "choose_melee_ai",
]
