"""Combat math and the effects catalog.

- effects.py: stance, action and body-part tables plus combatant helpers
- hit_calc.py: hit, damage and block probabilities
- attack_resolver.py: resolves one attack into an AttackResult
- actions.py: the player's action menu
"""

from .actions import MeleeActionChoice, get_melee_actions, get_morale_threshold
from .attack_resolver import AttackResult, resolve_attack
from .effects import ACTION_DEFS, BODY_PART_DEFS, PART_NAMES, STANCE_MODS
from .hit_calc import calc_block_chance, calc_damage, calc_enemy_hit_chance, calc_hit_chance

__all__ = [
    "MeleeActionChoice",
    "get_melee_actions",
    "get_morale_threshold",
    "AttackResult",
    "resolve_attack",
    "ACTION_DEFS",
    "BODY_PART_DEFS",
    "PART_NAMES",
    "STANCE_MODS",
    "calc_block_chance",
    "calc_damage",
    "calc_enemy_hit_chance",
    "calc_hit_chance",
]
