"""Round resolution: the fixed-order orchestration of one melee round."""

from .round_resolver import resolve_melee_round
from .round_types import MeleeRoundResult

__all__ = [
    "MeleeRoundResult",
    "resolve_melee_round",
]
