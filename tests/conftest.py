"""
Basic test fixtures for the bayonet test suite.

Provides factories for combatants and melee states plus the event bus and
log manager used by the round resolver.
"""

import sys
import os
import pytest

# Add the project root to the Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from bayonet.core.data.data_structures import (
    BattleState,
    MeleeAlly,
    MeleeOpponent,
    MeleeState,
    Player,
)
from bayonet.core.data.game_enums import AllyKind, AllyPersonality, OpponentType
from bayonet.core.events.event_manager import EventManager
from bayonet.game.managers.log_manager import LogLevel, LogManager


@pytest.fixture
def event_manager():
    """Create an event manager for testing."""
    return EventManager(enable_debug_logging=False)


@pytest.fixture
def log_manager(event_manager):
    """Create a log manager listening on the test event manager."""
    return LogManager(event_manager, default_level=LogLevel.DEBUG)


@pytest.fixture
def player():
    """A fresh player with default stats and an empty musket."""
    return Player(name="Private Dubois")


@pytest.fixture
def make_opponent():
    """Factory for opponents with explicit meters."""
    def _make(opponent_type=OpponentType.LINE, health=100, max_health=None,
              stamina=200, max_stamina=None, strength=50, name=None, **kwargs):
        return MeleeOpponent(
            name=name or f"Austrian {opponent_type.value} — Karl Wenger",
            type=opponent_type,
            health=health,
            max_health=max_health if max_health is not None else health,
            stamina=stamina,
            max_stamina=max_stamina if max_stamina is not None else stamina,
            fatigue=0,
            max_fatigue=200,
            strength=strength,
            **kwargs,
        )
    return _make


@pytest.fixture
def make_ally():
    """Factory for allies with explicit meters."""
    def _make(ally_id="pierre", personality=AllyPersonality.AGGRESSIVE, health=100,
              max_health=None, stamina=200, elan=45, kind=AllyKind.NAMED, **kwargs):
        return MeleeAlly(
            id=ally_id,
            name=ally_id.title(),
            kind=kind,
            personality=personality,
            health=health,
            max_health=max_health if max_health is not None else health,
            stamina=stamina,
            max_stamina=stamina,
            fatigue=0,
            max_fatigue=stamina,
            strength=50,
            elan=elan,
            npc_id=ally_id if kind == AllyKind.NAMED else None,
            **kwargs,
        )
    return _make


@pytest.fixture
def make_battle(player):
    """Factory wiring opponents and allies into a BattleState.

    Without explicit active/pool lists every opponent starts active.
    """
    def _make(opponents, active=None, pool=None, max_active=None, allies=None, **kwargs):
        active = list(range(len(opponents))) if active is None else active
        melee_state = MeleeState(
            opponents=opponents,
            active_enemies=active,
            enemy_pool=pool or [],
            max_active_enemies=max_active if max_active is not None else len(active),
            allies=allies or [],
            **kwargs,
        )
        return BattleState(player=player, melee_state=melee_state, turn=1)
    return _make
