"""AI Behavior Strategy Classes

This module implements the Strategy design pattern for melee AI. Each
opponent grade has its own behavior deciding an action and a body part;
allies and enemy target selection are plain functions over the same data.

Every decision is pure: inputs are read, never mutated, and all randomness
comes from the injected random source. Each decision draws the action roll
first and, when the chosen action is an attack, a body-part roll second.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from ...core.data.data_structures import BattleState, MeleeAlly, MeleeOpponent, Player
from ...core.data.game_enums import (
    ActionId,
    AllyPersonality,
    BodyPart,
    MeleeStance,
    OpponentType,
    Side,
)
from ...core.random_source import RandomSource, resolve_random

LOW_STAMINA = 15
CONSCRIPT_PANIC_HEALTH = 0.30
LINE_TIRED_STAMINA = 0.30
SERGEANT_RESPITE_STAMINA = 0.10

ENEMY_BODY_PARTS = ((BodyPart.TORSO, 0.60), (BodyPart.ARMS, 0.20), (BodyPart.LEGS, 0.15), (BodyPart.HEAD, 0.05))
ALLY_BODY_PARTS = ((BodyPart.TORSO, 0.55), (BodyPart.ARMS, 0.20), (BodyPart.LEGS, 0.15), (BodyPart.HEAD, 0.10))

ATTACKING_ACTIONS = frozenset({ActionId.BAYONET_THRUST, ActionId.AGGRESSIVE_LUNGE})


@dataclass(frozen=True)
class AIDecision:
    """An enemy's chosen action and body part."""
    action: ActionId
    body_part: BodyPart
    reasoning: str = ""


@dataclass(frozen=True)
class AllyDecision:
    """An ally's chosen action, body part and target enemy index."""
    action: ActionId
    body_part: BodyPart
    target_index: Optional[int]
    reasoning: str = ""


@dataclass(frozen=True)
class EnemyTarget:
    """Who an enemy attacks: the player or one of the allies."""
    side: Side
    id: str
    name: str


def weighted_choice(rand: RandomSource, options: Sequence[tuple]) -> object:
    """Pick from (value, weight) pairs with a single draw."""
    weights = np.array([weight for _, weight in options], dtype=float)
    cumulative = np.cumsum(weights / weights.sum())
    index = int(np.searchsorted(cumulative, rand(), side="right"))
    return options[min(index, len(options) - 1)][0]


def _fraction(current: float, maximum: float) -> float:
    return current / maximum if maximum > 0 else 0.0


def _decide(rand: RandomSource, options: Sequence[tuple], parts: Sequence[tuple], reasoning: str) -> AIDecision:
    action = weighted_choice(rand, options)
    if action in (ActionId.GUARD, ActionId.RESPITE):
        return AIDecision(action, BodyPart.TORSO, reasoning)
    return AIDecision(action, weighted_choice(rand, parts), reasoning)


class MeleeBehavior(ABC):
    """Abstract base class for an opponent grade's fighting style."""

    @abstractmethod
    def choose_action(
        self,
        opponent: MeleeOpponent,
        history: Sequence[ActionId],
        stance: MeleeStance,
        rand: RandomSource,
    ) -> AIDecision:
        """Choose an action for an opponent who is able to fight.

        Args:
            opponent: The deciding opponent
            history: The player's actions this encounter, oldest first
            stance: The player's current stance
            rand: Random source

        Returns:
            AIDecision with action and body part
        """

    @abstractmethod
    def get_behavior_name(self) -> str:
        pass


class ConscriptBehavior(MeleeBehavior):
    """Raw recruits: cautious, and panicky once badly hurt."""

    NORMAL = ((ActionId.BAYONET_THRUST, 0.45), (ActionId.GUARD, 0.55))
    PANIC = ((ActionId.RESPITE, 0.60), (ActionId.AGGRESSIVE_LUNGE, 0.40))

    def choose_action(self, opponent, history, stance, rand):
        if _fraction(opponent.health, opponent.max_health) < CONSCRIPT_PANIC_HEALTH:
            action = weighted_choice(rand, self.PANIC)
            return AIDecision(action, BodyPart.TORSO, "Panicking: flee instinct or desperate lunge")
        return _decide(rand, self.NORMAL, ENEMY_BODY_PARTS, "Holding the line")

    def get_behavior_name(self) -> str:
        return "Conscript"


class LineBehavior(MeleeBehavior):
    """Line infantry: steady mix of attacks and guard."""

    NORMAL = (
        (ActionId.BAYONET_THRUST, 0.35),
        (ActionId.AGGRESSIVE_LUNGE, 0.20),
        (ActionId.BUTT_STRIKE, 0.15),
        (ActionId.GUARD, 0.30),
    )
    TIRED = ((ActionId.BAYONET_THRUST, 0.50), (ActionId.RESPITE, 0.50))

    def choose_action(self, opponent, history, stance, rand):
        if history and history[-1] == ActionId.RESPITE:
            body_part = weighted_choice(rand, ENEMY_BODY_PARTS)
            return AIDecision(ActionId.AGGRESSIVE_LUNGE, body_part, "Punishing a player catching breath")
        if _fraction(opponent.stamina, opponent.max_stamina) < LINE_TIRED_STAMINA:
            return _decide(rand, self.TIRED, ENEMY_BODY_PARTS, "Tiring")
        return _decide(rand, self.NORMAL, ENEMY_BODY_PARTS, "Standard drill")

    def get_behavior_name(self) -> str:
        return "Line"


class VeteranBehavior(MeleeBehavior):
    """Veterans read the player's recent moves and counter them."""

    window = 3
    NORMAL = (
        (ActionId.BAYONET_THRUST, 0.25),
        (ActionId.AGGRESSIVE_LUNGE, 0.30),
        (ActionId.FEINT, 0.15),
        (ActionId.BUTT_STRIKE, 0.15),
        (ActionId.GUARD, 0.15),
    )

    def read_pattern(self, history: Sequence[ActionId], stance: MeleeStance,
                     rand: RandomSource) -> Optional[AIDecision]:
        recent = list(history[-self.window:])
        if len(recent) >= 2 and recent[-1] == recent[-2]:
            if recent[-1] == ActionId.GUARD:
                return AIDecision(ActionId.FEINT, BodyPart.HEAD, "Player keeps guarding: feint")
            if recent[-1] in ATTACKING_ACTIONS:
                return AIDecision(ActionId.GUARD, BodyPart.TORSO, "Player keeps attacking: guard")

        guards = sum(1 for action in recent if action == ActionId.GUARD)
        attacks = sum(1 for action in recent if action in ATTACKING_ACTIONS)
        if guards >= 2:
            return AIDecision(ActionId.FEINT, BodyPart.HEAD, "Player is defensive: feint")
        if attacks >= 2:
            return AIDecision(ActionId.GUARD, BodyPart.TORSO, "Player is aggressive: guard")
        return None

    def choose_action(self, opponent, history, stance, rand):
        countered = self.read_pattern(history, stance, rand)
        if countered is not None:
            return countered
        return _decide(rand, self.NORMAL, ENEMY_BODY_PARTS, "Veteran's judgement")

    def get_behavior_name(self) -> str:
        return "Veteran"


class SergeantBehavior(VeteranBehavior):
    """NPC sergeants: wider reading window, heavier lunges, proud of their wind."""

    window = 4
    NORMAL = (
        (ActionId.BAYONET_THRUST, 0.20),
        (ActionId.AGGRESSIVE_LUNGE, 0.35),
        (ActionId.FEINT, 0.15),
        (ActionId.BUTT_STRIKE, 0.15),
        (ActionId.GUARD, 0.15),
    )
    COMBO = ((ActionId.FEINT, 0.60), (ActionId.AGGRESSIVE_LUNGE, 0.40))

    def read_pattern(self, history, stance, rand):
        recent = list(history[-self.window:])
        repeated = len(recent) >= 2 and recent[-1] == recent[-2]
        guards = sum(1 for action in recent if action == ActionId.GUARD)
        if not repeated and stance == MeleeStance.DEFENSIVE and guards >= 2:
            action = weighted_choice(rand, self.COMBO)
            body_part = BodyPart.HEAD if action == ActionId.FEINT else BodyPart.TORSO
            return AIDecision(action, body_part, "Turtling player: feint then lunge")
        return super().read_pattern(history, stance, rand)

    def choose_action(self, opponent, history, stance, rand):
        countered = self.read_pattern(history, stance, rand)
        if countered is not None:
            return countered
        if _fraction(opponent.stamina, opponent.max_stamina) < SERGEANT_RESPITE_STAMINA:
            return AIDecision(ActionId.RESPITE, BodyPart.TORSO, "Spent at last")
        return _decide(rand, self.NORMAL, ENEMY_BODY_PARTS, "Pressing the attack")

    def get_behavior_name(self) -> str:
        return "Sergeant"


BEHAVIORS: dict[OpponentType, MeleeBehavior] = {
    OpponentType.CONSCRIPT: ConscriptBehavior(),
    OpponentType.LINE: LineBehavior(),
    OpponentType.VETERAN: VeteranBehavior(),
    OpponentType.SERGEANT: SergeantBehavior(),
}


def choose_melee_ai(
    opponent: MeleeOpponent,
    battle_state: BattleState,
    rng: Optional[RandomSource] = None,
) -> AIDecision:
    """Choose an enemy's action and body part.

    Stunned opponents guard and winded ones (stamina at or below 15) catch
    their breath; otherwise the grade's behavior decides.
    """
    if opponent.stunned:
        return AIDecision(ActionId.GUARD, BodyPart.TORSO, "Stunned")
    if opponent.stamina <= LOW_STAMINA:
        return AIDecision(ActionId.RESPITE, BodyPart.TORSO, "Winded")

    melee_state = battle_state.melee_state
    history = melee_state.player_history if melee_state else []
    stance = melee_state.player_stance if melee_state else MeleeStance.BALANCED
    return BEHAVIORS[opponent.type].choose_action(opponent, history, stance, resolve_random(rng))


# ============================================================
# Ally AI
# ============================================================

ALLY_ACTIONS = {
    AllyPersonality.AGGRESSIVE: (
        (ActionId.AGGRESSIVE_LUNGE, 0.40),
        (ActionId.BAYONET_THRUST, 0.35),
        (ActionId.BUTT_STRIKE, 0.10),
        (ActionId.GUARD, 0.15),
    ),
    AllyPersonality.BALANCED: (
        (ActionId.BAYONET_THRUST, 0.35),
        (ActionId.AGGRESSIVE_LUNGE, 0.20),
        (ActionId.GUARD, 0.20),
        (ActionId.BUTT_STRIKE, 0.25),
    ),
    AllyPersonality.CAUTIOUS: (
        (ActionId.GUARD, 0.50),
        (ActionId.BAYONET_THRUST, 0.25),
        (ActionId.BUTT_STRIKE, 0.25),
    ),
}

# Used when the ally is badly hurt
ALLY_HURT_ACTIONS = {
    AllyPersonality.AGGRESSIVE: (
        (ActionId.BAYONET_THRUST, 0.75),
        (ActionId.BUTT_STRIKE, 0.10),
        (ActionId.GUARD, 0.15),
    ),
    AllyPersonality.BALANCED: ((ActionId.GUARD, 0.50), (ActionId.BAYONET_THRUST, 0.50)),
    AllyPersonality.CAUTIOUS: ((ActionId.GUARD, 1.0),),
}
ALLY_HURT_HEALTH = {
    AllyPersonality.AGGRESSIVE: 0.50,
    AllyPersonality.BALANCED: 0.30,
    AllyPersonality.CAUTIOUS: 0.40,
}


def find_weakest_enemy(opponents: Sequence[MeleeOpponent], live_indices: Sequence[int]) -> int:
    """Index of the live enemy with the lowest health fraction; first wins ties."""
    fractions = np.array(
        [_fraction(opponents[i].health, opponents[i].max_health) for i in live_indices]
    )
    return live_indices[int(np.argmin(fractions))]


def choose_ally_ai(
    ally: MeleeAlly,
    opponents: Sequence[MeleeOpponent],
    live_enemy_indices: Sequence[int],
    rng: Optional[RandomSource] = None,
) -> AllyDecision:
    """Choose an ally's action, body part and target.

    The target is always the weakest live enemy, or None when no enemy is
    live; personality only shapes which action the ally picks. Stunned
    allies guard and winded ones catch their breath whatever the field.
    """
    target = find_weakest_enemy(opponents, live_enemy_indices) if live_enemy_indices else None
    if ally.stunned:
        return AllyDecision(ActionId.GUARD, BodyPart.TORSO, target, "Stunned")
    if ally.stamina <= LOW_STAMINA:
        return AllyDecision(ActionId.RESPITE, BodyPart.TORSO, target, "Winded")
    if target is None:
        return AllyDecision(ActionId.GUARD, BodyPart.TORSO, None, "No enemy in reach")

    rand = resolve_random(rng)
    hurt = _fraction(ally.health, ally.max_health) < ALLY_HURT_HEALTH[ally.personality]
    table = ALLY_HURT_ACTIONS if hurt else ALLY_ACTIONS
    decision = _decide(rand, table[ally.personality], ALLY_BODY_PARTS, ally.personality.value)
    return AllyDecision(decision.action, decision.body_part, target, decision.reasoning)


# ============================================================
# Enemy target selection
# ============================================================

# (probability of the biased pick, bias) per grade
TARGET_BIAS = {
    OpponentType.CONSCRIPT: (0.65, "weakest"),
    OpponentType.LINE: (0.45, "player"),
    OpponentType.VETERAN: (0.60, "strongest"),
    OpponentType.SERGEANT: (0.70, "player"),
}


def choose_enemy_target(
    opponent: MeleeOpponent,
    player: Player,
    allies: Sequence[MeleeAlly],
    rng: Optional[RandomSource] = None,
) -> EnemyTarget:
    """Pick who an enemy attacks.

    With no ally standing the player is always the target. Otherwise the
    grade biases the pick: conscripts go for the weakest, veterans for the
    strongest, line infantry and sergeants for the player. When the biased
    pick fails a second draw selects uniformly among all targets.
    """
    player_ref = EnemyTarget(Side.PLAYER, "player", player.name)
    live_allies = [ally for ally in allies if ally.alive and ally.health > 0]
    if not live_allies:
        return player_ref

    rand = resolve_random(rng)
    targets = [player_ref] + [EnemyTarget(Side.ALLY, ally.id, ally.name) for ally in live_allies]
    fractions = np.array(
        [_fraction(player.health, player.max_health)]
        + [_fraction(ally.health, ally.max_health) for ally in live_allies]
    )

    chance, bias = TARGET_BIAS[opponent.type]
    if rand() < chance:
        if bias == "weakest":
            return targets[int(np.argmin(fractions))]
        if bias == "strongest":
            return targets[int(np.argmax(fractions))]
        return player_ref
    return targets[min(int(rand() * len(targets)), len(targets) - 1)]
