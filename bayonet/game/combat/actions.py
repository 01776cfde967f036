"""Player action menu for the melee UI."""

from dataclasses import dataclass

from ...core.data.data_structures import BattleState
from ...core.data.game_enums import ACTION_NAMES, ActionId, MoraleThreshold
from .effects import ACTION_DEFS


@dataclass
class MeleeActionChoice:
    id: ActionId
    label: str
    description: str
    available: bool
    stamina_cost: int


ACTION_DESCRIPTIONS = {
    ActionId.BAYONET_THRUST: "Standard thrust. Reliable.",
    ActionId.AGGRESSIVE_LUNGE: "Wild lunge. 1.5x damage but harder to land.",
    ActionId.BUTT_STRIKE: "Musket stock. Drains stamina, chance to stun. Strength scales both.",
    ActionId.FEINT: "Fake out. No wound, but drains stamina and exhausts.",
    ActionId.GUARD: "Block chance (elan-based). Failed blocks reduce damage.",
    ActionId.RESPITE: "Recover 35 stamina. Opponent gets a free attack.",
    ActionId.SHOOT: "Fire your loaded musket. 2x damage, 25% head kill. Cannot be blocked.",
}

RELOAD_STEPS = (
    ("Reload (1/2)", "Bite cartridge, pour powder. Opponent gets a free attack."),
    ("Reload (2/2)", "Ram ball, prime pan. Opponent gets a free attack. Musket ready."),
)

# Actions still offered at each morale band; None means no restriction
MORALE_ALLOWED = {
    MoraleThreshold.STEADY: None,
    MoraleThreshold.SHAKEN: frozenset(set(ActionId) - {ActionId.AGGRESSIVE_LUNGE}),
    MoraleThreshold.WAVERING: frozenset({
        ActionId.BAYONET_THRUST,
        ActionId.GUARD,
        ActionId.RESPITE,
        ActionId.SHOOT,
        ActionId.RELOAD,
    }),
    MoraleThreshold.BREAKING: frozenset({ActionId.GUARD, ActionId.RESPITE, ActionId.RELOAD}),
}


def get_morale_threshold(morale: float, max_morale: float) -> MoraleThreshold:
    """Map a morale value onto its band."""
    if max_morale <= 0:
        return MoraleThreshold.BREAKING
    pct = morale / max_morale
    if pct >= 0.75:
        return MoraleThreshold.STEADY
    if pct >= 0.40:
        return MoraleThreshold.SHAKEN
    if pct >= 0.15:
        return MoraleThreshold.WAVERING
    return MoraleThreshold.BREAKING


def _choice(action: ActionId, stamina: int, always: bool = False) -> MeleeActionChoice:
    cost = ACTION_DEFS[action].stamina
    return MeleeActionChoice(
        id=action,
        label=ACTION_NAMES[action],
        description=ACTION_DESCRIPTIONS[action],
        available=always or stamina >= cost,
        stamina_cost=cost,
    )


def get_melee_actions(state: BattleState) -> list[MeleeActionChoice]:
    """List the player's actions with availability and stamina cost.

    Shoot is offered only with a loaded musket and reload only with an
    empty one. At zero stamina only respite remains. Low morale disables
    the more aggressive options.
    """
    player = state.player
    stamina = player.stamina

    actions = [
        _choice(ActionId.BAYONET_THRUST, stamina),
        _choice(ActionId.AGGRESSIVE_LUNGE, stamina),
        _choice(ActionId.BUTT_STRIKE, stamina),
        _choice(ActionId.FEINT, stamina),
        _choice(ActionId.GUARD, stamina, always=True),
        _choice(ActionId.RESPITE, stamina, always=True),
    ]

    if player.musket_loaded:
        actions.insert(0, _choice(ActionId.SHOOT, stamina, always=True))
    else:
        progress = state.melee_state.reload_progress if state.melee_state else 0
        label, description = RELOAD_STEPS[min(progress, 1)]
        cost = ACTION_DEFS[ActionId.RELOAD].stamina
        actions.append(MeleeActionChoice(
            id=ActionId.RELOAD,
            label=label,
            description=description,
            available=stamina >= cost,
            stamina_cost=cost,
        ))

    if stamina <= 0:
        return [a for a in actions if a.id == ActionId.RESPITE]

    allowed = MORALE_ALLOWED[get_morale_threshold(player.morale, player.max_morale)]
    if allowed is not None:
        for choice in actions:
            if choice.id not in allowed:
                choice.available = False

    return actions
