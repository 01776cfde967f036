"""Encounter builder: turns templates into live melee combatants."""

from typing import Optional

from ...core.data.data_structures import (
    AllyTemplate,
    BattleState,
    MeleeAlly,
    MeleeOpponent,
    MeleeState,
    OpponentTemplate,
)
from ...core.data.game_enums import MeleeContext, MeleeStance, OpponentType
from ...core.random_source import RandomSource, rand_range, resolve_random
from .encounter_loader import EncounterData, get_battle_data

NAME_ATTEMPTS = 20
DEFAULT_MAX_EXCHANGES = {MeleeContext.TERRAIN: 12, MeleeContext.BATTERY: 10}


def make_opponent(
    template: OpponentTemplate,
    name_pools: Optional[dict[OpponentType, list[str]]] = None,
    used_names: Optional[set[str]] = None,
    rng: Optional[RandomSource] = None,
) -> MeleeOpponent:
    """Roll an opponent from a template.

    The opponent is named "<template name> — <personal name>". When
    used_names is given a personal name not yet taken is preferred, so
    several soldiers from one template stay distinguishable.
    """
    rand = resolve_random(rng)
    health = rand_range(rand, *template.health)
    stamina = rand_range(rand, *template.stamina)

    pools = name_pools if name_pools is not None else get_battle_data().name_pools
    pool = pools.get(template.type) or [template.type.value.title()]

    full_name = template.name
    for _ in range(NAME_ATTEMPTS):
        personal = pool[min(int(rand() * len(pool)), len(pool) - 1)]
        full_name = f"{template.name} — {personal}"
        if used_names is None or full_name not in used_names:
            break
    if used_names is not None:
        used_names.add(full_name)

    return MeleeOpponent(
        name=full_name,
        type=template.type,
        health=health,
        max_health=health,
        stamina=stamina,
        max_stamina=stamina,
        fatigue=0,
        max_fatigue=stamina,
        strength=template.strength,
        description=template.description,
    )


def make_ally(template: AllyTemplate, rng: Optional[RandomSource] = None) -> MeleeAlly:
    """Roll an ally from a template."""
    rand = resolve_random(rng)
    health = rand_range(rand, *template.health)
    stamina = rand_range(rand, *template.stamina)
    return MeleeAlly(
        id=template.id,
        name=template.name,
        kind=template.kind,
        personality=template.personality,
        health=health,
        max_health=health,
        stamina=stamina,
        max_stamina=stamina,
        fatigue=0,
        max_fatigue=stamina,
        strength=template.strength,
        elan=template.elan,
        description=template.description,
        npc_id=template.npc_id,
    )


def create_melee_state(
    state: BattleState,
    context: MeleeContext = MeleeContext.TERRAIN,
    encounter_key: Optional[str] = None,
    data: Optional[EncounterData] = None,
    rng: Optional[RandomSource] = None,
) -> MeleeState:
    """Build a fresh MeleeState for an encounter and attach it to the battle.

    The encounter config is looked up by encounter_key, falling back to the
    context's name. Without a config the context's roster is used with every
    opponent active at once.

    Raises:
        KeyError: If neither a config nor a roster exists for the context
    """
    data = data if data is not None else get_battle_data()
    config = data.encounters.get(encounter_key or context.value)

    if config is not None:
        roster = config.opponents
        max_exchanges = config.max_exchanges
        context = config.context
        ally_templates = config.allies
        wave_events = list(config.wave_events)
    else:
        roster = data.rosters[context.value]
        max_exchanges = DEFAULT_MAX_EXCHANGES.get(context, 12)
        ally_templates = []
        wave_events = []

    used_names: set[str] = set()
    opponents = [make_opponent(t, data.name_pools, used_names, rng) for t in roster]
    allies = [make_ally(t, rng) for t in ally_templates]

    initial_active = len(opponents)
    max_active = len(opponents)
    if config is not None:
        if config.initial_active_enemies is not None:
            initial_active = min(config.initial_active_enemies, len(opponents))
        if config.max_active_enemies is not None:
            max_active = config.max_active_enemies
    initial_active = min(initial_active, max_active)

    melee_state = MeleeState(
        opponents=opponents,
        active_enemies=list(range(initial_active)),
        enemy_pool=list(range(initial_active, len(opponents))),
        max_active_enemies=max_active,
        allies=allies,
        wave_events=wave_events,
        max_exchanges=max_exchanges,
        context=context,
        player_stance=MeleeStance.BALANCED,
    )
    state.melee_state = melee_state
    return melee_state
