"""Melee encounter data loaded from YAML.

Name pools, opponent rosters, ally templates and encounter configs for a
battle live in one YAML file under assets/data/melee. This module turns that
file into the dataclasses the encounter builder consumes.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Optional

import yaml

from ...core.data.data_structures import (
    AllyTemplate,
    EncounterConfig,
    OpponentTemplate,
    WaveEvent,
)
from ...core.data.game_enums import (
    AllyKind,
    AllyPersonality,
    MeleeContext,
    OpponentType,
    WaveAction,
)

DATA_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
    "assets", "data", "melee",
)
DEFAULT_BATTLE = "rivoli"


@dataclass
class EncounterData:
    """Everything one battle file defines."""
    name_pools: dict[OpponentType, list[str]] = field(default_factory=dict)
    rosters: dict[str, list[OpponentTemplate]] = field(default_factory=dict)
    allies: dict[str, AllyTemplate] = field(default_factory=dict)
    encounters: dict[str, EncounterConfig] = field(default_factory=dict)


def battle_data_path(battle: str = DEFAULT_BATTLE) -> str:
    return os.path.join(DATA_DIR, f"{battle}.yaml")


def _range(value: Any, what: str) -> tuple[int, int]:
    low, high = (int(v) for v in value)
    if low > high:
        raise ValueError(f"{what}: range [{low}, {high}] is inverted")
    return low, high


def _parse_opponent(data: dict[str, Any]) -> OpponentTemplate:
    return OpponentTemplate(
        name=data["name"],
        type=OpponentType(data["type"]),
        health=_range(data["health"], f"{data['name']} health"),
        stamina=_range(data["stamina"], f"{data['name']} stamina"),
        strength=int(data["strength"]),
        description=data.get("description", ""),
    )


def _parse_ally(ally_id: str, data: dict[str, Any]) -> AllyTemplate:
    return AllyTemplate(
        id=ally_id,
        name=data["name"],
        kind=AllyKind(data.get("kind", AllyKind.GENERIC.value)),
        health=_range(data["health"], f"{ally_id} health"),
        stamina=_range(data["stamina"], f"{ally_id} stamina"),
        strength=int(data["strength"]),
        elan=int(data["elan"]),
        personality=AllyPersonality(data["personality"]),
        description=data.get("description", ""),
        npc_id=data.get("npc_id"),
    )


def _parse_wave(data: dict[str, Any], allies: dict[str, AllyTemplate]) -> WaveEvent:
    action = WaveAction(data["action"])
    ally_template = None
    if action == WaveAction.ADD_ALLY:
        ally_template = allies[data["ally"]]
    return WaveEvent(
        at_round=int(data["at_round"]),
        action=action,
        narrative=data.get("narrative", ""),
        ally_template=ally_template,
        new_max_enemies=data.get("new_max_enemies"),
        condition_npc_alive=data.get("condition_npc_alive"),
    )


def _parse_encounter(
    data: dict[str, Any],
    rosters: dict[str, list[OpponentTemplate]],
    allies: dict[str, AllyTemplate],
) -> EncounterConfig:
    return EncounterConfig(
        context=MeleeContext(data["context"]),
        opponents=list(rosters[data["roster"]]),
        allies=[allies[key] for key in data.get("allies", [])],
        max_exchanges=int(data.get("max_exchanges", 12)),
        initial_active_enemies=data.get("initial_active_enemies"),
        max_active_enemies=data.get("max_active_enemies"),
        wave_events=[_parse_wave(wave, allies) for wave in data.get("waves", [])],
    )


def load_encounter_data(yaml_path: Optional[str] = None) -> EncounterData:
    """Load a battle's melee data from YAML.

    Args:
        yaml_path: File to load; defaults to the bundled Rivoli data

    Returns:
        Parsed EncounterData

    Raises:
        FileNotFoundError: If the file does not exist
        KeyError: If a required key or a referenced roster/ally is missing
        ValueError: If an enum value or range is invalid
    """
    yaml_path = yaml_path or battle_data_path()

    try:
        with open(yaml_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Melee data file not found: {yaml_path}")

    if not isinstance(data, dict):
        raise ValueError(f"Melee data in {yaml_path} must be a mapping")

    try:
        name_pools = {
            OpponentType(kind): list(names) for kind, names in data["name_pools"].items()
        }
        rosters = {
            key: [_parse_opponent(entry) for entry in entries]
            for key, entries in data["rosters"].items()
        }
        allies = {
            key: _parse_ally(key, entry) for key, entry in data.get("allies", {}).items()
        }
        encounters = {
            key: _parse_encounter(entry, rosters, allies)
            for key, entry in data["encounters"].items()
        }
    except KeyError as e:
        raise KeyError(f"Invalid melee data structure in {yaml_path}: missing {e}")
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid melee data value in {yaml_path}: {e}")

    return EncounterData(
        name_pools=name_pools,
        rosters=rosters,
        allies=allies,
        encounters=encounters,
    )


@lru_cache(maxsize=None)
def get_battle_data(battle: str = DEFAULT_BATTLE) -> EncounterData:
    """Bundled battle data, parsed once per process."""
    return load_encounter_data(battle_data_path(battle))
