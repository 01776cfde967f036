"""Encounter data loading and melee state construction."""

from .encounter_builder import create_melee_state, make_ally, make_opponent
from .encounter_loader import EncounterData, get_battle_data, load_encounter_data

__all__ = [
    "EncounterData",
    "create_melee_state",
    "get_battle_data",
    "load_encounter_data",
    "make_ally",
    "make_opponent",
]
