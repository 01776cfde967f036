"""Core building blocks shared by every melee system.

- data: enums and dataclasses for combatants, encounters and battle state
- events: immutable events and the publish/subscribe event bus
- stats.py: d100 stat checks and the exhaustion debuff
- random_source.py: injectable random sources
"""
