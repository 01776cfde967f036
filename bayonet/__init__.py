"""Bayonet: turn-based melee combat for a Napoleonic narrative war-game.

The package is split the same way the game is:
- core: data model, stat utilities, random source and the event bus
- game: combat math, AI, wave and log managers, round resolution and
  encounter building
- simulation: headless encounter runner used for balance checks
"""

__version__ = "0.1.0"
