"""Melee game logic: combat, AI, managers, round resolution and encounters."""
