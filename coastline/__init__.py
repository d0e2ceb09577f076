"""
Coastline - City-Resilience Game Engine

A deterministic, turn-based engine for a coastal city-building game on a
6x6 grid. The player balances money, wellbeing, environment and
resilience while climate events driven by a declarative rule catalog
(and, optionally, live climate data) threaten the coast. Provides:
- State management and player actions
- Turn simulation with per-rule failure containment
- Versioned saves with backup, import/export and session statistics
- A REST API and a command-line interface
"""

__version__ = "0.1.0"
