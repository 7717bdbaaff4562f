"""
Skill trees - a skill progression rules engine.

Provides:
- Core (event bus, tag registry)
- Resources (JSON catalog loading and validation)
- Components (in-memory host data: character, party, game state)
- Progression (requirements, effects, nodes, trees, point ledger,
  per-character profiles, catalog and the manager facade)
"""

__version__ = "1.2.0"
