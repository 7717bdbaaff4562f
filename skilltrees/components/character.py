"""
Character component - a minimal host actor for skill trees.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import Field

from skilltrees.components.base import Component
from skilltrees.progression.interfaces import Actor


class Character(Component):
    """
    Character with abilities, stats and a progression profile.

    Attributes:
        actor_id: Stable character id
        name: Display name
        class_id: Current class (0 = none)
        level: Character level
        abilities: Ability ids in the order they were granted
        stats: Computed stat values by name
        progression: Skill tree profile (set by SkillTreeManager)
        refresh_count: Times derived state was recomputed
    """
    actor_id: int
    name: str = ""
    class_id: int = 0
    level: int = 1
    abilities: list[int] = Field(default_factory=list)
    stats: dict[str, int] = Field(default_factory=dict)
    progression: Optional[Any] = None
    refresh_count: int = 0

    def has_ability(self, ability_id: int) -> bool:
        return ability_id in self.abilities

    def learn_ability(self, ability_id: int) -> None:
        if ability_id not in self.abilities:
            self.abilities.append(ability_id)

    def forget_ability(self, ability_id: int) -> None:
        if ability_id in self.abilities:
            self.abilities.remove(ability_id)

    def stat(self, stat: str) -> int:
        return self.stats.get(stat, 0)

    def refresh(self) -> None:
        self.refresh_count += 1


Actor.register(Character)
