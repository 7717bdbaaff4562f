"""
Progression configuration.

Read once at startup. Controls the point economy (single pool, one pool
per class, or an external currency), level-up grants, grid widths and
the texts shown by the host UI.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from skilltrees.progression.errors import ConfigurationError

if TYPE_CHECKING:
    from skilltrees.progression.tree import SkillTree


class PoolPolicy(Enum):
    """How the point ledger maps trees to balances."""
    SINGLE = auto()     # Every tree draws from pool 0
    SEPARATE = auto()   # Class pools, plus one pool per unscoped tree
    EXTERNAL = auto()   # Balances live in an external currency source


class ProgressionConfig:
    """Configuration for the skill tree system."""

    def __init__(
        self,
        points_per_level: int = 0,
        skills_per_row: int = 7,
        trees_per_row: int = 3,
        single_pool: bool = True,
        external_points: bool = False,
        currency_name: str = "points",
        free_points_text: str = "SP:",
        tree_points_text: str = "SP in %1:",
        requirements_text: str = "Requirements:",
        earn_points_text: str = "SP earned",
        no_trees_text: str = "No skill trees available.",
    ):
        if single_pool and external_points:
            raise ConfigurationError(
                "single_pool and external_points cannot both be enabled"
            )
        for name, value, minimum in (
            ("points_per_level", points_per_level, 0),
            ("skills_per_row", skills_per_row, 1),
            ("trees_per_row", trees_per_row, 1),
        ):
            if not isinstance(value, int) or isinstance(value, bool) or value < minimum:
                raise ConfigurationError(f"{name} must be an integer >= {minimum}, got {value!r}")

        self.points_per_level = points_per_level
        self.skills_per_row = skills_per_row
        self.trees_per_row = trees_per_row
        self.single_pool = single_pool
        self.external_points = external_points
        self.currency_name = currency_name

        # Texts
        self.free_points_text = free_points_text
        self.tree_points_text = tree_points_text
        self.requirements_text = requirements_text
        self.earn_points_text = earn_points_text
        self.no_trees_text = no_trees_text

    @property
    def policy(self) -> PoolPolicy:
        if self.external_points:
            return PoolPolicy.EXTERNAL
        if self.single_pool:
            return PoolPolicy.SINGLE
        return PoolPolicy.SEPARATE

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProgressionConfig:
        """Build a config from parsed JSON, rejecting unknown keys."""
        try:
            return cls(**data)
        except TypeError as e:
            raise ConfigurationError(f"Invalid progression config: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        return {
            'points_per_level': self.points_per_level,
            'skills_per_row': self.skills_per_row,
            'trees_per_row': self.trees_per_row,
            'single_pool': self.single_pool,
            'external_points': self.external_points,
            'currency_name': self.currency_name,
            'free_points_text': self.free_points_text,
            'tree_points_text': self.tree_points_text,
            'requirements_text': self.requirements_text,
            'earn_points_text': self.earn_points_text,
            'no_trees_text': self.no_trees_text,
        }

    def free_points_label(self) -> str:
        return f"{self.free_points_text} "

    def tree_points_label(self, tree: SkillTree) -> str:
        return f"{self.tree_points_text.replace('%1', tree.name)} "

    def level_up_message(self) -> str:
        """Message shown when a level-up grants points ('' when disabled)."""
        if self.points_per_level <= 0:
            return ""
        return f"{self.points_per_level} {self.earn_points_text}"
