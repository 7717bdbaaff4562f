"""
Skill tree - a named grid of skill nodes with its own spent-points counter.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterator, Optional

from skilltrees.progression.errors import ConfigurationError, SaveDataError
from skilltrees.progression.nodes import ConnectorNode, SkillNode, TreeSlot, slot_from_dict

if TYPE_CHECKING:
    from skilltrees.progression.interfaces import Actor


@dataclass
class SkillTree:
    """
    A tree of learnable skills laid out on a fixed-width grid.

    Attributes:
        name: Display name
        key: Stable symbol (also the pool key of unscoped trees)
        grid: Slots in row-major order (SkillNode, ConnectorNode or None)
        columns: Slots per row
        scope_class_id: Class the tree belongs to (0 = none)
        scope_character_id: Character the tree belongs to (0 = none)
        visible: Hidden trees belong to a class the character left
        spent_points: Points spent in this tree
        initial_points: Granted to the tree's pool when first attached
    """
    name: str
    key: str
    grid: list[TreeSlot] = field(default_factory=list)
    columns: int = 7
    scope_class_id: int = 0
    scope_character_id: int = 0
    visible: bool = True
    spent_points: int = 0
    initial_points: int = 0

    def __post_init__(self):
        if not self.key:
            raise ConfigurationError(f"Skill tree '{self.name}' needs a key")
        if self.key.isdigit():
            raise ConfigurationError(
                f"Skill tree key '{self.key}' is numeric and would collide with class pools"
            )
        if self.columns < 1:
            raise ConfigurationError(f"Skill tree '{self.key}' needs at least one column")
        if self.scope_class_id and self.scope_character_id:
            raise ConfigurationError(
                f"Skill tree '{self.key}' cannot belong to a class and a character"
            )
        if self.spent_points < 0 or self.initial_points < 0:
            raise ConfigurationError(f"Skill tree '{self.key}' has negative points")

        seen: set[str] = set()
        for slot in self.grid:
            if slot is not None and not isinstance(slot, (SkillNode, ConnectorNode)):
                raise ConfigurationError(
                    f"Skill tree '{self.key}' grid holds {type(slot).__name__}"
                )
            if isinstance(slot, SkillNode):
                if slot.key in seen:
                    raise ConfigurationError(
                        f"Skill '{slot.key}' appears twice in tree '{self.key}'"
                    )
                seen.add(slot.key)

    @property
    def rows(self) -> int:
        return -(-len(self.grid) // self.columns)

    def slot(self, row: int, column: int) -> TreeSlot:
        """Slot at a grid position (None outside the grid)."""
        if not 0 <= column < self.columns or row < 0:
            return None
        index = row * self.columns + column
        if index >= len(self.grid):
            return None
        return self.grid[index]

    def nodes(self) -> Iterator[SkillNode]:
        for slot in self.grid:
            if isinstance(slot, SkillNode):
                yield slot

    def get_node(self, key: str) -> Optional[SkillNode]:
        for node in self.nodes():
            if node.key == key:
                return node
        return None

    def is_class_tree(self, class_id: int) -> bool:
        return class_id > 0 and self.scope_class_id == class_id

    def learned_count(self) -> int:
        return sum(1 for node in self.nodes() if node.current_level > 0)

    def forget_all(self, actor: Actor) -> None:
        for node in self.nodes():
            node.forget(actor)

    def relearn_all(self, actor: Actor) -> None:
        for node in self.nodes():
            node.relearn(actor)

    def refund_value(self) -> int:
        return sum(node.refund_value() for node in self.nodes())

    def reset(self, actor: Actor, revoke: bool = True) -> int:
        """Reset every node to level 0 and clear spent points. Returns the refund."""
        refund = sum(node.reset(actor, revoke=revoke) for node in self.nodes())
        self.spent_points = 0
        return refund

    def clone(self, scope_class_id: int = 0, scope_character_id: int = 0) -> SkillTree:
        """Deep copy for one character, requirements and effects included."""
        tree = copy.deepcopy(self)
        tree.scope_class_id = scope_class_id
        tree.scope_character_id = scope_character_id
        if scope_class_id and scope_character_id:
            raise ConfigurationError(
                f"Skill tree '{self.key}' cannot belong to a class and a character"
            )
        return tree

    # Persistence

    def to_dict(self) -> dict[str, Any]:
        return {
            'name': self.name,
            'key': self.key,
            'scopeClassId': self.scope_class_id,
            'scopeCharacterId': self.scope_character_id,
            'points': self.spent_points,
            'visible': self.visible,
            'columns': self.columns,
            'nodes': [slot.to_dict() if slot is not None else None for slot in self.grid],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SkillTree:
        try:
            grid = [slot_from_dict(slot) for slot in data['nodes']]
            return cls(
                name=data['name'],
                key=data['key'],
                grid=grid,
                columns=data.get('columns', 7),
                scope_class_id=data.get('scopeClassId', 0),
                scope_character_id=data.get('scopeCharacterId', 0),
                visible=data.get('visible', True),
                spent_points=data.get('points', 0),
            )
        except KeyError as e:
            raise SaveDataError(f"Skill tree data missing field {e}") from e
        except ConfigurationError as e:
            raise SaveDataError(str(e)) from e
