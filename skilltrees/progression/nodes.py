"""
Skill tree nodes.

A grid slot holds a SkillNode, a ConnectorNode (arrow drawn between
skills) or None (empty square).
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Optional, Union

from skilltrees.progression.effects import LearnEffect, effect_from_dict
from skilltrees.progression.errors import ConfigurationError, ProtocolError, SaveDataError
from skilltrees.progression.requirements import Requirement, requirement_from_dict

if TYPE_CHECKING:
    from skilltrees.progression.context import ProgressionContext
    from skilltrees.progression.interfaces import Actor
    from skilltrees.progression.tree import SkillTree

logger = logging.getLogger(__name__)


class NodeState(Enum):
    """Progress state of a skill node for one character."""
    LOCKED = auto()     # Not learned, next level requirements unmet
    AVAILABLE = auto()  # Not learned, can be learned now
    PARTIAL = auto()    # Learned below max level
    MAXED = auto()      # Learned at max level


@dataclass
class ConnectorNode:
    """Decorative arrow between skills. Always enabled, never learnable."""
    icon_ref: int

    node_type = "connector"

    def icon_reference(self) -> int:
        return self.icon_ref

    def is_enabled(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> bool:
        return True

    def is_available_to_learn(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {'type': self.node_type, 'iconRef': self.icon_ref}


@dataclass
class SkillNode:
    """
    One learnable skill with 1..N levels.

    Attributes:
        key: Stable symbol used by save data and script calls
        ability_levels: Ability granted at each level (length = max level)
        requirements_per_level: Index i gates the step from level i to i+1
        effects_per_level: Index i fires after reaching level i+1
        current_level: 0 = not learned
        icon_ref: Icon override (defaults to the first ability id)
    """
    key: str
    ability_levels: list[int]
    requirements_per_level: list[list[Requirement]]
    effects_per_level: list[list[LearnEffect]] = field(default_factory=list)
    current_level: int = 0
    icon_ref: Optional[int] = None
    _learning: bool = field(default=False, init=False, repr=False, compare=False)

    node_type = "node"

    def __post_init__(self):
        if not self.key:
            raise ConfigurationError("Skill node needs a key")
        if not self.ability_levels:
            raise ConfigurationError(f"Skill node '{self.key}' has no ability levels")
        for ability_id in self.ability_levels:
            if not isinstance(ability_id, int) or isinstance(ability_id, bool):
                raise ConfigurationError(
                    f"Skill node '{self.key}' has non-integer ability id {ability_id!r}"
                )

        levels = len(self.ability_levels)
        if not self.effects_per_level:
            self.effects_per_level = [[] for _ in range(levels)]

        for name, per_level, kind in (
            ("requirements", self.requirements_per_level, Requirement),
            ("effects", self.effects_per_level, LearnEffect),
        ):
            if len(per_level) != levels:
                raise ConfigurationError(
                    f"Skill node '{self.key}' has {len(per_level)} {name} sets "
                    f"for {levels} levels"
                )
            for entries in per_level:
                for entry in entries:
                    if not isinstance(entry, kind):
                        raise ConfigurationError(
                            f"Skill node '{self.key}' {name} contain "
                            f"{type(entry).__name__}, expected {kind.__name__}"
                        )

        if not 0 <= self.current_level <= levels:
            raise ConfigurationError(
                f"Skill node '{self.key}' level {self.current_level} out of range 0..{levels}"
            )

    @property
    def max_level(self) -> int:
        return len(self.ability_levels)

    @property
    def is_maxed(self) -> bool:
        return self.current_level >= self.max_level

    @property
    def held_ability(self) -> Optional[int]:
        """Ability granted by the current level, None when unlearned."""
        if self.current_level == 0:
            return None
        return self.ability_levels[self.current_level - 1]

    def icon_reference(self) -> int:
        return self.icon_ref if self.icon_ref is not None else self.ability_levels[0]

    def next_ability(self) -> int:
        """Ability shown in the description: next level, or the last one at max."""
        if self.is_maxed:
            return self.ability_levels[-1]
        return self.ability_levels[self.current_level]

    def requirements_for_next_level(self) -> Optional[list[Requirement]]:
        if self.is_maxed:
            return None
        return self.requirements_per_level[self.current_level]

    def effects_for_next_level(self) -> Optional[list[LearnEffect]]:
        if self.is_maxed:
            return None
        return self.effects_per_level[self.current_level]

    # Checks

    def is_available_to_learn(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> bool:
        """True when every requirement of the next level is met."""
        reqs = self.requirements_for_next_level()
        if reqs is None:
            return False
        results = [req.meets(actor, tree, ctx) for req in reqs]
        return all(results)

    def is_enabled(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> bool:
        return self.current_level > 0 or self.is_available_to_learn(actor, tree, ctx)

    def state(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> NodeState:
        if self.is_maxed:
            return NodeState.MAXED
        if self.current_level > 0:
            return NodeState.PARTIAL
        if self.is_available_to_learn(actor, tree, ctx):
            return NodeState.AVAILABLE
        return NodeState.LOCKED

    # Mutations

    def learn(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> None:
        """
        Learn the next level.

        Requirements are consumed but not re-checked; callers check
        is_available_to_learn() first. Consumption order matters: a point
        cost updates the tree's spent points before later requirements run.
        """
        if self.is_maxed:
            raise ProtocolError(f"Skill '{self.key}' is already at max level")
        if self._learning:
            raise ProtocolError(f"Skill '{self.key}' learned again from its own effect")

        self._learning = True
        try:
            for req in self.requirements_per_level[self.current_level]:
                req.use(actor, tree, ctx)

            self._advance(actor, self.current_level + 1)

            for effect in self.effects_per_level[self.current_level - 1]:
                effect.apply(actor, tree, ctx)
        finally:
            self._learning = False

    def force_level_up(self, actor: Actor, n: int = 1) -> int:
        """
        Raise the level by up to ``n`` without checking or consuming
        requirements. Returns the number of levels gained.
        """
        target = min(self.max_level, self.current_level + n)
        gained = target - self.current_level
        if gained > 0:
            self._advance(actor, target)
        return gained

    def _advance(self, actor: Actor, level: int) -> None:
        if self.current_level > 0:
            actor.forget_ability(self.ability_levels[self.current_level - 1])
        self.current_level = level
        actor.learn_ability(self.ability_levels[level - 1])
        actor.refresh()
        logger.debug(f"Actor {actor.actor_id} skill '{self.key}' -> level {level}")

    def forget(self, actor: Actor) -> None:
        """Revoke the held ability, keeping the level."""
        if self.current_level > 0:
            actor.forget_ability(self.held_ability)
            actor.refresh()

    def relearn(self, actor: Actor) -> None:
        """Grant the held ability again, keeping the level."""
        if self.current_level > 0:
            actor.learn_ability(self.held_ability)
            actor.refresh()

    def refund_value(self) -> int:
        """Points spent through point costs on the levels reached so far."""
        return sum(
            req.refund_points()
            for reqs in self.requirements_per_level[:self.current_level]
            for req in reqs
        )

    def reset(self, actor: Actor, revoke: bool = True) -> int:
        """
        Return to level 0.

        Args:
            revoke: Revoke the held ability (False for hidden trees whose
                    abilities were already revoked)

        Returns:
            Points to refund
        """
        refund = self.refund_value()
        if revoke:
            self.forget(actor)
        self.current_level = 0
        return refund

    def clone(self) -> SkillNode:
        return copy.deepcopy(self)

    # Persistence

    def to_dict(self) -> dict[str, Any]:
        return {
            'key': self.key,
            'type': self.node_type,
            'abilityLevels': list(self.ability_levels),
            'currentLevel': self.current_level,
            'iconRef': self.icon_ref,
            'requirementsPerLevel': [
                [req.to_dict() for req in reqs] for reqs in self.requirements_per_level
            ],
            'effectsPerLevel': [
                [effect.to_dict() for effect in effects] for effects in self.effects_per_level
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SkillNode:
        try:
            return cls(
                key=data['key'],
                ability_levels=list(data['abilityLevels']),
                requirements_per_level=[
                    [requirement_from_dict(req) for req in reqs]
                    for reqs in data['requirementsPerLevel']
                ],
                effects_per_level=[
                    [effect_from_dict(effect) for effect in effects]
                    for effects in data.get('effectsPerLevel', [])
                ],
                current_level=data.get('currentLevel', 0),
                icon_ref=data.get('iconRef'),
            )
        except KeyError as e:
            raise SaveDataError(f"Skill node data missing field {e}") from e
        except ConfigurationError as e:
            raise SaveDataError(str(e)) from e


TreeSlot = Union[SkillNode, ConnectorNode, None]


def slot_from_dict(data: Optional[dict[str, Any]]) -> TreeSlot:
    """Rebuild a grid slot, dispatching on its ``type`` tag."""
    if data is None:
        return None
    if not isinstance(data, dict):
        raise SaveDataError(f"Invalid grid slot {data!r}")

    node_type = data.get('type')
    if node_type == SkillNode.node_type:
        return SkillNode.from_dict(data)
    if node_type == ConnectorNode.node_type:
        if 'iconRef' not in data:
            raise SaveDataError("Connector slot missing iconRef")
        return ConnectorNode(icon_ref=data['iconRef'])
    raise SaveDataError(f"Unknown grid slot type {node_type!r}")
