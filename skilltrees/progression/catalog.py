"""
Progression catalog - the load-time registry of skill tree templates.

Built once at startup and read-only afterwards. Templates are handed
out as deep clones so character progress never leaks into them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from skilltrees.progression.errors import ConfigurationError
from skilltrees.progression.tree import SkillTree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogEntry:
    """Trees (and starting points) given to an actor or a class."""
    tree_keys: tuple[str, ...] = ()
    initial_points: int = 0

    def __post_init__(self):
        if self.initial_points < 0:
            raise ConfigurationError("Initial points cannot be negative")
        object.__setattr__(self, 'tree_keys', tuple(self.tree_keys))


class ProgressionCatalog:
    """
    Skill tree templates keyed by tree key, plus which actors and classes
    receive them.

    Usage:
        catalog = ProgressionCatalog(
            trees=[berserk],
            actors={1: CatalogEntry(("berserk_tree",), initial_points=55)},
        )
    """

    def __init__(
        self,
        trees: Iterable[SkillTree],
        actors: Optional[Mapping[int, CatalogEntry]] = None,
        classes: Optional[Mapping[int, CatalogEntry]] = None,
        free: Iterable[str] = (),
    ):
        templates: dict[str, SkillTree] = {}
        for tree in trees:
            if tree.key in templates:
                raise ConfigurationError(f"Duplicate skill tree key '{tree.key}'")
            if tree.scope_class_id or tree.scope_character_id:
                raise ConfigurationError(
                    f"Template '{tree.key}' is scoped; scope is set when attached"
                )
            templates[tree.key] = tree.clone()

        self._trees = MappingProxyType(templates)
        self._actors = MappingProxyType(dict(actors or {}))
        self._classes = MappingProxyType(dict(classes or {}))
        self._free = tuple(free)

        for label, entries in (("actor", self._actors), ("class", self._classes)):
            for owner_id, entry in entries.items():
                if not isinstance(owner_id, int) or owner_id <= 0:
                    raise ConfigurationError(f"Invalid {label} id {owner_id!r}")
                self._check_keys(entry.tree_keys, f"{label} {owner_id}")
        self._check_keys(self._free, "free trees")
        self._check_class_trees()

        logger.info(
            f"Catalog ready: {len(self._trees)} trees, "
            f"{len(self._actors)} actors, {len(self._classes)} classes, "
            f"{len(self._free)} free trees."
        )

    def _check_keys(self, keys: Iterable[str], owner: str) -> None:
        for key in keys:
            if key not in self._trees:
                raise ConfigurationError(f"Unknown skill tree '{key}' for {owner}")

    def _check_class_trees(self) -> None:
        """
        A profile holds one tree per key, so a class tree cannot also be
        given to another class, to an actor or as a free tree.
        """
        owners: dict[str, str] = {}
        for class_id, entry in self._classes.items():
            for key in entry.tree_keys:
                if key in owners:
                    raise ConfigurationError(
                        f"Skill tree '{key}' is listed by {owners[key]} and class {class_id}"
                    )
                owners[key] = f"class {class_id}"

        others = [
            (f"actor {actor_id}", entry.tree_keys) for actor_id, entry in self._actors.items()
        ]
        others.append(("free trees", self._free))
        for owner, keys in others:
            for key in keys:
                if key in owners:
                    raise ConfigurationError(
                        f"Skill tree '{key}' is listed by {owners[key]} and {owner}"
                    )

    @property
    def trees(self) -> Mapping[str, SkillTree]:
        return self._trees

    @property
    def actors(self) -> Mapping[int, CatalogEntry]:
        return self._actors

    @property
    def classes(self) -> Mapping[int, CatalogEntry]:
        return self._classes

    @property
    def free_tree_keys(self) -> tuple[str, ...]:
        return self._free

    def has_tree(self, key: str) -> bool:
        return key in self._trees

    def actor_entry(self, actor_id: int) -> Optional[CatalogEntry]:
        return self._actors.get(actor_id)

    def class_entry(self, class_id: int) -> Optional[CatalogEntry]:
        return self._classes.get(class_id)

    def instantiate_tree(
        self,
        key: str,
        class_id: int = 0,
        character_id: int = 0,
    ) -> SkillTree:
        """Fresh per-character copy of a template."""
        template = self._trees.get(key)
        if template is None:
            raise ConfigurationError(f"Unknown skill tree '{key}'")
        return template.clone(scope_class_id=class_id, scope_character_id=character_id)

    def requirement_tags(self) -> set[str]:
        """Tags of every requirement used by any template."""
        return {
            req.type_tag
            for tree in self._trees.values()
            for node in tree.nodes()
            for reqs in node.requirements_per_level
            for req in reqs
        }
