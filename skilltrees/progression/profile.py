"""
Progression profile - one character's skill trees and point ledger.

The profile lives on the character record (``actor.progression``). Trees
belonging to a class the character has left are kept in suspended
storage with their levels intact and their abilities revoked.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Any, Iterable, Optional

from skilltrees.progression.config import PoolPolicy
from skilltrees.progression.errors import ProtocolError, SaveDataError
from skilltrees.progression.ledger import PointLedger, PoolKey
from skilltrees.progression.tree import SkillTree

if TYPE_CHECKING:
    from skilltrees.progression.catalog import ProgressionCatalog
    from skilltrees.progression.interfaces import Actor

logger = logging.getLogger(__name__)


class ProgressionProfile:
    """
    Per-character aggregate of attached trees, suspended trees and the
    point ledger.
    """

    VERSION = "1.0"

    def __init__(self, ledger: Optional[PointLedger] = None):
        self.ledger = ledger or PointLedger()
        self._trees: dict[str, SkillTree] = {}
        self._suspended: dict[int, list[SkillTree]] = {}

    # Queries

    @property
    def trees(self) -> list[SkillTree]:
        """Attached trees in attachment order."""
        return list(self._trees.values())

    def visible_trees(self) -> list[SkillTree]:
        return [tree for tree in self._trees.values() if tree.visible]

    def suspended_trees(self, class_id: Optional[int] = None) -> list[SkillTree]:
        if class_id is not None:
            return list(self._suspended.get(class_id, []))
        return [tree for trees in self._suspended.values() for tree in trees]

    def get_tree(self, key: str) -> Optional[SkillTree]:
        return self._trees.get(key)

    def has_tree(self, key: str) -> bool:
        """True when the tree is attached or suspended."""
        return key in self._trees or any(t.key == key for t in self.suspended_trees())

    def class_trees(self, class_id: int) -> list[SkillTree]:
        """Attached and suspended trees of a class."""
        attached = [t for t in self._trees.values() if t.is_class_tree(class_id)]
        return attached + self.suspended_trees(class_id)

    def points(self, actor: Actor, tree: SkillTree) -> int:
        """Balance of the pool a tree draws from."""
        return self.ledger.get(self.ledger.resolve_key(actor, tree))

    # Attachment

    def attach_tree(self, tree: SkillTree) -> None:
        if self.has_tree(tree.key):
            raise ProtocolError(f"Skill tree '{tree.key}' is already attached")
        self._trees[tree.key] = tree
        logger.debug(f"Attached skill tree '{tree.key}'")

    def detach_tree(self, actor: Actor, key: str) -> SkillTree:
        """Remove an attached tree, revoking its abilities."""
        tree = self._trees.pop(key, None)
        if tree is None:
            raise ProtocolError(f"Skill tree '{key}' is not attached")
        tree.forget_all(actor)
        logger.debug(f"Detached skill tree '{key}'")
        return tree

    def grant_initial_points(self, key: PoolKey, points: int) -> None:
        """
        Credit a catalog starting grant. External currency sources keep
        their own starting balances, so grants are skipped for them.
        """
        if points <= 0:
            return
        if self.ledger.policy is PoolPolicy.EXTERNAL:
            logger.debug(f"Skipping initial grant of {points} for external pool {key!r}")
            return
        self.ledger.add(key, points)

    def instantiate(
        self,
        actor: Actor,
        catalog: ProgressionCatalog,
        key: str,
        class_id: int = 0,
        character_id: int = 0,
    ) -> SkillTree:
        """Clone a catalog template into this profile and credit its grant."""
        tree = catalog.instantiate_tree(key, class_id=class_id, character_id=character_id)
        self.attach_tree(tree)
        self.grant_initial_points(self.ledger.resolve_key(actor, tree), tree.initial_points)
        return tree

    def switch_class(
        self,
        actor: Actor,
        old_class_id: int,
        new_class_id: int,
        catalog: ProgressionCatalog,
    ) -> list[SkillTree]:
        """
        Hide the old class's trees and show the new class's trees.

        Levels and spent points of hidden trees are kept; only their
        abilities are revoked. The new class's trees are created from the
        catalog the first time only.

        Returns:
            Trees of the new class, now visible
        """
        if old_class_id > 0 and old_class_id != new_class_id:
            leaving = [t for t in self._trees.values() if t.is_class_tree(old_class_id)]
            for tree in leaving:
                tree.forget_all(actor)
                tree.visible = False
                del self._trees[tree.key]
            if leaving:
                self._suspended.setdefault(old_class_id, []).extend(leaving)

        if new_class_id <= 0:
            return []

        if not self.class_trees(new_class_id):
            entry = catalog.class_entry(new_class_id)
            if entry and entry.tree_keys:
                for key in entry.tree_keys:
                    self.instantiate(actor, catalog, key, class_id=new_class_id)
                self.grant_initial_points(new_class_id, entry.initial_points)

        for tree in self._suspended.pop(new_class_id, []):
            self._trees[tree.key] = tree

        entering = [t for t in self._trees.values() if t.is_class_tree(new_class_id)]
        for tree in entering:
            tree.relearn_all(actor)
            tree.visible = True

        logger.info(
            f"Actor {actor.actor_id} class {old_class_id} -> {new_class_id}: "
            f"{len(entering)} trees active"
        )
        return entering

    # Learning shortcuts

    def unlock_tree(self, actor: Actor, key: str) -> int:
        """Raise every node of a tree to max level for free. Returns levels gained."""
        tree = self._require(key)
        return sum(node.force_level_up(actor, node.max_level) for node in tree.nodes())

    # Resets

    def _require(self, key: str) -> SkillTree:
        tree = self._trees.get(key)
        if tree is None:
            raise ProtocolError(f"Skill tree '{key}' is not attached")
        return tree

    def reset_tree(self, actor: Actor, key: str) -> int:
        """Reset one attached tree and refund its point spend. Returns the refund."""
        return self._reset_trees(actor, [self._require(key)])

    def reset_node(self, actor: Actor, tree_key: str, node_key: str) -> int:
        """Reset a single node, refunding it and reducing the tree's spent points."""
        tree = self._require(tree_key)
        node = tree.get_node(node_key)
        if node is None:
            raise ProtocolError(f"Skill '{node_key}' not found in tree '{tree_key}'")

        refund = node.reset(actor, revoke=tree.visible)
        tree.spent_points = max(0, tree.spent_points - refund)
        if refund:
            self.ledger.add(self.ledger.resolve_key(actor, tree), refund)
        return refund

    def reset_class_trees(self, actor: Actor, class_id: int) -> int:
        return self._reset_trees(actor, self.class_trees(class_id))

    def reset_character_trees(self, actor: Actor) -> int:
        trees = [
            t for t in self._trees.values()
            if t.scope_character_id and t.scope_character_id == actor.actor_id
        ]
        return self._reset_trees(actor, trees)

    def reset_all(self, actor: Actor) -> int:
        return self._reset_trees(actor, self.trees + self.suspended_trees())

    def _reset_trees(self, actor: Actor, trees: Iterable[SkillTree]) -> int:
        refunds: dict[PoolKey, int] = defaultdict(int)
        for tree in trees:
            refund = tree.reset(actor, revoke=tree.visible)
            if refund:
                refunds[self.ledger.resolve_key(actor, tree)] += refund

        for key, refund in refunds.items():
            self.ledger.add(key, refund)
        return sum(refunds.values())

    # Persistence

    def get_save_data(self) -> dict[str, Any]:
        return {
            'version': self.VERSION,
            'ledger': self.ledger.get_save_data(),
            'trees': [tree.to_dict() for tree in self._trees.values()],
            'suspended': {
                str(class_id): [tree.to_dict() for tree in trees]
                for class_id, trees in self._suspended.items()
            },
        }

    @classmethod
    def from_save_data(
        cls,
        data: dict[str, Any],
        ledger: Optional[PointLedger] = None,
    ) -> ProgressionProfile:
        """Rebuild a profile. Trees are reconstructed from the save itself."""
        if not isinstance(data, dict):
            raise SaveDataError(f"Progression save data must be an object, got {data!r}")

        profile = cls(ledger)
        profile.ledger.load_save_data(data.get('ledger', {}))

        for tree_data in data.get('trees', []):
            tree = SkillTree.from_dict(tree_data)
            if profile.has_tree(tree.key):
                raise SaveDataError(f"Skill tree '{tree.key}' saved twice")
            profile.attach_tree(tree)

        for raw_class_id, trees in data.get('suspended', {}).items():
            try:
                class_id = int(raw_class_id)
            except ValueError as e:
                raise SaveDataError(f"Invalid suspended class id {raw_class_id!r}") from e
            for tree_data in trees:
                tree = SkillTree.from_dict(tree_data)
                if profile.has_tree(tree.key):
                    raise SaveDataError(f"Skill tree '{tree.key}' saved twice")
                tree.visible = False
                profile._suspended.setdefault(class_id, []).append(tree)

        return profile
