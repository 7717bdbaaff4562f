"""
Skill tree manager - the entry point the host game calls.

Owns the catalog, configuration and host collaborators, and runs every
progression operation against a character's profile.
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Optional

from skilltrees.progression.config import PoolPolicy, ProgressionConfig
from skilltrees.progression.context import ProgressionContext
from skilltrees.progression.errors import ConfigurationError, ProtocolError
from skilltrees.progression.interfaces import EventInterpreter
from skilltrees.progression.ledger import PointLedger, PoolKey
from skilltrees.progression.nodes import NodeState, SkillNode
from skilltrees.progression.profile import ProgressionProfile
from skilltrees.progression.requirements import ExternalCurrencyCost
from skilltrees.progression.tree import SkillTree

if TYPE_CHECKING:
    from skilltrees.core.events import EventBus
    from skilltrees.progression.catalog import ProgressionCatalog
    from skilltrees.progression.interfaces import (
        Actor,
        Party,
        GlobalState,
        ExternalCurrencySource,
    )

logger = logging.getLogger(__name__)


class ProgressionEvent(Enum):
    """Skill tree events."""
    SKILL_LEARNED = auto()
    SKILL_FORCED = auto()
    TREE_ATTACHED = auto()
    TREE_DETACHED = auto()
    TREE_RESET = auto()
    CLASS_CHANGED = auto()
    POINTS_GAINED = auto()
    SCRIPTED_EVENT = auto()


class EventBusInterpreter(EventInterpreter):
    """
    Publishes SCRIPTED_EVENT on a bus instead of running events directly.

    Handlers run synchronously, but anything they defer is not awaited.
    """

    def __init__(self, event_bus: EventBus):
        self.event_bus = event_bus

    def run_event(self, event_id: int) -> None:
        self.event_bus.publish(ProgressionEvent.SCRIPTED_EVENT, event_id=event_id)


class SkillTreeManager:
    """
    Manages skill tree progression for characters.

    Usage:
        manager = SkillTreeManager(catalog, config, party=party, game_state=state)
        manager.setup_character(hero)
        if manager.can_learn(hero, "berserk_tree", "guard"):
            manager.learn(hero, "berserk_tree", "guard")
    """

    def __init__(
        self,
        catalog: ProgressionCatalog,
        config: Optional[ProgressionConfig] = None,
        party: Optional[Party] = None,
        game_state: Optional[GlobalState] = None,
        interpreter: Optional[EventInterpreter] = None,
        currency: Optional[ExternalCurrencySource] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self.catalog = catalog
        self.config = config or ProgressionConfig()
        self.party = party
        self.game_state = game_state
        self.currency = currency
        self.event_bus = event_bus

        if interpreter is None and event_bus is not None:
            interpreter = EventBusInterpreter(event_bus)
        self.interpreter = interpreter

        if self.config.policy is PoolPolicy.EXTERNAL and currency is None:
            raise ConfigurationError("external_points is enabled but no currency source was given")
        if (
            ExternalCurrencyCost.type_tag in catalog.requirement_tags()
            and self.config.policy is not PoolPolicy.EXTERNAL
        ):
            raise ConfigurationError(
                "Catalog uses external currency costs but external_points is disabled"
            )
        if self.config.policy is PoolPolicy.SEPARATE:
            for actor_id, entry in catalog.actors.items():
                if entry.initial_points > 0 and not entry.tree_keys:
                    raise ConfigurationError(
                        f"Actor {actor_id} starts with {entry.initial_points} points "
                        f"but has no skill tree to spend them in"
                    )

    def _publish(self, event_type: ProgressionEvent, **data: Any) -> None:
        if self.event_bus:
            self.event_bus.publish(event_type, **data)

    # Lookup helpers

    def create_ledger(self) -> PointLedger:
        return PointLedger(self.config.policy, currency=self.currency)

    def profile(self, actor: Actor) -> ProgressionProfile:
        profile = getattr(actor, 'progression', None)
        if profile is None:
            raise ProtocolError(f"Actor {actor.actor_id} has no skill trees set up")
        return profile

    def tree(self, actor: Actor, tree_key: str) -> SkillTree:
        tree = self.profile(actor).get_tree(tree_key)
        if tree is None:
            raise ProtocolError(f"Actor {actor.actor_id} has no skill tree '{tree_key}'")
        return tree

    def node(self, actor: Actor, tree_key: str, node_key: str) -> tuple[SkillTree, SkillNode]:
        tree = self.tree(actor, tree_key)
        node = tree.get_node(node_key)
        if node is None:
            raise ProtocolError(f"Skill '{node_key}' not found in tree '{tree_key}'")
        return tree, node

    def context_for(self, actor: Actor) -> ProgressionContext:
        return ProgressionContext(
            ledger=self.profile(actor).ledger,
            party=self.party,
            game_state=self.game_state,
            interpreter=self.interpreter,
            currency=self.currency,
        )

    def pool_key(self, actor: Actor, key: Optional[PoolKey] = None) -> PoolKey:
        """
        Pool used by point grants. Defaults to pool 0 under a single pool
        and to the actor's class pool otherwise.
        """
        if key is not None or self.config.policy is PoolPolicy.SINGLE:
            return key if key is not None else PointLedger.DEFAULT_POOL
        if actor.class_id <= 0:
            raise ProtocolError(
                f"Actor {actor.actor_id} has no class to resolve a point pool from"
            )
        return actor.class_id

    # Lifecycle

    def setup_character(self, actor: Actor) -> ProgressionProfile:
        """
        Create the character's profile, attach its own trees and then the
        trees of its current class.
        """
        if getattr(actor, 'progression', None) is not None:
            raise ProtocolError(f"Actor {actor.actor_id} already has skill trees")

        profile = ProgressionProfile(self.create_ledger())
        actor.progression = profile

        entry = self.catalog.actor_entry(actor.actor_id)
        if entry:
            own_trees = []
            for key in entry.tree_keys:
                own_trees.append(
                    profile.instantiate(actor, self.catalog, key, character_id=actor.actor_id)
                )
                self._publish(ProgressionEvent.TREE_ATTACHED, actor_id=actor.actor_id, tree_key=key)

            # Separate pools: the grant goes to the pool of the first own tree
            pool = PointLedger.DEFAULT_POOL
            if own_trees:
                pool = profile.ledger.resolve_key(actor, own_trees[0])
            profile.grant_initial_points(pool, entry.initial_points)

        if actor.class_id > 0:
            for tree in profile.switch_class(actor, 0, actor.class_id, self.catalog):
                self._publish(
                    ProgressionEvent.TREE_ATTACHED, actor_id=actor.actor_id, tree_key=tree.key
                )

        logger.info(
            f"Actor {actor.actor_id} skill trees set up: "
            f"{[tree.key for tree in profile.trees]}"
        )
        return profile

    def change_class(self, actor: Actor, new_class_id: int) -> list[SkillTree]:
        """Switch the actor's class and swap the visible class trees."""
        old_class_id = actor.class_id
        trees = self.profile(actor).switch_class(actor, old_class_id, new_class_id, self.catalog)
        actor.class_id = new_class_id
        self._publish(
            ProgressionEvent.CLASS_CHANGED,
            actor_id=actor.actor_id,
            old_class_id=old_class_id,
            new_class_id=new_class_id,
        )
        return trees

    def add_tree(self, actor: Actor, tree_key: str) -> SkillTree:
        """Attach a free-standing catalog tree to the actor."""
        tree = self.profile(actor).instantiate(actor, self.catalog, tree_key)
        self._publish(ProgressionEvent.TREE_ATTACHED, actor_id=actor.actor_id, tree_key=tree_key)
        return tree

    def remove_tree(self, actor: Actor, tree_key: str) -> SkillTree:
        """Detach a tree, revoking its abilities. Progress goes with it."""
        tree = self.profile(actor).detach_tree(actor, tree_key)
        self._publish(ProgressionEvent.TREE_DETACHED, actor_id=actor.actor_id, tree_key=tree_key)
        return tree

    # Points

    def points(self, actor: Actor, key: Optional[PoolKey] = None) -> int:
        return self.profile(actor).ledger.get(self.pool_key(actor, key))

    def tree_points(self, actor: Actor, tree_key: str) -> int:
        """Balance of the pool a tree draws from."""
        return self.profile(actor).points(actor, self.tree(actor, tree_key))

    def add_points(self, actor: Actor, points: int, key: Optional[PoolKey] = None) -> None:
        self.profile(actor).ledger.add(self.pool_key(actor, key), points)
        self._publish(ProgressionEvent.POINTS_GAINED, actor_id=actor.actor_id, points=points)

    def on_level_up(self, actor: Actor) -> int:
        """Grant the per-level points. Returns the amount granted."""
        points = self.config.points_per_level
        if points <= 0 or getattr(actor, 'progression', None) is None:
            return 0
        self.add_points(actor, points)
        return points

    # Learning

    def node_state(self, actor: Actor, tree_key: str, node_key: str) -> NodeState:
        tree, node = self.node(actor, tree_key, node_key)
        return node.state(actor, tree, self.context_for(actor))

    def can_learn(self, actor: Actor, tree_key: str, node_key: str) -> bool:
        tree, node = self.node(actor, tree_key, node_key)
        return node.is_available_to_learn(actor, tree, self.context_for(actor))

    def requirement_status(self, actor: Actor, tree_key: str, node_key: str) -> list[tuple[str, bool]]:
        """(text, met) pairs for the next level, for colouring the UI list."""
        tree, node = self.node(actor, tree_key, node_key)
        reqs = node.requirements_for_next_level() or []
        ctx = self.context_for(actor)
        return [(req.describe(), req.meets(actor, tree, ctx)) for req in reqs]

    def learn(self, actor: Actor, tree_key: str, node_key: str) -> bool:
        """
        Learn the next level of a skill if its requirements are met.

        Returns:
            True if a level was learned
        """
        tree, node = self.node(actor, tree_key, node_key)
        ctx = self.context_for(actor)
        if not node.is_available_to_learn(actor, tree, ctx):
            return False

        node.learn(actor, tree, ctx)
        self._publish(
            ProgressionEvent.SKILL_LEARNED,
            actor_id=actor.actor_id,
            tree_key=tree_key,
            node_key=node_key,
            level=node.current_level,
        )
        return True

    def force_learn(self, actor: Actor, tree_key: str, node_key: str, levels: int = 1) -> int:
        """Raise a skill without requirements. Returns levels gained."""
        _, node = self.node(actor, tree_key, node_key)
        gained = node.force_level_up(actor, levels)
        if gained:
            self._publish(
                ProgressionEvent.SKILL_FORCED,
                actor_id=actor.actor_id,
                tree_key=tree_key,
                node_key=node_key,
                level=node.current_level,
            )
        return gained

    def unlock_tree(self, actor: Actor, tree_key: str) -> int:
        return self.profile(actor).unlock_tree(actor, tree_key)

    # Resets

    def _reset_done(self, actor: Actor, scope: str, refund: int) -> int:
        self._publish(ProgressionEvent.TREE_RESET, actor_id=actor.actor_id, scope=scope, refund=refund)
        logger.debug(f"Actor {actor.actor_id} reset {scope}: refunded {refund}")
        return refund

    def reset_tree(self, actor: Actor, tree_key: str) -> int:
        refund = self.profile(actor).reset_tree(actor, tree_key)
        return self._reset_done(actor, tree_key, refund)

    def reset_node(self, actor: Actor, tree_key: str, node_key: str) -> int:
        refund = self.profile(actor).reset_node(actor, tree_key, node_key)
        return self._reset_done(actor, f"{tree_key}/{node_key}", refund)

    def reset_class_trees(self, actor: Actor, class_id: Optional[int] = None) -> int:
        class_id = actor.class_id if class_id is None else class_id
        refund = self.profile(actor).reset_class_trees(actor, class_id)
        return self._reset_done(actor, f"class {class_id}", refund)

    def reset_character_trees(self, actor: Actor) -> int:
        refund = self.profile(actor).reset_character_trees(actor)
        return self._reset_done(actor, f"actor {actor.actor_id}", refund)

    def reset_all(self, actor: Actor) -> int:
        refund = self.profile(actor).reset_all(actor)
        return self._reset_done(actor, "all", refund)

    # Persistence

    def get_save_data(self, actor: Actor) -> dict[str, Any]:
        return self.profile(actor).get_save_data()

    def load_save_data(self, actor: Actor, data: dict[str, Any]) -> ProgressionProfile:
        """
        Restore a profile onto the actor.

        Trees and skills missing from the current catalog are restored
        from the save as-is and reported in the log.
        """
        profile = ProgressionProfile.from_save_data(data, self.create_ledger())
        for tree in profile.trees + profile.suspended_trees():
            template = self.catalog.trees.get(tree.key)
            if template is None:
                logger.warning(f"Saved skill tree '{tree.key}' is not in the catalog")
                continue
            for node in tree.nodes():
                if template.get_node(node.key) is None:
                    logger.warning(
                        f"Saved skill '{node.key}' is not in catalog tree '{tree.key}'"
                    )

        actor.progression = profile
        return profile
