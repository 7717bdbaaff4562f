"""
Learn effects - side effects fired after a skill level is learned.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from skilltrees.core.registry import TypeRegistry
from skilltrees.progression.errors import SaveDataError
from skilltrees.progression.requirements import PositiveInt, StrictInt, TaggedModel, build_tagged

if TYPE_CHECKING:
    from skilltrees.progression.context import ProgressionContext
    from skilltrees.progression.interfaces import Actor
    from skilltrees.progression.tree import SkillTree

logger = logging.getLogger(__name__)

effect_types: TypeRegistry[LearnEffect] = TypeRegistry("effect")


class LearnEffect(TaggedModel):
    """Base learn effect."""

    def apply(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> None:
        pass

    def describe(self) -> str:
        return ""


@effect_types.register("variable")
class AdjustPersistentVariable(LearnEffect):
    """Add ``increment`` to a game variable."""
    variable_id: PositiveInt
    increment: StrictInt = 1

    def apply(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> None:
        state = ctx.require_game_state()
        state.set_variable(self.variable_id, state.variable(self.variable_id) + self.increment)

    def describe(self) -> str:
        return f"Variable #{self.variable_id} {self.increment:+d}"


@effect_types.register("event")
class InvokeScriptedEvent(LearnEffect):
    """
    Run a scripted event.

    The interpreter call is fire-and-forget: the engine does not wait for
    events with deferred steps and does not roll back the learned level
    if the event fails.
    """
    event_id: PositiveInt

    def apply(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> None:
        logger.debug(f"Firing scripted event {self.event_id} for actor {actor.actor_id}")
        ctx.require_interpreter().run_event(self.event_id)

    def describe(self) -> str:
        return f"Event #{self.event_id}"


def effect_from_dict(data: dict[str, Any], error: type[Exception] = SaveDataError) -> LearnEffect:
    """Rebuild an effect from its serialized form."""
    return build_tagged(effect_types, data, error)


def variable_add(variable_id: int, increment: int = 1) -> AdjustPersistentVariable:
    return AdjustPersistentVariable(variable_id=variable_id, increment=increment)


def run_event(event_id: int) -> InvokeScriptedEvent:
    return InvokeScriptedEvent(event_id=event_id)
