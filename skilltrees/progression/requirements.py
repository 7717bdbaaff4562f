"""
Skill requirements - the checks gating each skill level.

Requirements are frozen pydantic models. Every numeric field is validated
when the requirement is built, so a bad catalog fails at load time
instead of during play.

Each requirement answers three questions:
- meets(): does the character satisfy it right now (pure check)
- use(): what it consumes when the level is learned (default: nothing)
- describe(): the text shown in the requirements list

Catalog shorthand mirrors the config DSL:
    guard = SkillNode("guard", [2], [[cost(1)]])
    dual = SkillNode("dualAttack", [3], [[cost(1), skill_req(combat_reflexes, 1)]])
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from skilltrees.core.registry import TypeRegistry
from skilltrees.progression.config import PoolPolicy
from skilltrees.progression.errors import ConfigurationError, ProtocolError, SaveDataError

if TYPE_CHECKING:
    from skilltrees.progression.context import ProgressionContext
    from skilltrees.progression.interfaces import Actor
    from skilltrees.progression.nodes import SkillNode
    from skilltrees.progression.tree import SkillTree

PositiveInt = Annotated[int, Field(strict=True, gt=0)]
StrictInt = Annotated[int, Field(strict=True)]

ITEM_KINDS = ("item", "weapon", "armor")

STAT_NAMES = (
    "max_hp",
    "max_mp",
    "attack",
    "defense",
    "magic",
    "resistance",
    "agility",
    "luck",
)

requirement_types: TypeRegistry[Requirement] = TypeRegistry("requirement")


class TaggedModel(BaseModel):
    """
    Frozen value object with a registry tag.

    Validation failures raise ConfigurationError. Serialized form is the
    ``type`` tag plus the camelCase constructor fields.
    """

    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
        alias_generator=to_camel,
        populate_by_name=True,
    )

    type_tag: ClassVar[str] = ""

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid {type(self).__name__}: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        return {'type': self.type_tag, **self.model_dump(mode='json', by_alias=True)}


def build_tagged(registry: TypeRegistry, data: dict[str, Any], error: type[Exception]) -> Any:
    """Rebuild a tagged object, raising ``error`` on unknown tags or bad fields."""
    if not isinstance(data, dict):
        raise error(f"Expected a {registry.kind} object, got {data!r}")
    fields = dict(data)
    tag = fields.pop('type', None)
    cls = registry.get(tag)
    if cls is None:
        raise error(f"Unknown {registry.kind} type {tag!r}")
    try:
        return cls(**fields)
    except ConfigurationError as e:
        if error is ConfigurationError:
            raise
        raise error(str(e)) from e


class Requirement(TaggedModel):
    """Base requirement. Subclasses override meets(), and use() if they consume."""

    def meets(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> bool:
        return False

    def use(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> None:
        pass

    def describe(self) -> str:
        return ""

    def refund_points(self) -> int:
        """Points returned to the pool when the level is reset."""
        return 0


@requirement_types.register("points")
class PointCost(Requirement):
    """Character spends skill points from the tree's pool."""
    price: PositiveInt

    def meets(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> bool:
        key = ctx.ledger.resolve_key(actor, tree)
        return ctx.ledger.get(key) >= self.price

    def use(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> None:
        key = ctx.ledger.resolve_key(actor, tree)
        ctx.ledger.subtract(key, self.price)
        tree.spent_points += self.price

    def describe(self) -> str:
        return f"{self.price} skill points"

    def refund_points(self) -> int:
        return self.price


@requirement_types.register("tree_points")
class TreePointThreshold(Requirement):
    """Enough points already spent in the same tree."""
    points: PositiveInt

    def meets(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> bool:
        return tree.spent_points >= self.points

    def describe(self) -> str:
        return f"{self.points} tree points"


@requirement_types.register("tree_skill_level")
class PrerequisiteSkillLevel(Requirement):
    """
    Another skill known at some level or higher.

    Holds a copy of the target's ability list rather than the node, so
    the check is "any ability from index level-1 onward is held". This
    also accepts levels reached by skipping intermediate ones.
    """
    target_ability_levels: tuple[StrictInt, ...] = Field(min_length=1)
    level: PositiveInt = 1
    node_key: str = ""

    @model_validator(mode='after')
    def check_level_in_range(self) -> PrerequisiteSkillLevel:
        if self.level > len(self.target_ability_levels):
            raise ValueError(
                f"level {self.level} exceeds the target's "
                f"{len(self.target_ability_levels)} levels"
            )
        return self

    def meets(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> bool:
        return any(
            actor.has_ability(ability_id)
            for ability_id in self.target_ability_levels[self.level - 1:]
        )

    def describe(self) -> str:
        name = self.node_key or f"Skill #{self.target_ability_levels[self.level - 1]}"
        return f"{name} level {self.level} learned"


@requirement_types.register("item")
class ItemPossession(Requirement):
    """Party holds (and gives up) an item, weapon or armor."""
    kind: Literal["item", "weapon", "armor"] = "item"
    item_id: PositiveInt
    amount: PositiveInt = 1

    def meets(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> bool:
        return ctx.require_party().item_count(self.kind, self.item_id) >= self.amount

    def use(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> None:
        ctx.require_party().lose_item(self.kind, self.item_id, self.amount)

    def describe(self) -> str:
        return f"{self.amount}x {self.kind} #{self.item_id}"


@requirement_types.register("actor_level")
class CharacterLevel(Requirement):
    """Character level at least ``level``."""
    level: Annotated[int, Field(strict=True, ge=2)]

    def meets(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> bool:
        return actor.level >= self.level

    def describe(self) -> str:
        return f"{self.level} hero level"


@requirement_types.register("variable")
class PersistentVariableThreshold(Requirement):
    """Game variable at least ``value``."""
    variable_id: PositiveInt
    value: StrictInt

    def meets(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> bool:
        return ctx.require_game_state().variable(self.variable_id) >= self.value

    def describe(self) -> str:
        return f"Variable #{self.variable_id} >= {self.value}"


@requirement_types.register("switch")
class PersistentFlagState(Requirement):
    """Game switch in the desired state."""
    switch_id: PositiveInt
    desired: Annotated[bool, Field(strict=True)] = True

    def meets(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> bool:
        return ctx.require_game_state().switch(self.switch_id) == self.desired

    def describe(self) -> str:
        return f"Switch #{self.switch_id} {'ON' if self.desired else 'OFF'}"


@requirement_types.register("stat")
class StatThreshold(Requirement):
    """Computed character stat at least ``value``."""
    stat: str
    value: PositiveInt

    @field_validator('stat')
    @classmethod
    def check_known_stat(cls, stat: str) -> str:
        if stat not in STAT_NAMES:
            raise ValueError(f"unknown stat {stat!r}, expected one of {STAT_NAMES}")
        return stat

    def meets(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> bool:
        return actor.stat(self.stat) >= self.value

    def describe(self) -> str:
        return f"{self.stat} >= {self.value}"


@requirement_types.register("external_points")
class ExternalCurrencyCost(Requirement):
    """Points spent from the external currency of the tree's class."""
    price: PositiveInt
    currency_name: str = "points"

    def _class_id(self, actor: Actor, tree: SkillTree) -> int:
        return tree.scope_class_id or actor.class_id

    def _source(self, ctx: ProgressionContext):
        if ctx.ledger.policy is not PoolPolicy.EXTERNAL:
            raise ProtocolError("External currency cost used without the external pool policy")
        return ctx.require_currency()

    def meets(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> bool:
        return self._source(ctx).balance(self._class_id(actor, tree)) >= self.price

    def use(self, actor: Actor, tree: SkillTree, ctx: ProgressionContext) -> None:
        self._source(ctx).deduct(self._class_id(actor, tree), self.price)

    def describe(self) -> str:
        return f"{self.price} {self.currency_name}"


def requirement_from_dict(data: dict[str, Any], error: type[Exception] = SaveDataError) -> Requirement:
    """Rebuild a requirement from its serialized form."""
    return build_tagged(requirement_types, data, error)


# Catalog shorthand

def cost(price: int) -> PointCost:
    return PointCost(price=price)


def tree_points(points: int) -> TreePointThreshold:
    return TreePointThreshold(points=points)


def skill_req(node: SkillNode, level: int = 1) -> PrerequisiteSkillLevel:
    """Requires ``node`` learned at ``level`` or higher."""
    from skilltrees.progression.nodes import SkillNode

    if not isinstance(node, SkillNode):
        raise ConfigurationError(
            f"skill_req expects a SkillNode, got {type(node).__name__}"
        )
    return PrerequisiteSkillLevel(
        target_ability_levels=tuple(node.ability_levels),
        level=level,
        node_key=node.key,
    )


def item_req(item_id: int, amount: int = 1, kind: str = "item") -> ItemPossession:
    return ItemPossession(kind=kind, item_id=item_id, amount=amount)


def level_req(level: int) -> CharacterLevel:
    return CharacterLevel(level=level)


def variable_req(variable_id: int, value: int) -> PersistentVariableThreshold:
    return PersistentVariableThreshold(variable_id=variable_id, value=value)


def switch_req(switch_id: int, desired: bool = True) -> PersistentFlagState:
    return PersistentFlagState(switch_id=switch_id, desired=desired)


def stat_req(stat: str, value: int) -> StatThreshold:
    return StatThreshold(stat=stat, value=value)


def external_cost(price: int, currency_name: str = "points") -> ExternalCurrencyCost:
    return ExternalCurrencyCost(price=price, currency_name=currency_name)
