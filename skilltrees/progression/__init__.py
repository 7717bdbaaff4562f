"""
Progression module - skill trees, requirements, points.

Provides:
- Requirements and learn effects (tagged, serializable)
- Skill nodes, connectors and trees
- Point ledger with single, per-class or external pools
- Per-character profiles and the template catalog
- SkillTreeManager, the entry point for host games
"""

from skilltrees.progression.errors import (
    ProgressionError,
    ConfigurationError,
    ProtocolError,
    SaveDataError,
)
from skilltrees.progression.config import ProgressionConfig, PoolPolicy
from skilltrees.progression.interfaces import (
    Actor,
    Party,
    GlobalState,
    EventInterpreter,
    ExternalCurrencySource,
)
from skilltrees.progression.context import ProgressionContext
from skilltrees.progression.ledger import PointLedger
from skilltrees.progression.requirements import (
    Requirement,
    PointCost,
    TreePointThreshold,
    PrerequisiteSkillLevel,
    ItemPossession,
    CharacterLevel,
    PersistentVariableThreshold,
    PersistentFlagState,
    StatThreshold,
    ExternalCurrencyCost,
    requirement_from_dict,
    cost,
    tree_points,
    skill_req,
    item_req,
    level_req,
    variable_req,
    switch_req,
    stat_req,
    external_cost,
)
from skilltrees.progression.effects import (
    LearnEffect,
    AdjustPersistentVariable,
    InvokeScriptedEvent,
    effect_from_dict,
    variable_add,
    run_event,
)
from skilltrees.progression.nodes import SkillNode, ConnectorNode, NodeState
from skilltrees.progression.tree import SkillTree
from skilltrees.progression.catalog import ProgressionCatalog, CatalogEntry
from skilltrees.progression.profile import ProgressionProfile
from skilltrees.progression.manager import (
    SkillTreeManager,
    ProgressionEvent,
    EventBusInterpreter,
)

__all__ = [
    # Errors
    "ProgressionError",
    "ConfigurationError",
    "ProtocolError",
    "SaveDataError",
    # Config
    "ProgressionConfig",
    "PoolPolicy",
    # Host contracts
    "Actor",
    "Party",
    "GlobalState",
    "EventInterpreter",
    "ExternalCurrencySource",
    "ProgressionContext",
    # Points
    "PointLedger",
    # Requirements
    "Requirement",
    "PointCost",
    "TreePointThreshold",
    "PrerequisiteSkillLevel",
    "ItemPossession",
    "CharacterLevel",
    "PersistentVariableThreshold",
    "PersistentFlagState",
    "StatThreshold",
    "ExternalCurrencyCost",
    "requirement_from_dict",
    "cost",
    "tree_points",
    "skill_req",
    "item_req",
    "level_req",
    "variable_req",
    "switch_req",
    "stat_req",
    "external_cost",
    # Effects
    "LearnEffect",
    "AdjustPersistentVariable",
    "InvokeScriptedEvent",
    "effect_from_dict",
    "variable_add",
    "run_event",
    # Trees
    "SkillNode",
    "ConnectorNode",
    "NodeState",
    "SkillTree",
    "ProgressionCatalog",
    "CatalogEntry",
    "ProgressionProfile",
    # Manager
    "SkillTreeManager",
    "ProgressionEvent",
    "EventBusInterpreter",
]
