import os
import sys
import pytest
from unittest.mock import MagicMock

# Ensure the package can be imported without installing it
sys.path.append(os.getcwd())

from skilltrees.components import Character, PartyInventory, GameState
from skilltrees.progression import (
    SkillNode,
    ConnectorNode,
    SkillTree,
    ProgressionCatalog,
    CatalogEntry,
    ProgressionConfig,
    SkillTreeManager,
    cost,
    tree_points,
    skill_req,
    level_req,
)

ARROW_DOWN = ConnectorNode(28)
ARROW_LEFT = ConnectorNode(29)
ARROW_RIGHT = ConnectorNode(30)


def build_berserk_nodes() -> dict[str, SkillNode]:
    """The sample Berserk skills: single, multi-level and chained skills."""
    guard = SkillNode("guard", [2], [[cost(1)]])
    combat_reflexes = SkillNode("combatReflexes", [11, 12, 13], [[cost(1)], [cost(1)], [cost(1)]])
    dual_attack = SkillNode("dualAttack", [3], [[cost(1), skill_req(combat_reflexes, 1)]])
    double_attack = SkillNode("doubleAttack", [4], [[cost(1), skill_req(combat_reflexes), level_req(3)]])
    triple_attack = SkillNode("tripleAttack", [5], [
        [cost(1), level_req(5), skill_req(combat_reflexes, 2), skill_req(double_attack)],
    ])
    berserker_dance = SkillNode("berserkerDance", [14], [[cost(3), skill_req(triple_attack)]])
    rampage = SkillNode("rampage", [15], [
        [cost(3), skill_req(combat_reflexes, 3), tree_points(9), skill_req(berserker_dance)],
    ])
    armor_break = SkillNode("armorBreak", [16, 17, 18], [
        [cost(1), tree_points(5), skill_req(berserker_dance)],
        [cost(2)],
        [cost(3)],
    ])
    return {
        node.key: node
        for node in (
            guard, combat_reflexes, dual_attack, double_attack,
            triple_attack, berserker_dance, rampage, armor_break,
        )
    }


def build_berserk_tree() -> SkillTree:
    n = build_berserk_nodes()
    return SkillTree("Berserk", "berserk_tree", [
        None, None, None, n["combatReflexes"], None, n["guard"], None,
        None, None, ARROW_LEFT, ARROW_DOWN, None, None, None,
        None, n["dualAttack"], None, n["doubleAttack"], None, None, None,
        None, None, None, ARROW_DOWN, None, None, None,
        None, None, None, n["tripleAttack"], None, None, None,
        None, None, None, ARROW_DOWN, None, None, None,
        None, None, None, n["berserkerDance"], None, None, None,
        None, None, None, ARROW_DOWN, ARROW_RIGHT, None, None,
        None, None, None, n["rampage"], None, n["armorBreak"], None,
    ])


def build_class_tree(name: str, key: str, first_ability: int, price: int = 4) -> SkillTree:
    strike = SkillNode(f"{key}_strike", [first_ability, first_ability + 1], [[cost(price)], [cost(price)]])
    return SkillTree(name, key, [strike, ARROW_DOWN, None])


@pytest.fixture
def party():
    return PartyInventory()


@pytest.fixture
def game_state():
    return GameState()


@pytest.fixture
def interpreter():
    return MagicMock()


@pytest.fixture
def hero():
    return Character(actor_id=1, name="Harold", level=1)


@pytest.fixture
def berserk_catalog():
    return ProgressionCatalog(
        trees=[build_berserk_tree()],
        actors={1: CatalogEntry(("berserk_tree",), initial_points=55)},
    )


@pytest.fixture
def manager(berserk_catalog, party, game_state, interpreter):
    return SkillTreeManager(
        berserk_catalog,
        ProgressionConfig(points_per_level=2),
        party=party,
        game_state=game_state,
        interpreter=interpreter,
    )


@pytest.fixture
def class_catalog():
    """Two classes with their own trees plus a free-standing tree."""
    return ProgressionCatalog(
        trees=[
            build_class_tree("Warrior", "warrior_tree", 100),
            build_class_tree("Mage", "mage_tree", 200),
            build_class_tree("Cooking", "cooking_tree", 300, price=1),
        ],
        classes={
            1: CatalogEntry(("warrior_tree",), initial_points=10),
            2: CatalogEntry(("mage_tree",), initial_points=0),
        },
        free=["cooking_tree"],
    )


@pytest.fixture
def separate_manager(class_catalog, party, game_state):
    return SkillTreeManager(
        class_catalog,
        ProgressionConfig(single_pool=False, points_per_level=3),
        party=party,
        game_state=game_state,
    )


@pytest.fixture
def berserk_tree():
    return build_berserk_tree()
