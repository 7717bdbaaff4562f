import json
import logging
import pytest
from skilltrees.components import Character
from skilltrees.progression import (
    SkillNode,
    ConnectorNode,
    SkillTree,
    ProgressionCatalog,
    CatalogEntry,
    ProgressionConfig,
    ProgressionProfile,
    SkillTreeManager,
    SaveDataError,
    cost,
    tree_points,
    skill_req,
    item_req,
    level_req,
    variable_req,
    switch_req,
    stat_req,
    variable_add,
    run_event,
)


def json_round_trip(data):
    return json.loads(json.dumps(data))


@pytest.fixture
def mixed_catalog():
    spark = SkillNode("spark", [50, 51], [[cost(1)], [cost(2), level_req(4)]], icon_ref=9)
    flare = SkillNode(
        "flare",
        [52],
        [[
            cost(2),
            tree_points(1),
            skill_req(spark, 2),
            item_req(7, 2, kind="weapon"),
            variable_req(3, -1),
            switch_req(4, desired=False),
            stat_req("magic", 10),
        ]],
        [[variable_add(3, 5), run_event(8)]],
    )
    return ProgressionCatalog(
        trees=[SkillTree("Fire", "fire_tree", [spark, ConnectorNode(28), flare, None], columns=2)],
        actors={1: CatalogEntry(("fire_tree",), initial_points=20)},
    )


def test_round_trip_keeps_progress(mixed_catalog, hero, party, game_state, interpreter):
    manager = SkillTreeManager(mixed_catalog, party=party, game_state=game_state, interpreter=interpreter)
    manager.setup_character(hero)
    manager.learn(hero, "fire_tree", "spark")
    original = hero.progression

    data = json_round_trip(manager.get_save_data(hero))
    restored_hero = Character(actor_id=1, abilities=list(hero.abilities))
    manager.load_save_data(restored_hero, data)
    restored = restored_hero.progression

    assert restored.get_save_data() == original.get_save_data()
    assert restored.ledger.get() == 19
    tree = restored.get_tree("fire_tree")
    assert tree.spent_points == 1
    assert tree.columns == 2
    assert isinstance(tree.slot(0, 1), ConnectorNode)
    assert tree.get_node("spark").current_level == 1
    assert tree.get_node("spark").icon_reference() == 9
    assert tree.get_node("flare") == original.get_tree("fire_tree").get_node("flare")


def test_restored_requirements_still_gate(mixed_catalog, hero, party, game_state, interpreter):
    manager = SkillTreeManager(mixed_catalog, party=party, game_state=game_state, interpreter=interpreter)
    manager.setup_character(hero)
    data = json_round_trip(manager.get_save_data(hero))

    manager.load_save_data(hero, data)
    hero.level = 4
    hero.stats["magic"] = 10
    party.gain_item("weapon", 7, 2)
    manager.learn(hero, "fire_tree", "spark")
    manager.learn(hero, "fire_tree", "spark")

    assert manager.learn(hero, "fire_tree", "flare")
    assert party.item_count("weapon", 7) == 0
    assert game_state.variable(3) == 5
    interpreter.run_event.assert_called_once_with(8)


def test_suspended_trees_round_trip(separate_manager):
    warrior = Character(actor_id=2, class_id=1)
    separate_manager.setup_character(warrior)
    separate_manager.learn(warrior, "warrior_tree", "warrior_tree_strike")
    separate_manager.change_class(warrior, 2)

    data = json_round_trip(separate_manager.get_save_data(warrior))
    assert data["ledger"] == {"1": 6}

    restored = Character(actor_id=2, class_id=2)
    profile = separate_manager.load_save_data(restored, data)

    assert [tree.key for tree in profile.trees] == ["mage_tree"]
    assert [tree.key for tree in profile.suspended_trees(1)] == ["warrior_tree"]
    assert not profile.suspended_trees(1)[0].visible

    separate_manager.change_class(restored, 1)

    assert restored.has_ability(100)
    assert separate_manager.points(restored, 1) == 6
    assert len(profile.trees) + len(profile.suspended_trees()) == 2


def test_unknown_requirement_type(manager, hero):
    manager.setup_character(hero)
    data = json_round_trip(manager.get_save_data(hero))
    data["trees"][0]["nodes"][3]["requirementsPerLevel"][0][0] = {"type": "bogus"}

    with pytest.raises(SaveDataError):
        manager.load_save_data(hero, data)


@pytest.mark.parametrize("slot", [
    {"type": "teleporter"},
    {"type": "connector"},
    "guard",
])
def test_invalid_grid_slot(manager, hero, slot):
    manager.setup_character(hero)
    data = json_round_trip(manager.get_save_data(hero))
    data["trees"][0]["nodes"][0] = slot

    with pytest.raises(SaveDataError):
        manager.load_save_data(hero, data)


def test_invalid_profile_data():
    with pytest.raises(SaveDataError):
        ProgressionProfile.from_save_data([])
    with pytest.raises(SaveDataError):
        ProgressionProfile.from_save_data({"suspended": {"one": []}})


def test_tree_saved_twice(manager, hero):
    manager.setup_character(hero)
    data = json_round_trip(manager.get_save_data(hero))
    data["suspended"] = {"3": [data["trees"][0]]}

    with pytest.raises(SaveDataError):
        manager.load_save_data(hero, data)


def test_load_warns_on_missing_catalog_entries(manager, hero, caplog):
    manager.setup_character(hero)
    data = json_round_trip(manager.get_save_data(hero))
    data["trees"][0]["nodes"][0] = SkillNode("retired", [99], [[cost(1)]]).to_dict()
    lost_tree = SkillTree("Lost", "lost_tree", [SkillNode("echo", [98], [[cost(1)]])])
    data["trees"].append(lost_tree.to_dict())

    with caplog.at_level(logging.WARNING):
        profile = manager.load_save_data(hero, data)

    assert "Saved skill 'retired' is not in catalog tree 'berserk_tree'" in caplog.text
    assert "Saved skill tree 'lost_tree' is not in the catalog" in caplog.text
    assert profile.get_tree("lost_tree").get_node("echo").ability_levels == [98]
