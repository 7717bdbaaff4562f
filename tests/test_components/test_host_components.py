import pytest
from pydantic import ValidationError
from skilltrees.components import Character, PartyInventory, GameState, CurrencyWallet
from skilltrees.progression import Actor, Party, GlobalState, ExternalCurrencySource


def test_components_satisfy_host_contracts():
    assert isinstance(Character(actor_id=1), Actor)
    assert isinstance(PartyInventory(), Party)
    assert isinstance(GameState(), GlobalState)
    assert isinstance(CurrencyWallet(), ExternalCurrencySource)


def test_character_abilities():
    hero = Character(actor_id=1, stats={"attack": 12})

    hero.learn_ability(5)
    hero.learn_ability(5)
    hero.forget_ability(7)

    assert hero.abilities == [5]
    assert hero.stat("attack") == 12
    assert hero.stat("luck") == 0


def test_character_validates_assignment():
    hero = Character(actor_id=1)
    with pytest.raises(ValidationError):
        hero.level = "high"


def test_character_clone():
    hero = Character(actor_id=1, abilities=[3])
    copy = hero.clone()
    copy.learn_ability(4)

    assert hero.abilities == [3]
    assert copy.abilities == [3, 4]


def test_inventory_kinds():
    party = PartyInventory()
    party.gain_item("weapon", 4, 2)
    party.gain_item("item", 4)

    assert party.item_count("weapon", 4) == 2
    assert party.item_count("item", 4) == 1
    assert party.item_count("armor", 4) == 0

    party.lose_item("weapon", 4, 5)
    assert party.item_count("weapon", 4) == 0

    with pytest.raises(ValueError):
        party.item_count("key_item", 1)


def test_game_state_defaults():
    state = GameState()
    state.set_variable(3, 9)
    state.set_switch(2, True)

    assert state.variable(3) == 9
    assert state.variable(4) == 0
    assert state.switch(2)
    assert not state.switch(5)


def test_currency_wallet():
    wallet = CurrencyWallet(balances={1: 5})
    wallet.deduct(1, 2)
    wallet.grant(2, 4)

    assert wallet.balance(1) == 3
    assert wallet.balance(2) == 4
