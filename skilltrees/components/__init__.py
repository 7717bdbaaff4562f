"""
Host components - in-memory implementations of the collaborator contracts.

Exports:
- Component: pydantic base
- Character: Actor with abilities, stats and a profile slot
- PartyInventory: Party with item/weapon/armor counts
- GameState: GlobalState with variables and switches
- CurrencyWallet: ExternalCurrencySource keyed by class
"""

from skilltrees.components.base import Component
from skilltrees.components.character import Character
from skilltrees.components.inventory import PartyInventory
from skilltrees.components.game_state import GameState, CurrencyWallet

__all__ = [
    "Component",
    "Character",
    "PartyInventory",
    "GameState",
    "CurrencyWallet",
]
