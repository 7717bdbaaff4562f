"""
Game state components - variables, switches, external point wallet.
"""

from __future__ import annotations

from pydantic import Field

from skilltrees.components.base import Component
from skilltrees.progression.interfaces import ExternalCurrencySource, GlobalState


class GameState(Component):
    """
    Persistent game variables and switches.

    Unset variables read 0, unset switches read OFF.
    """
    variables: dict[int, int] = Field(default_factory=dict)
    switches: dict[int, bool] = Field(default_factory=dict)

    def variable(self, variable_id: int) -> int:
        return self.variables.get(variable_id, 0)

    def set_variable(self, variable_id: int, value: int) -> None:
        self.variables[variable_id] = value

    def switch(self, switch_id: int) -> bool:
        return self.switches.get(switch_id, False)

    def set_switch(self, switch_id: int, value: bool) -> None:
        self.switches[switch_id] = value


class CurrencyWallet(Component):
    """Point balances per class kept outside the skill tree ledger."""
    balances: dict[int, int] = Field(default_factory=dict)

    def balance(self, class_id: int) -> int:
        return self.balances.get(class_id, 0)

    def deduct(self, class_id: int, amount: int) -> None:
        self.balances[class_id] = self.balance(class_id) - amount

    def grant(self, class_id: int, amount: int) -> None:
        self.balances[class_id] = self.balance(class_id) + amount


GlobalState.register(GameState)
ExternalCurrencySource.register(CurrencyWallet)
