"""
Collaborators handed to every requirement and effect call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from skilltrees.progression.errors import ProtocolError

if TYPE_CHECKING:
    from skilltrees.progression.ledger import PointLedger
    from skilltrees.progression.interfaces import (
        Party,
        GlobalState,
        EventInterpreter,
        ExternalCurrencySource,
    )


@dataclass
class ProgressionContext:
    """
    Everything a requirement or effect may read or write besides the
    actor and the tree.

    Attributes:
        ledger: Point ledger of the acting character
        party: Shared inventory
        game_state: Persistent variables and switches
        interpreter: Scripted event runner
        currency: External point source (external pool policy only)
    """
    ledger: PointLedger
    party: Optional[Party] = None
    game_state: Optional[GlobalState] = None
    interpreter: Optional[EventInterpreter] = None
    currency: Optional[ExternalCurrencySource] = None

    def require_party(self) -> Party:
        if self.party is None:
            raise ProtocolError("Item requirement evaluated without a party")
        return self.party

    def require_game_state(self) -> GlobalState:
        if self.game_state is None:
            raise ProtocolError("Variable or switch accessed without a game state")
        return self.game_state

    def require_interpreter(self) -> EventInterpreter:
        if self.interpreter is None:
            raise ProtocolError("Scripted event fired without an event interpreter")
        return self.interpreter

    def require_currency(self) -> ExternalCurrencySource:
        if self.currency is None:
            raise ProtocolError("External currency used without a currency source")
        return self.currency
