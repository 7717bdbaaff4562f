"""
Host collaborator contracts.

The rules engine never owns character, inventory or variable state. It
talks to the host through these abstract classes. The in-memory
components in ``skilltrees.components`` implement them for tests and
small hosts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from skilltrees.progression.profile import ProgressionProfile


class Actor(ABC):
    """
    A character that owns a progression profile.

    Attributes expected on implementations:
        actor_id: Stable character id
        class_id: Current class id (0 = none)
        level: Character level
        progression: The character's ProgressionProfile, or None
    """
    actor_id: int
    class_id: int
    level: int
    progression: Optional[ProgressionProfile]

    @abstractmethod
    def has_ability(self, ability_id: int) -> bool:
        """Check whether the character currently has an ability."""

    @abstractmethod
    def learn_ability(self, ability_id: int) -> None:
        """Grant an ability."""

    @abstractmethod
    def forget_ability(self, ability_id: int) -> None:
        """Revoke an ability. Revoking one that is not held is a no-op."""

    @abstractmethod
    def stat(self, stat: str) -> int:
        """Get a computed stat value by name."""

    def refresh(self) -> None:
        """Recompute derived state after abilities change."""


class Party(ABC):
    """Shared inventory queried by item requirements."""

    @abstractmethod
    def item_count(self, kind: str, item_id: int) -> int:
        """Number of an item held. ``kind`` is item, weapon or armor."""

    @abstractmethod
    def lose_item(self, kind: str, item_id: int, amount: int) -> None:
        """Remove items from the inventory."""


class GlobalState(ABC):
    """Persistent game variables and switches."""

    @abstractmethod
    def variable(self, variable_id: int) -> int:
        ...

    @abstractmethod
    def set_variable(self, variable_id: int, value: int) -> None:
        ...

    @abstractmethod
    def switch(self, switch_id: int) -> bool:
        ...


class EventInterpreter(ABC):
    """Runs scripted events. Calls are fire-and-forget."""

    @abstractmethod
    def run_event(self, event_id: int) -> None:
        ...


class ExternalCurrencySource(ABC):
    """Point balances owned outside the engine, keyed by class id."""

    @abstractmethod
    def balance(self, class_id: int) -> int:
        ...

    @abstractmethod
    def deduct(self, class_id: int, amount: int) -> None:
        ...

    def grant(self, class_id: int, amount: int) -> None:
        """Credit points back. Defaults to a negative deduction."""
        self.deduct(class_id, -amount)
