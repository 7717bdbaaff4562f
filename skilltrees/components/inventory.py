"""
Party inventory component - item, weapon and armor counts.
"""

from __future__ import annotations

from pydantic import Field

from skilltrees.components.base import Component
from skilltrees.progression.interfaces import Party
from skilltrees.progression.requirements import ITEM_KINDS


class PartyInventory(Component):
    """
    Shared party inventory.

    Attributes:
        items: kind -> item id -> count, kinds being item, weapon and armor
    """
    items: dict[str, dict[int, int]] = Field(
        default_factory=lambda: {kind: {} for kind in ITEM_KINDS}
    )

    def _bucket(self, kind: str) -> dict[int, int]:
        if kind == "item":
            return self.items.setdefault("item", {})
        elif kind == "weapon":
            return self.items.setdefault("weapon", {})
        elif kind == "armor":
            return self.items.setdefault("armor", {})
        raise ValueError(f"Unknown item kind: {kind}")

    def item_count(self, kind: str, item_id: int) -> int:
        return self._bucket(kind).get(item_id, 0)

    def gain_item(self, kind: str, item_id: int, amount: int = 1) -> None:
        bucket = self._bucket(kind)
        bucket[item_id] = bucket.get(item_id, 0) + amount

    def lose_item(self, kind: str, item_id: int, amount: int = 1) -> None:
        """Remove items. Counts never go below zero."""
        bucket = self._bucket(kind)
        remaining = bucket.get(item_id, 0) - amount
        if remaining > 0:
            bucket[item_id] = remaining
        else:
            bucket.pop(item_id, None)


Party.register(PartyInventory)
