"""
Point ledger - skill point balances per pool.

A pool key is 0 (the default pool), a class id, or a tree key. Which key
a tree draws from depends on the configured PoolPolicy.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Union

from skilltrees.progression.config import PoolPolicy
from skilltrees.progression.errors import ConfigurationError, ProtocolError, SaveDataError

if TYPE_CHECKING:
    from skilltrees.progression.interfaces import Actor, ExternalCurrencySource
    from skilltrees.progression.tree import SkillTree

logger = logging.getLogger(__name__)

PoolKey = Union[int, str]


class PointLedger:
    """
    Skill point balances for one character.

    SINGLE policy coerces every key to 0. SEPARATE requires a concrete
    key on every call. EXTERNAL keeps no balances of its own and forwards
    reads and writes to the external currency source.
    """

    DEFAULT_POOL = 0

    def __init__(
        self,
        policy: PoolPolicy = PoolPolicy.SINGLE,
        currency: Optional[ExternalCurrencySource] = None,
        balances: Optional[dict[PoolKey, int]] = None,
    ):
        if policy is PoolPolicy.EXTERNAL and currency is None:
            raise ConfigurationError("External pool policy needs a currency source")
        self.policy = policy
        self._currency = currency
        self._balances: dict[PoolKey, int] = {}
        for key, value in (balances or {}).items():
            self.add(key, value)

    def resolve_key(self, actor: Actor, tree: SkillTree) -> PoolKey:
        """Pool a tree draws from."""
        if self.policy is PoolPolicy.SINGLE:
            return self.DEFAULT_POOL
        if tree.scope_class_id:
            return tree.scope_class_id
        if self.policy is PoolPolicy.EXTERNAL:
            return actor.class_id
        return tree.key

    def _key(self, key: Optional[PoolKey]) -> PoolKey:
        if self.policy is PoolPolicy.SINGLE:
            return self.DEFAULT_POOL
        if key is None:
            raise ProtocolError(f"Pool key required under {self.policy.name} pool policy")
        return key

    def get(self, key: Optional[PoolKey] = None) -> int:
        """Balance of a pool (0 for pools never touched)."""
        key = self._key(key)
        if self.policy is PoolPolicy.EXTERNAL:
            return self._currency.balance(key)
        return self._balances.get(key, 0)

    def add(self, key: Optional[PoolKey], delta: int) -> None:
        """Add points to a pool, creating it when absent."""
        key = self._key(key)
        if self.policy is PoolPolicy.EXTERNAL:
            if delta >= 0:
                self._currency.grant(key, delta)
            else:
                self._currency.deduct(key, -delta)
            return
        self._balances[key] = self._balances.get(key, 0) + delta
        logger.debug(f"Pool {key!r} {delta:+d} -> {self._balances[key]}")

    def subtract(self, key: Optional[PoolKey], amount: int) -> None:
        self.add(key, -amount)

    def balances(self) -> dict[PoolKey, int]:
        """Snapshot of the locally stored balances."""
        return dict(self._balances)

    def total(self) -> int:
        return sum(self._balances.values())

    def get_save_data(self) -> dict[str, int]:
        """Plain key -> int map. Class ids are written as decimal strings."""
        return {str(key): value for key, value in self._balances.items()}

    def load_save_data(self, data: dict[str, int]) -> None:
        self._balances.clear()
        for raw_key, value in data.items():
            if not isinstance(value, int) or isinstance(value, bool):
                raise SaveDataError(f"Pool {raw_key!r} has non-integer balance {value!r}")
            key: PoolKey = int(raw_key) if str(raw_key).isdigit() else raw_key
            self._balances[key] = value

    def __repr__(self) -> str:
        return f"PointLedger({self.policy.name}, {self._balances})"
