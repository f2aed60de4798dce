"""
PairFactory — справочник liquidity pool по паре активов
"""

import logging
from typing import Optional

from src.core.domain.collaborator_state import PairFactoryState
from src.core.errors import InvalidState
from src.core.implementation import Implementation, guarded

from .liquidity_pool import LiquidityPool

logger = logging.getLogger(__name__)


def pair_key(token_a: str, token_b: str) -> str:
    token0, token1 = sorted((token_a, token_b))
    return f"{token0}:{token1}"


class PairFactory(Implementation):
    """Фабрика и каталог пар (owner создаёт пулы и владеет ими)."""

    kind = "pair_factory"
    state_model = PairFactoryState

    def get_pair(self, token_a: str, token_b: str) -> Optional[str]:
        return self._state.pairs.get(pair_key(token_a, token_b))

    @guarded
    def create_pair(self, sender: str, token_a: str, token_b: str) -> str:
        """
        Создание пула пары.

        Returns:
            Адрес нового пула

        Raises:
            InvalidState: identical_assets / pair_exists
        """
        self._require_owner(sender)
        if token_a == token_b:
            raise InvalidState("PairFactory: identical addresses", reason="identical_assets")
        key = pair_key(token_a, token_b)
        if key in self._state.pairs:
            raise InvalidState(f"PairFactory: pair exists {key}", reason="pair_exists")
        pool = LiquidityPool(self.ledger, sender, token_a, token_b)
        self._commit(pairs={**self._state.pairs, key: pool.address})
        logger.info(f"PairFactory: created pair {key} at {pool.address}")
        return pool.address

    @guarded
    def register_pair(self, sender: str, token_a: str, token_b: str, pool: str) -> None:
        """Привязка существующего пула к паре (замещает прежнюю запись)."""
        self._require_owner(sender)
        self._commit(pairs={**self._state.pairs, pair_key(token_a, token_b): pool})
