"""
Collaborator State — модели состояния внешних коллабораторов

Immutable Pydantic модели для in-process реализаций коллабораторов:
- TokenState: transferable токен (collateral и managed stable asset)
- YieldPoolState: share-based yield pool
- LiquidityPoolState: constant-product пул с cumulative price counters
- PairFactoryState: справочник пулов по паре активов
- RegistryState: каталог адресов компонентов
"""

from typing import Dict, Tuple

from pydantic import Field

from .common import Address, ComponentState, DecimalValue, Uint256
from src.core.math.fixed_point import Decimal


class BalanceLedgerState(ComponentState):
    """Балансы, allowances и total supply transferable токена."""

    balances: Dict[Address, Uint256] = Field(default_factory=dict)
    allowances: Dict[Address, Dict[Address, Uint256]] = Field(default_factory=dict)
    total_supply: Uint256 = 0


class TokenState(BalanceLedgerState):
    """
    Состояние токена.

    restricted — адреса, заблокированные эмитентом (blacklist).
    """

    restricted: Tuple[Address, ...] = ()


class YieldPoolState(ComponentState):
    """
    Состояние share-based yield pool.

    exchange_rate — underlying на одну share (fixed-point, 1e18 scale).
    status_code — 0 = success; ненулевое значение имитирует отказ пула.
    """

    shares: Dict[Address, Uint256] = Field(default_factory=dict)
    total_shares: Uint256 = 0
    exchange_rate: DecimalValue = Field(default_factory=Decimal.one)
    status_code: int = 0
    accrued_rewards: Dict[Address, Uint256] = Field(default_factory=dict)


class LiquidityPoolState(ComponentState):
    """
    Состояние constant-product пула.

    Cumulative counters — UQ112.112, с intentional overflow по модулю 2^256;
    block_timestamp_last — по модулю 2^32.
    """

    reserve0: Uint256 = 0
    reserve1: Uint256 = 0
    price0_cumulative_last: Uint256 = 0
    price1_cumulative_last: Uint256 = 0
    block_timestamp_last: Uint256 = 0


class PairFactoryState(ComponentState):
    """Пары: ключ "tokenA:tokenB" (отсортированные адреса) → адрес пула."""

    pairs: Dict[str, Address] = Field(default_factory=dict)


class RegistryState(ComponentState):
    """Каталог адресов: ключ (collateral, stable, oracle, ...) → адрес."""

    entries: Dict[str, Address] = Field(default_factory=dict)
