"""
Oracle — TWAP price oracle

Отслеживает time-weighted average price managed stable asset против
reference-актива (collateral) по snapshot'ам внешнего liquidity pool.

Машина состояний market (на отслеживаемый актив):

    Unregistered ──setup──▶ Registered-uninitialized ──capture──▶ Steady-state
                                                                   │  ▲
                                                                   └──┘ capture

capture в Steady-state:
    elapsed = (now − last_timestamp) mod 2^32
    price   = (cumulative_now − cumulative_last) mod 2^256 / elapsed / 2^112,
              нормализованная на разницу decimals tracked / reference
    healthy = reference reserve ≥ reserve_minimum AND пул не restricted
              эмитентом reference-актива

Только stabilizer из registry может вызывать setup / capture.
"""

import logging
from dataclasses import dataclass
from typing import Final, Optional

from src.core.config import OracleConfig
from src.core.domain.events import MarketSetup
from src.core.domain.oracle_state import Market, OracleState
from src.core.errors import InvalidState, Unauthorized
from src.core.implementation import Implementation, guarded
from src.core.ledger import Ledger
from src.core.math.fixed_point import Decimal

logger = logging.getLogger(__name__)

UINT256_MODULUS: Final[int] = 2**256


# =============================================================================
# RESULT
# =============================================================================


@dataclass(frozen=True)
class OracleSnapshot:
    """Результат capture: (price, elapsed, healthy)."""

    price: Decimal
    elapsed: int
    healthy: bool

    @classmethod
    def neutral(cls) -> "OracleSnapshot":
        """Нейтральный snapshot (1.0, 0, False): нет данных для TWAP."""
        return cls(price=Decimal.one(), elapsed=0, healthy=False)

    def __iter__(self):
        return iter((self.price, self.elapsed, self.healthy))


# =============================================================================
# ORACLE
# =============================================================================


class Oracle(Implementation):
    """
    TWAP oracle.

    Args:
        ledger: Общий ledger
        owner: Authority
        registry: Адрес registry (collateral, stabilizer, pair_factory)
        config: Параметры health-floor и разрядности счётчиков
    """

    kind = "oracle"
    state_model = OracleState

    def __init__(
        self,
        ledger: Ledger,
        owner: str,
        registry: Optional[str] = None,
        config: Optional[OracleConfig] = None,
        address: Optional[str] = None,
    ):
        self.config = config or OracleConfig()
        super().__init__(ledger, owner, registry=registry, address=address)

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def market(self, asset: str) -> Optional[Market]:
        """Запись market (immutable копия) или None, если актив не зарегистрирован."""
        return self._state.markets.get(asset)

    def is_registered(self, asset: str) -> bool:
        return asset in self._state.markets

    # -------------------------------------------------------------------------
    # Privileged operations
    # -------------------------------------------------------------------------

    @guarded
    def setup(self, sender: str, asset: str) -> Market:
        """
        Регистрация актива: привязка к пулу пары (asset, reference).

        Raises:
            Unauthorized: Если sender не stabilizer
            InvalidState: already_setup / pool_not_found / identical_assets /
                asset_not_in_pool / reference_not_in_pool
        """
        self._require_stabilizer(sender)
        if asset in self._state.markets:
            raise InvalidState(f"Oracle: already setup for {asset}", reason="already_setup")

        reference = self._collaborator_address("collateral")
        if asset == reference:
            raise InvalidState("Oracle: identical assets", reason="identical_assets")
        pool_address = self._collaborator("pair_factory").get_pair(asset, reference)
        if pool_address is None:
            raise InvalidState(f"Oracle: no pool for {asset}/{reference}", reason="pool_not_found")

        pool = self.ledger.resolve(pool_address)
        if pool.token0 == pool.token1:
            raise InvalidState("Oracle: identical pool sides", reason="identical_assets")
        if asset not in (pool.token0, pool.token1):
            raise InvalidState("Oracle: asset not in pool", reason="asset_not_in_pool")
        side = 0 if pool.token0 == asset else 1
        other = pool.token1 if side == 0 else pool.token0
        if other != reference:
            raise InvalidState("Oracle: reference not in pool", reason="reference_not_in_pool")

        market = Market(tracked_asset=asset, pool=pool_address, side=side)
        self._commit(markets={**self._state.markets, asset: market})
        self._emit(MarketSetup, asset=asset, pool=pool_address, side=side)
        logger.info(f"Oracle: registered {asset} on pool {pool_address} (side {side})")
        return market

    @guarded
    def capture(self, sender: str, asset: str) -> OracleSnapshot:
        """
        Snapshot TWAP с прошлого capture.

        Returns:
            OracleSnapshot(price, elapsed, healthy)

        Raises:
            Unauthorized: Если sender не stabilizer
        """
        self._require_stabilizer(sender)
        market = self._state.markets.get(asset)
        if market is None:
            logger.debug(f"Oracle: capture for unregistered {asset}")
            return OracleSnapshot.neutral()

        pool = self.ledger.resolve(market.pool)
        price0, price1, timestamp = pool.current_cumulative_prices()
        cumulative = price0 if market.side == 0 else price1

        if not market.initialized:
            self._store(market, cumulative, timestamp, initialized=True)
            logger.debug(f"Oracle: baseline for {asset} at {timestamp}")
            return OracleSnapshot.neutral()

        elapsed = (timestamp - market.timestamp) % (2**self.config.timestamp_bits)
        if elapsed == 0:
            return OracleSnapshot.neutral()

        price = self._normalized_price(
            asset,
            (cumulative - market.cumulative) % UINT256_MODULUS,
            elapsed,
        )
        self._store(market, cumulative, timestamp)
        healthy = self._healthy(pool, market.side)
        logger.debug(f"Oracle: capture {asset} price={price} elapsed={elapsed} healthy={healthy}")
        return OracleSnapshot(price=price, elapsed=elapsed, healthy=healthy)

    # -------------------------------------------------------------------------
    # Private helpers
    # -------------------------------------------------------------------------

    def _require_stabilizer(self, sender: str) -> None:
        if sender != self.registry().get("stabilizer"):
            raise Unauthorized("Oracle: not stabilizer", reason="not_stabilizer")

    def _store(self, market: Market, cumulative: int, timestamp: int, initialized: bool = True) -> None:
        updated = market.model_copy(
            update={"cumulative": cumulative, "timestamp": timestamp, "initialized": initialized}
        )
        self._commit(markets={**self._state.markets, market.tracked_asset: updated})

    def _normalized_price(self, asset: str, cumulative_delta: int, elapsed: int) -> Decimal:
        """
        TWAP за окно, приведённый к шкале 18 decimals.

        Поправка на разницу decimals применяется к дельте cumulative до
        деления на elapsed и на 2^112: умножение до усекающих делений не
        теряет младшие разряды. От порядка «сначала деления» результат
        отличается только на остаток усечения.
        """
        tracked_decimals = self.ledger.resolve(asset).decimals
        reference_decimals = self._collaborator("collateral").decimals
        price = Decimal.from_int(cumulative_delta)
        if tracked_decimals >= reference_decimals:
            price = price.mul(10 ** (tracked_decimals - reference_decimals))
        else:
            price = price.div(10 ** (reference_decimals - tracked_decimals))
        return price.div(elapsed).div(2**self.config.resolution_bits)

    def _healthy(self, pool, side: int) -> bool:
        reserve0, reserve1, _ = pool.get_reserves()
        reference_reserve = reserve1 if side == 0 else reserve0
        reference = self._collaborator("collateral")
        return reference_reserve >= self.config.reserve_minimum and not reference.is_restricted(pool.address)
