"""
LiquidityPool — constant-product пул с cumulative price counters

Read-only (с точки зрения ядра) источник цен для TWAP oracle:
- token0 / token1: отсортированные адреса сторон
- reserve0 / reserve1: текущие резервы
- price{0,1}_cumulative_last: Σ price × Δt в UQ112.112, overflow по модулю 2^256
- block_timestamp_last: по модулю 2^32

price0 = reserve1 / reserve0 (цена token0 в единицах token1).
"""

import logging
from typing import Final, Optional, Tuple

from src.core.domain.collaborator_state import LiquidityPoolState
from src.core.errors import InvalidState
from src.core.implementation import Implementation, guarded
from src.core.ledger import Ledger
from src.core.math.fixed_point import check_uint256

logger = logging.getLogger(__name__)

# =============================================================================
# КОНСТАНТЫ
# =============================================================================

RESOLUTION: Final[int] = 112
Q112: Final[int] = 2**RESOLUTION
UINT256_MODULUS: Final[int] = 2**256
TIMESTAMP_MODULUS: Final[int] = 2**32
UINT112_MAX: Final[int] = 2**112 - 1


def encode_uq112(numerator: int, denominator: int) -> int:
    """numerator / denominator в формате UQ112.112 (усечение)."""
    return (numerator * Q112) // denominator


class LiquidityPool(Implementation):
    """
    Constant-product пул пары токенов.

    Args:
        ledger: Общий ledger
        owner: Администратор (задаёт резервы)
        token_a, token_b: Адреса сторон (порядок не важен)
    """

    kind = "liquidity_pool"
    state_model = LiquidityPoolState

    def __init__(
        self,
        ledger: Ledger,
        owner: str,
        token_a: str,
        token_b: str,
        address: Optional[str] = None,
    ):
        if token_a == token_b:
            raise InvalidState("LiquidityPool: identical addresses", reason="identical_assets")
        self.token0, self.token1 = sorted((token_a, token_b))
        super().__init__(ledger, owner, address=address)
        self._commit(block_timestamp_last=ledger.now % TIMESTAMP_MODULUS)

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def get_reserves(self) -> Tuple[int, int, int]:
        s = self._state
        return s.reserve0, s.reserve1, s.block_timestamp_last

    def current_cumulative_prices(self) -> Tuple[int, int, int]:
        """
        Cumulative prices на текущий момент ledger (counterfactual accrual).

        Returns:
            (price0_cumulative, price1_cumulative, block_timestamp mod 2^32)
        """
        s = self._state
        timestamp = self.ledger.now % TIMESTAMP_MODULUS
        price0, price1 = s.price0_cumulative_last, s.price1_cumulative_last
        if s.block_timestamp_last != timestamp:
            elapsed = (timestamp - s.block_timestamp_last) % TIMESTAMP_MODULUS
            price0, price1 = self._accrued(price0, price1, elapsed)
        return price0, price1, timestamp

    def _accrued(self, price0: int, price1: int, elapsed: int) -> Tuple[int, int]:
        s = self._state
        if s.reserve0 == 0 or s.reserve1 == 0:
            return price0, price1
        price0 = (price0 + encode_uq112(s.reserve1, s.reserve0) * elapsed) % UINT256_MODULUS
        price1 = (price1 + encode_uq112(s.reserve0, s.reserve1) * elapsed) % UINT256_MODULUS
        return price0, price1

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    @guarded
    def set_reserves(self, sender: str, reserve0: int, reserve1: int) -> None:
        """
        Новые резервы; перед заменой накапливает cumulative prices по старым.

        Raises:
            Unauthorized: Если sender не owner
            ArithmeticFailure: Если резерв вне uint112
        """
        self._require_owner(sender)
        for value, label in ((reserve0, "reserve0"), (reserve1, "reserve1")):
            check_uint256(value, label)
            if value > UINT112_MAX:
                raise InvalidState(f"LiquidityPool: {label} overflow", reason="reserve_overflow")

        price0, price1, timestamp = self.current_cumulative_prices()
        self._commit(
            reserve0=reserve0,
            reserve1=reserve1,
            price0_cumulative_last=price0,
            price1_cumulative_last=price1,
            block_timestamp_last=timestamp,
        )
        logger.debug(f"LiquidityPool {self.address}: reserves {reserve0}/{reserve1}")

    @guarded
    def set_cumulative_prices(self, sender: str, price0: int, price1: int) -> None:
        """Прямая установка счётчиков (моделирование overflow в тестах)."""
        self._require_owner(sender)
        self._commit(
            price0_cumulative_last=price0 % UINT256_MODULUS,
            price1_cumulative_last=price1 % UINT256_MODULUS,
            block_timestamp_last=self.ledger.now % TIMESTAMP_MODULUS,
        )
