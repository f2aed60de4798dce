"""
ReserveVault — yield vault adapter резерва

Держит claim резерва на share-based yield pool. Собственного state нет:
баланс всегда вычисляется на запрос как shares × текущий exchange rate,
поэтому внешне начисленный доход учитывается автоматически.

Любой ненулевой status code пула — фатальный ExternalCallFailed.
События (SupplyVault / RedeemVault / ClaimVault) эмитирует владелец адаптера.
"""

import logging
from typing import TYPE_CHECKING

from src.core.domain.events import ClaimVault, RedeemVault, SupplyVault
from src.core.errors import ExternalCallFailed

if TYPE_CHECKING:
    from src.reserve.comptroller import ReserveComptroller

logger = logging.getLogger(__name__)


class ReserveVault:
    """Адаптер yield pool, работающий от имени резерва."""

    def __init__(self, reserve: "ReserveComptroller"):
        self._reserve = reserve

    def _pool(self):
        return self._reserve._collaborator("yield_pool")

    def balance(self) -> int:
        """Underlying, причитающийся резерву (в единицах collateral)."""
        return self._pool().balance_of_underlying(self._reserve.address)

    def shares(self) -> int:
        return self._pool().balance_of(self._reserve.address)

    def supply(self, amount: int) -> None:
        """
        Депозит amount collateral в пул.

        Allowance выдаётся ровно на amount (без over-approve).

        Raises:
            ExternalCallFailed: Если пул вернул ненулевой статус
        """
        reserve = self._reserve
        pool = self._pool()
        collateral = reserve._collaborator("collateral")
        collateral.approve(reserve.address, pool.address, amount)
        status = pool.mint(reserve.address, amount)
        if status != 0:
            raise ExternalCallFailed(
                f"ReserveVault: supply failed (status {status})", reason="vault_supply_failed"
            )
        reserve._emit(SupplyVault, amount=amount)
        logger.debug(f"ReserveVault: supplied {amount}")

    def redeem(self, amount: int) -> None:
        """
        Вывод amount collateral из пула на баланс резерва.

        Raises:
            ExternalCallFailed: Если пул вернул ненулевой статус
        """
        status = self._pool().redeem_underlying(self._reserve.address, amount)
        if status != 0:
            raise ExternalCallFailed(
                f"ReserveVault: redeem failed (status {status})", reason="vault_redeem_failed"
            )
        self._reserve._emit(RedeemVault, amount=amount)
        logger.debug(f"ReserveVault: redeemed {amount}")

    def claim(self) -> int:
        """Сбор incentive-токена пула на баланс резерва."""
        amount = self._pool().claim_rewards(self._reserve.address)
        self._reserve._emit(ClaimVault, amount=amount)
        logger.debug(f"ReserveVault: claimed {amount}")
        return amount
