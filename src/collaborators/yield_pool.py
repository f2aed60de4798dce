"""
YieldPool — share-based yield pool

Коллаборатор в духе money-market cToken:
- mint(amount): забирает underlying, начисляет shares = amount / exchange_rate
- redeem_underlying(amount): сжигает shares = amount / exchange_rate, отдаёт underlying
- exchange_rate растёт со временем (accrue), отражая доход без
  per-account учёта

Операции не бросают исключения на бизнес-отказах: возвращают status code
(0 = success). Вызывающая сторона обязана проверять статус.
"""

import logging
from typing import Final, Optional

from src.core.domain.collaborator_state import YieldPoolState
from src.core.implementation import Implementation, guarded
from src.core.ledger import Ledger
from src.core.math.fixed_point import Decimal
from src.core.token_ledger import credit, debit

logger = logging.getLogger(__name__)

# =============================================================================
# STATUS CODES
# =============================================================================

STATUS_SUCCESS: Final[int] = 0
STATUS_INSUFFICIENT_SHARES: Final[int] = 9
STATUS_INSUFFICIENT_CASH: Final[int] = 14


class YieldPool(Implementation):
    """
    Share-accruing pool над underlying токеном.

    Args:
        ledger: Общий ledger
        owner: Администратор пула (меняет exchange_rate и status_code)
        underlying: Адрес underlying токена
        reward_token: Адрес incentive-токена для claim_rewards (опционально)
    """

    kind = "yield_pool"
    state_model = YieldPoolState

    def __init__(
        self,
        ledger: Ledger,
        owner: str,
        underlying: str,
        reward_token: Optional[str] = None,
        address: Optional[str] = None,
    ):
        self.underlying = underlying
        self.reward_token = reward_token
        super().__init__(ledger, owner, address=address)

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def exchange_rate(self) -> Decimal:
        return self._state.exchange_rate

    def balance_of(self, account: str) -> int:
        """Баланс shares."""
        return self._state.shares.get(account, 0)

    def balance_of_underlying(self, account: str) -> int:
        """shares × exchange_rate, вычисляется при каждом запросе."""
        return self._state.exchange_rate.mul(self.balance_of(account)).as_int()

    def total_shares(self) -> int:
        return self._state.total_shares

    def accrued_rewards(self, holder: str) -> int:
        return self._state.accrued_rewards.get(holder, 0)

    # -------------------------------------------------------------------------
    # Pool operations
    # -------------------------------------------------------------------------

    @guarded
    def mint(self, sender: str, amount: int) -> int:
        """
        Депозит underlying от sender (нужен allowance на пул).

        Returns:
            Status code (0 = success)
        """
        if self._state.status_code != STATUS_SUCCESS:
            return self._state.status_code

        shares = Decimal.from_int(amount).div(self._state.exchange_rate).as_int()
        self.ledger.resolve(self.underlying).transfer_from(self.address, sender, self.address, amount)
        self._commit(
            shares=credit(self._state.shares, sender, shares),
            total_shares=self._state.total_shares + shares,
        )
        logger.debug(f"YieldPool {self.address}: {sender} supplied {amount} for {shares} shares")
        return STATUS_SUCCESS

    @guarded
    def redeem_underlying(self, sender: str, amount: int) -> int:
        """
        Вывод amount underlying в пользу sender.

        Returns:
            Status code (0 = success)
        """
        if self._state.status_code != STATUS_SUCCESS:
            return self._state.status_code

        shares = Decimal.from_int(amount).div(self._state.exchange_rate).as_int()
        if shares > self.balance_of(sender):
            return STATUS_INSUFFICIENT_SHARES
        underlying = self.ledger.resolve(self.underlying)
        if underlying.balance_of(self.address) < amount:
            return STATUS_INSUFFICIENT_CASH

        self._commit(
            shares=debit(self._state.shares, sender, shares, "YieldPool: redeem exceeds shares", "insufficient_shares"),
            total_shares=self._state.total_shares - shares,
        )
        underlying.transfer(self.address, sender, amount)
        logger.debug(f"YieldPool {self.address}: {sender} redeemed {amount} for {shares} shares")
        return STATUS_SUCCESS

    @guarded
    def claim_rewards(self, holder: str) -> int:
        """
        Выплата накопленного incentive-токена holder'у.

        Returns:
            Выплаченная сумма
        """
        amount = self.accrued_rewards(holder)
        if amount == 0 or self.reward_token is None:
            return 0
        rewards = dict(self._state.accrued_rewards)
        del rewards[holder]
        self._commit(accrued_rewards=rewards)
        self.ledger.resolve(self.reward_token).transfer(self.address, holder, amount)
        return amount

    # -------------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------------

    @guarded
    def set_exchange_rate(self, sender: str, rate: Decimal) -> None:
        self._require_owner(sender)
        self._commit(exchange_rate=rate)

    @guarded
    def set_status_code(self, sender: str, status_code: int) -> None:
        self._require_owner(sender)
        self._commit(status_code=status_code)

    @guarded
    def accrue_rewards(self, sender: str, holder: str, amount: int) -> None:
        """Начисление incentive-токена holder'у (пул должен держать сумму)."""
        self._require_owner(sender)
        self._commit(accrued_rewards=credit(self._state.accrued_rewards, holder, amount))
