"""
Incentivizer — стейкинг-программа с reward-per-share accumulator

Аккаунты стейкают underlying токен и получают reward токен, который
начисляется с постоянной скоростью reward_rate (единиц в секунду) до
момента reward_complete.

Accumulator (монотонно растёт):
    new_reward      = rate × (min(now, complete) − min(updated, complete))
    reward_per_unit += new_reward / total_underlying     (если total_underlying > 0)

Claimable reward аккаунта:
    settled + (reward_per_unit − checkpoint.reward_per_unit) × staked

Underlying и reward могут быть одним и тем же токеном.
"""

import logging
from typing import Optional, Tuple

from src.core.domain.events import (
    Claim,
    IncentivizerSettle,
    Rescue,
    RewardProgramUpdate,
    Stake,
    Withdrawal,
)
from src.core.domain.incentivizer_state import IncentivizerState, RewardCheckpoint
from src.core.errors import InsufficientFunds
from src.core.implementation import Implementation, guarded
from src.core.ledger import Ledger
from src.core.math.fixed_point import Decimal, checked_sub
from src.core.token_ledger import credit, debit

logger = logging.getLogger(__name__)


class Incentivizer(Implementation):
    """
    Стейкинг-программа.

    Args:
        ledger: Общий ledger
        owner: Authority (параметры программы, rescue)
        underlying: Адрес стейкаемого токена
        reward: Адрес reward токена
        reserve: Получатель излишков и rescue
    """

    kind = "incentivizer"
    state_model = IncentivizerState

    def __init__(
        self,
        ledger: Ledger,
        owner: str,
        underlying: str,
        reward: str,
        reserve: str,
        address: Optional[str] = None,
    ):
        self.underlying = underlying
        self.reward = reward
        self.reserve = reserve
        super().__init__(ledger, owner, address=address)

    # =========================================================================
    # VIEWS
    # =========================================================================

    def reward_rate(self) -> int:
        return self._state.reward_rate

    def reward_complete(self) -> int:
        return self._state.reward_complete

    def reward_updated(self) -> int:
        return self._state.reward_updated

    def reward_per_unit(self) -> Decimal:
        return self._state.reward_per_unit

    def total_underlying(self) -> int:
        return self._state.total_underlying

    def total_reward(self) -> int:
        """Начисленный (settled), но ещё не выплаченный reward."""
        return self._state.total_reward

    def total_provisioned_reward(self) -> int:
        """Reward, зарезервированный под остаток программы после reward_updated."""
        s = self._state
        return s.reward_rate * max(s.reward_complete - s.reward_updated, 0)

    def balance_of_underlying(self, account: str) -> int:
        return self._state.balances.get(account, 0)

    def balance_of_reward(self, account: str) -> int:
        """Claimable reward аккаунта, включая ещё не settled начисление."""
        reward_per_unit, _, _ = self._accrual()
        return self._checkpoint_value(account, reward_per_unit)

    # =========================================================================
    # STAKING
    # =========================================================================

    @guarded
    def settle(self) -> None:
        self._settle()

    @guarded
    def stake(self, sender: str, amount: int) -> None:
        """
        Raises:
            InsufficientFunds: Если у sender нет underlying / allowance
        """
        self._settle()
        self._checkpoint(sender)
        self._commit(
            balances=credit(self._state.balances, sender, amount),
            total_underlying=self._state.total_underlying + amount,
        )
        self._token(self.underlying).transfer_from(self.address, sender, self.address, amount)
        self._emit(Stake, account=sender, amount=amount)
        logger.info(f"Incentivizer: {sender} staked {amount}")

    @guarded
    def withdraw(self, sender: str, amount: int) -> None:
        """
        Raises:
            InsufficientFunds: insufficient_staked_balance
        """
        self._withdraw(sender, amount)

    @guarded
    def claim(self, sender: str) -> int:
        """
        Выплата всего claimable reward.

        Returns:
            Выплаченная сумма
        """
        return self._claim(sender)

    @guarded
    def exit(self, sender: str) -> int:
        """Вывод всего стейка и claim reward."""
        self._withdraw(sender, self.balance_of_underlying(sender))
        return self._claim(sender)

    # =========================================================================
    # ADMINISTRATION
    # =========================================================================

    @guarded
    def update_reward_program(self, sender: str, rate: int, complete: int) -> None:
        """
        Новая программа: rate единиц reward в секунду до complete.

        Излишек reward сверх обязательств отправляется в reserve.

        Raises:
            Unauthorized: Если sender не owner
            InsufficientFunds: insufficient_rewards
        """
        self._require_owner(sender)
        self._settle()

        now = self.ledger.now
        self._commit(reward_rate=rate, reward_complete=complete, reward_updated=now)

        required = self._state.total_reward + rate * max(complete - now, 0)
        available = self._reward_balance()
        if available < required:
            raise InsufficientFunds("Incentivizer: insufficient rewards", reason="insufficient_rewards")
        excess = available - required
        if excess:
            self._token(self.reward).transfer(self.address, self.reserve, excess)

        self._emit(RewardProgramUpdate, rate=rate, complete=complete)
        logger.info(f"Incentivizer: reward program {rate}/s until {complete} (excess {excess} to reserve)")

    @guarded
    def rescue(self, sender: str, token: str, amount: int) -> None:
        """
        Вывод токена в reserve без нарушения обязательств перед стейкерами.

        Raises:
            Unauthorized: Если sender не owner
            InsufficientFunds: insufficient_underlying / insufficient_rewards
        """
        self._require_owner(sender)
        self._settle()
        token_contract = self._token(token)
        balance = token_contract.balance_of(self.address)
        if amount > balance:
            raise InsufficientFunds("Incentivizer: insufficient balance", reason="insufficient_balance")
        remaining = balance - amount

        if token == self.underlying and remaining < self._state.total_underlying:
            raise InsufficientFunds("Incentivizer: insufficient underlying", reason="insufficient_underlying")
        if token == self.reward:
            committed = self._state.total_reward + self.total_provisioned_reward()
            if token == self.underlying:
                committed += self._state.total_underlying
            if remaining < committed:
                raise InsufficientFunds("Incentivizer: insufficient rewards", reason="insufficient_rewards")

        token_contract.transfer(self.address, self.reserve, amount)
        self._emit(Rescue, token=token, amount=amount)
        logger.info(f"Incentivizer: rescued {amount} of {token} to {self.reserve}")

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    def _token(self, address: str):
        return self.ledger.resolve(address)

    def _reward_balance(self) -> int:
        """Баланс reward токена за вычетом стейка (если токены совпадают)."""
        balance = self._token(self.reward).balance_of(self.address)
        if self.reward == self.underlying:
            balance = checked_sub(balance, self._state.total_underlying)
        return balance

    def _accrual(self) -> Tuple[Decimal, int, int]:
        """(reward_per_unit, new_reward, updated) при settle в текущий момент."""
        s = self._state
        updated = min(self.ledger.now, s.reward_complete)
        new_reward = 0
        reward_per_unit = s.reward_per_unit
        if s.total_underlying > 0:
            new_reward = s.reward_rate * (updated - min(s.reward_updated, s.reward_complete))
            reward_per_unit = reward_per_unit.add(Decimal.ratio(new_reward, s.total_underlying))
        return reward_per_unit, new_reward, updated

    def _settle(self) -> None:
        reward_per_unit, new_reward, updated = self._accrual()
        self._commit(
            reward_per_unit=reward_per_unit,
            total_reward=self._state.total_reward + new_reward,
            reward_updated=updated,
        )
        self._emit(IncentivizerSettle, reward_per_unit=reward_per_unit, new_reward=new_reward, updated=updated)

    def _checkpoint_value(self, account: str, reward_per_unit: Decimal) -> int:
        checkpoint = self._state.checkpoints.get(account, RewardCheckpoint())
        accrued = reward_per_unit.sub(checkpoint.reward_per_unit).mul(self.balance_of_underlying(account))
        return checkpoint.settled + accrued.as_int()

    def _checkpoint(self, account: str) -> None:
        settled = self._checkpoint_value(account, self._state.reward_per_unit)
        checkpoint = RewardCheckpoint(settled=settled, reward_per_unit=self._state.reward_per_unit)
        self._commit(checkpoints={**self._state.checkpoints, account: checkpoint})

    def _withdraw(self, account: str, amount: int) -> None:
        self._settle()
        self._checkpoint(account)
        self._commit(
            balances=debit(
                self._state.balances,
                account,
                amount,
                "Incentivizer: insufficient staked balance",
                "insufficient_staked_balance",
            ),
            total_underlying=self._state.total_underlying - amount,
        )
        self._token(self.underlying).transfer(self.address, account, amount)
        self._emit(Withdrawal, account=account, amount=amount)
        logger.info(f"Incentivizer: {account} withdrew {amount}")

    def _claim(self, account: str) -> int:
        self._settle()
        self._checkpoint(account)
        amount = self._state.checkpoints[account].settled
        self._commit(
            total_reward=checked_sub(self._state.total_reward, amount),
            checkpoints={
                **self._state.checkpoints,
                account: RewardCheckpoint(reward_per_unit=self._state.reward_per_unit),
            },
        )
        if amount:
            self._token(self.reward).transfer(self.address, account, amount)
        self._emit(Claim, account=account, amount=amount)
        logger.info(f"Incentivizer: {account} claimed {amount}")
        return amount
