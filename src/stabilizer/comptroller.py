"""
StabilizerComptroller — Stabilizer Flywheel

Вторичный пул, стейкающий managed stable asset. Держатели получают
pool-share токен ("Saved Set Dollar", sSD); дополнительный доход пула
финансируется заимствованиями у резерва.

settle() — основной тик, выполняется перед каждой операцией с пулом:
    1. (price, elapsed, healthy) = oracle.capture(stable); days = elapsed / 86400
    2. rate = reward_rate × (1 − clamp(ema, redeem_price, 1.0))   ← ema ДО обновления
    3. borrow = rate × days × total_underlying; borrow > 0 → reserve.borrow
    4. healthy:   alpha = min(decay_rate × days, max_alpha)
                  ema   = alpha × price + (1 − alpha) × ema
       unhealthy: ema   = 1.0
"""

import logging
from typing import Optional

from src.core.config import StabilizerConfig
from src.core.domain.events import (
    Approval,
    StabilizerParameterUpdate,
    StabilizerRedeem,
    StabilizerSettle,
    StabilizerSupply,
    Transfer,
)
from src.core.domain.stabilizer_state import StabilizerState
from src.core.errors import InvalidState
from src.core.implementation import Implementation, guarded
from src.core.ledger import Ledger
from src.core.math.fixed_point import Decimal, clamp, dmin
from src.core.token_ledger import (
    ZERO_ADDRESS,
    allowance_of,
    credit,
    debit,
    move,
    set_allowance,
    spend_allowance,
)

logger = logging.getLogger(__name__)


class StabilizerComptroller(Implementation):
    """
    Stabilizer Flywheel с семантикой pool-share токена.

    Args:
        ledger: Общий ledger
        owner: Authority (setup и параметры EMA / reward)
        registry: Адрес registry (stable, oracle, reserve)
        config: Метаданные share-токена и длина суток
    """

    kind = "stabilizer"
    state_model = StabilizerState

    def __init__(
        self,
        ledger: Ledger,
        owner: str,
        registry: Optional[str] = None,
        config: Optional[StabilizerConfig] = None,
        address: Optional[str] = None,
    ):
        self.config = config or StabilizerConfig()
        super().__init__(ledger, owner, registry=registry, address=address)

    # =========================================================================
    # TOKEN METADATA & VIEWS
    # =========================================================================

    @property
    def name(self) -> str:
        return self.config.token_name

    @property
    def symbol(self) -> str:
        return self.config.token_symbol

    @property
    def decimals(self) -> int:
        return self.config.token_decimals

    def balance_of(self, account: str) -> int:
        return self._state.balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return allowance_of(self._state.allowances, owner, spender)

    def total_supply(self) -> int:
        return self._state.total_supply

    def total_underlying(self) -> int:
        """Баланс stable asset пула."""
        return self._collaborator("stable").balance_of(self.address)

    def balance_of_underlying(self, account: str) -> int:
        supply = self._state.total_supply
        if supply == 0:
            return 0
        return self.total_underlying() * self.balance_of(account) // supply

    # =========================================================================
    # ORACLE SUB-STATE VIEWS
    # =========================================================================

    def ema(self) -> Optional[Decimal]:
        return self._state.ema

    def decay_rate(self) -> Decimal:
        return self._state.decay_rate

    def max_alpha(self) -> Decimal:
        return self._state.max_alpha

    def reward_rate(self) -> Decimal:
        return self._state.reward_rate

    def rate(self) -> Decimal:
        """
        Текущая ставка доп. дохода пула в сутки (по текущему ema).

        Raises:
            InvalidState: Если setup не выполнен
        """
        ema = self._require_setup()
        redeem_price = self._collaborator("reserve").redeem_price()
        bounded = clamp(ema, redeem_price, Decimal.one())
        return self._state.reward_rate.mul(Decimal.one().sub(bounded))

    # =========================================================================
    # SETUP & PARAMETERS
    # =========================================================================

    @guarded
    def setup(self, sender: str) -> None:
        """
        Регистрация stable asset в oracle и ema = 1.0 (один раз).

        Raises:
            Unauthorized: Если sender не owner
            InvalidState: already_setup
        """
        self._require_owner(sender)
        if self._state.ema is not None:
            raise InvalidState("StabilizerComptroller: already setup", reason="already_setup")
        stable = self._collaborator_address("stable")
        self._collaborator("oracle").setup(self.address, stable)
        self._commit(ema=Decimal.one())
        logger.info(f"Stabilizer: setup complete for {stable}")

    @guarded
    def set_decay_rate(self, sender: str, value: Decimal) -> None:
        self._set_parameter(sender, "decay_rate", value)

    @guarded
    def set_max_alpha(self, sender: str, value: Decimal) -> None:
        self._set_parameter(sender, "max_alpha", value)

    @guarded
    def set_reward_rate(self, sender: str, value: Decimal) -> None:
        self._set_parameter(sender, "reward_rate", value)

    def _set_parameter(self, sender: str, parameter: str, value: Decimal) -> None:
        self._require_owner(sender)
        self._commit(**{parameter: value})
        self._emit(StabilizerParameterUpdate, parameter=parameter, value=value)
        logger.info(f"Stabilizer: {parameter} set to {value}")

    # =========================================================================
    # FLYWHEEL
    # =========================================================================

    @guarded
    def settle(self) -> int:
        """
        Тик flywheel.

        Returns:
            Заимствованная у резерва сумма
        """
        return self._settle()

    def _settle(self) -> int:
        ema = self._require_setup()
        stable = self._collaborator_address("stable")
        snapshot = self._collaborator("oracle").capture(self.address, stable)
        elapsed_days = Decimal.ratio(snapshot.elapsed, self.config.seconds_per_day)

        rate = self.rate()
        borrow_amount = rate.mul(elapsed_days).mul(self.total_underlying()).as_int()
        if borrow_amount > 0:
            self._collaborator("reserve").borrow(self.address, borrow_amount)

        if snapshot.healthy:
            alpha = dmin(self._state.decay_rate.mul(elapsed_days), self._state.max_alpha)
            new_ema = alpha.mul(snapshot.price).add(Decimal.one().sub(alpha).mul(ema))
        else:
            new_ema = Decimal.one()
            if snapshot.elapsed > 0:
                logger.warning(f"Stabilizer: unhealthy oracle snapshot, ema reset to 1.0 (was {ema})")
        self._commit(ema=new_ema)

        self._emit(StabilizerSettle, amount=borrow_amount)
        logger.info(f"Stabilizer: settled, borrowed {borrow_amount}, ema {ema} -> {new_ema}")
        return borrow_amount

    # =========================================================================
    # POOL OPERATIONS
    # =========================================================================

    @guarded
    def supply(self, sender: str, amount: int) -> int:
        """
        Депозит amount stable asset в пул.

        Returns:
            Выпущенные shares
        """
        self._require_not_paused()
        self._settle()

        supply = self._state.total_supply
        if supply == 0:
            shares = amount
        else:
            underlying = self.total_underlying()
            if underlying == 0:
                raise InvalidState("StabilizerComptroller: empty pool", reason="empty_pool")
            shares = amount * supply // underlying

        self._collaborator("stable").transfer_from(self.address, sender, self.address, amount)
        self._mint_shares(sender, shares)

        self._emit(StabilizerSupply, account=sender, amount=amount, mint_amount=shares)
        logger.info(f"Stabilizer: {sender} supplied {amount} for {shares} shares")
        return shares

    @guarded
    def redeem(self, sender: str, shares: int) -> int:
        """
        Погашение shares.

        Returns:
            Выплаченный underlying
        """
        self._require_not_paused()
        self._settle()
        supply = self._state.total_supply
        amount = shares * self.total_underlying() // supply if supply else 0
        self._redeem(sender, amount, shares)
        return amount

    @guarded
    def redeem_underlying(self, sender: str, amount: int) -> int:
        """
        Вывод ровно amount underlying; сжигает shares, округлённые вверх.

        Returns:
            Сожжённые shares
        """
        self._require_not_paused()
        self._settle()
        supply = self._state.total_supply
        underlying = self.total_underlying()
        if amount == 0:
            shares = 0
        else:
            if underlying == 0:
                raise InvalidState("StabilizerComptroller: empty pool", reason="empty_pool")
            shares = -(-(amount * supply) // underlying)
        self._redeem(sender, amount, shares)
        return shares

    def _redeem(self, sender: str, amount: int, shares: int) -> None:
        self._burn_shares(sender, shares)
        self._collaborator("stable").transfer(self.address, sender, amount)
        self._emit(StabilizerRedeem, account=sender, amount=amount, burn_amount=shares)
        logger.info(f"Stabilizer: {sender} redeemed {amount} for {shares} shares")

    # =========================================================================
    # SHARE TOKEN
    # =========================================================================

    @guarded
    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        self._transfer_shares(sender, recipient, amount)
        return True

    @guarded
    def approve(self, sender: str, spender: str, amount: int) -> bool:
        self._commit(allowances=set_allowance(self._state.allowances, sender, spender, amount))
        self._emit(Approval, owner=sender, spender=spender, value=amount)
        return True

    @guarded
    def transfer_from(self, sender: str, holder: str, recipient: str, amount: int) -> bool:
        self._transfer_shares(holder, recipient, amount)
        self._commit(
            allowances=spend_allowance(
                self._state.allowances,
                holder,
                sender,
                amount,
                "StabilizerToken: transfer amount exceeds allowance",
                "transfer_exceeds_allowance",
            )
        )
        return True

    def _transfer_shares(self, holder: str, recipient: str, amount: int) -> None:
        balances = move(
            self._state.balances,
            holder,
            recipient,
            amount,
            "StabilizerToken: transfer amount exceeds balance",
            "transfer_exceeds_balance",
        )
        self._commit(balances=balances)
        self._emit(Transfer, sender=holder, recipient=recipient, value=amount)

    def _mint_shares(self, account: str, shares: int) -> None:
        self._commit(
            balances=credit(self._state.balances, account, shares),
            total_supply=self._state.total_supply + shares,
        )
        self._emit(Transfer, sender=ZERO_ADDRESS, recipient=account, value=shares)

    def _burn_shares(self, account: str, shares: int) -> None:
        balances = debit(
            self._state.balances,
            account,
            shares,
            "StabilizerToken: burn amount exceeds balance",
            "burn_exceeds_balance",
        )
        self._commit(balances=balances, total_supply=self._state.total_supply - shares)
        self._emit(Transfer, sender=account, recipient=ZERO_ADDRESS, value=shares)

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    def _require_setup(self) -> Decimal:
        if self._state.ema is None:
            raise InvalidState("StabilizerComptroller: not setup", reason="not_setup")
        return self._state.ema
