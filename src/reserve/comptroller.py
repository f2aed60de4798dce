"""
ReserveComptroller — учёт collateral, mint / redeem, borrow, settle

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. reserve_ratio() == 1.0 при нулевом supply stable asset
2. redeem_price() ∈ [0, 1]: min(ratio, 1) − tax с floor на нуле
3. mint округляет стоимость ВВЕРХ до целой единицы collateral,
   redeem усекает выплату: mint → redeem никогда не создаёт стоимость
4. total_debt растёт только в borrow, убывает только в settle;
   total_debt == sum(debt)

Rate limiter (leaky bucket, непрерывное время):
    daily_limit = borrow_daily_limit_ratio × stable supply
    freed       = elapsed_days × daily_limit
    window      = max(borrowed − freed, 0) + amount
    window > daily_limit → RateLimitExceeded("insufficient_borrowable")
"""

import logging
from typing import Any, Dict, Optional

from src.core.config import ReserveConfig
from src.core.domain.events import (
    RedemptionTaxUpdate,
    ReserveBorrow,
    ReserveMint,
    ReserveRedeem,
    ReserveSettle,
)
from src.core.domain.reserve_state import BorrowController, ReserveState
from src.core.errors import InvalidState, RateLimitExceeded, Unauthorized
from src.core.implementation import Implementation, guarded
from src.core.ledger import Ledger
from src.core.math.fixed_point import Decimal, checked_sub, dmin
from src.vault.reserve_vault import ReserveVault

logger = logging.getLogger(__name__)


class ReserveComptroller(Implementation):
    """
    Reserve Comptroller.

    Args:
        ledger: Общий ledger
        owner: Authority (redemption tax, claim_vault)
        registry: Адрес registry (collateral, stable, yield_pool, stabilizer)
        config: Decimals и дневной лимит заимствований
    """

    kind = "reserve"
    state_model = ReserveState

    def __init__(
        self,
        ledger: Ledger,
        owner: str,
        registry: Optional[str] = None,
        config: Optional[ReserveConfig] = None,
        address: Optional[str] = None,
    ):
        self.config = config or ReserveConfig()
        super().__init__(ledger, owner, registry=registry, address=address)
        self.vault = ReserveVault(self)

    # =========================================================================
    # VIEWS
    # =========================================================================

    def reserve_collateral_balance(self) -> int:
        """Collateral на балансе резерва + баланс vault (единицы collateral)."""
        collateral = self._collaborator("collateral")
        return collateral.balance_of(self.address) + self.vault.balance()

    def reserve_balance(self) -> int:
        """Баланс резерва в 18-decimal шкале stable asset."""
        return self.reserve_collateral_balance() * self.config.scale_factor

    def reserve_ratio(self) -> Decimal:
        supply = self._collaborator("stable").total_supply()
        if supply == 0:
            return Decimal.one()
        return Decimal.ratio(self.reserve_balance(), supply)

    def redeem_price(self) -> Decimal:
        return dmin(self.reserve_ratio(), Decimal.one()).sub_or_zero(self._state.redemption_tax)

    def redemption_tax(self) -> Decimal:
        return self._state.redemption_tax

    def total_debt(self) -> int:
        return self._state.total_debt

    def debt(self, borrower: str) -> int:
        return self._state.debt.get(borrower, 0)

    def borrow_controller(self) -> BorrowController:
        return self._state.borrow_controller

    def daily_borrow_limit(self) -> int:
        """0.2% текущего supply stable asset, включая уже заимствованное."""
        supply = self._collaborator("stable").total_supply()
        return self.config.borrow_daily_limit_ratio.mul(supply).as_int()

    # =========================================================================
    # ISSUANCE
    # =========================================================================

    @guarded
    def mint(self, sender: str, amount: int) -> int:
        """
        Выпуск amount stable asset за collateral (1:1 по стоимости).

        Returns:
            Списанная стоимость в единицах collateral

        Raises:
            InvalidState: Если резерв на паузе
            InsufficientFunds: Если у sender нет collateral / allowance
        """
        self._require_not_paused()
        cost = self._collateral_cost(amount)

        collateral = self._collaborator("collateral")
        collateral.transfer_from(self.address, sender, self.address, cost)
        self.vault.supply(cost)
        self._collaborator("stable").mint(self.address, sender, amount)

        self._emit(ReserveMint, account=sender, mint_amount=amount, cost_amount=cost)
        logger.info(f"Reserve: minted {amount} to {sender} for {cost} collateral")
        return cost

    @guarded
    def redeem(self, sender: str, amount: int) -> int:
        """
        Погашение amount stable asset по redeem_price().

        Цена фиксируется до сжигания; выплата усекается.

        Returns:
            Выплата в единицах collateral
        """
        self._require_not_paused()
        price = self.redeem_price()
        payout = price.mul(amount).as_int() // self.config.scale_factor

        self._burn_from(sender, amount)
        self.vault.redeem(payout)
        self._collaborator("collateral").transfer(self.address, sender, payout)

        self._emit(ReserveRedeem, account=sender, cost_amount=amount, redeem_amount=payout)
        logger.info(f"Reserve: redeemed {amount} from {sender} for {payout} collateral (price {price})")
        return payout

    # =========================================================================
    # BORROWING
    # =========================================================================

    @guarded
    def borrow(self, sender: str, amount: int) -> None:
        """
        Выпуск amount stable asset стабилизатору без collateral.

        Raises:
            Unauthorized: Если sender не stabilizer
            InvalidState: Если резерв на паузе
            RateLimitExceeded: Если окно превышает дневной лимит
        """
        stabilizer = self._collaborator_address("stabilizer")
        if sender != stabilizer:
            raise Unauthorized("ReserveComptroller: not stabilizer", reason="not_stabilizer")
        self._require_not_paused()

        self._step_borrow_controller(amount)
        self._commit(
            total_debt=self._state.total_debt + amount,
            debt={**self._state.debt, sender: self.debt(sender) + amount},
        )
        self._collaborator("stable").mint(self.address, sender, amount)

        self._emit(ReserveBorrow, amount=amount)
        logger.info(f"Reserve: {sender} borrowed {amount} (total debt {self._state.total_debt})")

    @guarded
    def settle(self, sender: str, amount: int) -> int:
        """
        Погашение долга стабилизатора: sender сжигает amount stable asset и
        получает эквивалент в collateral.

        Returns:
            Выплата в единицах collateral

        Raises:
            InvalidState: insufficient_debt / paused
        """
        self._require_not_paused()
        stabilizer = self._collaborator_address("stabilizer")
        outstanding = self.debt(stabilizer)
        if amount > outstanding:
            raise InvalidState("ReserveComptroller: insufficient debt", reason="insufficient_debt")

        proceeds = amount // self.config.scale_factor
        self._burn_from(sender, amount)
        debt = dict(self._state.debt)
        remaining = outstanding - amount
        if remaining:
            debt[stabilizer] = remaining
        else:
            debt.pop(stabilizer, None)
        self._commit(total_debt=checked_sub(self._state.total_debt, amount), debt=debt)

        self.vault.redeem(proceeds)
        self._collaborator("collateral").transfer(self.address, sender, proceeds)

        self._emit(ReserveSettle, account=sender, settle_amount=amount, proceed_amount=proceeds)
        logger.info(f"Reserve: {sender} settled {amount} of debt for {proceeds} collateral")
        return proceeds

    # =========================================================================
    # ADMINISTRATION
    # =========================================================================

    @guarded
    def set_redemption_tax(self, sender: str, tax: Decimal) -> None:
        """
        Raises:
            Unauthorized: Если sender не owner
            InvalidState: Если tax > 1.0
        """
        self._require_owner(sender)
        if tax > Decimal.one():
            raise InvalidState(f"ReserveComptroller: tax {tax} exceeds 1.0", reason="tax_too_large")
        self._commit(redemption_tax=tax)
        self._emit(RedemptionTaxUpdate, tax=tax)
        logger.info(f"Reserve: redemption tax set to {tax}")

    @guarded
    def claim_vault(self, sender: str) -> int:
        """Сбор incentive-токена yield pool на баланс резерва."""
        self._require_owner(sender)
        self._require_not_paused()
        return self.vault.claim()

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    def _collateral_cost(self, amount: int) -> int:
        """Стоимость в collateral с округлением вверх до целой единицы."""
        scale = self.config.scale_factor
        cost = amount // scale
        if cost * scale != amount:
            cost += 1
        return cost

    def _burn_from(self, account: str, amount: int) -> None:
        stable = self._collaborator("stable")
        stable.transfer_from(self.address, account, self.address, amount)
        stable.burn(self.address, amount)

    def _step_borrow_controller(self, amount: int) -> None:
        controller = self._state.borrow_controller
        now = self.ledger.now
        daily_limit = self.daily_borrow_limit()

        elapsed_days = Decimal.ratio(checked_sub(now, controller.last), self.config.seconds_per_day)
        freed = elapsed_days.mul(daily_limit).as_int()
        window = max(controller.borrowed - freed, 0) + amount

        logger.debug(f"Reserve: borrow window {window} / limit {daily_limit} (freed {freed})")
        if window > daily_limit:
            raise RateLimitExceeded(
                "ReserveComptroller: insufficient borrowable", reason="insufficient_borrowable"
            )
        self._commit(borrow_controller=BorrowController(borrowed=window, last=now))

    def _migration_context(self) -> Dict[str, Any]:
        if self.registry_address is None:
            return {}
        return {"borrower": self.registry().get("stabilizer")}
