"""
Tests for ReserveComptroller

Проверяет:
1. reserve_ratio / redeem_price (границы [0, 1], ratio = 1 при нулевом supply)
2. mint: 1:1 по стоимости, округление вверх до единицы collateral
3. redeem: выплата по redeem_price с усечением
4. borrow: только stabilizer, leaky-bucket rate limiter
5. settle: погашение долга stabilizer'а любым аккаунтом
6. Пауза, authority, ошибки vault и полный откат
"""

import pytest

from src.core.errors import (
    ExternalCallFailed,
    InsufficientFunds,
    InvalidState,
    RateLimitExceeded,
    Unauthorized,
)
from src.core.math.fixed_point import Decimal
from tests.conftest import (
    ONE_UNIT,
    ONE_USDC,
    OWNER,
    PAUSER,
    STABILIZER_ACCOUNT,
    USER,
    USER2,
    VAULT_EXCHANGE_RATE,
)
from tests.fakes import ReentrantYieldPool

HALF_DAY = 12 * 60 * 60
ONE_DAY = 24 * 60 * 60


# =============================================================================
# VIEWS
# =============================================================================


class TestReserveViews:
    """reserve_balance, reserve_ratio, redeem_price."""

    def test_ratio_is_one_when_supply_zero(self, deployment):
        assert deployment.reserve.reserve_ratio() == Decimal.one()
        assert deployment.reserve.redeem_price() == Decimal.one()

    def test_ratio_is_one_when_supply_zero_even_with_collateral(self, deployment):
        deployment.usdc.mint(OWNER, deployment.reserve.address, 500 * ONE_USDC)

        assert deployment.reserve.reserve_ratio() == Decimal.one()

    def test_balance_counts_direct_and_vault_collateral(self, deployment):
        deployment.mint(USER, 1000)
        deployment.usdc.mint(OWNER, deployment.reserve.address, 250 * ONE_USDC)

        assert deployment.reserve.reserve_collateral_balance() == 1250 * ONE_USDC
        assert deployment.reserve.reserve_balance() == 1250 * ONE_UNIT
        assert deployment.reserve.reserve_ratio() == Decimal.parse("1.25")

    def test_redeem_price_capped_at_one(self, deployment):
        deployment.mint(USER, 1000)
        deployment.usdc.mint(OWNER, deployment.reserve.address, 1000 * ONE_USDC)

        assert deployment.reserve.reserve_ratio() == Decimal.from_int(2)
        assert deployment.reserve.redeem_price() == Decimal.one()

    def test_redeem_price_subtracts_tax(self, deployment):
        deployment.mint(USER, 1000)
        deployment.reserve.set_redemption_tax(OWNER, Decimal.parse("0.2"))

        assert deployment.reserve.redeem_price() == Decimal.parse("0.8")

    def test_redeem_price_floored_at_zero(self, deployment):
        deployment.mint(USER, 1000)
        deployment.yield_pool.set_exchange_rate(OWNER, Decimal(500_000))
        deployment.reserve.set_redemption_tax(OWNER, Decimal.parse("0.6"))

        assert deployment.reserve.reserve_ratio() == Decimal.parse("0.5")
        assert deployment.reserve.redeem_price() == Decimal.zero()

    def test_vault_yield_raises_balance(self, deployment):
        deployment.mint(USER, 100_000)
        deployment.yield_pool.set_exchange_rate(OWNER, Decimal(1_100_000))

        assert deployment.reserve.reserve_balance() == 110_000 * ONE_UNIT
        assert deployment.reserve.redeem_price() == Decimal.one()


# =============================================================================
# MINT
# =============================================================================


class TestMint:
    """mint: стоимость 1:1, округление вверх."""

    def test_mint_basic(self, deployment):
        cost = deployment.mint(USER, 100_000)

        assert cost == 100_000 * ONE_USDC
        assert deployment.stable.balance_of(USER) == 100_000 * ONE_UNIT
        assert deployment.usdc.balance_of(USER) == 0
        assert deployment.reserve.reserve_balance() == 100_000 * ONE_UNIT
        assert deployment.reserve.reserve_ratio() == Decimal.one()
        assert deployment.yield_pool.balance_of(deployment.reserve.address) == 10**23

    def test_mint_does_not_over_approve_vault(self, deployment):
        deployment.mint(USER, 100_000)

        assert deployment.usdc.allowance(deployment.reserve.address, deployment.yield_pool.address) == 0

    def test_mint_emits_events(self, deployment):
        deployment.mint(USER, 100_000)

        mint = deployment.ledger.events_of(name="Mint", source="reserve")[-1]
        assert mint.account == USER
        assert mint.mint_amount == 100_000 * ONE_UNIT
        assert mint.cost_amount == 100_000 * ONE_USDC
        supply = deployment.ledger.events_of(name="SupplyVault")[-1]
        assert supply.amount == 100_000 * ONE_USDC

    def test_mint_is_one_to_one_when_overcollateralized(self, deployment):
        deployment.mint(USER, 100_000)
        deployment.usdc.mint(OWNER, deployment.reserve.address, 10_000 * ONE_USDC)

        cost = deployment.mint(USER2, 1000)

        assert cost == 1000 * ONE_USDC
        assert deployment.stable.balance_of(USER2) == 1000 * ONE_UNIT

    @pytest.mark.parametrize(
        "amount,expected_cost",
        [
            (1, 1),
            (10**12, 1),
            (10**12 + 1, 2),
            (ONE_UNIT + 1, ONE_USDC + 1),
            (ONE_UNIT - 1, ONE_USDC),
        ],
    )
    def test_mint_cost_rounds_up(self, deployment, amount, expected_cost):
        deployment.fund(USER, 2)

        cost = deployment.reserve.mint(USER, amount)

        assert cost == expected_cost
        assert deployment.usdc.balance_of(USER) == 2 * ONE_USDC - expected_cost

    def test_mint_without_allowance_fails(self, deployment):
        deployment.usdc.mint(OWNER, USER, 100 * ONE_USDC)

        with pytest.raises(InsufficientFunds) as exc_info:
            deployment.reserve.mint(USER, 100 * ONE_UNIT)

        assert exc_info.value.reason == "transfer_exceeds_allowance"
        assert deployment.stable.total_supply() == 0
        assert deployment.usdc.balance_of(USER) == 100 * ONE_USDC


# =============================================================================
# REDEEM
# =============================================================================


class TestRedeem:
    """redeem: выплата redeem_price × amount с усечением."""

    def _approve(self, deployment, account, amount):
        deployment.stable.approve(account, deployment.reserve.address, amount)

    def test_full_redeem(self, deployment):
        deployment.mint(USER, 100_000)
        self._approve(deployment, USER, 100_000 * ONE_UNIT)

        payout = deployment.reserve.redeem(USER, 100_000 * ONE_UNIT)

        assert payout == 100_000 * ONE_USDC
        assert deployment.usdc.balance_of(USER) == 100_000 * ONE_USDC
        assert deployment.stable.balance_of(USER) == 0
        assert deployment.stable.total_supply() == 0
        assert deployment.reserve.reserve_balance() == 0

    def test_redeem_emits_events(self, deployment):
        deployment.mint(USER, 100_000)
        self._approve(deployment, USER, 100_000 * ONE_UNIT)

        deployment.reserve.redeem(USER, 100_000 * ONE_UNIT)

        redeem = deployment.ledger.events_of(name="Redeem", source="reserve")[-1]
        assert redeem.account == USER
        assert redeem.cost_amount == 100_000 * ONE_UNIT
        assert redeem.redeem_amount == 100_000 * ONE_USDC
        assert deployment.ledger.events_of(name="RedeemVault")[-1].amount == 100_000 * ONE_USDC

    def test_redeem_with_tax(self, deployment):
        deployment.mint(USER, 100_000)
        deployment.reserve.set_redemption_tax(OWNER, Decimal.parse("0.2"))
        self._approve(deployment, USER, 100_000 * ONE_UNIT)

        payout = deployment.reserve.redeem(USER, 100_000 * ONE_UNIT)

        assert payout == 80_000 * ONE_USDC
        assert deployment.reserve.reserve_collateral_balance() == 20_000 * ONE_USDC

    def test_redeem_partially_collateralized(self, deployment):
        deployment.mint(USER, 100_000)
        deployment.yield_pool.set_exchange_rate(OWNER, Decimal(800_000))
        self._approve(deployment, USER, 100_000 * ONE_UNIT)

        assert deployment.reserve.redeem_price() == Decimal.parse("0.8")
        payout = deployment.reserve.redeem(USER, 100_000 * ONE_UNIT)

        assert payout == 80_000 * ONE_USDC
        assert deployment.usdc.balance_of(USER) == 80_000 * ONE_USDC

    def test_redeem_truncates_payout(self, deployment):
        deployment.mint(USER, 1)
        self._approve(deployment, USER, ONE_UNIT)

        payout = deployment.reserve.redeem(USER, 10**12 - 1)

        assert payout == 0

    @pytest.mark.parametrize("amount", [1, 10**12 - 1, 10**12 + 1, 123_456_789_012_345_678_901])
    def test_mint_then_redeem_never_creates_value(self, deployment, amount):
        deployment.fund(USER, 1000)
        cost = deployment.reserve.mint(USER, amount)
        self._approve(deployment, USER, amount)

        payout = deployment.reserve.redeem(USER, amount)

        assert payout <= cost

    def test_redeem_more_than_balance_fails(self, deployment):
        deployment.mint(USER, 100)
        self._approve(deployment, USER, 200 * ONE_UNIT)

        with pytest.raises(InsufficientFunds):
            deployment.reserve.redeem(USER, 200 * ONE_UNIT)

        assert deployment.stable.balance_of(USER) == 100 * ONE_UNIT


# =============================================================================
# BORROW / RATE LIMITER
# =============================================================================


class TestBorrow:
    """borrow: только stabilizer, дневной лимит 0.2% supply."""

    @pytest.fixture(autouse=True)
    def supply(self, deployment):
        deployment.mint(USER, 100_000)

    def test_not_stabilizer(self, deployment):
        with pytest.raises(Unauthorized) as exc_info:
            deployment.reserve.borrow(USER, 100 * ONE_UNIT)

        assert exc_info.value.reason == "not_stabilizer"
        assert deployment.reserve.total_debt() == 0

    def test_over_limit(self, deployment):
        with pytest.raises(RateLimitExceeded) as exc_info:
            deployment.reserve.borrow(STABILIZER_ACCOUNT, 250 * ONE_UNIT)

        assert exc_info.value.reason == "insufficient_borrowable"
        assert deployment.reserve.total_debt() == 0
        assert deployment.reserve.borrow_controller().borrowed == 0

    def test_exact_limit(self, deployment):
        assert deployment.reserve.daily_borrow_limit() == 200 * ONE_UNIT

        deployment.reserve.borrow(STABILIZER_ACCOUNT, 200 * ONE_UNIT)

        assert deployment.reserve.total_debt() == 200 * ONE_UNIT
        assert deployment.reserve.debt(STABILIZER_ACCOUNT) == 200 * ONE_UNIT
        assert deployment.stable.balance_of(STABILIZER_ACCOUNT) == 200 * ONE_UNIT
        controller = deployment.reserve.borrow_controller()
        assert controller.borrowed == 200 * ONE_UNIT
        assert controller.last == deployment.ledger.now

    def test_borrow_emits_event(self, deployment):
        deployment.reserve.borrow(STABILIZER_ACCOUNT, 200 * ONE_UNIT)

        assert deployment.ledger.events_of(name="Borrow")[-1].amount == 200 * ONE_UNIT

    def test_second_request_same_instant_fails(self, deployment):
        deployment.reserve.borrow(STABILIZER_ACCOUNT, 200 * ONE_UNIT)
        # заимствованное входит в supply: лимит вырос до 200.4
        headroom = deployment.reserve.daily_borrow_limit() - 200 * ONE_UNIT
        assert headroom == 4 * 10**17

        with pytest.raises(RateLimitExceeded) as exc_info:
            deployment.reserve.borrow(STABILIZER_ACCOUNT, headroom + 1)

        assert exc_info.value.reason == "insufficient_borrowable"
        assert deployment.reserve.borrow_controller().borrowed == 200 * ONE_UNIT
        assert deployment.reserve.total_debt() == 200 * ONE_UNIT

    def test_second_request_within_regrowth(self, deployment):
        deployment.reserve.borrow(STABILIZER_ACCOUNT, 200 * ONE_UNIT)
        headroom = deployment.reserve.daily_borrow_limit() - 200 * ONE_UNIT

        deployment.reserve.borrow(STABILIZER_ACCOUNT, headroom)

        assert deployment.reserve.total_debt() == 200 * ONE_UNIT + headroom
        assert deployment.reserve.borrow_controller().borrowed == 200 * ONE_UNIT + headroom

    def test_partial_window_release(self, deployment):
        deployment.reserve.borrow(STABILIZER_ACCOUNT, 200 * ONE_UNIT)
        deployment.ledger.advance(HALF_DAY)

        deployment.reserve.borrow(STABILIZER_ACCOUNT, 10 * ONE_UNIT)

        # limit 200.4 (supply 100200), freed 100.2 → 200 - 100.2 + 10
        assert deployment.reserve.borrow_controller().borrowed == 1098 * ONE_UNIT // 10
        assert deployment.reserve.total_debt() == 210 * ONE_UNIT

    def test_partial_window_over_limit(self, deployment):
        deployment.reserve.borrow(STABILIZER_ACCOUNT, 200 * ONE_UNIT)
        deployment.ledger.advance(HALF_DAY)

        with pytest.raises(RateLimitExceeded) as exc_info:
            deployment.reserve.borrow(STABILIZER_ACCOUNT, 110 * ONE_UNIT)

        assert exc_info.value.reason == "insufficient_borrowable"
        assert deployment.reserve.borrow_controller().borrowed == 200 * ONE_UNIT
        assert deployment.reserve.total_debt() == 200 * ONE_UNIT

    def test_full_day_releases_window(self, deployment):
        deployment.reserve.borrow(STABILIZER_ACCOUNT, 200 * ONE_UNIT)
        deployment.ledger.advance(ONE_DAY)

        limit = deployment.reserve.daily_borrow_limit()
        deployment.reserve.borrow(STABILIZER_ACCOUNT, limit)

        assert deployment.reserve.borrow_controller().borrowed == limit

    def test_paused(self, deployment):
        deployment.reserve.set_pauser(OWNER, PAUSER)
        deployment.reserve.set_paused(PAUSER, True)

        with pytest.raises(InvalidState) as exc_info:
            deployment.reserve.borrow(STABILIZER_ACCOUNT, 100 * ONE_UNIT)

        assert exc_info.value.reason == "paused"


# =============================================================================
# SETTLE
# =============================================================================


class TestSettle:
    """settle: сжигание stable asset и погашение долга stabilizer'а."""

    @pytest.fixture(autouse=True)
    def borrowed(self, deployment):
        deployment.mint(USER, 100_000)
        deployment.reserve.borrow(STABILIZER_ACCOUNT, 100 * ONE_UNIT)
        deployment.stable.transfer(STABILIZER_ACCOUNT, USER2, 100 * ONE_UNIT)
        deployment.stable.approve(USER2, deployment.reserve.address, 110 * ONE_UNIT)

    def test_settle_by_any_account(self, deployment):
        proceeds = deployment.reserve.settle(USER2, 100 * ONE_UNIT)

        assert proceeds == 100 * ONE_USDC
        assert deployment.usdc.balance_of(USER2) == 100 * ONE_USDC
        assert deployment.stable.balance_of(USER2) == 0
        assert deployment.reserve.total_debt() == 0
        assert deployment.reserve.debt(STABILIZER_ACCOUNT) == 0

    def test_settle_emits_event(self, deployment):
        deployment.reserve.settle(USER2, 100 * ONE_UNIT)

        event = deployment.ledger.events_of(name="Settle", source="reserve")[-1]
        assert event.account == USER2
        assert event.settle_amount == 100 * ONE_UNIT
        assert event.proceed_amount == 100 * ONE_USDC

    def test_partial_settle(self, deployment):
        deployment.reserve.settle(USER2, 40 * ONE_UNIT)

        assert deployment.reserve.total_debt() == 60 * ONE_UNIT
        assert deployment.reserve.debt(STABILIZER_ACCOUNT) == 60 * ONE_UNIT

    def test_settle_more_than_debt(self, deployment):
        deployment.stable.transfer(USER, USER2, 10 * ONE_UNIT)

        with pytest.raises(InvalidState) as exc_info:
            deployment.reserve.settle(USER2, 110 * ONE_UNIT)

        assert exc_info.value.reason == "insufficient_debt"
        assert deployment.reserve.total_debt() == 100 * ONE_UNIT
        assert deployment.stable.balance_of(USER2) == 110 * ONE_UNIT


# =============================================================================
# ADMINISTRATION & PAUSE
# =============================================================================


class TestAdministration:
    """Redemption tax, пауза, claim_vault."""

    def test_set_redemption_tax_not_owner(self, deployment):
        with pytest.raises(Unauthorized) as exc_info:
            deployment.reserve.set_redemption_tax(USER, Decimal.parse("0.1"))

        assert exc_info.value.reason == "not_owner"
        assert deployment.reserve.redemption_tax() == Decimal.zero()

    def test_set_redemption_tax_too_large(self, deployment):
        with pytest.raises(InvalidState):
            deployment.reserve.set_redemption_tax(OWNER, Decimal.parse("1.5"))

    def test_set_redemption_tax_emits_event(self, deployment):
        deployment.reserve.set_redemption_tax(OWNER, Decimal.parse("0.05"))

        event = deployment.ledger.events_of(name="RedemptionTaxUpdate")[-1]
        assert event.tax == Decimal.parse("0.05")

    def test_paused_rejects_mint_and_redeem(self, deployment):
        deployment.mint(USER, 100)
        deployment.reserve.set_pauser(OWNER, PAUSER)
        deployment.reserve.set_paused(PAUSER, True)
        deployment.fund(USER, 100)

        with pytest.raises(InvalidState, match="paused"):
            deployment.reserve.mint(USER, 100 * ONE_UNIT)
        with pytest.raises(InvalidState, match="paused"):
            deployment.reserve.redeem(USER, 100 * ONE_UNIT)

    def test_set_paused_requires_pauser(self, deployment):
        deployment.reserve.set_pauser(OWNER, PAUSER)

        with pytest.raises(Unauthorized) as exc_info:
            deployment.reserve.set_paused(OWNER, True)

        assert exc_info.value.reason == "not_pauser"
        assert not deployment.reserve.paused

    def test_unpause_restores_operations(self, deployment):
        deployment.reserve.set_pauser(OWNER, PAUSER)
        deployment.reserve.set_paused(PAUSER, True)
        deployment.reserve.set_paused(PAUSER, False)

        deployment.mint(USER, 10)

        assert deployment.stable.balance_of(USER) == 10 * ONE_UNIT

    def test_claim_vault(self, deployment):
        deployment.comp.mint(OWNER, deployment.yield_pool.address, 1000 * ONE_UNIT)
        deployment.yield_pool.accrue_rewards(OWNER, deployment.reserve.address, 1000 * ONE_UNIT)

        claimed = deployment.reserve.claim_vault(OWNER)

        assert claimed == 1000 * ONE_UNIT
        assert deployment.comp.balance_of(deployment.reserve.address) == 1000 * ONE_UNIT
        assert deployment.ledger.events_of(name="ClaimVault")[-1].amount == 1000 * ONE_UNIT

    def test_claim_vault_not_owner(self, deployment):
        with pytest.raises(Unauthorized):
            deployment.reserve.claim_vault(USER)

    def test_claim_vault_paused(self, deployment):
        deployment.reserve.set_pauser(OWNER, PAUSER)
        deployment.reserve.set_paused(PAUSER, True)

        with pytest.raises(InvalidState, match="paused"):
            deployment.reserve.claim_vault(OWNER)


# =============================================================================
# VAULT FAILURES & ATOMICITY
# =============================================================================


class TestVaultFailures:
    """Ненулевой status code пула → ExternalCallFailed и полный откат."""

    def test_supply_failure_rolls_back_mint(self, deployment):
        deployment.yield_pool.set_status_code(OWNER, 1)
        deployment.fund(USER, 100)
        events_before = len(deployment.ledger.events)

        with pytest.raises(ExternalCallFailed) as exc_info:
            deployment.reserve.mint(USER, 100 * ONE_UNIT)

        assert exc_info.value.reason == "vault_supply_failed"
        assert deployment.usdc.balance_of(USER) == 100 * ONE_USDC
        assert deployment.usdc.balance_of(deployment.reserve.address) == 0
        assert deployment.stable.total_supply() == 0
        assert len(deployment.ledger.events) == events_before

    def test_redeem_failure_rolls_back(self, deployment):
        deployment.mint(USER, 100)
        deployment.stable.approve(USER, deployment.reserve.address, 100 * ONE_UNIT)
        deployment.yield_pool.set_status_code(OWNER, 1)

        with pytest.raises(ExternalCallFailed) as exc_info:
            deployment.reserve.redeem(USER, 100 * ONE_UNIT)

        assert exc_info.value.reason == "vault_redeem_failed"
        assert deployment.stable.balance_of(USER) == 100 * ONE_UNIT
        assert deployment.stable.allowance(USER, deployment.reserve.address) == 100 * ONE_UNIT

    def test_reentrant_vault_is_rejected(self, ledger, deployment, usdc, comp):
        pool = ReentrantYieldPool(ledger, OWNER, usdc.address, reward_token=comp.address)
        pool.set_exchange_rate(OWNER, VAULT_EXCHANGE_RATE)
        deployment.registry.set_yield_pool(OWNER, pool.address)
        deployment.fund(USER, 200)
        pool.on_mint = lambda: deployment.reserve.mint(USER, 100 * ONE_UNIT)

        with pytest.raises(InvalidState) as exc_info:
            deployment.reserve.mint(USER, 100 * ONE_UNIT)

        assert exc_info.value.reason == "reentrant_call"
        assert deployment.stable.total_supply() == 0
        assert usdc.balance_of(USER) == 200 * ONE_USDC

        pool.on_mint = None
        deployment.reserve.mint(USER, 100 * ONE_UNIT)
        assert deployment.stable.balance_of(USER) == 100 * ONE_UNIT
