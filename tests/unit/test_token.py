"""
Тесты для Token (collateral / stable asset)

Проверяет:
1. transfer / approve / transfer_from (allowance нужен даже для self)
2. mint / burn только эмитентом
3. Blacklist эмитента (restricted)
"""

import pytest

from src.core.errors import InsufficientFunds, Unauthorized
from src.core.token_ledger import ZERO_ADDRESS
from tests.conftest import OWNER, USER, USER2


@pytest.fixture
def funded(usdc):
    usdc.mint(OWNER, USER, 1000)
    return usdc


class TestTransfers:
    """Переводы и allowances"""

    def test_transfer(self, funded) -> None:
        assert funded.transfer(USER, USER2, 400) is True

        assert funded.balance_of(USER) == 600
        assert funded.balance_of(USER2) == 400
        assert funded.total_supply() == 1000

    def test_transfer_exceeds_balance(self, funded) -> None:
        with pytest.raises(InsufficientFunds) as exc_info:
            funded.transfer(USER, USER2, 1001)

        assert exc_info.value.reason == "transfer_exceeds_balance"
        assert "USDC: transfer amount exceeds balance" in str(exc_info.value)

    def test_zero_transfer_from_empty_account(self, funded) -> None:
        assert funded.transfer(USER2, USER, 0)

    def test_approve_and_transfer_from(self, ledger, funded) -> None:
        funded.approve(USER, USER2, 300)
        assert funded.allowance(USER, USER2) == 300
        assert ledger.events_of(name="Approval")[-1].value == 300

        funded.transfer_from(USER2, USER, OWNER, 200)

        assert funded.balance_of(OWNER) == 200
        assert funded.allowance(USER, USER2) == 100

    def test_transfer_from_exceeds_allowance(self, funded) -> None:
        funded.approve(USER, USER2, 100)

        with pytest.raises(InsufficientFunds) as exc_info:
            funded.transfer_from(USER2, USER, USER2, 101)

        assert exc_info.value.reason == "transfer_exceeds_allowance"
        assert funded.balance_of(USER) == 1000
        assert funded.allowance(USER, USER2) == 100

    def test_transfer_from_self_requires_allowance(self, funded) -> None:
        with pytest.raises(InsufficientFunds) as exc_info:
            funded.transfer_from(USER, USER, USER2, 1)
        assert exc_info.value.reason == "transfer_exceeds_allowance"

        funded.approve(USER, USER, 1)
        funded.transfer_from(USER, USER, USER2, 1)
        assert funded.balance_of(USER2) == 1

    def test_approve_overwrites(self, funded) -> None:
        funded.approve(USER, USER2, 100)
        funded.approve(USER, USER2, 0)

        assert funded.allowance(USER, USER2) == 0


class TestIssuer:
    """Операции эмитента"""

    def test_mint_emits_transfer_from_zero(self, ledger, usdc) -> None:
        usdc.mint(OWNER, USER, 5)

        event = ledger.events_of(name="Transfer", emitter=usdc.address)[-1]
        assert event.sender == ZERO_ADDRESS
        assert event.recipient == USER

    def test_mint_not_owner(self, usdc) -> None:
        with pytest.raises(Unauthorized):
            usdc.mint(USER, USER, 5)
        assert usdc.total_supply() == 0

    def test_burn_own_balance(self, usdc) -> None:
        usdc.mint(OWNER, OWNER, 100)
        usdc.burn(OWNER, 40)

        assert usdc.balance_of(OWNER) == 60
        assert usdc.total_supply() == 60

    def test_burn_exceeds_balance(self, usdc) -> None:
        with pytest.raises(InsufficientFunds) as exc_info:
            usdc.burn(OWNER, 1)
        assert exc_info.value.reason == "burn_exceeds_balance"

    def test_restricted(self, usdc) -> None:
        usdc.set_restricted(OWNER, "pool", True)
        assert usdc.is_restricted("pool")

        usdc.set_restricted(OWNER, "pool", False)
        assert not usdc.is_restricted("pool")

    def test_restricted_not_owner(self, usdc) -> None:
        with pytest.raises(Unauthorized):
            usdc.set_restricted(USER, "pool", True)

    def test_metadata(self, usdc) -> None:
        assert (usdc.name, usdc.symbol, usdc.decimals) == ("USD Coin", "USDC", 6)
