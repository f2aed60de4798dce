"""
Общие fixtures: ledger, registry, токены, yield pool, reserve.
"""

from dataclasses import dataclass
from typing import Final

import pytest

from src.collaborators import PairFactory, Token, YieldPool
from src.core.config import SECONDS_PER_DAY
from src.core.ledger import Ledger
from src.core.math.fixed_point import Decimal
from src.registry import Registry
from src.reserve import ReserveComptroller
from src.stabilizer import StabilizerComptroller
from tests.fakes import SettableOracle, SettableReserve

# =============================================================================
# CONSTANTS
# =============================================================================

OWNER: Final[str] = "owner"
USER: Final[str] = "user"
USER2: Final[str] = "user2"
PAUSER: Final[str] = "pauser"
STABILIZER_ACCOUNT: Final[str] = "stabilizer-account"

ONE_USDC: Final[int] = 10**6
ONE_UNIT: Final[int] = 10**18

# cToken-подобный exchange rate: 1 share = 10^-12 underlying
VAULT_EXCHANGE_RATE: Final[Decimal] = Decimal(10**6)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def ledger():
    return Ledger()


@pytest.fixture
def registry(ledger):
    return Registry(ledger, OWNER)


@pytest.fixture
def usdc(ledger):
    return Token(ledger, OWNER, "USD Coin", "USDC", 6)


@pytest.fixture
def comp(ledger):
    """Incentive-токен yield pool."""
    return Token(ledger, OWNER, "Compound", "COMP", 18)


@pytest.fixture
def yield_pool(ledger, usdc, comp):
    pool = YieldPool(ledger, OWNER, usdc.address, reward_token=comp.address)
    pool.set_exchange_rate(OWNER, VAULT_EXCHANGE_RATE)
    return pool


@pytest.fixture
def factory(ledger):
    return PairFactory(ledger, OWNER)


@dataclass
class ReserveDeployment:
    ledger: Ledger
    registry: Registry
    usdc: Token
    stable: Token
    comp: Token
    yield_pool: YieldPool
    reserve: ReserveComptroller

    def fund(self, account: str, usdc_units: int) -> None:
        """Выдача usdc_units целых USDC аккаунту и approve резерву."""
        self.usdc.mint(OWNER, account, usdc_units * ONE_USDC)
        self.usdc.approve(account, self.reserve.address, usdc_units * ONE_USDC)

    def mint(self, account: str, units: int) -> int:
        """Выпуск units целых stable asset аккаунту за collateral."""
        self.fund(account, units)
        return self.reserve.mint(account, units * ONE_UNIT)


@pytest.fixture
def deployment(ledger, registry, usdc, comp, yield_pool):
    """Reserve с реальными коллабораторами; stabilizer — обычный аккаунт."""
    reserve = ReserveComptroller(ledger, OWNER, registry=registry.address)
    stable = Token(ledger, reserve.address, "Set Dollar", "SD", 18)

    registry.set_collateral(OWNER, usdc.address)
    registry.set_stable(OWNER, stable.address)
    registry.set_yield_pool(OWNER, yield_pool.address)
    registry.set_reserve(OWNER, reserve.address)
    registry.set_stabilizer(OWNER, STABILIZER_ACCOUNT)

    return ReserveDeployment(
        ledger=ledger,
        registry=registry,
        usdc=usdc,
        stable=stable,
        comp=comp,
        yield_pool=yield_pool,
        reserve=reserve,
    )


@dataclass
class StabilizerDeployment:
    ledger: Ledger
    registry: Registry
    stable: Token
    oracle: SettableOracle
    reserve: SettableReserve
    stabilizer: StabilizerComptroller

    def give(self, account: str, units: int) -> None:
        """Выдача units целых stable asset аккаунту и approve пулу."""
        self.stable.mint(self.reserve.address, account, units * ONE_UNIT)
        self.stable.approve(account, self.stabilizer.address, units * ONE_UNIT)

    def donate(self, units: int) -> None:
        """Прямое пополнение пула без выпуска shares."""
        self.stable.mint(self.reserve.address, self.stabilizer.address, units * ONE_UNIT)


@pytest.fixture
def flywheel(ledger, registry):
    """
    Stabilizer с test doubles oracle / reserve.

    decay_rate = max_alpha = 0.1, reward_rate = 0.01, redeem_price = 0.9,
    oracle отдаёт (1.0, 1 day, healthy). Setup не выполнен.
    """
    reserve = SettableReserve(ledger, OWNER)
    stable = Token(ledger, reserve.address, "Set Dollar", "SD", 18)
    reserve.stable = stable
    reserve.set_redeem_price(Decimal.parse("0.9"))
    oracle = SettableOracle(ledger, OWNER)
    oracle.set(Decimal.one(), SECONDS_PER_DAY, True)
    stabilizer = StabilizerComptroller(ledger, OWNER, registry=registry.address)

    registry.set_stable(OWNER, stable.address)
    registry.set_oracle(OWNER, oracle.address)
    registry.set_reserve(OWNER, reserve.address)
    registry.set_stabilizer(OWNER, stabilizer.address)

    stabilizer.set_decay_rate(OWNER, Decimal.parse("0.1"))
    stabilizer.set_max_alpha(OWNER, Decimal.parse("0.1"))
    stabilizer.set_reward_rate(OWNER, Decimal.parse("0.01"))

    return StabilizerDeployment(
        ledger=ledger,
        registry=registry,
        stable=stable,
        oracle=oracle,
        reserve=reserve,
        stabilizer=stabilizer,
    )
