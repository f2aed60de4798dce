"""
Observable Events — модели событий для off-process мониторинга

Immutable Pydantic модели. События не влияют на поведение: они только
пишутся в журнал ledger (append-only) и откатываются вместе с транзакцией.

Каждое событие несёт:
- source: тип компонента-эмиттера ("reserve", "stabilizer", ...)
- name: имя события внутри source
- emitter: адрес компонента
- timestamp: время ledger в момент эмиссии

Сериализация в JSON (model_dump(mode="json")) валидируется контрактом
events.json (src/core/contracts).
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from .common import Address, DecimalValue, Uint256


# =============================================================================
# BASE EVENT
# =============================================================================


class Event(BaseModel):
    """Базовое событие."""

    source: str
    name: str
    emitter: Address = Field(..., description="Адрес компонента-эмиттера")
    timestamp: Uint256 = Field(..., description="Время ledger (секунды)")

    model_config = {"frozen": True}


# =============================================================================
# ADMIN / REGISTRY
# =============================================================================


class OwnerUpdate(Event):
    source: Literal["admin"] = "admin"
    name: Literal["OwnerUpdate"] = "OwnerUpdate"
    owner: Address


class PauserUpdate(Event):
    source: Literal["admin"] = "admin"
    name: Literal["PauserUpdate"] = "PauserUpdate"
    pauser: Optional[Address] = None


class PausedUpdate(Event):
    source: Literal["admin"] = "admin"
    name: Literal["PausedUpdate"] = "PausedUpdate"
    paused: bool


class RegistryBinding(Event):
    source: Literal["admin"] = "admin"
    name: Literal["RegistryBinding"] = "RegistryBinding"
    registry: Address


class RegistryUpdate(Event):
    source: Literal["registry"] = "registry"
    name: Literal["RegistryUpdate"] = "RegistryUpdate"
    key: str
    address: Address


# =============================================================================
# TOKEN (collateral, stable asset, pool share)
# =============================================================================


class Transfer(Event):
    source: Literal["token"] = "token"
    name: Literal["Transfer"] = "Transfer"
    sender: Address
    recipient: Address
    value: Uint256


class Approval(Event):
    source: Literal["token"] = "token"
    name: Literal["Approval"] = "Approval"
    owner: Address
    spender: Address
    value: Uint256


# =============================================================================
# ORACLE
# =============================================================================


class MarketSetup(Event):
    source: Literal["oracle"] = "oracle"
    name: Literal["MarketSetup"] = "MarketSetup"
    asset: Address
    pool: Address
    side: Literal[0, 1]


# =============================================================================
# RESERVE
# =============================================================================


class ReserveMint(Event):
    source: Literal["reserve"] = "reserve"
    name: Literal["Mint"] = "Mint"
    account: Address
    mint_amount: Uint256
    cost_amount: Uint256


class ReserveRedeem(Event):
    source: Literal["reserve"] = "reserve"
    name: Literal["Redeem"] = "Redeem"
    account: Address
    cost_amount: Uint256
    redeem_amount: Uint256


class ReserveBorrow(Event):
    source: Literal["reserve"] = "reserve"
    name: Literal["Borrow"] = "Borrow"
    amount: Uint256


class ReserveSettle(Event):
    source: Literal["reserve"] = "reserve"
    name: Literal["Settle"] = "Settle"
    account: Address
    settle_amount: Uint256
    proceed_amount: Uint256


class RedemptionTaxUpdate(Event):
    source: Literal["reserve"] = "reserve"
    name: Literal["RedemptionTaxUpdate"] = "RedemptionTaxUpdate"
    tax: DecimalValue


class SupplyVault(Event):
    source: Literal["reserve"] = "reserve"
    name: Literal["SupplyVault"] = "SupplyVault"
    amount: Uint256


class RedeemVault(Event):
    source: Literal["reserve"] = "reserve"
    name: Literal["RedeemVault"] = "RedeemVault"
    amount: Uint256


class ClaimVault(Event):
    source: Literal["reserve"] = "reserve"
    name: Literal["ClaimVault"] = "ClaimVault"
    amount: Uint256


# =============================================================================
# STABILIZER
# =============================================================================


class StabilizerSupply(Event):
    source: Literal["stabilizer"] = "stabilizer"
    name: Literal["Supply"] = "Supply"
    account: Address
    amount: Uint256
    mint_amount: Uint256


class StabilizerRedeem(Event):
    source: Literal["stabilizer"] = "stabilizer"
    name: Literal["Redeem"] = "Redeem"
    account: Address
    amount: Uint256
    burn_amount: Uint256


class StabilizerSettle(Event):
    source: Literal["stabilizer"] = "stabilizer"
    name: Literal["Settle"] = "Settle"
    amount: Uint256


class StabilizerParameterUpdate(Event):
    source: Literal["stabilizer"] = "stabilizer"
    name: Literal["ParameterUpdate"] = "ParameterUpdate"
    parameter: Literal["decay_rate", "max_alpha", "reward_rate"]
    value: DecimalValue


# =============================================================================
# INCENTIVIZER
# =============================================================================


class IncentivizerSettle(Event):
    source: Literal["incentivizer"] = "incentivizer"
    name: Literal["Settle"] = "Settle"
    reward_per_unit: DecimalValue
    new_reward: Uint256
    updated: Uint256


class Stake(Event):
    source: Literal["incentivizer"] = "incentivizer"
    name: Literal["Stake"] = "Stake"
    account: Address
    amount: Uint256


class Withdrawal(Event):
    source: Literal["incentivizer"] = "incentivizer"
    name: Literal["Withdrawal"] = "Withdrawal"
    account: Address
    amount: Uint256


class Claim(Event):
    source: Literal["incentivizer"] = "incentivizer"
    name: Literal["Claim"] = "Claim"
    account: Address
    amount: Uint256


class Rescue(Event):
    source: Literal["incentivizer"] = "incentivizer"
    name: Literal["Rescue"] = "Rescue"
    token: Address
    amount: Uint256


class RewardProgramUpdate(Event):
    source: Literal["incentivizer"] = "incentivizer"
    name: Literal["RewardProgramUpdate"] = "RewardProgramUpdate"
    rate: Uint256
    complete: Uint256
