"""
Domain models: versioned state schemas, events, migrations.
"""

from src.core.domain.collaborator_state import (
    BalanceLedgerState,
    LiquidityPoolState,
    PairFactoryState,
    RegistryState,
    TokenState,
    YieldPoolState,
)
from src.core.domain.common import (
    CURRENT_SCHEMA_VERSION,
    Address,
    AdminState,
    ComponentState,
    DecimalValue,
    Uint256,
)
from src.core.domain.events import (
    Approval,
    Claim,
    ClaimVault,
    Event,
    IncentivizerSettle,
    MarketSetup,
    OwnerUpdate,
    PausedUpdate,
    PauserUpdate,
    RedeemVault,
    RedemptionTaxUpdate,
    RegistryBinding,
    RegistryUpdate,
    Rescue,
    ReserveBorrow,
    ReserveMint,
    ReserveRedeem,
    ReserveSettle,
    RewardProgramUpdate,
    StabilizerParameterUpdate,
    StabilizerRedeem,
    StabilizerSettle,
    StabilizerSupply,
    Stake,
    SupplyVault,
    Transfer,
    Withdrawal,
)
from src.core.domain.incentivizer_state import IncentivizerState, RewardCheckpoint
from src.core.domain.migrations import STATE_KINDS, migrate_state
from src.core.domain.oracle_state import Market, OracleState
from src.core.domain.reserve_state import BorrowController, ReserveState
from src.core.domain.stabilizer_state import StabilizerState

__all__ = [
    # Common
    "CURRENT_SCHEMA_VERSION",
    "Address",
    "AdminState",
    "ComponentState",
    "DecimalValue",
    "Uint256",
    # States
    "BalanceLedgerState",
    "BorrowController",
    "IncentivizerState",
    "LiquidityPoolState",
    "Market",
    "OracleState",
    "PairFactoryState",
    "RegistryState",
    "ReserveState",
    "RewardCheckpoint",
    "StabilizerState",
    "TokenState",
    "YieldPoolState",
    # Migrations
    "STATE_KINDS",
    "migrate_state",
    # Events
    "Event",
    "Approval",
    "Claim",
    "ClaimVault",
    "IncentivizerSettle",
    "MarketSetup",
    "OwnerUpdate",
    "PausedUpdate",
    "PauserUpdate",
    "RedeemVault",
    "RedemptionTaxUpdate",
    "RegistryBinding",
    "RegistryUpdate",
    "Rescue",
    "ReserveBorrow",
    "ReserveMint",
    "ReserveRedeem",
    "ReserveSettle",
    "RewardProgramUpdate",
    "StabilizerParameterUpdate",
    "StabilizerRedeem",
    "StabilizerSettle",
    "StabilizerSupply",
    "Stake",
    "SupplyVault",
    "Transfer",
    "Withdrawal",
]
