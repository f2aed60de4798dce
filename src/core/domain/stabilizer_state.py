"""
StabilizerState — состояние Stabilizer Flywheel

- Pool-share ledger (balances, allowances, total_supply)
- Oracle sub-state: ema, decay_rate, max_alpha
- reward_rate

ema = None до setup; после setup меняется только в settle.
"""

from typing import Optional

from pydantic import Field

from .collaborator_state import BalanceLedgerState
from .common import DecimalValue
from src.core.math.fixed_point import Decimal


class StabilizerState(BalanceLedgerState):
    """Состояние flywheel пула."""

    ema: Optional[DecimalValue] = None
    decay_rate: DecimalValue = Field(default_factory=Decimal.zero)
    max_alpha: DecimalValue = Field(default_factory=Decimal.zero)
    reward_rate: DecimalValue = Field(default_factory=Decimal.zero)
