"""
ReserveState — состояние Reserve Comptroller

Инварианты:
- total_debt растёт только через borrow, убывает только через settle
- total_debt == sum(debt.values())
- borrow_controller меняется только шагом rate limiter внутри borrow
"""

from typing import Dict

from pydantic import BaseModel, Field, model_validator

from .common import Address, ComponentState, DecimalValue, Uint256
from src.core.math.fixed_point import Decimal


class BorrowController(BaseModel):
    """
    Leaky-bucket rate limiter заимствований.

    borrowed — объём в скользящем окне; last — время последнего шага.
    """

    borrowed: Uint256 = 0
    last: Uint256 = 0

    model_config = {"frozen": True}


class ReserveState(ComponentState):
    """Состояние резерва: налог на погашение, долг, rate limiter."""

    redemption_tax: DecimalValue = Field(default_factory=Decimal.zero)
    total_debt: Uint256 = 0
    debt: Dict[Address, Uint256] = Field(default_factory=dict)
    borrow_controller: BorrowController = Field(default_factory=BorrowController)

    @model_validator(mode="after")
    def validate_debt_sum(self) -> "ReserveState":
        """Инвариант: total_debt == sum(debt)."""
        if self.total_debt != sum(self.debt.values()):
            raise ValueError(
                f"total_debt {self.total_debt} != sum of borrower debt {sum(self.debt.values())}"
            )
        if self.redemption_tax > Decimal.one():
            raise ValueError(f"redemption_tax {self.redemption_tax} exceeds 1.0")
        return self
