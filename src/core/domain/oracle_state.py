"""
Oracle State — состояние TWAP oracle

Market (одна запись на tracked asset):
- создаётся в setup, cumulative/timestamp меняются только в capture,
  никогда не удаляется.

Состояния market:
- Unregistered: записи нет
- Registered-uninitialized: initialized=False
- Steady-state: initialized=True
"""

from typing import Dict, Literal

from pydantic import BaseModel, Field

from .common import Address, ComponentState, Uint256


class Market(BaseModel):
    """Запись oracle для одного tracked asset."""

    tracked_asset: Address = Field(..., description="Отслеживаемый актив")
    pool: Address = Field(..., description="Внешний liquidity pool")
    side: Literal[0, 1] = Field(..., description="Сторона пула, которую занимает актив")
    initialized: bool = Field(False, description="Baseline snapshot записан")
    cumulative: Uint256 = Field(0, description="Последний cumulative-price counter")
    timestamp: Uint256 = Field(0, description="Timestamp последнего capture (mod 2^32)")

    model_config = {"frozen": True}


class OracleState(ComponentState):
    """Состояние oracle: markets по адресу актива."""

    markets: Dict[Address, Market] = Field(default_factory=dict)
