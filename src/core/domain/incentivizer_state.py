"""
IncentivizerState — состояние reward-per-share accumulator

Claimable reward аккаунта:
    settled + (reward_per_unit - checkpoint.reward_per_unit) * staked
"""

from typing import Dict

from pydantic import BaseModel, Field

from .common import Address, ComponentState, DecimalValue, Uint256
from src.core.math.fixed_point import Decimal


class RewardCheckpoint(BaseModel):
    """Checkpoint аккаунта: накопленный reward и accumulator на момент записи."""

    settled: Uint256 = 0
    reward_per_unit: DecimalValue = Field(default_factory=Decimal.zero)

    model_config = {"frozen": True}


class IncentivizerState(ComponentState):
    """Состояние стейкинг-программы."""

    balances: Dict[Address, Uint256] = Field(default_factory=dict)
    total_underlying: Uint256 = 0
    reward_rate: Uint256 = 0
    reward_complete: Uint256 = 0
    reward_updated: Uint256 = 0
    reward_per_unit: DecimalValue = Field(default_factory=Decimal.zero)
    total_reward: Uint256 = 0
    checkpoints: Dict[Address, RewardCheckpoint] = Field(default_factory=dict)
