"""Reward-per-share accumulator staking program."""

from src.incentivizer.incentivizer import Incentivizer

__all__ = ["Incentivizer"]
