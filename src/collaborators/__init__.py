"""
In-process collaborators: transferable token, share-based yield pool,
constant-product liquidity pool, pair factory.
"""

from src.collaborators.liquidity_pool import Q112, LiquidityPool, encode_uq112
from src.collaborators.pair_factory import PairFactory
from src.collaborators.token import Token
from src.collaborators.yield_pool import (
    STATUS_INSUFFICIENT_CASH,
    STATUS_INSUFFICIENT_SHARES,
    STATUS_SUCCESS,
    YieldPool,
)

__all__ = [
    "LiquidityPool",
    "PairFactory",
    "Q112",
    "STATUS_INSUFFICIENT_CASH",
    "STATUS_INSUFFICIENT_SHARES",
    "STATUS_SUCCESS",
    "Token",
    "YieldPool",
    "encode_uq112",
]
