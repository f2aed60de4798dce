"""
Core math: fixed-point Decimal и uint-валидация.
"""

from src.core.math.fixed_point import (
    BASE,
    UINT256_MAX,
    Decimal,
    check_uint256,
    checked_sub,
    clamp,
    dmax,
    dmin,
)

__all__ = [
    "BASE",
    "UINT256_MAX",
    "Decimal",
    "check_uint256",
    "checked_sub",
    "clamp",
    "dmax",
    "dmin",
]
