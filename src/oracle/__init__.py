"""TWAP price oracle."""

from src.oracle.oracle import Oracle, OracleSnapshot

__all__ = ["Oracle", "OracleSnapshot"]
