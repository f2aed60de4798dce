"""Reserve comptroller."""

from src.reserve.comptroller import ReserveComptroller

__all__ = ["ReserveComptroller"]
