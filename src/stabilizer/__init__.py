"""Stabilizer flywheel."""

from src.stabilizer.comptroller import StabilizerComptroller

__all__ = ["StabilizerComptroller"]
