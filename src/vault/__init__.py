"""Yield vault adapter."""

from src.vault.reserve_vault import ReserveVault

__all__ = ["ReserveVault"]
