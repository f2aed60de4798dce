"""
Registry — каталог адресов коллабораторов

Единственное место, где хранятся адреса collateral, stable asset, yield
pool, oracle, reserve, stabilizer и pair factory. Компоненты читают адреса
в момент вызова и никогда их не кэшируют.
"""

import logging
from typing import Dict, Final, Optional, Tuple

from src.core.domain.collaborator_state import RegistryState
from src.core.domain.events import RegistryUpdate
from src.core.errors import InvalidState
from src.core.implementation import Implementation, guarded

logger = logging.getLogger(__name__)

REGISTRY_KEYS: Final[Tuple[str, ...]] = (
    "collateral",
    "yield_pool",
    "stable",
    "oracle",
    "reserve",
    "stabilizer",
    "pair_factory",
)


class Registry(Implementation):
    """Read-only (для всех, кроме owner) каталог адресов."""

    kind = "registry"
    state_model = RegistryState

    def get(self, key: str) -> Optional[str]:
        """
        Адрес по ключу; None, если не задан.

        Raises:
            InvalidState: Если ключ неизвестен
        """
        if key not in REGISTRY_KEYS:
            raise InvalidState(f"Registry: unknown key {key!r}", reason="unknown_registry_key")
        return self._state.entries.get(key)

    def entries(self) -> Dict[str, str]:
        return dict(self._state.entries)

    @guarded
    def set(self, sender: str, key: str, address: str) -> None:
        """
        Установка адреса (owner-only).

        Raises:
            Unauthorized: Если sender не owner
            InvalidState: Если ключ неизвестен
        """
        self._require_owner(sender)
        if key not in REGISTRY_KEYS:
            raise InvalidState(f"Registry: unknown key {key!r}", reason="unknown_registry_key")
        self._commit(entries={**self._state.entries, key: address})
        self._emit(RegistryUpdate, key=key, address=address)
        logger.info(f"Registry {self.address}: {key} -> {address}")

    # Именованные setters

    def set_collateral(self, sender: str, address: str) -> None:
        self.set(sender, "collateral", address)

    def set_yield_pool(self, sender: str, address: str) -> None:
        self.set(sender, "yield_pool", address)

    def set_stable(self, sender: str, address: str) -> None:
        self.set(sender, "stable", address)

    def set_oracle(self, sender: str, address: str) -> None:
        self.set(sender, "oracle", address)

    def set_reserve(self, sender: str, address: str) -> None:
        self.set(sender, "reserve", address)

    def set_stabilizer(self, sender: str, address: str) -> None:
        self.set(sender, "stabilizer", address)

    def set_pair_factory(self, sender: str, address: str) -> None:
        self.set(sender, "pair_factory", address)

    # Именованные getters

    def collateral(self) -> Optional[str]:
        return self.get("collateral")

    def yield_pool(self) -> Optional[str]:
        return self.get("yield_pool")

    def stable(self) -> Optional[str]:
        return self.get("stable")

    def oracle(self) -> Optional[str]:
        return self.get("oracle")

    def reserve(self) -> Optional[str]:
        return self.get("reserve")

    def stabilizer(self) -> Optional[str]:
        return self.get("stabilizer")

    def pair_factory(self) -> Optional[str]:
        return self.get("pair_factory")
