"""Registry: каталог адресов коллабораторов."""

from src.registry.registry import REGISTRY_KEYS, Registry

__all__ = ["REGISTRY_KEYS", "Registry"]
