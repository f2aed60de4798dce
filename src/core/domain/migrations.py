"""
State Migrations — миграции versioned state schema

Каждый state хранится с явным schema_version. migrate_state поднимает
сохранённый dict шаг за шагом до CURRENT_SCHEMA_VERSION; порядок полей для
совместимости не используется.

Версии:
- v1: reserve хранит единый счётчик долга ("debt": int) без rate limiter;
      stabilizer не имеет max_alpha / reward_rate
- v2: reserve хранит долг по заёмщикам + total_debt + borrow_controller;
      stabilizer получает max_alpha и reward_rate (по умолчанию 0)
"""

import copy
from typing import Any, Callable, Dict, Final

from .common import CURRENT_SCHEMA_VERSION

StateDict = Dict[str, Any]

STATE_KINDS: Final[tuple] = (
    "reserve",
    "stabilizer",
    "oracle",
    "incentivizer",
    "token",
    "yield_pool",
    "liquidity_pool",
    "pair_factory",
    "registry",
)


# =============================================================================
# V1 → V2
# =============================================================================


def _reserve_v1_to_v2(data: StateDict, context: Dict[str, Any]) -> StateDict:
    legacy_debt = data.pop("debt", 0)
    if legacy_debt:
        borrower = context.get("borrower")
        if not borrower:
            raise ValueError("reserve v1 state with outstanding debt requires a borrower for migration")
        data["debt"] = {borrower: legacy_debt}
    else:
        data["debt"] = {}
    data["total_debt"] = legacy_debt
    data.setdefault("borrow_controller", {"borrowed": 0, "last": 0})
    return data


def _stabilizer_v1_to_v2(data: StateDict, context: Dict[str, Any]) -> StateDict:
    data.setdefault("max_alpha", "0")
    data.setdefault("reward_rate", "0")
    return data


def _identity(data: StateDict, context: Dict[str, Any]) -> StateDict:
    return data


_V1_TO_V2: Dict[str, Callable[[StateDict, Dict[str, Any]], StateDict]] = {
    "reserve": _reserve_v1_to_v2,
    "stabilizer": _stabilizer_v1_to_v2,
}

# version → {kind → шаг миграции version → version + 1}
_STEPS: Dict[int, Dict[str, Callable[[StateDict, Dict[str, Any]], StateDict]]] = {
    1: _V1_TO_V2,
}


# =============================================================================
# PUBLIC API
# =============================================================================


def migrate_state(kind: str, data: StateDict, **context: Any) -> StateDict:
    """
    Миграция сохранённого state dict до текущей версии схемы.

    Args:
        kind: Тип компонента (см. STATE_KINDS)
        data: Сохранённый state (не модифицируется)
        **context: Данные, которых нет в старой версии
            (например, borrower для reserve v1 с ненулевым долгом)

    Returns:
        Новый dict с schema_version == CURRENT_SCHEMA_VERSION

    Raises:
        ValueError: Неизвестный kind, версия из будущего или недостаточный context
    """
    if kind not in STATE_KINDS:
        raise ValueError(f"Unknown state kind: {kind!r}")

    migrated = copy.deepcopy(data)
    version = migrated.get("schema_version", 1)
    if not isinstance(version, int) or version < 1:
        raise ValueError(f"Invalid schema_version: {version!r}")
    if version > CURRENT_SCHEMA_VERSION:
        raise ValueError(
            f"{kind} state schema_version {version} is newer than supported {CURRENT_SCHEMA_VERSION}"
        )

    while version < CURRENT_SCHEMA_VERSION:
        step = _STEPS[version].get(kind, _identity)
        migrated = step(migrated, context)
        version += 1
        migrated["schema_version"] = version

    return migrated
