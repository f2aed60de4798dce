"""
Protocol Configuration

Immutable конфигурация компонентов протокола. Все значения валидируются
в __post_init__ (ValueError при невалидных значениях).

Конфигурация загружается из dict (например, распарсенного JSON) через
ProtocolConfig.from_dict; отсутствующие ключи получают значения по умолчанию.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Final

from src.core.math.fixed_point import Decimal

# =============================================================================
# КОНСТАНТЫ
# =============================================================================

SECONDS_PER_DAY: Final[int] = 60 * 60 * 24

# Дневной лимит заимствований: 0.2% от supply стабильного актива
DEFAULT_BORROW_DAILY_LIMIT_RATIO: Final[Decimal] = Decimal.ratio(2, 1000)

# Минимальная ликвидность reference-актива в пуле для healthy snapshot
# (10,000 единиц 6-decimal актива)
DEFAULT_ORACLE_RESERVE_MINIMUM: Final[int] = 10_000 * 10**6


# =============================================================================
# SUB-CONFIGS
# =============================================================================


@dataclass(frozen=True)
class ReserveConfig:
    """Конфигурация Reserve Comptroller."""

    borrow_daily_limit_ratio: Decimal = DEFAULT_BORROW_DAILY_LIMIT_RATIO
    collateral_decimals: int = 6
    stable_decimals: int = 18
    seconds_per_day: int = SECONDS_PER_DAY

    def __post_init__(self) -> None:
        if self.borrow_daily_limit_ratio > Decimal.one():
            raise ValueError(
                f"borrow_daily_limit_ratio must be <= 1.0, got {self.borrow_daily_limit_ratio}"
            )
        if self.stable_decimals < self.collateral_decimals:
            raise ValueError("stable_decimals must be >= collateral_decimals")
        if self.seconds_per_day <= 0:
            raise ValueError(f"seconds_per_day must be positive, got {self.seconds_per_day}")

    @property
    def scale_factor(self) -> int:
        """Множитель между единицами collateral и stable (10^12 для 6/18)."""
        return 10 ** (self.stable_decimals - self.collateral_decimals)


@dataclass(frozen=True)
class OracleConfig:
    """Конфигурация TWAP oracle."""

    reserve_minimum: int = DEFAULT_ORACLE_RESERVE_MINIMUM
    resolution_bits: int = 112
    timestamp_bits: int = 32

    def __post_init__(self) -> None:
        if self.reserve_minimum < 0:
            raise ValueError(f"reserve_minimum must be non-negative, got {self.reserve_minimum}")
        if not 0 < self.timestamp_bits <= 64:
            raise ValueError(f"timestamp_bits must be in (0, 64], got {self.timestamp_bits}")


@dataclass(frozen=True)
class StabilizerConfig:
    """Конфигурация Stabilizer Flywheel и его pool-share токена."""

    token_name: str = "Saved Set Dollar"
    token_symbol: str = "sSD"
    token_decimals: int = 18
    seconds_per_day: int = SECONDS_PER_DAY

    def __post_init__(self) -> None:
        if not self.token_symbol:
            raise ValueError("token_symbol cannot be empty")
        if self.seconds_per_day <= 0:
            raise ValueError(f"seconds_per_day must be positive, got {self.seconds_per_day}")


@dataclass(frozen=True)
class LedgerConfig:
    """Конфигурация ledger (часы и журнал событий)."""

    start_timestamp: int = 1_600_000_000
    validate_events: bool = True

    def __post_init__(self) -> None:
        if self.start_timestamp < 0:
            raise ValueError(f"start_timestamp must be non-negative, got {self.start_timestamp}")


# =============================================================================
# PROTOCOL CONFIG
# =============================================================================


@dataclass(frozen=True)
class ProtocolConfig:
    """Агрегированная конфигурация протокола."""

    reserve: ReserveConfig = field(default_factory=ReserveConfig)
    oracle: OracleConfig = field(default_factory=OracleConfig)
    stabilizer: StabilizerConfig = field(default_factory=StabilizerConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProtocolConfig":
        """
        Загрузка конфигурации из dict.

        Decimal-параметры принимаются строками ("0.002").

        Raises:
            ValueError: Если секция неизвестна или значение невалидно
            TypeError: Если внутри секции неизвестный параметр
        """
        known = {"reserve", "oracle", "stabilizer", "ledger"}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config sections: {sorted(unknown)}")

        reserve_data = dict(data.get("reserve", {}))
        if "borrow_daily_limit_ratio" in reserve_data:
            reserve_data["borrow_daily_limit_ratio"] = Decimal.parse(
                str(reserve_data["borrow_daily_limit_ratio"])
            )

        return cls(
            reserve=ReserveConfig(**reserve_data),
            oracle=OracleConfig(**data.get("oracle", {})),
            stabilizer=StabilizerConfig(**data.get("stabilizer", {})),
            ledger=LedgerConfig(**data.get("ledger", {})),
        )
