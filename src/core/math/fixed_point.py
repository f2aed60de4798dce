"""
Fixed-Point Decimal — безопасная scaled-integer арифметика

Модуль реализует неотрицательное рациональное число, представленное целым
числителем над фиксированной шкалой BASE = 10^18. Все остальные компоненты
(oracle, reserve, stabilizer, incentivizer) считают только через него.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Значение всегда в диапазоне uint256: [0, 2^256 - 1]
2. Ни одна операция не "заворачивается": выход за диапазон → ArithmeticFailure
3. Деление и конверсия в int усекают к нулю (без неявного округления вверх)
4. Decimal immutable: каждая операция возвращает новый экземпляр
"""

from dataclasses import dataclass
from typing import Final, Union

from src.core.errors import ArithmeticFailure

# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Шкала fixed-point (18 знаков после запятой)
BASE: Final[int] = 10**18

# Верхняя граница всех целых величин (балансы, долги, счётчики)
UINT256_MAX: Final[int] = 2**256 - 1


# =============================================================================
# UINT ВАЛИДАЦИЯ
# =============================================================================


def check_uint256(value: int, name: str = "value") -> int:
    """
    Проверка, что value — целое в диапазоне uint256.

    Args:
        value: Проверяемое значение
        name: Имя для сообщения об ошибке

    Returns:
        value без изменений

    Raises:
        ArithmeticFailure: Если value не int, отрицательное или > UINT256_MAX
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ArithmeticFailure(f"{name} must be an integer, got {value!r}", reason="not_an_integer")
    if value < 0:
        raise ArithmeticFailure(f"{name} must be non-negative, got {value}", reason="uint_underflow")
    if value > UINT256_MAX:
        raise ArithmeticFailure(f"{name} exceeds uint256 range", reason="uint_overflow")
    return value


def checked_sub(a: int, b: int, reason: str = "uint_underflow") -> int:
    """Вычитание uint с отказом ниже нуля."""
    if b > a:
        raise ArithmeticFailure(f"subtraction underflow: {a} - {b}", reason=reason)
    return a - b


# =============================================================================
# DECIMAL
# =============================================================================

Operand = Union["Decimal", int]


@dataclass(frozen=True, order=True)
class Decimal:
    """
    Неотрицательное fixed-point число: value / BASE.

    Операнд-int в mul/div трактуется как безразмерный целый множитель
    (Decimal × int = Decimal), операнд-Decimal — как дробное число.

    Examples:
        >>> Decimal.ratio(1, 2).mul(Decimal.from_int(3))
        Decimal(value=1500000000000000000)
        >>> Decimal.ratio(9, 10).mul(1000).as_int()
        900
    """

    value: int = 0

    def __post_init__(self) -> None:
        check_uint256(self.value, "Decimal.value")

    # -------------------------------------------------------------------------
    # Конструкторы
    # -------------------------------------------------------------------------

    @classmethod
    def zero(cls) -> "Decimal":
        return cls(0)

    @classmethod
    def one(cls) -> "Decimal":
        return cls(BASE)

    @classmethod
    def from_int(cls, n: int) -> "Decimal":
        """Целое n → Decimal(n)."""
        check_uint256(n, "n")
        return cls(_checked(n * BASE))

    @classmethod
    def ratio(cls, numerator: int, denominator: int) -> "Decimal":
        """
        numerator / denominator как Decimal (усечение к нулю).

        Raises:
            ArithmeticFailure: Если denominator == 0
        """
        check_uint256(numerator, "numerator")
        check_uint256(denominator, "denominator")
        if denominator == 0:
            raise ArithmeticFailure("ratio by zero", reason="division_by_zero")
        return cls(_checked(numerator * BASE) // denominator)

    @classmethod
    def parse(cls, text: str) -> "Decimal":
        """
        Точный разбор десятичной строки ("0.995", "12", "1e-3" не поддерживается).

        Raises:
            ArithmeticFailure: Если строка не является неотрицательным числом
                или содержит больше 18 знаков после запятой
        """
        raw = text.strip()
        whole, _, frac = raw.partition(".")
        if not whole:
            whole = "0"
        if not whole.isdigit() or (frac and not frac.isdigit()):
            raise ArithmeticFailure(f"cannot parse decimal {text!r}", reason="decimal_parse_error")
        if len(frac) > 18:
            raise ArithmeticFailure(f"too many fractional digits in {text!r}", reason="decimal_parse_error")
        return cls(_checked(int(whole) * BASE + int(frac.ljust(18, "0") or "0")))

    # -------------------------------------------------------------------------
    # Арифметика
    # -------------------------------------------------------------------------

    def add(self, other: Operand) -> "Decimal":
        return Decimal(_checked(self.value + _raw(other)))

    def sub(self, other: Operand, reason: str = "decimal_sub_underflow") -> "Decimal":
        """Вычитание; отказ, если результат < 0."""
        return Decimal(checked_sub(self.value, _raw(other), reason=reason))

    def sub_or_zero(self, other: Operand) -> "Decimal":
        """Вычитание с floor на нуле."""
        raw = _raw(other)
        return Decimal(self.value - raw) if self.value > raw else Decimal.zero()

    def mul(self, other: Operand) -> "Decimal":
        if isinstance(other, Decimal):
            return Decimal(_checked(self.value * other.value) // BASE)
        check_uint256(other, "multiplier")
        return Decimal(_checked(self.value * other))

    def div(self, other: Operand) -> "Decimal":
        """Деление с усечением к нулю; деление на ноль → ArithmeticFailure."""
        if isinstance(other, Decimal):
            if other.value == 0:
                raise ArithmeticFailure("decimal division by zero", reason="division_by_zero")
            return Decimal(_checked(self.value * BASE) // other.value)
        check_uint256(other, "divisor")
        if other == 0:
            raise ArithmeticFailure("decimal division by zero", reason="division_by_zero")
        return Decimal(self.value // other)

    # -------------------------------------------------------------------------
    # Конверсии и сравнения
    # -------------------------------------------------------------------------

    def as_int(self) -> int:
        """Целая часть (усечение, без округления вверх)."""
        return self.value // BASE

    def is_zero(self) -> bool:
        return self.value == 0

    def __add__(self, other: Operand) -> "Decimal":
        return self.add(other)

    def __sub__(self, other: Operand) -> "Decimal":
        return self.sub(other)

    def __mul__(self, other: Operand) -> "Decimal":
        return self.mul(other)

    def __truediv__(self, other: Operand) -> "Decimal":
        return self.div(other)

    def __str__(self) -> str:
        whole, frac = divmod(self.value, BASE)
        if frac == 0:
            return str(whole)
        return f"{whole}.{str(frac).rjust(18, '0').rstrip('0')}"


# =============================================================================
# УТИЛИТЫ
# =============================================================================


def dmin(a: Decimal, b: Decimal) -> Decimal:
    return a if a <= b else b


def dmax(a: Decimal, b: Decimal) -> Decimal:
    return a if a >= b else b


def clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    """
    Ограничение value диапазоном [low, high].

    При low > high приоритет у high (верхняя граница жёсткая).
    """
    return dmin(dmax(value, low), high)


def _raw(other: Operand) -> int:
    if isinstance(other, Decimal):
        return other.value
    # int-операнд в add/sub трактуется как целое число единиц
    return _checked(check_uint256(other, "operand") * BASE)


def _checked(value: int) -> int:
    if value > UINT256_MAX:
        raise ArithmeticFailure("fixed-point overflow", reason="uint_overflow")
    return value
