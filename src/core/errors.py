"""
Protocol Errors — таксономия ошибок

Все ошибки фатальны для текущей операции: операция прерывается и полностью
откатывается (см. src.core.ledger.Ledger.atomic). Внутренних retry нет —
повтор выполняет только вызывающая сторона после анализа ошибки.

Каждая ошибка несёт короткий стабильный machine-parseable reason tag
(snake_case), например "insufficient_borrowable".
"""

from typing import Optional


class ProtocolError(Exception):
    """
    Базовая ошибка протокола.

    Attributes:
        message: Человекочитаемое описание
        reason: Стабильный reason tag для диагностики
    """

    default_reason: str = "protocol_error"

    def __init__(self, message: str, reason: Optional[str] = None):
        self.message = message
        self.reason = reason or self.default_reason
        super().__init__(f"{message} ({self.reason})")


class InsufficientFunds(ProtocolError):
    """Недостаточно баланса / allowance / долга (underflow учёта)."""

    default_reason = "insufficient_funds"


class RateLimitExceeded(ProtocolError):
    """Окно заимствований превысило дневной лимит."""

    default_reason = "rate_limit_exceeded"


class ExternalCallFailed(ProtocolError):
    """Коллаборатор вернул non-success статус."""

    default_reason = "external_call_failed"


class Unauthorized(ProtocolError):
    """Вызов привилегированной операции не-авторизованным адресом."""

    default_reason = "unauthorized"


class InvalidState(ProtocolError):
    """
    Операция недопустима в текущем состоянии.

    Примеры: oracle не настроен, settle больше долга, повторный setup,
    re-entrant вызов, компонент на паузе.
    """

    default_reason = "invalid_state"


class ArithmeticFailure(ProtocolError):
    """Overflow, underflow или деление на ноль в fixed-point арифметике."""

    default_reason = "arithmetic_failure"
