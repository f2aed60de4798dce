"""
Ledger — общее состояние исполнения

Ledger владеет:
- часами (now, advance, warp): целые секунды, только вперёд
- адресной книгой (register, resolve): адрес → компонент
- журналом событий (append-only)
- атомарными транзакциями (atomic)

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Каждая atomic-область делает snapshot immutable state каждого
   зарегистрированного компонента, его busy-флага и длины журнала событий
2. Любое исключение внутри области восстанавливает snapshot целиком и
   пробрасывается дальше (никаких частичных изменений)
3. Вложенная область откатывается до своего snapshot; внешняя продолжает
   работу с состоянием на момент входа во вложенную
"""

import itertools
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Tuple

from src.core.config import LedgerConfig
from src.core.contracts import validate_event
from src.core.domain.common import ComponentState
from src.core.domain.events import Event
from src.core.errors import InvalidState, ProtocolError
from src.core.math.fixed_point import check_uint256

if TYPE_CHECKING:
    from src.core.implementation import Implementation

logger = logging.getLogger(__name__)


class Ledger:
    """
    Общий ledger протокола.

    Examples:
        >>> ledger = Ledger()
        >>> with ledger.atomic():
        ...     reserve.mint(user, amount)
    """

    def __init__(self, config: Optional[LedgerConfig] = None):
        self.config = config or LedgerConfig()
        self._now = self.config.start_timestamp
        self._components: Dict[str, "Implementation"] = {}
        self._events: List[Event] = []
        self._depth = 0
        self._sequence = itertools.count(1)

    # -------------------------------------------------------------------------
    # Часы
    # -------------------------------------------------------------------------

    @property
    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        """Сдвиг часов вперёд на seconds. Returns: новое время."""
        check_uint256(seconds, "seconds")
        self._now += seconds
        return self._now

    def warp(self, timestamp: int) -> int:
        """
        Установка абсолютного времени.

        Raises:
            InvalidState: Если timestamp в прошлом
        """
        check_uint256(timestamp, "timestamp")
        if timestamp < self._now:
            raise InvalidState(
                f"cannot move clock backwards: {timestamp} < {self._now}", reason="time_reversal"
            )
        self._now = timestamp
        return self._now

    # -------------------------------------------------------------------------
    # Адресная книга
    # -------------------------------------------------------------------------

    def register(self, component: "Implementation", address: Optional[str] = None) -> str:
        """
        Регистрация компонента.

        Args:
            component: Компонент
            address: Желаемый адрес; по умолчанию "<kind>-<n>"

        Returns:
            Присвоенный адрес

        Raises:
            InvalidState: Если адрес уже занят
        """
        if address is None:
            address = f"{component.kind}-{next(self._sequence)}"
        if address in self._components:
            raise InvalidState(f"address already registered: {address}", reason="address_taken")
        self._components[address] = component
        return address

    def resolve(self, address: str) -> "Implementation":
        """
        Компонент по адресу.

        Raises:
            InvalidState: Если адрес неизвестен
        """
        try:
            return self._components[address]
        except KeyError:
            raise InvalidState(f"unknown address: {address}", reason="unknown_address") from None

    def is_registered(self, address: str) -> bool:
        return address in self._components

    # -------------------------------------------------------------------------
    # Журнал событий
    # -------------------------------------------------------------------------

    def record(self, event: Event) -> None:
        """
        Добавление события в журнал.

        Raises:
            jsonschema.ValidationError: Если validate_events и событие
                нарушает контракт events.json
        """
        if self.config.validate_events:
            validate_event(event.model_dump(mode="json"))
        self._events.append(event)

    @property
    def events(self) -> Tuple[Event, ...]:
        return tuple(self._events)

    def events_of(
        self,
        name: Optional[str] = None,
        source: Optional[str] = None,
        emitter: Optional[str] = None,
        since: int = 0,
    ) -> List[Event]:
        """Фильтр журнала по имени, source и эмиттеру, начиная с индекса since."""
        return [
            e
            for e in self._events[since:]
            if (name is None or e.name == name)
            and (source is None or e.source == source)
            and (emitter is None or e.emitter == emitter)
        ]

    # -------------------------------------------------------------------------
    # Транзакции
    # -------------------------------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @contextmanager
    def atomic(self) -> Iterator["Ledger"]:
        """
        Атомарная область: всё или ничего.

        Каждая область, в том числе вложенная, берёт свой snapshot. Ошибка,
        перехваченная во внешней области, откатывает только тело вложенной.

        Raises:
            Любое исключение из тела после полного отката
        """
        snapshot: Dict[str, Tuple[ComponentState, bool]] = {
            address: (component.state, component._busy) for address, component in self._components.items()
        }
        components = dict(self._components)
        event_count = len(self._events)
        now = self._now

        self._depth += 1
        try:
            yield self
        except Exception as e:
            self._components = components
            for address, (state, busy) in snapshot.items():
                components[address]._restore(state, busy)
            del self._events[event_count:]
            self._now = now
            reason = e.reason if isinstance(e, ProtocolError) else type(e).__name__
            logger.warning(f"Transaction rolled back: {reason} (depth {self._depth})")
            raise
        finally:
            self._depth -= 1
