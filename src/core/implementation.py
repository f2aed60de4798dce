"""
Implementation — базовый компонент протокола

Каждый компонент (reserve, stabilizer, oracle, ...) владеет ровно одним
immutable state-блоком и изменяет его только через _commit. Базовый класс
объединяет:
- authority: owner / pauser / paused, проверка caller'а до любых изменений
- registry binding: разрешение адресов коллабораторов в момент вызова
- re-entrancy guard (guarded): busy-флаг + атомарная область ledger
- export / load versioned state
"""

import functools
import logging
from typing import Any, Callable, ClassVar, Dict, Optional, Type, TypeVar

from src.core.contracts import validate_state
from src.core.domain.common import AdminState, ComponentState
from src.core.domain.events import (
    Event,
    OwnerUpdate,
    PausedUpdate,
    PauserUpdate,
    RegistryBinding,
)
from src.core.domain.migrations import migrate_state
from src.core.errors import InvalidState, Unauthorized
from src.core.ledger import Ledger

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


# =============================================================================
# RE-ENTRANCY GUARD
# =============================================================================


def guarded(method: F) -> F:
    """
    Защита внешне доступной мутирующей операции.

    - вложенный вход в любую guarded-операцию того же компонента
      отклоняется с InvalidState("reentrant_call")
    - тело выполняется в Ledger.atomic(): всё или ничего
    - busy-флаг снимается на любом пути выхода, включая ошибки
    """

    @functools.wraps(method)
    def wrapper(self: "Implementation", *args: Any, **kwargs: Any) -> Any:
        if self._busy:
            raise InvalidState(f"{type(self).__name__}: reentrant call", reason="reentrant_call")
        self._busy = True
        try:
            with self.ledger.atomic():
                return method(self, *args, **kwargs)
        finally:
            self._busy = False

    return wrapper  # type: ignore[return-value]


# =============================================================================
# BASE COMPONENT
# =============================================================================


class Implementation:
    """
    Базовый класс компонента.

    Args:
        ledger: Общий ledger
        owner: Адрес authority
        registry: Адрес registry (опционально, можно задать позже)
        address: Желаемый адрес в адресной книге
    """

    kind: ClassVar[str] = "component"
    state_model: ClassVar[Type[ComponentState]] = ComponentState

    def __init__(
        self,
        ledger: Ledger,
        owner: str,
        registry: Optional[str] = None,
        address: Optional[str] = None,
    ):
        self.ledger = ledger
        self._busy = False
        self._state = self.state_model(admin=AdminState(owner=owner, registry=registry))
        self.address = ledger.register(self, address)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ComponentState:
        return self._state

    def _commit(self, **changes: Any) -> None:
        """Замена state новой валидированной версией с изменёнными полями."""
        self._state = self.state_model.model_validate({**dict(self._state), **changes})

    def _restore(self, state: ComponentState, busy: bool = False) -> None:
        self._state = state
        self._busy = busy

    def _emit(self, event_cls: Type[Event], **fields: Any) -> None:
        self.ledger.record(event_cls(emitter=self.address, timestamp=self.ledger.now, **fields))

    def export_state(self) -> Dict[str, Any]:
        """
        JSON-представление state (валидируется контрактом, если он есть).

        Raises:
            jsonschema.ValidationError: Если state нарушает контракт
        """
        data = self._state.model_dump(mode="json")
        validate_state(self.kind, data)
        return data

    @guarded
    def load_state(self, sender: str, data: Dict[str, Any]) -> None:
        """
        Загрузка сохранённого state с миграцией до текущей версии.

        Raises:
            Unauthorized: Если sender не owner
            ValueError: Если миграция невозможна
            pydantic.ValidationError: Если state невалиден
        """
        self._require_owner(sender)
        migrated = migrate_state(self.kind, data, **self._migration_context())
        self._state = self.state_model.model_validate(migrated)
        logger.info(f"{self.address}: state loaded (schema_version={self._state.schema_version})")

    def _migration_context(self) -> Dict[str, Any]:
        return {}

    # -------------------------------------------------------------------------
    # Authority
    # -------------------------------------------------------------------------

    @property
    def owner(self) -> Optional[str]:
        return self._state.admin.owner

    @property
    def pauser(self) -> Optional[str]:
        return self._state.admin.pauser

    @property
    def paused(self) -> bool:
        return self._state.admin.paused

    @property
    def registry_address(self) -> Optional[str]:
        return self._state.admin.registry

    def _update_admin(self, **changes: Any) -> None:
        self._commit(admin=self._state.admin.model_copy(update=changes))

    @guarded
    def set_owner(self, sender: str, owner: str) -> None:
        self._require_owner(sender)
        self._update_admin(owner=owner)
        self._emit(OwnerUpdate, owner=owner)

    @guarded
    def set_pauser(self, sender: str, pauser: Optional[str]) -> None:
        self._require_owner(sender)
        self._update_admin(pauser=pauser)
        self._emit(PauserUpdate, pauser=pauser)

    @guarded
    def set_paused(self, sender: str, paused: bool) -> None:
        if self.pauser is None or sender != self.pauser:
            raise Unauthorized("Implementation: not pauser", reason="not_pauser")
        self._update_admin(paused=paused)
        self._emit(PausedUpdate, paused=paused)

    @guarded
    def set_registry(self, sender: str, registry: str) -> None:
        self._require_owner(sender)
        self._update_admin(registry=registry)
        self._emit(RegistryBinding, registry=registry)

    def _require_owner(self, sender: str) -> None:
        if sender != self.owner:
            raise Unauthorized("Implementation: not owner", reason="not_owner")

    def _require_not_paused(self) -> None:
        if self.paused:
            raise InvalidState("Implementation: paused", reason="paused")

    # -------------------------------------------------------------------------
    # Registry lookup
    # -------------------------------------------------------------------------

    def registry(self) -> Any:
        """
        Привязанный registry.

        Raises:
            InvalidState: Если registry не задан
        """
        if self.registry_address is None:
            raise InvalidState(f"{type(self).__name__}: registry not set", reason="registry_not_set")
        return self.ledger.resolve(self.registry_address)

    def _collaborator_address(self, key: str) -> str:
        address = self.registry().get(key)
        if address is None:
            raise InvalidState(f"{type(self).__name__}: {key} not registered", reason=f"{key}_not_registered")
        return address

    def _collaborator(self, key: str) -> Any:
        """Текущий коллаборатор по ключу registry (без кэширования)."""
        return self.ledger.resolve(self._collaborator_address(key))
