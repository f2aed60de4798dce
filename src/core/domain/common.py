"""
Common Domain Types — базовые типы state-моделей

Pydantic V2 аннотированные типы для полей состояния:
- Uint256: целое в диапазоне uint256 (strict, без bool/str)
- Address: непустой идентификатор аккаунта/компонента
- DecimalValue: fixed-point Decimal; в JSON сериализуется строкой raw-числителя

Базовые модели:
- AdminState: authority / pauser / registry binding компонента
- ComponentState: versioned корень состояния любого компонента
"""

from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, Field, PlainSerializer, PlainValidator, Strict, WithJsonSchema

from src.core.errors import ArithmeticFailure
from src.core.math.fixed_point import UINT256_MAX, Decimal

# =============================================================================
# SCHEMA VERSION
# =============================================================================

CURRENT_SCHEMA_VERSION = 2


# =============================================================================
# ANNOTATED TYPES
# =============================================================================


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        if isinstance(value, str) and value.isdigit():
            return Decimal(int(value))
        if isinstance(value, int) and not isinstance(value, bool):
            return Decimal(value)
    except ArithmeticFailure as e:
        raise ValueError(str(e)) from e
    raise ValueError(f"expected Decimal raw value, got {value!r}")


Uint256 = Annotated[int, Strict(), Field(ge=0, le=UINT256_MAX)]

Address = Annotated[str, Field(min_length=1)]

DecimalValue = Annotated[
    Decimal,
    PlainValidator(_to_decimal),
    PlainSerializer(lambda d: str(d.value), return_type=str, when_used="json"),
    WithJsonSchema({"type": "string", "pattern": "^[0-9]+$"}),
]


# =============================================================================
# BASE MODELS
# =============================================================================


class AdminState(BaseModel):
    """
    Административное состояние компонента.

    owner — единственная authority привилегированных операций;
    pauser — адрес, которому разрешено ставить компонент на паузу.
    """

    owner: Optional[Address] = None
    pauser: Optional[Address] = None
    paused: bool = False
    registry: Optional[Address] = None

    model_config = {"frozen": True}


class ComponentState(BaseModel):
    """
    Корень состояния компонента.

    Immutable (frozen=True): любое изменение создаёт новый экземпляр, что
    делает snapshot/rollback атомарных операций точным.
    """

    schema_version: Literal[2] = CURRENT_SCHEMA_VERSION
    admin: AdminState = Field(default_factory=AdminState)

    model_config = {"frozen": True}
