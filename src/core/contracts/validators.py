"""
JSON Schema Contract Validators

Валидация JSON-представлений событий и экспортированных состояний
против формальных JSON Schema контрактов (Draft 2020-12).

Схемы (src/core/contracts/schema/):
- events.json: все наблюдаемые события (oneOf по source + name)
- reserve_state.json
- stabilizer_state.json
- oracle_state.json
- incentivizer_state.json
"""

import json
from pathlib import Path
from typing import Any, Dict, Final, Iterator

import jsonschema
from jsonschema import Draft202012Validator, ValidationError


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Загрузчик JSON Schema файлов.

    Схемы лежат в пакете: contracts/schema/ рядом с этим модулем.
    """

    def __init__(self, schema_dir: Path = Path(__file__).parent / "schema"):
        self._schema_dir = schema_dir
        if not self._schema_dir.exists():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")

        # Кэш загруженных схем
        self._schemas: Dict[str, Dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Загрузка JSON Schema файла.

        Args:
            schema_name: Имя схемы без расширения (например, 'reserve_state')

        Returns:
            Загруженная схема как dict

        Raises:
            FileNotFoundError: Если файл схемы не найден
            ValueError: Если схема не проходит meta-validation
        """
        if schema_name in self._schemas:
            return self._schemas[schema_name]

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")

        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)

        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e}")

        self._schemas[schema_name] = schema
        return schema


# Глобальный экземпляр загрузчика
_SCHEMA_LOADER = SchemaLoader()

# kind компонента → контракт экспортированного состояния
STATE_CONTRACTS: Final[Dict[str, str]] = {
    "reserve": "reserve_state",
    "stabilizer": "stabilizer_state",
    "oracle": "oracle_state",
    "incentivizer": "incentivizer_state",
}


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """
    Базовый класс для валидаторов контрактов.

    Draft202012Validator строится один раз на схему.
    """

    _compiled: Dict[str, Draft202012Validator] = {}

    def __init__(self, schema_name: str):
        self.schema_name = schema_name
        self.schema = _SCHEMA_LOADER.load_schema(schema_name)
        if schema_name not in self._compiled:
            self._compiled[schema_name] = Draft202012Validator(self.schema)
        self.validator = self._compiled[schema_name]

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Валидация данных против схемы.

        Raises:
            ValidationError: Если данные не соответствуют схеме
        """
        self.validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        return self.validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]) -> Iterator[ValidationError]:
        return self.validator.iter_errors(data)


class EventValidator(ContractValidator):
    """Валидатор событий (events.json)."""

    def __init__(self):
        super().__init__("events")


class StateValidator(ContractValidator):
    """
    Валидатор экспортированного состояния компонента.

    Args:
        kind: Тип компонента (ключ STATE_CONTRACTS)

    Raises:
        KeyError: Если для kind нет контракта
    """

    def __init__(self, kind: str):
        super().__init__(STATE_CONTRACTS[kind])
        self.kind = kind


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_event(data: Dict[str, Any]) -> None:
    """
    Валидация JSON-представления события.

    Raises:
        ValidationError: Если событие не соответствует контракту
    """
    EventValidator().validate(data)


def validate_state(kind: str, data: Dict[str, Any]) -> None:
    """
    Валидация экспортированного состояния; kind без контракта пропускается.

    Raises:
        ValidationError: Если состояние не соответствует контракту
    """
    if kind in STATE_CONTRACTS:
        StateValidator(kind).validate(data)
