"""
Contract Validation Module

JSON Schema контракты событий и экспортированных состояний.
"""

from .validators import (
    STATE_CONTRACTS,
    ContractValidator,
    EventValidator,
    SchemaLoader,
    StateValidator,
    validate_event,
    validate_state,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "EventValidator",
    "StateValidator",
    # Functions
    "validate_event",
    "validate_state",
    # Constants
    "STATE_CONTRACTS",
]
