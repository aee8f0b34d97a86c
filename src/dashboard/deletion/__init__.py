"""Entity deletion across record, blob and identity stores."""

from .errors import (
    ConfigurationError,
    DeletionError,
    EntityNotFoundError,
    EntityValidationError,
    RecordDeleteError,
)
from .kinds import CUSTOMER, EMPLOYEE, ENTITY_KINDS, EntityKind
from .orchestrator import DeletionResult, EntityDeletionOrchestrator, EntityId, StepWarning

__all__ = [
    "ConfigurationError",
    "DeletionError",
    "EntityNotFoundError",
    "EntityValidationError",
    "RecordDeleteError",
    "CUSTOMER",
    "EMPLOYEE",
    "ENTITY_KINDS",
    "EntityKind",
    "DeletionResult",
    "EntityDeletionOrchestrator",
    "EntityId",
    "StepWarning",
]
