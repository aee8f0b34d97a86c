class DeletionError(Exception):
    """Base class for failures reported by an entity deletion."""

    pass


class ConfigurationError(DeletionError):
    """Raised when one or more backing stores are not initialized. Not retryable."""

    pass


class EntityValidationError(DeletionError):
    """Raised when the entity id is missing or blank."""

    pass


class EntityNotFoundError(DeletionError):
    """Raised when no record exists for the entity id."""

    def __init__(self, entity_id: str, message: str | None = None):
        self.entity_id: str = entity_id
        super().__init__(message or f"Entity {entity_id} not found")


class RecordDeleteError(DeletionError):
    """Raised when the final record delete fails."""

    pass
