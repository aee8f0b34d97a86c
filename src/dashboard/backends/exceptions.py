class ResourceNotFoundError(Exception):
    """Raised when a record, object or principal is not present in its store."""

    pass


class BackendNotConfiguredError(Exception):
    """Raised when a store backend cannot be initialized from configuration."""

    pass
