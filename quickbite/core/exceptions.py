"""Exception classes for the storefront."""


class QuickBiteError(Exception):
    """Base exception for all storefront errors."""

    pass


class ValidationError(QuickBiteError, ValueError):
    """Raised when an insert payload or request fails validation."""

    def __init__(self, field: str, message: str):
        """Initialize with field and message."""
        self.field = field
        self.message = message
        super().__init__(f"Validation error for {field}: {message}")


class NotFoundError(QuickBiteError, LookupError):
    """Raised when a referenced record does not exist."""

    def __init__(self, entity: str, record_id: int | str):
        """Initialize with entity name and id."""
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"{entity} not found: {record_id}")


class DuplicateUserError(QuickBiteError):
    """Raised when a username is already taken."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Username already exists: {username}")


class StorageError(QuickBiteError):
    """Raised when the underlying store fails."""

    pass


class IdentifierError(StorageError, ValueError):
    """Raised when an id cannot be translated between id spaces."""

    pass


class AuthenticationError(QuickBiteError):
    """Raised on bad credentials or an unknown session."""

    pass


class PermissionDeniedError(QuickBiteError):
    """Raised when a user lacks the rights for an operation."""

    pass


class ConfigurationError(QuickBiteError):
    """Raised for invalid backend or application configuration."""

    pass
