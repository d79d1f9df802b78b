class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""


class ConflictError(DomainError):
    """Raised when the request clashes with the current state of stored data."""


class InvalidTransitionError(ConflictError):
    """Raised when an attendance is moved to a stage its current stage does not allow."""


class ConcurrencyError(ConflictError):
    """Raised when a versioned row changed between read and write."""


class PersistenceError(DomainError):
    """Raised when the store fails to apply a write."""
