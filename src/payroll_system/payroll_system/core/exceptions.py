class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidStateError(DomainError):
    """Raised when an operation is not allowed for the record's current status."""


class IllegalTransitionError(InvalidStateError):
    """Raised when a status transition is not in the payroll state machine."""


class NotFoundError(DomainError):
    """Raised when an employee or payroll record does not exist."""


class ExternalServiceError(DomainError):
    """Raised when payment, document generation or delivery fails."""


class ConcurrencyConflictError(DomainError):
    """Raised when a conditional update lost the race to another writer."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""
