"""Custom exceptions for the Registry."""


class RegistryError(Exception):
    """Base exception for Registry errors.

    The message is safe to return to API clients as-is.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MissingFieldError(RegistryError):
    """Required input field is absent."""


class DuplicateKeyError(RegistryError):
    """Unique key (student email or course title) already taken."""


class NotFoundError(RegistryError):
    """Referenced student, course or enrollment does not exist."""


class BlockedByRelationshipError(RegistryError):
    """Cannot delete a record that is still referenced by an enrollment."""


class ConflictError(RegistryError):
    """Operation would create a duplicate enrollment."""


class CapacityExceededError(RegistryError):
    """Enrollment would exceed the course capacity."""
