"""Directory access exceptions."""


class DirectoryError(Exception):
    """Base exception for all provider errors."""
    pass


class ConfigurationError(DirectoryError):
    """Provider configuration is invalid or the directory is unreachable at setup."""
    pass


class RepositoryError(DirectoryError):
    """A query against the directory failed.

    Attributes:
        operation: Repository operation that failed
    """

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"{operation}: {message}")


class ConnectionFailure(RepositoryError):
    """The directory could not be reached; the host should treat the provider as unavailable."""
    pass


class WriteError(RepositoryError):
    """The directory rejected a write."""
    pass


class ConstraintViolation(WriteError):
    """A write violated a uniqueness or integrity constraint (e.g. duplicate username)."""
    pass
