"""Audit error hierarchy.

Configuration and input errors are raised to the caller. Resolution and
exception-recording failures are handled inside the recorder and never
surface; see ``EventRecorder`` for where each one is caught.
"""


class ChronicleError(Exception):
    """Base exception for all audit errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(ChronicleError):
    """Raised when a required collaborator was never configured.

    Missing actor resolvers and missing or ambiguous record types are
    startup problems and are not retried.
    """


class InvalidArgumentError(ChronicleError, ValueError):
    """Raised when a direct input is missing or malformed."""

    def __init__(self, message: str, argument: str | None = None) -> None:
        super().__init__(message)
        self.argument = argument


class TypeNotFoundError(ChronicleError):
    """Raised when a record's subject type cannot be resolved by name."""

    def __init__(self, type_name: str) -> None:
        super().__init__(f"Could not load the type {type_name}")
        self.type_name = type_name


class UnsupportedEventError(ChronicleError):
    """Raised when a record's event kind cannot be reconstructed."""


class PayloadFormatError(ChronicleError):
    """Raised when a change payload cannot be parsed."""


class PersistenceUnavailableError(ChronicleError):
    """Raised by stores when the backing sink is unhealthy.

    Listed by default in ``audit.unloggable_exception_types`` so that
    the recorder does not try to log the failure of its own sink.
    """


class ScheduledTaskError(ChronicleError):
    """Wraps the failure of a scheduled task for exception recording."""

    def __init__(self, task: str) -> None:
        super().__init__(f"Error in executing the automated schedule work '{task}'.")
        self.task = task
