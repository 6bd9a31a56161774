"""Exception types for the datastep SDK."""

from typing import Optional


class DatastepError(Exception):
    """Base exception for all datastep errors."""

    pass


class SetupError(DatastepError):
    """The step cannot run for the current user."""

    pass


class ProvisionError(DatastepError):
    """Table provisioning did not produce a new table."""

    pass


class AppendError(DatastepError):
    """Appending rows to a table failed."""

    pass


class WaitInterrupted(DatastepError):
    """Waiting for a table to finish caching was cancelled."""

    pass


class CacheTimeoutError(DatastepError):
    """Table caching did not finish within the configured timeout."""

    def __init__(self, message: str, waited_ms: int = 0) -> None:
        super().__init__(message)
        self.waited_ms = waited_ms


class StepValidationError(DatastepError):
    """Step definition validation failed."""

    pass


class ClientError(DatastepError):
    """HTTP client operation failed."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StepRegistrationError(DatastepError):
    """Step registration with the host failed."""

    pass


class HTTPError(DatastepError):
    """Custom HTTP error for step handlers."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
