from __future__ import annotations

RETRYABLE_STATUS_CODES = {408, 429}


class RenderJobError(Exception):
    """Base error for render job submission and supervision."""


class ValidationError(RenderJobError):
    """Raised when form input is incomplete or malformed for the selected template."""


class TransportError(RenderJobError):
    """Raised when the render service cannot be reached."""


class RemoteError(RenderJobError):
    """Raised when the render service answers with a failure status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @property
    def retryable(self) -> bool:
        return self.status_code >= 500 or self.status_code in RETRYABLE_STATUS_CODES


class NotFoundError(RemoteError):
    """Raised when the render service does not know the requested job."""

    def __init__(self, message: str = "job not found") -> None:
        super().__init__(404, message)


class PollExhaustedError(RenderJobError):
    """Raised when consecutive status-check failures exceed the retry budget."""

    def __init__(self, attempts: int, last_error: Exception | None = None) -> None:
        detail = f": {last_error}" if last_error is not None else ""
        super().__init__(f"status polling gave up after {attempts} consecutive failures{detail}")
        self.attempts = attempts
        self.last_error = last_error


class JobStateError(RenderJobError):
    """Raised when an operation is not allowed from the current job state."""
