"""Exception hierarchy for the File Search proxy.

Validation failures are raised before any network call. Provider
failures carry the raw status and body so the HTTP layer can log them
while showing the caller a short message.
"""

from __future__ import annotations

from typing import Any


class FileSearchError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(FileSearchError, ValueError):
    """Raised on bad or empty input, before any request is sent."""


class RemoteError(FileSearchError):
    """Raised when the Gemini API answers with a non-success response.

    Also used for transport failures, in which case ``status_code`` is
    ``None``.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        status: str | None = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.status = status
        self.body = body

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class PollError(FileSearchError):
    """Raised when a single status request fails during polling."""

    def __init__(self, operation_name: str, attempt: int, cause: BaseException) -> None:
        super().__init__(
            f"Polling {operation_name} failed on attempt {attempt}: {cause}"
        )
        self.operation_name = operation_name
        self.attempt = attempt


class OperationTimeoutError(FileSearchError, TimeoutError):
    """Raised when the poll budget runs out before the operation is done.

    The operation may still be running on the provider side.
    """

    def __init__(self, operation_name: str, attempts: int) -> None:
        super().__init__(
            f"Operation {operation_name} not done after {attempts} attempts"
        )
        self.operation_name = operation_name
        self.attempts = attempts
