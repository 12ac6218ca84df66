"""Custom exception hierarchy for the FusionStorage client."""
from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from .runner import AgentAttempt


class FusionStorageError(RuntimeError):
    """Base error for FusionStorage failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class TransportError(FusionStorageError):
    """Raised when a request cannot be sent or its response cannot be read."""


class AgentUnreachableError(TransportError):
    """Raised when every CLI agent failed before reporting a result code."""

    def __init__(self, message: str, *, attempts: Sequence[AgentAttempt] = ()) -> None:
        super().__init__(message, details=list(attempts))
        self.attempts = tuple(attempts)


class HttpStatusError(FusionStorageError):
    """Raised when the REST API answers with a 4xx or 5xx status."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(
            f"FusionStorage API error {status}: {body[:200]}",
            status_code=status,
            details=body,
        )
        self.body = body


class DecodeError(FusionStorageError):
    """Raised when a response body is not a well-formed envelope."""


class EnvelopeError(FusionStorageError):
    """Raised when the response envelope carries a non-success code."""

    def __init__(self, code: int, raw_body: str, *, status_code: int | None = None) -> None:
        super().__init__(
            f"FusionStorage request failed with code {code}: {raw_body[:200]}",
            status_code=status_code,
            details=raw_body,
        )
        self.code = code
        self.raw_body = raw_body


class CliError(FusionStorageError):
    """Raised when no CLI agent reported success."""

    def __init__(
        self,
        message: str,
        code: str,
        *,
        attempts: Sequence[AgentAttempt] = (),
    ) -> None:
        super().__init__(f"msg: {message}, code: {code}", details=list(attempts))
        self.message = message
        self.code = code
        self.attempts = tuple(attempts)


class SessionEstablishmentError(FusionStorageError):
    """Raised when login to the REST API cannot complete."""


class OperationCancelledError(FusionStorageError):
    """Raised when a caller cancels an in-flight operation."""


class UnexpectedResponseError(FusionStorageError):
    """Raised when the API returns an unexpected payload structure."""
