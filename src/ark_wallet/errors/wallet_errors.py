"""ArkWalletError: base exception class and classified error kinds.

Every failure the orchestrator can observe is one of the ``ErrorKind`` values.
Exceptions carry their kind so they can be flattened into an ``ErrorInfo``
value for ``SessionState.last_error``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class ErrorKind(enum.StrEnum):
    """Classification of every error surfaced to the session."""

    NETWORK_UNAVAILABLE = "network-unavailable"
    TIMEOUT = "timeout"
    HTTP_ERROR = "http-error"
    MALFORMED_RESPONSE = "malformed-response"
    SERVICE_REJECTED = "service-rejected"
    VALIDATION_ERROR = "validation-error"
    DUPLICATE_WALLET = "duplicate-wallet"
    OPERATION_IN_PROGRESS = "operation-in-progress"
    PERSISTENCE_WARNING = "persistence-warning"


@dataclass(frozen=True)
class ErrorInfo:
    """Immutable description of a classified failure.

    Attributes:
        kind: The error classification.
        message: Human-readable description.
        status: HTTP status for ``HTTP_ERROR``, else None.
        field: Offending input name for ``VALIDATION_ERROR``, else None.
    """

    kind: ErrorKind
    message: str
    status: int | None = None
    field: str | None = None


class ArkWalletError(Exception):
    """Base error for all wallet client operations.

    Attributes:
        message: Human-readable error description.
        kind: Machine-readable classification.
        status_code: HTTP status code when the failure came from the service.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code

    def info(self) -> ErrorInfo:
        """Flatten this exception into an ``ErrorInfo`` value."""
        return ErrorInfo(kind=self.kind, message=self.message, status=self.status_code)


# -- Transport -------------------------------------------------------------


class NetworkUnavailableError(ArkWalletError):
    """The wallet service could not be reached."""

    def __init__(self, message: str) -> None:
        super().__init__(message, kind=ErrorKind.NETWORK_UNAVAILABLE)


class RequestTimeoutError(ArkWalletError):
    """The wallet service did not answer within the configured timeout."""

    def __init__(self, message: str) -> None:
        super().__init__(message, kind=ErrorKind.TIMEOUT)


class HTTPStatusError(ArkWalletError):
    """The wallet service answered with a non-2xx status."""

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message, kind=ErrorKind.HTTP_ERROR, status_code=status_code)

    @property
    def status(self) -> int:
        return self.status_code or 0


class MalformedResponseError(ArkWalletError):
    """A success payload was missing fields or had the wrong types."""

    def __init__(self, message: str) -> None:
        super().__init__(message, kind=ErrorKind.MALFORMED_RESPONSE)


class ServiceRejectedError(ArkWalletError):
    """A 2xx action response reported ``success: false``."""

    def __init__(self, message: str) -> None:
        super().__init__(message, kind=ErrorKind.SERVICE_REJECTED)


# -- Orchestration ---------------------------------------------------------


class ValidationError(ArkWalletError):
    """Input rejected before any network call was made."""

    def __init__(self, message: str, *, field: str) -> None:
        super().__init__(message, kind=ErrorKind.VALIDATION_ERROR)
        self.field = field

    def info(self) -> ErrorInfo:
        return ErrorInfo(kind=self.kind, message=self.message, field=self.field)


class DuplicateWalletError(ArkWalletError):
    """A wallet id is already present in the registry."""

    def __init__(self, wallet_id: str) -> None:
        super().__init__(f"wallet already registered: {wallet_id}", kind=ErrorKind.DUPLICATE_WALLET)
        self.wallet_id = wallet_id


class OperationInProgressError(ArkWalletError):
    """Another lifecycle operation is still pending."""

    def __init__(self, operation: str, *, pending: str) -> None:
        super().__init__(
            f"cannot start {operation}: {pending} is still in progress",
            kind=ErrorKind.OPERATION_IN_PROGRESS,
        )
        self.operation = operation
        self.pending = pending


class PersistenceWarning(ArkWalletError):
    """Durable storage failed; the in-memory state is still valid."""

    def __init__(self, message: str) -> None:
        super().__init__(message, kind=ErrorKind.PERSISTENCE_WARNING)
