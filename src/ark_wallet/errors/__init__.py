"""Error hierarchy for the wallet client."""

from ark_wallet.errors.wallet_errors import (
    ArkWalletError,
    DuplicateWalletError,
    ErrorInfo,
    ErrorKind,
    HTTPStatusError,
    MalformedResponseError,
    NetworkUnavailableError,
    OperationInProgressError,
    PersistenceWarning,
    RequestTimeoutError,
    ServiceRejectedError,
    ValidationError,
)

__all__ = [
    "ArkWalletError",
    "DuplicateWalletError",
    "ErrorInfo",
    "ErrorKind",
    "HTTPStatusError",
    "MalformedResponseError",
    "NetworkUnavailableError",
    "OperationInProgressError",
    "PersistenceWarning",
    "RequestTimeoutError",
    "ServiceRejectedError",
    "ValidationError",
]
