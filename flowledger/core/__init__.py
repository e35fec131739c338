"""Core error taxonomy and constants."""

from .errors import (
    ApiAuthError,
    ApiError,
    ApiNotFoundError,
    ApiServerError,
    ApiTransportError,
    ConfigurationError,
    FlowLedgerError,
    InvalidConfigError,
    TaskCancelledError,
    TaskError,
    TaskFailedError,
    TaskResultMissingError,
    TaskTimeoutError,
    TransientApiError,
)

__all__ = [
    "ApiAuthError",
    "ApiError",
    "ApiNotFoundError",
    "ApiServerError",
    "ApiTransportError",
    "ConfigurationError",
    "FlowLedgerError",
    "InvalidConfigError",
    "TaskCancelledError",
    "TaskError",
    "TaskFailedError",
    "TaskResultMissingError",
    "TaskTimeoutError",
    "TransientApiError",
]
