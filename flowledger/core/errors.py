"""Core exception hierarchy for Flow Ledger.

All Flow Ledger exceptions inherit from FlowLedgerError, enabling both
specific and broad exception handling.

Exception Hierarchy:
    FlowLedgerError (base)
    ├── TaskError - Backend task outcomes observed by the poller
    │   ├── TaskFailedError
    │   ├── TaskTimeoutError
    │   ├── TaskCancelledError
    │   └── TaskResultMissingError
    ├── ApiError - REST backend issues
    │   ├── ApiAuthError
    │   ├── ApiNotFoundError
    │   └── TransientApiError
    │       ├── ApiServerError
    │       └── ApiTransportError
    └── ConfigurationError - Config issues
        └── InvalidConfigError
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from flowledger.tasks.models import TaskStatusRecord


class FlowLedgerError(Exception):
    """Base exception for all Flow Ledger errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code (e.g., "TASK_TIMEOUT")
        details: Optional dict with additional context
    """

    error_code: str = "FLOWLEDGER_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dict for structured output."""
        return {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# Task Errors
class TaskError(FlowLedgerError):
    """Base class for task polling outcomes.

    Every task error carries the last status record observed (or None).
    """

    error_code = "TASK_ERROR"

    def __init__(
        self,
        message: str,
        record: Optional["TaskStatusRecord"] = None,
        task_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.record = record
        self.task_id = task_id or (record.task_id if record is not None else None)
        merged = {"task_id": self.task_id}
        if record is not None:
            merged["status"] = record.status.value
        merged.update(details or {})
        super().__init__(message, details=merged)


class TaskFailedError(TaskError):
    """Backend reported the task as failed."""

    error_code = "TASK_FAILED"
    DEFAULT_MESSAGE = "Task failed"

    def __init__(self, record: "TaskStatusRecord"):
        super().__init__(record.error or self.DEFAULT_MESSAGE, record=record)


class TaskTimeoutError(TaskError):
    """Task did not reach a terminal state within the time budget."""

    error_code = "TASK_TIMEOUT"

    def __init__(
        self,
        task_id: str,
        timeout_seconds: float,
        record: Optional["TaskStatusRecord"] = None,
    ):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Task {task_id} did not finish within {timeout_seconds:g}s.",
            record=record,
            task_id=task_id,
            details={"timeout_seconds": timeout_seconds},
        )


class TaskCancelledError(TaskError):
    """Polling was abandoned by the caller."""

    error_code = "TASK_CANCELLED"

    def __init__(self, task_id: str, record: Optional["TaskStatusRecord"] = None):
        super().__init__(f"Polling for task {task_id} was cancelled.", record=record, task_id=task_id)


class TaskResultMissingError(TaskError):
    """Task succeeded but the backend returned no result payload."""

    error_code = "TASK_RESULT_MISSING"

    def __init__(self, record: "TaskStatusRecord"):
        super().__init__(f"Task {record.task_id} succeeded without a result.", record=record)


# API Errors
class ApiError(FlowLedgerError):
    """REST backend returned an error response."""

    error_code = "API_ERROR"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        method: Optional[str] = None,
        url: Optional[str] = None,
    ):
        self.status_code = status_code
        self.code = code
        super().__init__(
            message,
            details={"status_code": status_code, "code": code, "method": method, "url": url},
        )


class ApiAuthError(ApiError):
    """Access token rejected by the backend."""

    error_code = "API_AUTH"


class ApiNotFoundError(ApiError):
    """Requested resource does not exist."""

    error_code = "API_NOT_FOUND"


class TransientApiError(ApiError):
    """Failure that may succeed when an idempotent request is repeated."""

    error_code = "API_TRANSIENT"


class ApiServerError(TransientApiError):
    """Backend answered with a 5xx status."""

    error_code = "API_SERVER_ERROR"


class ApiTransportError(TransientApiError):
    """Request never got a response (connection refused, timeout, ...)."""

    error_code = "API_TRANSPORT"


# Configuration Errors
class ConfigurationError(FlowLedgerError):
    """Base class for configuration errors."""

    error_code = "CONFIG_ERROR"


class InvalidConfigError(ConfigurationError):
    """Configuration value is invalid."""

    error_code = "INVALID_CONFIG"

    def __init__(self, config_key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid value for '{config_key}': {reason}",
            details={"config_key": config_key, "value": str(value), "reason": reason},
        )
