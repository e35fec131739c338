"""Backend task handle and status snapshot types."""

from datetime import datetime
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

ResultT = TypeVar("ResultT")


class TaskState(str, Enum):
    """Task status as reported by the backend.

    State machine (owned by the backend, only observed here):
        QUEUED -> PROCESSING -> SUCCEEDED | FAILED
    """

    QUEUED = "queued"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.SUCCEEDED, TaskState.FAILED)


class TaskHandle(BaseModel):
    """Identifier returned by a create-task request."""

    model_config = ConfigDict(frozen=True)

    task_id: str


class TaskStatusRecord(BaseModel, Generic[ResultT]):
    """Immutable snapshot of a backend task.

    ``result`` is only populated for SUCCEEDED and ``error`` only for FAILED;
    the backend owns that invariant and nothing here enforces it.
    Workflow-specific fields (``stage``, ``filename``, ``size``...) are kept
    as extra attributes.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    task_id: str
    status: TaskState
    progress: Optional[float] = None
    result: Optional[ResultT] = None
    error: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def extras(self) -> dict[str, Any]:
        """Workflow-specific fields returned alongside the standard ones."""
        return dict(self.model_extra or {})
