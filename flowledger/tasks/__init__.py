"""Backend task tracking: status types and the poller."""

from .models import TaskHandle, TaskState, TaskStatusRecord
from .poller import TaskPoller, poll_task

__all__ = ["TaskHandle", "TaskState", "TaskStatusRecord", "TaskPoller", "poll_task"]
