"""Exceptions raised by the task engine.

The HTTP layer maps each class to a status code in one place
(:func:`taskboard.server.api.create_app`).
"""

from __future__ import annotations


class TaskBoardError(Exception):
    """Base class for task engine errors."""


class ValidationError(TaskBoardError):
    """Malformed input; the request is rejected with no state change."""


class NotFoundError(TaskBoardError):
    """A single-task operation referenced an id that does not exist."""

    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class StorageError(TaskBoardError):
    """The task store could not be read or committed.

    The in-flight transaction is discarded, so the caller can retry the whole
    operation.
    """
