"""Task ordering and query engine for the Kanban board.

This package provides the task model, the file-backed store, the query
builder, the column order manager, and the :class:`TaskEngine` service that
ties them together.
"""

from .engine import TaskEngine
from .errors import NotFoundError, StorageError, TaskBoardError, ValidationError
from .model import Task, TaskStatus
from .query import TaskPage, TaskQuery, build_query

__all__ = [
    "NotFoundError",
    "StorageError",
    "Task",
    "TaskBoardError",
    "TaskEngine",
    "TaskPage",
    "TaskQuery",
    "TaskStatus",
    "ValidationError",
    "build_query",
]
