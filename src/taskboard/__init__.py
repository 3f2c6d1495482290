"""Provide the public `taskboard` package exports."""

from __future__ import annotations

__version__ = "1.0.0"

from .task_engine import TaskEngine, TaskStatus

__all__ = ["TaskEngine", "TaskStatus", "__version__"]
