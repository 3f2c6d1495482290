"""File-based task store with thread-safe locking.

Stores tasks in a single YAML file (``tasks.yaml``) inside the project's
``.taskboard/`` directory.  All reads and writes go through :func:`transaction`
which acquires an exclusive lock, so a transaction either commits every change
it made or none of them.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from loguru import logger

from ..constants import STORE_SCHEMA_VERSION, TASKS_FILE, TASKS_LOCK_FILE
from ..io_utils import FileLock, _atomic_write_yaml, _load_data_with_error
from .errors import StorageError
from .model import Task, TaskStatus


class TaskStore:
    """Thread-safe, file-backed store for :class:`Task` objects.

    Parameters
    ----------
    state_dir:
        Path to the ``.taskboard/`` directory for the project.
    """

    def __init__(self, state_dir: Path) -> None:
        self._state_dir = state_dir
        self._store_path = state_dir / TASKS_FILE
        self._lock = FileLock(state_dir / TASKS_LOCK_FILE)
        self._thread_lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._store_path

    # -- internal helpers ---------------------------------------------------

    def _load(self) -> tuple[list[Task], int]:
        data, err = _load_data_with_error(self._store_path, {})
        if err:
            logger.error("Task store unreadable: {}", err)
            raise StorageError(f"Task store unavailable: {err}")
        raw = data.get("tasks") or []
        if not isinstance(raw, list):
            raise StorageError(f"Task store unavailable: {self._store_path.name}: 'tasks' is not a list")
        try:
            tasks = [Task.from_dict(d) for d in raw if isinstance(d, dict)]
        except (TypeError, ValueError) as exc:
            logger.error("Task store has a malformed record: {}", exc)
            raise StorageError(f"Task store unavailable: {self._store_path.name}: {exc}") from exc
        highest = max((t.id for t in tasks), default=0)
        try:
            next_id = int(data.get("next_id") or 0)
        except (TypeError, ValueError):
            next_id = 0
        return tasks, max(next_id, highest + 1, 1)

    def _save(self, tasks: list[Task], next_id: int) -> None:
        payload = {
            "version": STORE_SCHEMA_VERSION,
            "next_id": next_id,
            "tasks": [t.to_dict() for t in tasks],
        }
        try:
            _atomic_write_yaml(self._store_path, payload)
        except OSError as exc:
            logger.error("Task store commit failed: {}", exc)
            raise StorageError(f"Task store commit failed: {exc}") from exc

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with self._thread_lock:
            try:
                self._lock.__enter__()
            except OSError as exc:
                raise StorageError(f"Task store lock unavailable: {exc}") from exc
            try:
                yield
            finally:
                self._lock.__exit__(None, None, None)

    # -- public API ---------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[_TaskTx]:
        """Acquire the lock, load tasks, yield a transaction, and save on exit.

        If the block raises, nothing is written and the exception propagates.

        Usage::

            with store.transaction() as tx:
                task = tx.get(3)
                tx.move(task.id, TaskStatus.DONE, 10)
                # automatically saved on exit
        """
        with self._locked():
            tasks, next_id = self._load()
            tx = _TaskTx(tasks, next_id)
            yield tx
            if tx.dirty:
                self._save(tx.tasks, tx.next_id)

    def read_snapshot(self) -> list[Task]:
        """Return a read-only snapshot (no lock held after return)."""
        with self._locked():
            tasks, _ = self._load()
            return tasks

    def get_one(self, task_id: int) -> Optional[Task]:
        """Convenience: fetch a single task without opening a transaction."""
        for t in self.read_snapshot():
            if t.id == task_id:
                return t
        return None


class _TaskTx:
    """In-memory transaction over a list of tasks.

    Keeps an id index and a per-status column index so column lookups do not
    scan the whole board. Mutations are flushed back to disk when the
    ``transaction`` context-manager exits.
    """

    def __init__(self, tasks: list[Task], next_id: int = 1) -> None:
        self.tasks = tasks
        self.next_id = next_id
        self.dirty = False
        self._reindex()

    def _reindex(self) -> None:
        self._index: dict[int, int] = {t.id: i for i, t in enumerate(self.tasks)}
        self._columns: dict[TaskStatus, set[int]] = {s: set() for s in TaskStatus}
        for t in self.tasks:
            self._columns[t.status].add(t.id)

    # -- lookups ------------------------------------------------------------

    def get(self, task_id: int) -> Optional[Task]:
        idx = self._index.get(task_id)
        return self.tasks[idx] if idx is not None else None

    def column(self, status: TaskStatus) -> list[Task]:
        """Tasks in *status* ordered by (sort_order, id)."""
        members = [self.tasks[self._index[tid]] for tid in self._columns[status]]
        return sorted(members, key=lambda t: (t.sort_order, t.id))

    def max_sort_order(self, status: TaskStatus) -> int:
        """Highest order key in the column, 0 when it is empty."""
        return max(
            (self.tasks[self._index[tid]].sort_order for tid in self._columns[status]),
            default=0,
        )

    # -- mutations ----------------------------------------------------------

    def add(self, task: Task) -> Task:
        """Insert *task*, assigning the next id when it has none."""
        if not task.id:
            task.id = self.next_id
        if task.id in self._index:
            raise ValueError(f"Task {task.id} already exists")
        self.next_id = max(self.next_id, task.id + 1)
        self._index[task.id] = len(self.tasks)
        self.tasks.append(task)
        self._columns[task.status].add(task.id)
        self.dirty = True
        return task

    def update(self, task_id: int, changes: dict[str, Any]) -> Optional[Task]:
        """Apply field changes. Column placement only changes through :meth:`move`."""
        task = self.get(task_id)
        if task is None:
            return None
        for key, value in changes.items():
            if key in ("id", "status", "sort_order"):
                continue
            if hasattr(task, key):
                setattr(task, key, value)
        task.touch()
        self.dirty = True
        return task

    def move(self, task_id: int, status: TaskStatus, sort_order: int) -> Optional[Task]:
        """Place a task at *sort_order* inside the *status* column."""
        task = self.get(task_id)
        if task is None:
            return None
        self._columns[task.status].discard(task_id)
        task.move_to(status, sort_order)
        self._columns[status].add(task_id)
        self.dirty = True
        return task

    def hard_remove(self, task_id: int) -> bool:
        """Physically remove a task from the store."""
        idx = self._index.get(task_id)
        if idx is None:
            return False
        task = self.tasks.pop(idx)
        self._columns[task.status].discard(task_id)
        # rebuild index
        self._index = {t.id: i for i, t in enumerate(self.tasks)}
        self.dirty = True
        return True
