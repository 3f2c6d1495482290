"""Task engine: CRUD, queries, and board ordering.

This is the primary entry-point for all task manipulation.  It wraps
:class:`TaskStore` with business logic: input validation, spaced column
ordering through :class:`OrderManager`, and query execution.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional

from loguru import logger

from ..utils import _normalize_due
from .errors import NotFoundError, ValidationError
from .model import Task, TaskStatus
from .ordering import OrderManager
from .query import TaskPage, TaskQuery, build_query, run_query
from .store import TaskStore


def _require_title(title: Optional[str]) -> str:
    text = (title or "").strip()
    if not text:
        raise ValidationError("'title' is required and must be non-empty")
    return text


def _clean_due(value: Any) -> Optional[str]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    normalized = _normalize_due(value)
    if normalized is None:
        raise ValidationError(f"'dueDate' is not a valid date: {value!r}")
    return normalized


class TaskEngine:
    """Manage tasks on the board.

    Parameters
    ----------
    state_dir:
        Path to the ``.taskboard/`` directory.
    """

    def __init__(self, state_dir: Path, ordering: Optional[OrderManager] = None) -> None:
        self.store = TaskStore(state_dir)
        self.ordering = ordering or OrderManager()

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create_task(
        self,
        title: Optional[str],
        description: Optional[str] = None,
        due_date: Any = None,
        status: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> Task:
        """Create a task at the bottom of its column and return the stored record."""
        clean_title = _require_title(title)
        target = TaskStatus.parse_or_default(status, TaskStatus.TODO)
        due = _clean_due(due_date)

        with self.store.transaction() as tx:
            task = Task(
                title=clean_title,
                description=description,
                due_date=due,
                status=target,
                sort_order=self.ordering.append_position(tx, target),
                created_by=created_by,
            )
            tx.add(task)

        logger.info("Created task {} in '{}' at {}: {}", task.id, task.status.value, task.sort_order, task.title)
        return task

    def get_task(self, task_id: int) -> Task:
        task = self.store.get_one(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return task

    def list_tasks(self, query: Optional[TaskQuery] = None, **params: Any) -> TaskPage:
        """Run a filtered, sorted, paginated listing.

        Pass a prepared *query*, or raw parameters accepted by
        :func:`build_query`.
        """
        if query is None:
            query = build_query(**params)
        return run_query(self.store.read_snapshot(), query)

    def update_task(
        self,
        task_id: int,
        payload_id: Optional[int],
        *,
        title: Optional[str],
        description: Optional[str] = None,
        due_date: Any = None,
        status: Optional[str] = None,
    ) -> Task:
        """Replace the mutable fields of a task.

        A status change drops the old order key and appends the task to the
        bottom of its new column. A blank status keeps the current one.
        """
        if payload_id != task_id:
            raise ValidationError(f"Payload id {payload_id} does not match task {task_id}")
        clean_title = _require_title(title)
        due = _clean_due(due_date)

        with self.store.transaction() as tx:
            task = tx.get(task_id)
            if task is None:
                raise NotFoundError(task_id)
            target = TaskStatus.parse_or_default(status, task.status)
            moved = target != task.status
            if moved:
                tx.move(task_id, target, self.ordering.append_position(tx, target))
            tx.update(
                task_id,
                {
                    "title": clean_title,
                    "description": description,
                    "due_date": due,
                },
            )

        if moved:
            logger.info("Updated task {} and moved it to '{}' at {}", task.id, task.status.value, task.sort_order)
        else:
            logger.info("Updated task {}", task.id)
        return task

    def delete_task(self, task_id: int) -> None:
        """Hard-delete a task. Sibling order keys are left as they are."""
        with self.store.transaction() as tx:
            if not tx.hard_remove(task_id):
                raise NotFoundError(task_id)
        logger.info("Deleted task {}", task_id)

    # ------------------------------------------------------------------
    # Board ordering
    # ------------------------------------------------------------------

    def reorder(self, batch: Iterable[Any]) -> int:
        """Apply a drag-and-drop reorder batch atomically.

        Every listed column is re-spaced from the top. Ids that no longer
        exist are skipped. Returns the number of tasks written.
        """
        columns = self.ordering.parse_batch(batch)
        placements = self.ordering.plan_reorder(columns)

        applied = 0
        skipped: list[int] = []
        with self.store.transaction() as tx:
            for placement in placements:
                if tx.move(placement.task_id, placement.status, placement.sort_order) is None:
                    skipped.append(placement.task_id)
                    continue
                applied += 1

        if skipped:
            logger.debug("Reorder skipped unknown task ids {}", skipped)
        logger.info(
            "Reordered {} task(s) across {}",
            applied,
            ", ".join(f"'{c.status.value}'" for c in columns),
        )
        return applied

    def get_board(self) -> dict[str, list[Task]]:
        """Return tasks grouped by status column, top to bottom."""
        with self.store.transaction() as tx:
            return {status.value: tx.column(status) for status in TaskStatus}
