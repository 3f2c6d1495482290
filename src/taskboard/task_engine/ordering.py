"""Spaced order keys for board columns.

Order keys inside a column are multiples of :data:`ORDER_STEP`. New and moved
tasks go to the bottom of their column; a drag-and-drop reorder re-spaces each
column it touches from scratch. This module only computes positions; the
caller writes them inside a store transaction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from ..constants import ORDER_STEP
from ..utils import _coerce_int
from .errors import ValidationError
from .model import TaskStatus


@dataclass(frozen=True)
class ReorderColumn:
    """One column of a reorder batch: its status and the ids top to bottom."""

    status: TaskStatus
    ordered_ids: tuple[int, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Placement:
    task_id: int
    status: TaskStatus
    sort_order: int


class OrderManager:
    """Compute order keys for appends and bulk reorders."""

    def __init__(self, step: int = ORDER_STEP) -> None:
        if step < 1:
            raise ValueError("order step must be positive")
        self.step = step

    def append_position(self, tx: Any, status: TaskStatus) -> int:
        """Order key that puts a task at the bottom of *status*.

        *tx* is an open store transaction; an empty column yields ``step``.
        """
        return tx.max_sort_order(status) + self.step

    def parse_batch(self, raw: Iterable[Any]) -> list[ReorderColumn]:
        """Validate a raw reorder batch.

        Each entry is a mapping with ``status`` and ``orderedIds`` (or
        ``ordered_ids``), or an object exposing those attributes.

        Raises:
            ValidationError: The batch is empty, names a status outside the
                fixed set, or lists no ids at all. Nothing is applied.
        """
        entries = list(raw or [])
        if not entries:
            raise ValidationError("Reorder batch is empty")

        columns: list[ReorderColumn] = []
        for entry in entries:
            if isinstance(entry, ReorderColumn):
                columns.append(entry)
                continue
            if isinstance(entry, dict):
                status_raw = entry.get("status")
                ids_raw = entry.get("orderedIds", entry.get("ordered_ids"))
            else:
                status_raw = getattr(entry, "status", None)
                ids_raw = getattr(entry, "ordered_ids", None)
            status = TaskStatus.parse(status_raw)
            ids: list[int] = []
            for raw_id in ids_raw or []:
                task_id = _coerce_int(raw_id)
                if task_id is None:
                    raise ValidationError(f"Invalid task id in reorder batch: {raw_id!r}")
                ids.append(task_id)
            columns.append(ReorderColumn(status=status, ordered_ids=tuple(ids)))

        if sum(len(c.ordered_ids) for c in columns) == 0:
            raise ValidationError("Reorder batch contains no task ids")
        return columns

    def plan_reorder(self, columns: list[ReorderColumn]) -> list[Placement]:
        """Assign ``(index + 1) * step`` down each column, in batch order.

        An id listed more than once keeps its last placement.
        """
        latest: dict[int, Placement] = {}
        for column in columns:
            for index, task_id in enumerate(column.ordered_ids):
                latest.pop(task_id, None)
                latest[task_id] = Placement(
                    task_id=task_id,
                    status=column.status,
                    sort_order=(index + 1) * self.step,
                )
        return list(latest.values())
