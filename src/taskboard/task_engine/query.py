"""Filter, sort and paginate tasks.

:func:`build_query` normalizes raw request parameters into a :class:`TaskQuery`
plan. Malformed values are clamped or dropped rather than rejected, so every
request yields a valid plan. :func:`run_query` executes a plan against a list
of tasks and returns a :class:`TaskPage` with the pre-pagination total.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Optional

from loguru import logger

from ..constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..utils import _coerce_datetime, _coerce_int, _parse_iso
from .model import Task

ALL_STATUSES = "all"


class SortField(str, Enum):
    CREATED = "created"
    DUE = "due"
    TITLE = "title"
    STATUS = "status"
    SORT_ORDER = "sortOrder"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "SortField":
        """Case-insensitive lookup; unknown values fall back to ``created``."""
        text = (raw or "").strip().casefold()
        for item in cls:
            if item.value.casefold() == text:
                return item
        # Board clients also send the snake_case spelling
        if text == "sort_order":
            return cls.SORT_ORDER
        if text:
            logger.debug("Unknown sortBy '{}', using created", raw)
        return cls.CREATED


@dataclass(frozen=True)
class TaskQuery:
    """A normalized query plan.

    ``status`` is the casefolded label to match, or None for every column.
    ``due_before`` is exclusive: it is the day after the requested ``dueTo``.
    """

    status: Optional[str] = None
    keywords: Optional[str] = None
    due_from: Optional[datetime] = None
    due_before: Optional[datetime] = None
    sort_by: SortField = SortField.CREATED
    descending: bool = False
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def matches(self, task: Task) -> bool:
        if self.status is not None and task.status.value.casefold() != self.status:
            return False
        if self.keywords:
            # Plain substring test: wildcard characters are literal.
            if self.keywords not in task.title.casefold() and self.keywords not in (
                task.description or ""
            ).casefold():
                return False
        if self.due_from is not None or self.due_before is not None:
            due = _coerce_datetime(task.due_date)
            if due is None:
                return False
            if self.due_from is not None and due < self.due_from:
                return False
            if self.due_before is not None and due >= self.due_before:
                return False
        return True

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def _primary_key(self) -> Callable[[Task], Any]:
        if self.sort_by == SortField.DUE:
            # Missing due dates sort before any date, like NULLs in SQL.
            def due_key(t: Task) -> tuple[bool, datetime]:
                due = _coerce_datetime(t.due_date)
                return (due is not None, due or datetime.min)
            return due_key
        if self.sort_by == SortField.TITLE:
            return lambda t: t.title.casefold()
        if self.sort_by == SortField.STATUS:
            return lambda t: t.status.value
        if self.sort_by == SortField.SORT_ORDER:
            # Grouped by column first so "All" keeps columns together.
            return lambda t: (t.status.value, t.sort_order)

        def created_key(t: Task) -> tuple[bool, Any]:
            created = _parse_iso(t.created_at)
            return (created is not None, created or t.created_at)
        return created_key

    def order(self, tasks: list[Task]) -> list[Task]:
        """Sort by the primary key in the requested direction, then id ascending."""
        by_id = sorted(tasks, key=lambda t: t.id)
        # sorted() is stable, so the id order survives among equal primary keys
        return sorted(by_id, key=self._primary_key(), reverse=self.descending)


@dataclass
class TaskPage:
    items: list[Task] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE


def _normalize_status(raw: Optional[str]) -> Optional[str]:
    text = (raw or "").strip().casefold()
    if not text or text == ALL_STATUSES:
        return None
    return text


def build_query(
    *,
    status: Optional[str] = None,
    keywords: Optional[str] = None,
    due_from: Any = None,
    due_to: Any = None,
    sort_by: Optional[str] = None,
    sort_dir: Optional[str] = None,
    page: Any = None,
    page_size: Any = None,
) -> TaskQuery:
    """Normalize raw list parameters into a :class:`TaskQuery`.

    Args:
        status: Status label, or "All"/blank for every column.
        keywords: Substring to look for in title or description.
        due_from: Inclusive lower bound; only its calendar day is used.
        due_to: Inclusive upper bound covering the whole calendar day.
        sort_by: One of ``created``, ``due``, ``title``, ``status``, ``sortOrder``.
        sort_dir: ``asc`` or ``desc``; anything else means ``asc``.
        page: 1-based page number; values below 1 become 1.
        page_size: Items per page; values outside [1, 100] become 20.

    Returns:
        A query plan that is always valid.
    """
    start = _coerce_datetime(due_from)
    if due_from not in (None, "") and start is None:
        logger.debug("Ignoring unparseable dueFrom '{}'", due_from)
    end = _coerce_datetime(due_to)
    if due_to not in (None, "") and end is None:
        logger.debug("Ignoring unparseable dueTo '{}'", due_to)

    page_num = _coerce_int(page)
    if page_num is None or page_num < 1:
        page_num = 1
    size = _coerce_int(page_size)
    if size is None or size < 1 or size > MAX_PAGE_SIZE:
        size = DEFAULT_PAGE_SIZE

    words = (keywords or "").strip().casefold()

    return TaskQuery(
        status=_normalize_status(status),
        keywords=words or None,
        due_from=datetime.combine(start.date(), datetime.min.time()) if start else None,
        due_before=(
            datetime.combine(end.date(), datetime.min.time()) + timedelta(days=1) if end else None
        ),
        sort_by=SortField.parse(sort_by),
        descending=(sort_dir or "").strip().lower() == "desc",
        page=page_num,
        page_size=size,
    )


def run_query(tasks: list[Task], query: TaskQuery) -> TaskPage:
    """Apply *query* to *tasks* and cut out the requested page."""
    matched = query.order([t for t in tasks if query.matches(t)])
    window = matched[query.offset: query.offset + query.page_size]
    return TaskPage(items=window, total=len(matched), page=query.page, page_size=query.page_size)
