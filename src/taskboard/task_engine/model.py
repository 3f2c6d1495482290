"""Task model for the Kanban board.

Tasks live in exactly one status column and carry an integer ``sort_order``
that positions them inside that column.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional

from ..utils import _normalize_due, _now_iso, _parse_iso
from .errors import ValidationError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TaskStatus(str, Enum):
    """Board-level status used for Kanban columns, in column order."""

    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"

    @classmethod
    def parse(cls, raw: Any) -> "TaskStatus":
        """Parse a raw status label case-insensitively.

        Raises:
            ValidationError: If *raw* is not one of the fixed labels.
        """
        if isinstance(raw, cls):
            return raw
        text = str(raw or "").strip().casefold()
        for status in cls:
            if status.value.casefold() == text:
                return status
        raise ValidationError(
            f"'status' must be one of {[s.value for s in cls]}, got '{raw}'"
        )

    @classmethod
    def parse_or_default(cls, raw: Any, default: "TaskStatus") -> "TaskStatus":
        """Like :meth:`parse`, but blank input yields *default*."""
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return default
        return cls.parse(raw)


# ---------------------------------------------------------------------------
# Task dataclass
# ---------------------------------------------------------------------------

@dataclass
class Task:
    """A single card on the board."""

    id: int = 0
    title: str = ""
    description: Optional[str] = None
    due_date: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    sort_order: int = 0
    created_by: Optional[str] = None
    created_at: str = field(default_factory=_now_iso)
    updated_at: str = ""

    def __post_init__(self) -> None:
        if not self.updated_at:
            self.updated_at = self.created_at

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict for YAML persistence."""
        data: dict[str, Any] = {}
        for k, v in asdict(self).items():
            if isinstance(v, Enum):
                data[k] = v.value
            else:
                data[k] = v
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Deserialize from a plain dict.

        Unknown status labels fall back to "To Do" so a hand-edited store
        still loads.
        """
        d = dict(data)
        try:
            status = TaskStatus.parse_or_default(d.pop("status", None), TaskStatus.TODO)
        except ValidationError:
            status = TaskStatus.TODO
        created_at = str(d.pop("created_at", None) or _now_iso())
        return cls(
            id=int(d.pop("id", 0) or 0),
            title=str(d.pop("title", "") or ""),
            description=d.pop("description", None),
            due_date=_normalize_due(d.pop("due_date", None)),
            status=status,
            sort_order=int(d.pop("sort_order", 0) or 0),
            created_by=d.pop("created_by", None),
            created_at=created_at,
            updated_at=str(d.pop("updated_at", None) or created_at),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def touch(self) -> None:
        """Bump ``updated_at`` to now, never before ``created_at``."""
        now = _now_iso()
        created = _parse_iso(self.created_at)
        bumped = _parse_iso(now)
        if created is not None and bumped is not None and bumped < created:
            now = self.created_at
        self.updated_at = now

    def move_to(self, status: TaskStatus, sort_order: int) -> None:
        self.status = status
        self.sort_order = sort_order
        self.touch()
