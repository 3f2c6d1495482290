"""Tests for query normalization and execution (task_engine/query.py)."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from taskboard.task_engine.engine import TaskEngine
from taskboard.task_engine.model import Task, TaskStatus
from taskboard.task_engine.query import SortField, build_query, run_query


def _task(task_id: int, title: str = "", **kwargs) -> Task:
    return Task(id=task_id, title=title or f"task {task_id}", **kwargs)


class TestBuildQuery:
    def test_defaults(self) -> None:
        q = build_query()
        assert q.status is None
        assert q.keywords is None
        assert q.sort_by == SortField.CREATED
        assert not q.descending
        assert (q.page, q.page_size, q.offset) == (1, 20, 0)

    @pytest.mark.parametrize("status", ["All", "all", "ALL", "", "  "])
    def test_all_disables_status_filter(self, status: str) -> None:
        assert build_query(status=status).status is None

    @pytest.mark.parametrize(
        ("page", "page_size", "expected"),
        [
            (0, 0, (1, 20)),
            (-3, 101, (1, 20)),
            ("2", "100", (2, 100)),
            ("x", "y", (1, 20)),
            (3, 1, (3, 1)),
        ],
    )
    def test_paging_is_clamped(self, page, page_size, expected) -> None:
        q = build_query(page=page, page_size=page_size)
        assert (q.page, q.page_size) == expected

    def test_unknown_sort_falls_back(self) -> None:
        q = build_query(sort_by="priority", sort_dir="sideways")
        assert q.sort_by == SortField.CREATED
        assert not q.descending

    def test_sort_field_is_case_insensitive(self) -> None:
        assert build_query(sort_by="SORTORDER").sort_by == SortField.SORT_ORDER
        assert build_query(sort_by="Due", sort_dir="DESC").descending

    def test_due_bounds_cover_whole_days(self) -> None:
        q = build_query(due_from="2024-01-03T15:00:00", due_to="2024-01-05")
        assert q.due_from == datetime(2024, 1, 3)
        assert q.due_before == datetime(2024, 1, 6)

    def test_unparseable_dates_are_dropped(self) -> None:
        q = build_query(due_from="soon", due_to="2024-01-05garbage")
        assert q.due_from is None
        assert q.due_before is None


class TestFilters:
    def test_status_filter_is_case_insensitive(self) -> None:
        tasks = [
            _task(1, status=TaskStatus.DONE),
            _task(2, status=TaskStatus.TODO),
            _task(3, status=TaskStatus.DONE),
        ]
        page = run_query(tasks, build_query(status="done"))
        assert [t.id for t in page.items] == [1, 3]
        assert run_query(tasks, build_query(status="All")).total == 3

    def test_unknown_status_matches_nothing(self) -> None:
        page = run_query([_task(1)], build_query(status="Archived"))
        assert page.items == []
        assert page.total == 0

    def test_keywords_match_title_or_description(self) -> None:
        tasks = [
            _task(1, "Write REPORT"),
            _task(2, "Other", description="see the report draft"),
            _task(3, "Unrelated"),
        ]
        page = run_query(tasks, build_query(keywords="report"))
        assert [t.id for t in page.items] == [1, 2]

    def test_keyword_wildcards_are_literal(self) -> None:
        tasks = [
            _task(1, "100% done"),
            _task(2, "1000 done"),
            _task(3, "snake_case"),
            _task(4, "snakeXcase"),
        ]
        assert [t.id for t in run_query(tasks, build_query(keywords="0%")).items] == [1]
        assert [t.id for t in run_query(tasks, build_query(keywords="e_c")).items] == [3]

    def test_due_to_includes_the_whole_day(self) -> None:
        tasks = [
            _task(1, due_date="2024-01-05T23:59:00"),
            _task(2, due_date="2024-01-06T00:00:01"),
            _task(3, due_date=None),
        ]
        page = run_query(tasks, build_query(due_to="2024-01-05"))
        assert [t.id for t in page.items] == [1]

    def test_due_from_starts_at_midnight(self) -> None:
        tasks = [
            _task(1, due_date="2024-01-04T23:59:59"),
            _task(2, due_date="2024-01-05T00:00:00"),
            _task(3, due_date="2024-01-05T08:00:00"),
        ]
        page = run_query(tasks, build_query(due_from="2024-01-05T12:00:00"))
        assert [t.id for t in page.items] == [2, 3]


class TestSorting:
    def test_title_sort_breaks_ties_by_id(self) -> None:
        tasks = [_task(3, "b"), _task(1, "B"), _task(2, "a"), _task(4, "b")]
        asc = run_query(tasks, build_query(sort_by="title"))
        assert [t.id for t in asc.items] == [2, 1, 3, 4]
        desc = run_query(tasks, build_query(sort_by="title", sort_dir="desc"))
        assert [t.id for t in desc.items] == [1, 3, 4, 2]

    def test_due_sort_puts_missing_dates_first(self) -> None:
        tasks = [
            _task(1, due_date="2024-02-01T00:00:00"),
            _task(2),
            _task(3, due_date="2024-01-01T00:00:00"),
        ]
        asc = run_query(tasks, build_query(sort_by="due"))
        assert [t.id for t in asc.items] == [2, 3, 1]
        desc = run_query(tasks, build_query(sort_by="due", sort_dir="desc"))
        assert [t.id for t in desc.items] == [1, 3, 2]

    def test_created_sort(self) -> None:
        tasks = [
            _task(1, created_at="2024-01-03T00:00:00+00:00"),
            _task(2, created_at="2024-01-01T00:00:00+00:00"),
            _task(3, created_at="2024-01-01T00:00:00+00:00"),
        ]
        page = run_query(tasks, build_query())
        assert [t.id for t in page.items] == [2, 3, 1]

    def test_manual_order_across_all_columns_groups_by_status(self) -> None:
        tasks = [
            _task(1, status=TaskStatus.TODO, sort_order=20),
            _task(2, status=TaskStatus.DONE, sort_order=10),
            _task(3, status=TaskStatus.TODO, sort_order=10),
            _task(4, status=TaskStatus.IN_PROGRESS, sort_order=10),
        ]
        page = run_query(tasks, build_query(sort_by="sortOrder"))
        assert [t.id for t in page.items] == [2, 4, 3, 1]

        todo = run_query(tasks, build_query(status="To Do", sort_by="sortOrder"))
        assert [t.id for t in todo.items] == [3, 1]


class TestPagination:
    @pytest.fixture
    def engine(self, tmp_path: Path) -> TaskEngine:
        engine = TaskEngine(tmp_path / ".taskboard")
        for i in range(23):
            engine.create_task(title=f"task {i % 4}", status=["To Do", "Done"][i % 2])
        return engine

    @pytest.mark.parametrize("sort_by", ["created", "title", "status", "sortOrder", "due"])
    @pytest.mark.parametrize("sort_dir", ["asc", "desc"])
    def test_pages_concatenate_to_full_result(self, engine: TaskEngine, sort_by: str, sort_dir: str) -> None:
        full = engine.list_tasks(sort_by=sort_by, sort_dir=sort_dir, page_size=100)
        assert full.total == 23

        collected: list[int] = []
        for page_num in range(1, 6):
            page = engine.list_tasks(sort_by=sort_by, sort_dir=sort_dir, page=page_num, page_size=5)
            assert page.total == 23
            collected.extend(t.id for t in page.items)

        assert collected == [t.id for t in full.items]
        assert len(set(collected)) == 23

    def test_out_of_range_page_is_empty(self, engine: TaskEngine) -> None:
        page = engine.list_tasks(page=9, page_size=10)
        assert page.items == []
        assert page.total == 23
