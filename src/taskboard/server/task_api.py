"""Task API endpoints for the board.

This module provides a FastAPI router with CRUD, filtered listing, the board
view and drag-and-drop reordering.  It is mounted under ``/api/tasks`` by the
main ``create_app`` factory.  Engine errors propagate to the exception
handlers registered there.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Response

from .auth import get_current_user
from .models import (
    BoardResponse,
    CreateTaskRequest,
    ReorderColumnRequest,
    TaskOut,
    UpdateTaskRequest,
)

TOTAL_COUNT_HEADER = "X-Total-Count"


def create_task_router(get_engine: Any) -> APIRouter:
    """Create the task API router.

    Parameters
    ----------
    get_engine:
        A zero-argument callable returning the :class:`TaskEngine` to use.
    """
    router = APIRouter(
        prefix="/api/tasks",
        tags=["tasks"],
        dependencies=[Depends(get_current_user)],
    )

    @router.get("", response_model=list[TaskOut])
    async def list_tasks(
        response: Response,
        status: Optional[str] = Query(None),
        keywords: Optional[str] = Query(None),
        due_from: Optional[str] = Query(None, alias="dueFrom"),
        due_to: Optional[str] = Query(None, alias="dueTo"),
        sort_by: Optional[str] = Query(None, alias="sortBy"),
        sort_dir: Optional[str] = Query(None, alias="sortDir"),
        page: Optional[str] = Query(None),
        page_size: Optional[str] = Query(None, alias="pageSize"),
    ) -> list[TaskOut]:
        result = get_engine().list_tasks(
            status=status,
            keywords=keywords,
            due_from=due_from,
            due_to=due_to,
            sort_by=sort_by,
            sort_dir=sort_dir,
            page=page,
            page_size=page_size,
        )
        response.headers[TOTAL_COUNT_HEADER] = str(result.total)
        return [TaskOut.from_task(t) for t in result.items]

    @router.get("/board", response_model=BoardResponse)
    async def get_board() -> BoardResponse:
        columns = get_engine().get_board()
        return BoardResponse(
            columns={name: [TaskOut.from_task(t) for t in tasks] for name, tasks in columns.items()}
        )

    @router.patch("/reorder", status_code=204, response_class=Response)
    async def reorder_tasks(body: list[ReorderColumnRequest]) -> Response:
        get_engine().reorder(body)
        return Response(status_code=204)

    @router.get("/{task_id}", response_model=TaskOut)
    async def get_task(task_id: int) -> TaskOut:
        return TaskOut.from_task(get_engine().get_task(task_id))

    @router.post("", response_model=TaskOut, status_code=201)
    async def create_task(
        body: CreateTaskRequest,
        response: Response,
        user: str = Depends(get_current_user),
    ) -> TaskOut:
        task = get_engine().create_task(
            title=body.title,
            description=body.description,
            due_date=body.due_date,
            status=body.status,
            created_by=user,
        )
        response.headers["Location"] = f"{router.prefix}/{task.id}"
        return TaskOut.from_task(task)

    @router.put("/{task_id}", status_code=204, response_class=Response)
    async def update_task(task_id: int, body: UpdateTaskRequest) -> Response:
        get_engine().update_task(
            task_id,
            body.id,
            title=body.title,
            description=body.description,
            due_date=body.due_date,
            status=body.status,
        )
        return Response(status_code=204)

    @router.delete("/{task_id}", status_code=204, response_class=Response)
    async def delete_task(task_id: int) -> Response:
        get_engine().delete_task(task_id)
        return Response(status_code=204)

    return router
