"""Command-line entry point: run the server or manage tasks locally."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from .config import get_board_settings, state_dir_for
from .task_engine import TaskBoardError, TaskEngine


def _configure_logging(level: str = "INFO") -> None:
    """Configure loguru logger with the specified level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{module}</cyan>:<cyan>{line}</cyan> - "
            "{message}"
        ),
    )


def _resolve_project_dir(raw: Optional[str]) -> Path:
    return Path(raw).expanduser().resolve() if raw else Path.cwd().resolve()


def _engine(args: argparse.Namespace) -> TaskEngine:
    return TaskEngine(state_dir_for(_resolve_project_dir(args.project_dir)))


def _write_json(payload: object) -> None:
    sys.stdout.write(json.dumps(payload, indent=2) + "\n")


def _task_create(args: argparse.Namespace) -> int:
    task = _engine(args).create_task(
        title=args.title,
        description=args.description,
        due_date=args.due,
        status=args.status,
        created_by="cli",
    )
    _write_json({"task": task.to_dict()})
    return 0


def _task_list(args: argparse.Namespace) -> int:
    page = _engine(args).list_tasks(
        status=args.status,
        keywords=args.keywords,
        due_from=args.due_from,
        due_to=args.due_to,
        sort_by=args.sort_by,
        sort_dir=args.sort_dir,
        page=args.page,
        page_size=args.page_size,
    )
    _write_json({"tasks": [t.to_dict() for t in page.items], "total": page.total, "page": page.page})
    return 0


def _task_board(args: argparse.Namespace) -> int:
    board = _engine(args).get_board()
    _write_json({name: [t.to_dict() for t in tasks] for name, tasks in board.items()})
    return 0


def _user_create(args: argparse.Namespace) -> int:
    from .server.users import UserStore

    store = UserStore(state_dir_for(_resolve_project_dir(args.project_dir)))
    user = store.create_user(args.email, args.password)
    _write_json({"user": {"id": user.id, "email": user.email}})
    return 0


def _server(args: argparse.Namespace) -> int:
    import uvicorn

    from .server import create_app

    project_dir = _resolve_project_dir(args.project_dir)
    app = create_app(project_dir=project_dir)
    logger.info("Serving task board for {} on {}:{}", project_dir, args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Task board service and local task tools")
    parser.add_argument("--project-dir", default=None, help="Directory holding .taskboard/ (default: current working directory)")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    server = subparsers.add_parser("server", help="Start the web server")
    server.add_argument("--host", default="127.0.0.1")
    server.add_argument("--port", default=8000, type=int)
    server.set_defaults(func=_server)

    task = subparsers.add_parser("task", help="Manage tasks")
    task_sub = task.add_subparsers(dest="task_cmd", required=True)
    tcreate = task_sub.add_parser("create", help="Create a task")
    tcreate.add_argument("title")
    tcreate.add_argument("--description", default=None)
    tcreate.add_argument("--due", default=None, help="Due date (ISO-8601)")
    tcreate.add_argument("--status", default=None, help="To Do, In Progress or Done")
    tcreate.set_defaults(func=_task_create)
    tlist = task_sub.add_parser("list", help="List tasks")
    tlist.add_argument("--status", default=None)
    tlist.add_argument("--keywords", default=None)
    tlist.add_argument("--due-from", default=None)
    tlist.add_argument("--due-to", default=None)
    tlist.add_argument("--sort-by", default=None, choices=["created", "due", "title", "status", "sortOrder"])
    tlist.add_argument("--sort-dir", default=None, choices=["asc", "desc"])
    tlist.add_argument("--page", default=1, type=int)
    tlist.add_argument("--page-size", default=20, type=int)
    tlist.set_defaults(func=_task_list)
    tboard = task_sub.add_parser("board", help="Show tasks grouped by column")
    tboard.set_defaults(func=_task_board)

    user = subparsers.add_parser("user", help="Manage users")
    user_sub = user.add_subparsers(dest="user_cmd", required=True)
    ucreate = user_sub.add_parser("create", help="Register a user")
    ucreate.add_argument("email")
    ucreate.add_argument("password")
    ucreate.set_defaults(func=_user_create)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_board_settings(_resolve_project_dir(args.project_dir))
    _configure_logging(args.log_level or settings.log_level)
    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return 1
    try:
        return int(handler(args) or 0)
    except TaskBoardError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1


if __name__ == "__main__":
    sys.exit(main())
