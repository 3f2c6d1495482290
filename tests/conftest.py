from __future__ import annotations

import pytest


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "TASKBOARD_AUTH_ENABLED",
        "TASKBOARD_SECRET_KEY",
        "TASKBOARD_TOKEN_EXPIRE_MINUTES",
        "TASKBOARD_DEFAULT_USER",
        "TASKBOARD_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
