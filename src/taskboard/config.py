"""Load optional board configuration from `.taskboard/config.yaml`."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .constants import (
    CONFIG_FILE,
    DEFAULT_AUDIENCE,
    DEFAULT_ISSUER,
    DEFAULT_SECRET_KEY,
    DEFAULT_TOKEN_EXPIRE_MINUTES,
    STATE_DIR_NAME,
)
from .io_utils import _load_data_with_error
from .utils import _coerce_int


def state_dir_for(project_dir: Path) -> Path:
    return project_dir.resolve() / STATE_DIR_NAME


def load_board_config(project_dir: Path) -> tuple[dict[str, Any], str | None]:
    """Load the optional board config file.

    Args:
        project_dir: Directory that holds the `.taskboard/` state directory.

    Returns:
        A tuple of `(config, error_message)`. If the file is missing, returns `({}, None)`.
    """
    path = state_dir_for(project_dir) / CONFIG_FILE
    if not path.exists():
        return {}, None
    data, err = _load_data_with_error(path, {})
    if err:
        return {}, err
    return data, None


def _get_nested(config: dict[str, Any], *keys: str) -> Any:
    cur: Any = config
    for key in keys:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def _env_flag(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None:
        return None
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class AuthSettings:
    """Token settings consumed by :mod:`taskboard.server.auth`."""

    enabled: bool = True
    secret_key: str = DEFAULT_SECRET_KEY
    algorithm: str = "HS256"
    token_expire_minutes: int = DEFAULT_TOKEN_EXPIRE_MINUTES
    issuer: str = DEFAULT_ISSUER
    audience: str = DEFAULT_AUDIENCE
    # Subject used for every request when auth is disabled
    default_user: str = "local"


@dataclass
class BoardSettings:
    auth: AuthSettings = field(default_factory=AuthSettings)
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])
    log_level: str = "INFO"


def get_auth_settings(config: dict[str, Any]) -> AuthSettings:
    """Build auth settings from the `auth` block, then apply env overrides."""
    raw = _get_nested(config, "auth")
    block = raw if isinstance(raw, dict) else {}
    settings = AuthSettings()

    if isinstance(block.get("enabled"), bool):
        settings.enabled = block["enabled"]
    if isinstance(block.get("secret_key"), str) and block["secret_key"]:
        settings.secret_key = block["secret_key"]
    minutes = _coerce_int(block.get("token_expire_minutes"))
    if minutes and minutes > 0:
        settings.token_expire_minutes = minutes
    if isinstance(block.get("issuer"), str) and block["issuer"]:
        settings.issuer = block["issuer"]
    if isinstance(block.get("audience"), str) and block["audience"]:
        settings.audience = block["audience"]

    env_enabled = _env_flag("TASKBOARD_AUTH_ENABLED")
    if env_enabled is not None:
        settings.enabled = env_enabled
    settings.secret_key = os.getenv("TASKBOARD_SECRET_KEY", settings.secret_key)
    env_minutes = _coerce_int(os.getenv("TASKBOARD_TOKEN_EXPIRE_MINUTES"))
    if env_minutes and env_minutes > 0:
        settings.token_expire_minutes = env_minutes
    settings.default_user = os.getenv("TASKBOARD_DEFAULT_USER", settings.default_user)
    return settings


def get_board_settings(project_dir: Path) -> BoardSettings:
    """Resolve all settings for a project directory.

    A malformed config file is logged and ignored so the service still starts
    with defaults.
    """
    config, err = load_board_config(project_dir)
    if err:
        logger.warning("Ignoring invalid board config: {}", err)

    settings = BoardSettings(auth=get_auth_settings(config))

    origins = _get_nested(config, "server", "cors_origins")
    if isinstance(origins, list):
        settings.cors_origins = [str(o) for o in origins if o]

    level = _get_nested(config, "logging", "level")
    if isinstance(level, str) and level:
        settings.log_level = level.upper()
    settings.log_level = os.getenv("TASKBOARD_LOG_LEVEL", settings.log_level).upper()
    return settings
