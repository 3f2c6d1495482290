"""Registered users, persisted in ``.taskboard/users.yaml``.

Only what the login flow needs: an id that becomes the token subject, an
email used as the login name, and a salted password hash.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from ..constants import MIN_PASSWORD_LENGTH, USERS_FILE, USERS_LOCK_FILE
from ..io_utils import FileLock, _atomic_write_yaml, _load_data_with_error
from ..task_engine.errors import StorageError, ValidationError
from ..utils import _now_iso
from .auth import hash_password, verify_password


@dataclass
class UserProfile:
    """A registered user."""
    id: str = field(default_factory=lambda: f"user-{uuid.uuid4().hex[:8]}")
    email: str = ""
    username: str = ""
    password_hash: str = ""
    created_at: str = field(default_factory=_now_iso)
    last_seen: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "password_hash": self.password_hash,
            "created_at": self.created_at,
            "last_seen": self.last_seen,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserProfile":
        return cls(
            id=str(data.get("id") or f"user-{uuid.uuid4().hex[:8]}"),
            email=str(data.get("email") or ""),
            username=str(data.get("username") or data.get("email") or ""),
            password_hash=str(data.get("password_hash") or ""),
            created_at=str(data.get("created_at") or _now_iso()),
            last_seen=data.get("last_seen"),
        )


class UserStore:
    """File-backed store for user profiles."""

    def __init__(self, state_dir: Path) -> None:
        self._path = state_dir / USERS_FILE
        self._lock = FileLock(state_dir / USERS_LOCK_FILE)
        self._thread_lock = threading.RLock()

    def _load(self) -> list[UserProfile]:
        data, err = _load_data_with_error(self._path, {})
        if err:
            raise StorageError(f"User store unavailable: {err}")
        raw = data.get("users") or []
        return [UserProfile.from_dict(u) for u in raw if isinstance(u, dict)]

    def _save(self, users: list[UserProfile]) -> None:
        try:
            _atomic_write_yaml(self._path, {"version": 1, "users": [u.to_dict() for u in users]})
        except OSError as exc:
            raise StorageError(f"User store commit failed: {exc}") from exc

    def create_user(self, email: str, password: str) -> UserProfile:
        """Register a new user.

        Raises:
            ValidationError: Email missing or taken, or password too short.
        """
        clean_email = (email or "").strip()
        if not clean_email or "@" not in clean_email:
            raise ValidationError("A valid email is required.")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

        with self._thread_lock, self._lock:
            users = self._load()
            if any(u.email.casefold() == clean_email.casefold() for u in users):
                raise ValidationError("Email already in use.")
            user = UserProfile(
                email=clean_email,
                username=clean_email,
                password_hash=hash_password(password),
            )
            users.append(user)
            self._save(users)
        return user

    def get_by_email(self, email: str) -> Optional[UserProfile]:
        wanted = (email or "").strip().casefold()
        with self._thread_lock, self._lock:
            for user in self._load():
                if user.email.casefold() == wanted:
                    return user
        return None

    def get_by_id(self, user_id: str) -> Optional[UserProfile]:
        with self._thread_lock, self._lock:
            for user in self._load():
                if user.id == user_id:
                    return user
        return None

    def list_users(self) -> list[UserProfile]:
        with self._thread_lock, self._lock:
            return self._load()

    def authenticate(self, email: str, password: str) -> Optional[UserProfile]:
        """Return the user when the credentials match, else None."""
        user = self.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            return None
        self.update_last_seen(user.id)
        return user

    def update_last_seen(self, user_id: str) -> None:
        with self._thread_lock, self._lock:
            users = self._load()
            for user in users:
                if user.id == user_id:
                    user.last_seen = _now_iso()
                    self._save(users)
                    return
