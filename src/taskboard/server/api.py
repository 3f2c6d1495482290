"""FastAPI web server for the task board."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials
from loguru import logger

from .. import __version__
from ..config import BoardSettings, get_board_settings, state_dir_for
from ..task_engine.engine import TaskEngine
from ..task_engine.errors import NotFoundError, StorageError, ValidationError
from .auth import bearer_scheme, create_access_token, decode_access_token
from .models import (
    AuthResponse,
    AuthStatus,
    AuthUser,
    LoginRequest,
    RegisterRequest,
)
from .task_api import TOTAL_COUNT_HEADER, create_task_router
from .users import UserProfile, UserStore


def create_app(
    project_dir: Optional[Path] = None,
    enable_cors: bool = True,
    settings: Optional[BoardSettings] = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        project_dir: Directory holding the `.taskboard/` state (default: cwd).
        enable_cors: Whether to enable CORS.
        settings: Pre-built settings; loaded from the project when omitted.

    Returns:
        Configured FastAPI app.
    """
    project_dir = (project_dir or Path.cwd()).resolve()
    settings = settings or get_board_settings(project_dir)
    state_dir = state_dir_for(project_dir)

    app = FastAPI(
        title="Task Board API",
        description="Task API with token auth, filtering, sorting, and Kanban board reorder.",
        version=__version__,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=[TOTAL_COUNT_HEADER, "Location"],
        )

    app.state.settings = settings
    app.state.engine = TaskEngine(state_dir)
    app.state.users = UserStore(state_dir)

    def _get_engine() -> TaskEngine:
        return app.state.engine

    # ------------------------------------------------------------------
    # Error mapping
    # ------------------------------------------------------------------

    @app.exception_handler(RequestValidationError)
    async def _malformed_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(StorageError)
    async def _storage_error(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("{} {} failed: {}", request.method, request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": "Storage temporarily unavailable"})

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "Task Board API",
            "version": __version__,
            "status": "running",
        }

    def _auth_response(user: UserProfile) -> AuthResponse:
        token = create_access_token(
            settings.auth,
            user.id,
            claims={"unique_name": user.username, "email": user.email},
        )
        return AuthResponse(
            token=token,
            user=AuthUser(id=user.id, username=user.username, email=user.email),
        )

    @app.post("/api/auth/register")
    async def register(request: RegisterRequest) -> AuthResponse:
        """Create an account and return a token for it."""
        user = app.state.users.create_user(request.email, request.password)
        logger.info("Registered user {}", user.id)
        return _auth_response(user)

    @app.post("/api/auth/login")
    async def login(request: LoginRequest) -> AuthResponse:
        """Exchange email and password for an access token."""
        user = app.state.users.authenticate(request.email, request.password)
        if user is None:
            logger.warning("Failed login for {}", request.email)
            raise HTTPException(status_code=401, detail="Invalid credentials.")
        return _auth_response(user)

    @app.get("/api/auth/status")
    async def auth_status(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    ) -> AuthStatus:
        """Report whether auth is enabled and whether the caller is signed in."""
        if not settings.auth.enabled:
            return AuthStatus(enabled=False, authenticated=True, username=settings.auth.default_user)
        subject = decode_access_token(settings.auth, credentials.credentials) if credentials else None
        user = app.state.users.get_by_id(subject) if subject else None
        return AuthStatus(
            enabled=True,
            authenticated=subject is not None,
            username=user.username if user else subject,
        )

    app.include_router(create_task_router(_get_engine))
    return app
