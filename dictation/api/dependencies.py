"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be swapped with app.dependency_overrides in tests
- Resource lifecycle (database sessions) is managed per request

Each dependency is a function that FastAPI calls when needed.
"""

import logging
from typing import Annotated, Generator, Optional

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..config.settings import Settings, get_settings
from ..core.auth.models import SessionUser
from ..core.auth.passwords import PasswordHasher
from ..core.auth.rate_limiter import RateLimiter
from ..core.auth.service import AuthService
from ..core.auth.sessions import InvalidSessionError, SessionManager
from ..core.clips.upload import UploadWorkflow
from ..infrastructure.database import (
    ClipRepository,
    Database,
    DatabaseConnectionError,
    UserRepository,
)
from ..infrastructure.storage.client import StorageClient, StorageConfig, create_storage_client
from .errors import ApiError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

# Global instances (shared across requests)
_database: Optional[Database] = None
_mock_storage_client = None


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------

def get_database(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Database:
    """
    Provide the shared Database, creating tables on first use.

    If the database is unreachable the error is logged and the Database is
    still returned, so each route reports the failure with its own error
    code. Table creation is retried on the next request.
    """
    global _database

    if _database is None:
        _database = Database(settings.database_url, echo=settings.database_echo)

    if not _database.schema_ready:
        try:
            _database.create_all()
        except DatabaseConnectionError as e:
            logger.error("Failed to create database tables", extra={"error": str(e)})
    return _database


def get_db_session(
    database: Annotated[Database, Depends(get_database)],
) -> Generator[Session, None, None]:
    """
    Provide one SQLAlchemy session per request.

    This is a generator function so the session is closed after the
    response is sent, whatever happened during the request.
    """
    with database.session() as session:
        yield session


def get_user_repository(
    session: Annotated[Session, Depends(get_db_session)],
) -> UserRepository:
    return UserRepository(session)


def get_clip_repository(
    session: Annotated[Session, Depends(get_db_session)],
) -> ClipRepository:
    return ClipRepository(session)


def get_storage_client(
    settings: Annotated[Settings, Depends(get_settings)],
) -> StorageClient:
    """
    Provide storage client for clip uploads.

    Returns either R2 client or mock client based on settings.

    In mock mode, we reuse the same client across requests
    so that uploaded clips persist during the development session.
    """
    global _mock_storage_client

    if settings.r2_mock_mode:
        if _mock_storage_client is None:
            _mock_storage_client = create_storage_client(mock_mode=True)
            logger.info("Created shared mock storage client")
        return _mock_storage_client

    config = StorageConfig(
        access_key_id=settings.r2_access_key_id,
        secret_access_key=settings.r2_secret_access_key,
        bucket_name=settings.r2_bucket_name,
        endpoint_url=settings.r2_endpoint,
        public_url=settings.r2_public_url,
    )
    return create_storage_client(config=config)


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------

def get_rate_limiter(request: Request) -> RateLimiter:
    """
    Provide the login rate limiter.

    One instance per app, created in create_app and kept on app.state.
    """
    return request.app.state.rate_limiter


def get_password_hasher(
    settings: Annotated[Settings, Depends(get_settings)],
) -> PasswordHasher:
    return PasswordHasher(rounds=settings.bcrypt_rounds)


def get_session_manager(
    settings: Annotated[Settings, Depends(get_settings)],
) -> SessionManager:
    return SessionManager(
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        max_age_days=settings.session_max_age_days,
    )


def get_auth_service(
    users: Annotated[UserRepository, Depends(get_user_repository)],
    rate_limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
) -> AuthService:
    return AuthService(users=users, rate_limiter=rate_limiter, hasher=hasher)


def get_upload_workflow(
    settings: Annotated[Settings, Depends(get_settings)],
    storage: Annotated[StorageClient, Depends(get_storage_client)],
    clips: Annotated[ClipRepository, Depends(get_clip_repository)],
) -> UploadWorkflow:
    return UploadWorkflow(
        storage=storage,
        clips=clips,
        max_size_bytes=settings.max_upload_size_bytes,
    )


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def get_current_user(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> SessionUser:
    """
    Resolve the signed-in user from the session token.

    The token is read from the Authorization header first, then from the
    session cookie. Raises 401 if neither holds a valid token.
    """
    token = credentials.credentials if credentials else None
    if not token:
        token = request.cookies.get(settings.session_cookie_name)

    if not token:
        raise ApiError(401, "AUTH_UNAUTHORIZED", "Authentication required")

    try:
        return sessions.verify(token)
    except InvalidSessionError as e:
        logger.warning("Rejected session token", extra={"error": str(e)})
        raise ApiError(401, "AUTH_UNAUTHORIZED", "Authentication required")


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
SettingsDep = Annotated[Settings, Depends(get_settings)]
DatabaseDep = Annotated[Database, Depends(get_database)]
ClipRepositoryDep = Annotated[ClipRepository, Depends(get_clip_repository)]
StorageClientDep = Annotated[StorageClient, Depends(get_storage_client)]
SessionManagerDep = Annotated[SessionManager, Depends(get_session_manager)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
UploadWorkflowDep = Annotated[UploadWorkflow, Depends(get_upload_workflow)]
CurrentUser = Annotated[SessionUser, Depends(get_current_user)]
