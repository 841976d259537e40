"""Shared FastAPI dependencies: services, client address and authentication."""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from typing import Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import bind_request_context, get_logger
from app.db import get_db
from app.db.models import Admin, AdminRole, User
from app.services.auth import AuthError, decode_admin_token, decode_user_token
from app.services.settings import SettingsService
from app.services.settings_cache import SettingsCache

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings_cache(request: Request) -> SettingsCache:
    """Get the process-wide settings cache created at startup."""
    return request.app.state.settings_cache


async def get_settings_service(
    db: AsyncSession = Depends(get_db),
    cache: SettingsCache = Depends(get_settings_cache),
) -> SettingsService:
    """Build a request-scoped settings service around the shared cache."""
    return SettingsService(db, cache)


def get_client_ip(request: Request) -> str | None:
    """Get the caller's address, preferring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    if request.client:
        return request.client.host
    return None


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Admin:
    """Resolve the admin behind the bearer token.

    Raises:
        HTTPException: 401 for a missing/invalid token or unknown admin,
            403 for a deactivated account.
    """
    if credentials is None:
        raise _unauthorized("Access token required")

    try:
        payload = decode_admin_token(credentials.credentials)
    except AuthError as e:
        raise _unauthorized(str(e)) from e

    admin = await db.get(Admin, payload["sub"])
    if admin is None:
        raise _unauthorized("Admin not found")
    if not admin.is_active:
        raise HTTPException(status_code=403, detail="Account is deactivated")

    bind_request_context(admin_id=admin.id)
    return admin


def require_role(
    *roles: AdminRole,
) -> Callable[..., Coroutine[Any, Any, Admin]]:
    """Build a dependency that admits only admins holding one of ``roles``."""
    allowed = frozenset(roles)

    async def check_role(admin: Admin = Depends(get_current_admin)) -> Admin:
        if admin.role not in allowed:
            logger.info(
                "admin_role_rejected",
                admin_id=admin.id,
                role=admin.role.value,
                required=sorted(role.value for role in allowed),
            )
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return admin

    return check_role


# Common role sets
require_moderator = require_role(AdminRole.SUPER_ADMIN, AdminRole.ADMIN, AdminRole.MODERATOR)
require_admin = require_role(AdminRole.SUPER_ADMIN, AdminRole.ADMIN)
require_super_admin = require_role(AdminRole.SUPER_ADMIN)


async def _user_from_token(token: str, db: AsyncSession) -> User:
    try:
        payload = decode_user_token(token)
    except AuthError as e:
        raise _unauthorized(str(e)) from e

    user = await db.get(User, payload["sub"])
    if user is None:
        raise _unauthorized("User not found")
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the student behind the bearer token.

    Raises:
        HTTPException: 401 for a missing/invalid token or unknown user,
            403 for a suspended account.
    """
    if credentials is None:
        raise _unauthorized("Access token required")

    user = await _user_from_token(credentials.credentials, db)
    if user.is_suspended:
        raise HTTPException(status_code=403, detail="Your account has been suspended")

    bind_request_context(user_id=user.id)
    return user


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Like ``get_current_user`` but yields None instead of rejecting."""
    if credentials is None:
        return None
    try:
        return await _user_from_token(credentials.credentials, db)
    except HTTPException:
        return None
