"""Student authentication endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.api.feature_gate import require_feature
from app.core.logging import get_logger
from app.db import get_db
from app.db.models import User
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    SignupRequest,
    SignupResponse,
    UserResponse,
)
from app.services.auth import AuthError, AuthService, create_user_token

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_exception(e: AuthError) -> HTTPException:
    if e.reason:
        return HTTPException(
            status_code=e.status_code, detail={"message": str(e), "reason": e.reason}
        )
    return HTTPException(status_code=e.status_code, detail=str(e))


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=201,
    dependencies=[Depends(require_feature("registration_enabled"))],
)
async def signup(
    request: SignupRequest,
    db: AsyncSession = Depends(get_db),
) -> SignupResponse:
    """Create a student account and sign it in."""
    service = AuthService(db)
    try:
        user = await service.signup(
            email=request.email,
            password=request.password,
            full_name=request.full_name,
            college=request.college,
            phone=request.phone,
        )
    except AuthError as e:
        raise _auth_exception(e) from e

    await db.commit()
    return SignupResponse(
        user=UserResponse.model_validate(user),
        access_token=create_user_token(user.id),
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(require_feature("login_enabled"))],
)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """Sign a student in."""
    service = AuthService(db)
    try:
        user = await service.login_user(request.email, request.password)
    except AuthError as e:
        raise _auth_exception(e) from e

    await db.commit()
    logger.info("user_logged_in", user_id=user.id)
    return LoginResponse(
        user=UserResponse.model_validate(user),
        access_token=create_user_token(user.id),
    )


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)) -> UserResponse:
    """Get the signed-in student."""
    return UserResponse.model_validate(user)


@router.post("/logout", response_model=MessageResponse)
async def logout(user: User = Depends(get_current_user)) -> MessageResponse:
    """Sign out. Tokens are discarded client-side."""
    return MessageResponse(message="Logged out successfully")
