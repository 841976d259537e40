"""Public student profile endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_optional_user
from app.db import get_db
from app.db.models import Profile, User
from app.schemas.auth import PublicProfileResponse

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/{user_id}", response_model=PublicProfileResponse)
async def get_profile(
    user_id: str,
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
) -> PublicProfileResponse:
    """Get a student's profile; contact details only for signed-in callers."""
    row = (
        await db.execute(
            select(Profile, User.email, User.created_at)
            .join(User, User.id == Profile.user_id)
            .where(Profile.user_id == user_id)
        )
    ).first()
    if row is None:
        raise HTTPException(status_code=404, detail="Profile not found")

    profile, email, joined_at = row
    signed_in = viewer is not None
    return PublicProfileResponse(
        id=profile.id,
        user_id=profile.user_id,
        full_name=profile.full_name,
        college=profile.college,
        phone=profile.phone if signed_in else None,
        avatar_url=profile.avatar_url,
        created_at=profile.created_at,
        email=email if signed_in else None,
        user_created_at=joined_at,
    )
