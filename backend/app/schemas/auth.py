"""Pydantic schemas for student and admin authentication."""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator

from app.db.models import AdminRole
from app.utils.text import sanitize_text


class ProfileResponse(BaseModel):
    """Public profile attached to a student account."""

    id: str
    user_id: str
    full_name: str
    college: str | None = None
    phone: str | None = None
    avatar_url: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class PublicProfileResponse(ProfileResponse):
    """A student's profile as other students see it.

    ``phone`` and ``email`` are only filled in for signed-in callers.
    """

    email: str | None = None
    user_created_at: datetime


class UserResponse(BaseModel):
    id: str
    email: str
    profile: ProfileResponse | None = None

    model_config = {"from_attributes": True}


class SignupRequest(BaseModel):
    """Request to create a student account."""

    email: EmailStr
    password: str = Field(min_length=6, description="At least 6 characters")
    full_name: str = Field(
        min_length=1,
        validation_alias=AliasChoices("fullName", "full_name"),
    )
    college: str = Field(min_length=1)
    phone: str | None = None

    @field_validator("full_name", "college", "phone")
    @classmethod
    def strip_markup(cls, v: str | None) -> str | None:
        v = sanitize_text(v)
        if v is not None and not v:
            raise ValueError("must not be empty")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class SignupResponse(BaseModel):
    message: str = "Account created successfully"
    user: UserResponse
    access_token: str = Field(serialization_alias="accessToken")


class LoginResponse(BaseModel):
    user: UserResponse
    access_token: str = Field(serialization_alias="accessToken")


class MessageResponse(BaseModel):
    message: str


class AdminResponse(BaseModel):
    """Admin account as shown in the console."""

    id: str
    email: str
    full_name: str = Field(serialization_alias="fullName")
    role: AdminRole
    is_active: bool = Field(default=True, serialization_alias="isActive")
    last_login: datetime | None = Field(default=None, serialization_alias="lastLogin")
    created_at: datetime | None = Field(default=None, serialization_alias="createdAt")

    model_config = {"from_attributes": True}


class AdminLoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class AdminLoginResponse(BaseModel):
    admin: AdminResponse
    access_token: str = Field(serialization_alias="accessToken")


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(
        min_length=1,
        validation_alias=AliasChoices("currentPassword", "current_password"),
    )
    new_password: str = Field(
        min_length=8,
        validation_alias=AliasChoices("newPassword", "new_password"),
        description="At least 8 characters",
    )
