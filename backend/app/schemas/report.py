"""Pydantic schemas for listing reports."""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field, field_validator

from app.db.models import ReportReason, ReportStatus
from app.utils.text import sanitize_text


class ReportCreate(BaseModel):
    """Request to report a listing."""

    product_id: str = Field(validation_alias=AliasChoices("productId", "product_id"))
    reason: ReportReason
    description: str | None = Field(default=None, max_length=1000)

    @field_validator("description")
    @classmethod
    def strip_markup(cls, v: str | None) -> str | None:
        return sanitize_text(v) or None


class ReportCreatedResponse(BaseModel):
    id: str
    message: str = "Product reported successfully"


class ReportResponse(BaseModel):
    """A report as seen by the student who filed it."""

    id: str
    product_id: str
    reporter_id: str
    reason: ReportReason
    description: str | None = None
    status: ReportStatus
    reviewed_at: datetime | None = None
    created_at: datetime
    product_title: str | None = None
    product_images: list[str] = Field(default_factory=list)


class ReportListResponse(BaseModel):
    reports: list[ReportResponse]
