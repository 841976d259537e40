"""Endpoints for students reporting listings."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.logging import get_logger
from app.db import get_db
from app.db.models import Product, ProductReport, ReportStatus, User
from app.schemas.report import (
    ReportCreate,
    ReportCreatedResponse,
    ReportListResponse,
    ReportResponse,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("", response_model=ReportCreatedResponse, status_code=201)
async def report_product(
    request: ReportCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ReportCreatedResponse:
    """Report a listing. One pending report per student and listing."""
    product = await db.get(Product, request.product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")

    result = await db.execute(
        select(ProductReport.id).where(
            ProductReport.product_id == request.product_id,
            ProductReport.reporter_id == user.id,
            ProductReport.status == ReportStatus.PENDING,
        )
    )
    if result.first() is not None:
        raise HTTPException(status_code=400, detail="You have already reported this product")

    report = ProductReport(
        product_id=request.product_id,
        reporter_id=user.id,
        reason=request.reason,
        description=request.description,
    )
    db.add(report)
    await db.commit()

    logger.info("product_reported", product_id=request.product_id, reason=request.reason.value)
    return ReportCreatedResponse(id=report.id)


@router.get("", response_model=ReportListResponse)
async def list_my_reports(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ReportListResponse:
    """List the reports the caller has filed, newest first."""
    result = await db.execute(
        select(ProductReport)
        .where(ProductReport.reporter_id == user.id)
        .order_by(ProductReport.created_at.desc())
    )
    reports = [
        ReportResponse(
            id=report.id,
            product_id=report.product_id,
            reporter_id=report.reporter_id,
            reason=report.reason,
            description=report.description,
            status=report.status,
            reviewed_at=report.reviewed_at,
            created_at=report.created_at,
            product_title=report.product.title if report.product else None,
            product_images=report.product.images if report.product else [],
        )
        for report in result.scalars().all()
    ]
    return ReportListResponse(reports=reports)
