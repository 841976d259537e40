"""Admin API routes for reviewing listing reports."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_client_ip, get_current_admin, require_moderator
from app.db import get_db
from app.db.models import Admin, ProductReport, ReportReason, ReportStatus
from app.schemas.admin import (
    ActionResponse,
    AdminReportList,
    AdminReportRow,
    Pagination,
    ReasonCount,
    ReportStatsResponse,
    ReportStatusUpdate,
)
from app.services.audit import AuditLogService
from app.services.moderation import ModerationError, ReportModerationService

router = APIRouter(prefix="/reports", tags=["admin-reports"])


def _report_row(report: ProductReport) -> AdminReportRow:
    product = report.product
    seller = product.owner if product else None
    reporter = report.reporter
    return AdminReportRow(
        id=report.id,
        product_id=report.product_id,
        reporter_id=report.reporter_id,
        reason=report.reason,
        description=report.description,
        status=report.status,
        reviewed_by=report.reviewed_by,
        reviewed_at=report.reviewed_at,
        created_at=report.created_at,
        product_title=product.title if product else None,
        product_images=product.images if product else [],
        product_is_active=product.is_active if product else None,
        reporter_name=reporter.profile.full_name if reporter and reporter.profile else None,
        reporter_email=reporter.email if reporter else None,
        seller_name=seller.profile.full_name if seller and seller.profile else None,
        reviewer_name=report.reviewer.full_name if report.reviewer else None,
    )


@router.get("", response_model=AdminReportList)
async def list_reports(
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=100),
    status: ReportStatus | None = Query(None),
    reason: ReportReason | None = Query(None),
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> AdminReportList:
    """List reports newest first."""
    reports, total = await ReportModerationService(db).list_reports(
        page=page, limit=limit, status=status, reason=reason
    )
    return AdminReportList(
        reports=[_report_row(report) for report in reports],
        pagination=Pagination.build(total, page, limit),
    )


@router.get("/stats/summary", response_model=ReportStatsResponse)
async def get_report_stats(
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> ReportStatsResponse:
    """Get report counts per status and per reason."""
    by_status, by_reason = await ReportModerationService(db).summary()
    return ReportStatsResponse(
        **by_status,
        by_reason=[ReasonCount(reason=reason, count=count) for reason, count in by_reason],
    )


@router.get("/{report_id}", response_model=AdminReportRow)
async def get_report(
    report_id: str,
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> AdminReportRow:
    try:
        report = await ReportModerationService(db).get_report(report_id)
    except ModerationError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return _report_row(report)


@router.patch("/{report_id}/status", response_model=ActionResponse)
async def update_report_status(
    report_id: str,
    request: ReportStatusUpdate,
    http_request: Request,
    admin: Admin = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
) -> ActionResponse:
    """Move a report to a new review status."""
    try:
        await ReportModerationService(db).update_status(report_id, request.status, admin.id)
    except ModerationError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    await AuditLogService(db).record(
        admin.id,
        "update_report_status",
        entity_type="product_report",
        entity_id=report_id,
        detail={"status": request.status.value},
        source_ip=get_client_ip(http_request),
    )
    await db.commit()
    return ActionResponse(message="Report status updated successfully")
