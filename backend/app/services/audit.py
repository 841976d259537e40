"""Append-only audit trail for administrative mutations."""

from __future__ import annotations

import json
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.logging import get_logger
from app.db.models import ActivityLog

logger = get_logger(__name__)


class AuditLogError(Exception):
    """Raised when an activity log row cannot be written."""

    pass


class AuditLogService:
    """Records who changed what from where.

    ``record`` writes inside the caller's transaction and flushes immediately, so
    a failed insert aborts the enclosing mutation instead of letting it commit
    without a trail.
    """

    def __init__(self, db: AsyncSession):
        """Initialize the audit log service.

        Args:
            db: AsyncSession shared with the mutation being recorded.
        """
        self.db = db

    async def record(
        self,
        actor_id: str | None,
        action: str,
        entity_type: str | None = None,
        entity_id: str | None = None,
        detail: Any = None,
        source_ip: str | None = None,
    ) -> ActivityLog:
        """Append one activity log entry.

        Args:
            actor_id: Admin performing the action.
            action: Free-form action tag (e.g. ``setting_update``).
            entity_type: Kind of entity touched.
            entity_id: Identifier of the entity touched.
            detail: Any JSON-serializable payload (old/new values etc.).
            source_ip: Client address of the request.

        Returns:
            The flushed ActivityLog row.

        Raises:
            AuditLogError: If the payload cannot be serialized or the insert fails.
        """
        try:
            details_json = json.dumps(detail, default=str) if detail is not None else None
        except (TypeError, ValueError) as e:
            raise AuditLogError(f"Detail payload for '{action}' is not serializable") from e

        entry = ActivityLog(
            admin_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details_json=details_json,
            ip_address=source_ip,
        )
        self.db.add(entry)

        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            logger.error(
                "activity_log_write_failed",
                action=action,
                entity_type=entity_type,
                error=str(e),
            )
            raise AuditLogError(f"Failed to record activity '{action}'") from e

        logger.info(
            "activity_recorded",
            action=action,
            actor_id=actor_id,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        return entry

    async def list_entries(
        self,
        page: int = 1,
        page_size: int = 50,
        action: str | None = None,
        entity_type: str | None = None,
    ) -> tuple[list[ActivityLog], int]:
        """List entries newest first, optionally filtered by action or entity type.

        Returns:
            Tuple of (entries on the requested page, total matching entries).
        """
        query = select(ActivityLog).options(selectinload(ActivityLog.admin))
        if action:
            query = query.where(ActivityLog.action == action)
        if entity_type:
            query = query.where(ActivityLog.entity_type == entity_type)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = (
            query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total


def decode_details(entry: ActivityLog) -> Any:
    """Decode an entry's detail payload, returning the raw text if it is not JSON."""
    if entry.details_json is None:
        return None
    try:
        return json.loads(entry.details_json)
    except json.JSONDecodeError:
        return entry.details_json
