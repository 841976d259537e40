"""Read-only table browser for super admins.

Table names never reach SQL text: they resolve through a fixed lookup onto the
declarative metadata, and sort columns must be real columns of the resolved table.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Enum, String, Table, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.db import models  # noqa: F401
from app.db.base import Base

logger = get_logger(__name__)

BROWSABLE_TABLES = (
    "users",
    "profiles",
    "products",
    "wishlist",
    "product_reports",
    "admins",
    "admin_activity_logs",
    "system_settings",
)

MASKED_COLUMNS = frozenset({"password_hash"})
MASK = "********"
MAX_PAGE_SIZE = 100


class DatabaseBrowserError(Exception):
    """Raised for a table outside the browsable set."""

    def __init__(
        self, message: str = "Access to this table is not allowed", status_code: int = 403
    ):
        self.status_code = status_code
        super().__init__(message)


def resolve_table(name: str) -> Table:
    """Map a logical table name onto its ``Table``.

    Raises:
        DatabaseBrowserError: If the name is not browsable.
    """
    if name not in BROWSABLE_TABLES:
        raise DatabaseBrowserError()
    return Base.metadata.tables[name]


def _mask(row: dict[str, Any]) -> dict[str, Any]:
    for column in MASKED_COLUMNS & row.keys():
        if row[column]:
            row[column] = MASK
    return row


class DatabaseBrowserService:
    """Lists browsable tables, describes them and pages through their rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_tables(self) -> list[tuple[str, int]]:
        tables = []
        for name in BROWSABLE_TABLES:
            table = resolve_table(name)
            count = (await self.db.execute(select(func.count()).select_from(table))).scalar()
            tables.append((name, count or 0))
        return tables

    def describe(self, name: str) -> dict[str, list[dict[str, Any]]]:
        """Column and index metadata for one table."""
        table = resolve_table(name)
        columns = [
            {
                "name": column.name,
                "type": str(column.type),
                "nullable": bool(column.nullable),
                "primary_key": column.primary_key,
                "default": None if column.server_default is None else str(column.server_default.arg),
            }
            for column in table.columns
        ]
        indexes = [
            {
                "name": index.name,
                "columns": [column.name for column in index.columns],
                "unique": bool(index.unique),
            }
            for index in sorted(table.indexes, key=lambda i: i.name or "")
        ]
        return {"columns": columns, "indexes": indexes}

    async def fetch_rows(
        self,
        name: str,
        page: int = 1,
        limit: int = 50,
        sort: str | None = None,
        order: str = "desc",
        search: str | None = None,
    ) -> tuple[list[str], list[dict[str, Any]], int]:
        """Page through a table.

        Args:
            sort: Column to order by; ignored unless it is a column of the table.
            order: ``asc`` for ascending, anything else for descending.
            search: Substring matched against every text column.

        Returns:
            Tuple of (column names, masked rows, total matching rows).
        """
        table = resolve_table(name)
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        page = max(1, page)

        query = select(table)
        if search:
            pattern = f"%{search}%"
            text_columns = [
                column
                for column in table.columns
                if isinstance(column.type, String) and not isinstance(column.type, Enum)
            ]
            if text_columns:
                query = query.where(or_(*(column.ilike(pattern) for column in text_columns)))

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        if sort and sort in table.c:
            column = table.c[sort]
            query = query.order_by(column.asc() if order == "asc" else column.desc())
        elif "created_at" in table.c:
            query = query.order_by(table.c.created_at.desc())
        else:
            query = query.order_by(table.c.id.desc())

        query = query.offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(query)
        rows = [_mask(dict(row)) for row in result.mappings().all()]

        logger.debug("table_browsed", table=name, page=page, rows=len(rows))
        return [column.name for column in table.columns], rows, total
