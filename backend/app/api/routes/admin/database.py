"""Admin API routes for the read-only database browser (super admins only)."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_super_admin
from app.db import get_db
from app.schemas.admin import Pagination
from app.schemas.dashboard import TableInfo, TableRowsResponse, TableSchemaResponse
from app.services.database_browser import (
    MAX_PAGE_SIZE,
    DatabaseBrowserError,
    DatabaseBrowserService,
)

router = APIRouter(
    prefix="/database",
    tags=["admin-database"],
    dependencies=[Depends(require_super_admin)],
)


@router.get("/tables", response_model=list[TableInfo])
async def list_tables(db: AsyncSession = Depends(get_db)) -> list[TableInfo]:
    """List browsable tables with their row counts."""
    tables = await DatabaseBrowserService(db).list_tables()
    return [TableInfo(name=name, row_count=count) for name, count in tables]


@router.get("/tables/{name}/schema", response_model=TableSchemaResponse)
async def get_table_schema(name: str, db: AsyncSession = Depends(get_db)) -> TableSchemaResponse:
    try:
        return TableSchemaResponse(**DatabaseBrowserService(db).describe(name))
    except DatabaseBrowserError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e


@router.get("/tables/{name}", response_model=TableRowsResponse)
async def get_table_rows(
    name: str,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    sort: str | None = Query(None),
    order: Literal["asc", "desc"] = Query("desc"),
    search: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
) -> TableRowsResponse:
    """Page through a table. Password hashes are masked."""
    try:
        columns, rows, total = await DatabaseBrowserService(db).fetch_rows(
            name, page=page, limit=limit, sort=sort, order=order, search=search
        )
    except DatabaseBrowserError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e

    return TableRowsResponse(
        columns=columns, rows=rows, pagination=Pagination.build(total, page, limit)
    )
