"""
Pagination executor.

Runs a statement assembled by drilldown.sql.query_builder and turns the result
into a QueryBuilderResult:

- The statement fetches limit + 1 rows. More than `limit` rows back means a
  next page exists; the extra row is trimmed.
- When a next page exists, nextCursor encodes the last returned row's id and
  its value in the active sort column.
- With includeTotal, one COUNT over the same filter function fills
  pageInfo.total.

Each page is a single read-only statement on a borrowed connection; no
transaction spans pages and no iteration state is held between requests.
Driver failures surface as DataAccessError without retry.
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import asyncpg
from asyncpg import Connection

from drilldown.core.exceptions import DataAccessError
from drilldown.models.enums import EntityKind
from drilldown.models.schemas import (
    PageInfo,
    PaginationOptions,
    QueryBuilderResult,
    QueryFilters,
)
from drilldown.services.cursor import encode_cursor
from drilldown.sql.query_builder import BuiltQuery, build_page_query
from drilldown.sql.whitelists import SortColumn


logger = logging.getLogger(__name__)

Row = Dict[str, Any]

_DRIVER_ERRORS = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)


def tiebreak_text(value: Any, sort_column: SortColumn) -> str:
    """
    Render a row's sort value as cursor text that PostgreSQL can cast back
    to the column type.
    """
    if value is None:
        return sort_column.null_sentinel or ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def build_page_info(rows: List[Row], built: BuiltQuery, total: Optional[int] = None) -> PageInfo:
    """
    Trim `rows` in place to the page size and compute continuation metadata.
    """
    has_next_page = len(rows) > built.limit
    if has_next_page:
        del rows[built.limit:]

    next_cursor = None
    if has_next_page and rows:
        last = rows[-1]
        next_cursor = encode_cursor(
            str(last[built.metadata.id_column]),
            tiebreak_text(last.get(built.sort_column.column), built.sort_column),
        )

    return PageInfo(hasNextPage=has_next_page, nextCursor=next_cursor, total=total)


async def execute_page(
    conn: Connection,
    built: BuiltQuery,
    include_total: bool = False,
) -> QueryBuilderResult[Row]:
    """
    Execute an assembled page query.

    Args:
        conn: Connection borrowed from the pool.
        built: Output of build_page_query().
        include_total: Also count the filtered set.

    Returns:
        QueryBuilderResult with at most built.limit rows.

    Raises:
        DataAccessError: The statement (or the COUNT) failed.
    """
    entity = built.metadata.kind.value
    try:
        records = await conn.fetch(built.sql, *built.params)
        total = None
        if include_total:
            total = await conn.fetchval(built.count_sql, *built.count_params)
    except _DRIVER_ERRORS as exc:
        logger.exception(f"Error fetching {entity} page")
        raise DataAccessError(f"Failed to fetch {entity} page: {exc}") from exc

    rows = [dict(record) for record in records]
    page_info = build_page_info(rows, built, total=int(total) if total is not None else None)

    logger.info(
        f"Fetched {len(rows)} {entity} rows "
        f"(sort={built.sort_column.column} {built.sort_direction.value}, "
        f"hasNextPage={page_info.hasNextPage})"
    )
    return QueryBuilderResult[Row](rows=rows, pageInfo=page_info)


# =============================================================================
# ENTRY POINTS
# =============================================================================


async def run_paginated_query(
    conn: Connection,
    kind: EntityKind,
    filters: QueryFilters,
    pagination: Optional[PaginationOptions] = None,
) -> QueryBuilderResult[Row]:
    """
    Assemble and execute one page of `kind`.

    Raises:
        InvalidSortField: pagination.sortBy is outside the entity's whitelist.
        DataAccessError: Query execution failed.
    """
    pagination = pagination or PaginationOptions()
    built = build_page_query(kind, filters, pagination)
    return await execute_page(conn, built, include_total=pagination.includeTotal)


async def fetch_kpi_values(
    conn: Connection,
    filters: QueryFilters,
    pagination: Optional[PaginationOptions] = None,
) -> QueryBuilderResult[Row]:
    """One page of public.filter_kpi_values(), default sort period_start."""
    return await run_paginated_query(conn, EntityKind.KPI_VALUE, filters, pagination)


async def fetch_aggregates(
    conn: Connection,
    filters: QueryFilters,
    pagination: Optional[PaginationOptions] = None,
) -> QueryBuilderResult[Row]:
    """One page of public.filter_school_aggregates(), default sort date."""
    return await run_paginated_query(conn, EntityKind.AGGREGATE, filters, pagination)


async def fetch_comparisons(
    conn: Connection,
    filters: QueryFilters,
    pagination: Optional[PaginationOptions] = None,
) -> QueryBuilderResult[Row]:
    """One page of public.filter_school_comparison(), default sort rank."""
    return await run_paginated_query(conn, EntityKind.COMPARISON, filters, pagination)
