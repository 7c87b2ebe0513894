"""
Generic parameterized query assembler for the drilldown entities.

One assembler serves every EntityKind; the differences between result sets
(filter function, argument order, sortable columns and their types, row
alias) come from drilldown.sql.whitelists.EntityMetadata.

Generated statement, keyset mode, ascending:

    SELECT kv.*
    FROM   public.filter_kpi_values($1::uuid, $2::uuid, $3::date, $4::date) AS kv
    WHERE  TRUE
      AND  (kv.period_start > $5::text::date
            OR (kv.period_start = $5::text::date AND kv.id > $6::uuid))
    ORDER  BY kv.period_start ASC, kv.id ASC
    LIMIT  $7

Values are always bound. Identifiers (function, alias, column, cast) are
always read from the whitelist metadata, never from the request.

Offset mode replaces the keyset predicate with `OFFSET $n`. It supports
"jump to page N" but is not stable under concurrent writes: rows inserted
ahead of the current position shift later pages, so rows can be skipped or
repeated. Keyset mode depends only on the cursor and has no such problem.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Tuple, Union

from drilldown.core.exceptions import InvalidSortField
from drilldown.models.enums import EntityKind, SortDirection, SqlType
from drilldown.models.schemas import PaginationOptions, QueryFilters
from drilldown.services.cursor import Cursor, decode_cursor
from drilldown.services.validation import (
    PG_BIGINT_MAX,
    is_date_string,
    is_uuid,
    resolve_limit,
)
from drilldown.sql.whitelists import EntityMetadata, SortColumn, get_entity_metadata


logger = logging.getLogger(__name__)

# Input limits of the PostgreSQL types a tie-break is cast to
INT4_MIN = -(2**31)
INT4_MAX = 2**31 - 1
INT_TEXT_RE = re.compile(r"\s*[+-]?[0-9]+\s*")
NUMERIC_MAX_INTEGER_DIGITS = 131072
NUMERIC_MAX_SCALE = 16383


# =============================================================================
# PAGE MODE
# =============================================================================


@dataclass(frozen=True)
class KeysetPage:
    """Continue after the row described by a decoded cursor."""
    cursor: Cursor


@dataclass(frozen=True)
class OffsetPage:
    """Skip `page * limit` rows. Best effort under concurrent writes."""
    page: int


PageMode = Union[KeysetPage, OffsetPage, None]


def resolve_page_mode(pagination: PaginationOptions) -> PageMode:
    """
    Pick the pagination strategy for a request.

    A supplied cursor always wins over `page`, even when it fails to decode:
    an undecodable cursor restarts from the first page rather than falling
    back to offset mode.
    """
    if pagination.cursor:
        decoded = decode_cursor(pagination.cursor)
        if decoded is None:
            logger.warning("Discarding undecodable cursor; restarting from first page")
            return None
        return KeysetPage(decoded)
    if pagination.page:
        return OffsetPage(pagination.page)
    return None


# =============================================================================
# BUILT QUERY
# =============================================================================


@dataclass(frozen=True)
class BuiltQuery:
    """
    Assembled statement for one page of one entity kind.

    Attributes:
        sql: Statement text with $N placeholders.
        params: Bound parameters in placeholder order.
        limit: Resolved page size; the statement fetches limit + 1 rows.
        metadata: Entity metadata the statement was built from.
        sort_column: Whitelisted sort column.
        sort_direction: Direction applied to sort column and id.
        mode: Pagination strategy actually applied.
        count_sql: COUNT over the filtered set (same filter arguments).
        count_params: Parameters for count_sql.
    """
    sql: str
    params: Tuple[Any, ...]
    limit: int
    metadata: EntityMetadata
    sort_column: SortColumn
    sort_direction: SortDirection
    mode: PageMode
    count_sql: str
    count_params: Tuple[Any, ...]


# =============================================================================
# HELPERS
# =============================================================================


def resolve_sort_column(metadata: EntityMetadata, sort_by: Optional[str]) -> SortColumn:
    """
    Map a sort token to a whitelisted column.

    Raises:
        InvalidSortField: sort_by is set and not in the entity's whitelist.
    """
    if not sort_by:
        return metadata.sort_columns[metadata.default_sort]
    column = metadata.sort_columns.get(sort_by)
    if column is None:
        raise InvalidSortField(sort_by, metadata.sort_fields)
    return column


def _bind_filter_value(value: Optional[str], sql_type: SqlType) -> Any:
    # asyncpg encodes date parameters from datetime.date only
    if value is not None and sql_type is SqlType.DATE:
        return date.fromisoformat(value)
    return value


def tiebreak_fits(value: str, sql_type: SqlType) -> bool:
    """
    Check that a cursor tie-break can be cast to the sort column's type.

    A cursor minted for a different sort column (or hand-edited) fails here
    and is discarded instead of producing a database cast error. The checks
    are no looser than PostgreSQL's input functions: ASCII only, int4 range
    for int, numeric's digit limits for numeric.
    """
    if not value.isascii() or "_" in value:
        return False
    if sql_type is SqlType.DATE:
        return is_date_string(value)
    if sql_type is SqlType.INT:
        if INT_TEXT_RE.fullmatch(value) is None:
            return False
        return INT4_MIN <= int(value) <= INT4_MAX
    if sql_type is SqlType.UUID:
        return is_uuid(value)
    try:
        if sql_type is SqlType.TIMESTAMPTZ:
            datetime.fromisoformat(value)
        elif sql_type is SqlType.NUMERIC:
            number = Decimal(value)
            if number.is_snan():
                return False
            if number.is_finite():
                if -number.as_tuple().exponent > NUMERIC_MAX_SCALE:
                    return False
                if not number.is_zero() and number.adjusted() >= NUMERIC_MAX_INTEGER_DIGITS:
                    return False
    except (ValueError, InvalidOperation):
        return False
    return True


def _keyset_predicate(
    expression: str,
    id_ref: str,
    sql_type: SqlType,
    direction: SortDirection,
    tiebreak_param: int,
    id_param: int,
) -> str:
    # Strict lexicographic (sort value, id) comparison
    op = ">" if direction is SortDirection.ASC else "<"
    tiebreak = f"${tiebreak_param}::text::{sql_type.value}"
    return (
        f"AND  ({expression} {op} {tiebreak} "
        f"OR ({expression} = {tiebreak} AND {id_ref} {op} ${id_param}::uuid))"
    )


# =============================================================================
# ASSEMBLER
# =============================================================================


def build_page_query(
    kind: EntityKind,
    filters: QueryFilters,
    pagination: Optional[PaginationOptions] = None,
) -> BuiltQuery:
    """
    Assemble the parameterized statement for one page of `kind`.

    Steps:
        1. Resolve the limit (same clamping as the pagination validator).
        2. Resolve the sort column against the entity whitelist.
        3. Resolve the direction (ASC by default).
        4. Bind the entity's filter fields in function order; absent -> NULL.
        5. Keyset mode: bind tie-break and id, add the keyset predicate.
        6. Offset mode (no cursor supplied, page > 0): bind OFFSET page * limit.
        7. Bind LIMIT limit + 1 so the executor can detect a next page.
        8. ORDER BY sort column then id, both in the resolved direction.

    Raises:
        InvalidSortField: pagination.sortBy is outside the entity's whitelist.
    """
    pagination = pagination or PaginationOptions()
    metadata = get_entity_metadata(kind)
    alias = metadata.alias

    limit = resolve_limit(pagination.limit)
    sort_column = resolve_sort_column(metadata, pagination.sortBy)
    direction = pagination.sortDirection or SortDirection.ASC

    params: List[Any] = [
        _bind_filter_value(getattr(filters, param.field), param.sql_type)
        for param in metadata.filter_params
    ]
    function_args = ", ".join(
        f"${position}::{param.sql_type.value}"
        for position, param in enumerate(metadata.filter_params, start=1)
    )
    from_clause = f"{metadata.function_name}({function_args}) AS {alias}"
    count_params = tuple(params)

    expression = sort_column.expression(alias)
    id_ref = f"{alias}.{metadata.id_column}"

    mode = resolve_page_mode(pagination)
    if isinstance(mode, KeysetPage):
        cursor = mode.cursor
        if not is_uuid(cursor.id) or not tiebreak_fits(cursor.tiebreak, sort_column.sql_type):
            logger.warning(
                f"Discarding cursor that does not fit {metadata.kind.value}."
                f"{sort_column.column}; restarting from first page"
            )
            mode = None

    cursor_clause = ""
    if isinstance(mode, KeysetPage):
        params.extend([mode.cursor.tiebreak, mode.cursor.id])
        cursor_clause = _keyset_predicate(
            expression,
            id_ref,
            sort_column.sql_type,
            direction,
            tiebreak_param=len(params) - 1,
            id_param=len(params),
        )

    params.append(limit + 1)
    limit_clause = f"LIMIT  ${len(params)}"

    offset_clause = ""
    if isinstance(mode, OffsetPage):
        params.append(min(mode.page * limit, PG_BIGINT_MAX))
        offset_clause = f"OFFSET ${len(params)}"

    dir_sql = direction.value
    sql = f"""
    SELECT {alias}.*
    FROM   {from_clause}
    WHERE  TRUE
    {cursor_clause}
    ORDER  BY {expression} {dir_sql}, {id_ref} {dir_sql}
    {limit_clause}
    {offset_clause}
    """

    count_sql = f"""
    SELECT count(*) AS total
    FROM   {from_clause}
    """

    logger.debug(f"Assembled {metadata.kind.value} query: {sql.strip()} params={params}")

    return BuiltQuery(
        sql=sql,
        params=tuple(params),
        limit=limit,
        metadata=metadata,
        sort_column=sort_column,
        sort_direction=direction,
        mode=mode,
        count_sql=count_sql,
        count_params=count_params,
    )
