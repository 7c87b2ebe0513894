"""
Pytest test module for the pagination executor.

Page traversal tests run against FakeFilterFunction (conftest.py), which
applies the generated ORDER BY, keyset parameters, LIMIT and OFFSET to an
in-memory row list. Error propagation tests use the mock_conn fixture.

Test Classes:
- TestPageInfo: hasNextPage / nextCursor / trimming
- TestCursorTraversal: sequential pages visit every row exactly once
- TestTotals: includeTotal runs one COUNT
- TestErrorPropagation: driver failures become DataAccessError
- TestEntityEntryPoints: fetch_* helpers target the right filter function
"""

import asyncio
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest

from drilldown.core.exceptions import DataAccessError, InvalidSortField
from drilldown.models.enums import EntityKind, SortDirection
from drilldown.models.schemas import PaginationOptions, QueryFilters
from drilldown.services.cursor import Cursor, decode_cursor
from drilldown.services.pagination import (
    build_page_info,
    execute_page,
    fetch_aggregates,
    fetch_comparisons,
    fetch_kpi_values,
    run_paginated_query,
    tiebreak_text,
)
from drilldown.sql.query_builder import build_page_query
from drilldown.sql.whitelists import COMPARISON_METADATA, KPI_VALUE_METADATA
from drilldown.tests.conftest import FakeFilterFunction, make_kpi_row, make_uuid


# Mark all tests in this module as async
pytestmark = pytest.mark.asyncio


async def _traverse(
    store: FakeFilterFunction,
    limit: int,
    sort_by: Optional[str] = None,
    direction: SortDirection = SortDirection.ASC,
    between_pages=None,
) -> List[Dict[str, Any]]:
    """Follow nextCursor until hasNextPage is false; return all rows seen."""
    seen: List[Dict[str, Any]] = []
    cursor = None
    for _ in range(100):
        pagination = PaginationOptions(
            limit=limit, cursor=cursor, sortBy=sort_by, sortDirection=direction
        )
        result = await run_paginated_query(store, EntityKind.KPI_VALUE, QueryFilters(), pagination)
        assert len(result.rows) <= limit
        seen.extend(result.rows)
        if not result.pageInfo.hasNextPage:
            assert result.pageInfo.nextCursor is None
            return seen
        assert result.pageInfo.nextCursor is not None
        cursor = result.pageInfo.nextCursor
        if between_pages is not None:
            between_pages(store)
    raise AssertionError("traversal did not terminate")


# =============================================================================
# Test Class: TestPageInfo
# =============================================================================

class TestPageInfo:

    async def test_exactly_limit_rows_means_last_page(self, mock_conn: AsyncMock) -> None:
        mock_conn.fetch.return_value = [
            make_kpi_row(1, date(2024, 1, 1)),
            make_kpi_row(2, date(2024, 1, 2)),
        ]
        result = await fetch_kpi_values(mock_conn, QueryFilters(), PaginationOptions(limit=2))

        assert len(result.rows) == 2
        assert result.pageInfo.hasNextPage is False
        assert result.pageInfo.nextCursor is None
        assert result.pageInfo.total is None

    async def test_extra_row_is_trimmed_and_encoded(self, mock_conn: AsyncMock) -> None:
        mock_conn.fetch.return_value = [
            make_kpi_row(1, date(2024, 1, 1)),
            make_kpi_row(2, date(2024, 1, 2)),
            make_kpi_row(3, date(2024, 1, 3)),
        ]
        result = await fetch_kpi_values(mock_conn, QueryFilters(), PaginationOptions(limit=2))

        assert [row["id"] for row in result.rows] == [make_uuid(1), make_uuid(2)]
        assert result.pageInfo.hasNextPage is True
        assert decode_cursor(result.pageInfo.nextCursor) == Cursor(
            id=str(make_uuid(2)), tiebreak="2024-01-02"
        )

    async def test_empty_result(self, mock_conn: AsyncMock) -> None:
        result = await fetch_kpi_values(mock_conn, QueryFilters())
        assert result.rows == []
        assert result.pageInfo.hasNextPage is False
        assert result.pageInfo.nextCursor is None

    async def test_null_sort_value_encodes_sentinel(self) -> None:
        built = build_page_query(
            EntityKind.COMPARISON,
            QueryFilters(),
            PaginationOptions(limit=1, sortBy="variance_to_network"),
        )
        rows = [
            {"id": make_uuid(1), "variance_to_network": None},
            {"id": make_uuid(2), "variance_to_network": Decimal("0.5")},
        ]
        page_info = build_page_info(rows, built)

        assert len(rows) == 1
        assert decode_cursor(page_info.nextCursor).tiebreak == "-Infinity"

    @pytest.mark.parametrize(
        "value, expected",
        [
            (date(2024, 1, 5), "2024-01-05"),
            (datetime(2024, 1, 5, 10, 30, tzinfo=timezone.utc), "2024-01-05T10:30:00+00:00"),
            (Decimal("12.3400"), "12.3400"),
            (7, "7"),
        ],
    )
    async def test_tiebreak_text(self, value: Any, expected: str) -> None:
        sort_column = KPI_VALUE_METADATA.sort_columns["period_start"]
        assert tiebreak_text(value, sort_column) == expected

    async def test_tiebreak_text_null(self) -> None:
        assert tiebreak_text(None, COMPARISON_METADATA.sort_columns["variance_to_network"]) == "-Infinity"
        assert tiebreak_text(None, COMPARISON_METADATA.sort_columns["rank"]) == ""


# =============================================================================
# Test Class: TestCursorTraversal
# =============================================================================

@pytest.mark.property
class TestCursorTraversal:

    async def test_equal_sort_values_split_across_pages(self) -> None:
        store = FakeFilterFunction(
            KPI_VALUE_METADATA,
            [make_kpi_row(n, date(2024, 1, 1)) for n in (1, 2, 3)],
        )

        first = await fetch_kpi_values(store, QueryFilters(), PaginationOptions(limit=2))
        assert [row["id"] for row in first.rows] == [make_uuid(1), make_uuid(2)]
        assert first.pageInfo.hasNextPage is True

        second = await fetch_kpi_values(
            store, QueryFilters(), PaginationOptions(limit=2, cursor=first.pageInfo.nextCursor)
        )
        assert [row["id"] for row in second.rows] == [make_uuid(3)]
        assert second.pageInfo.hasNextPage is False
        assert second.pageInfo.nextCursor is None

    @pytest.mark.parametrize("limit", [1, 2, 3, 4, 9, 10, 11, 50])
    async def test_traversal_visits_every_row_once(self, kpi_store: FakeFilterFunction, limit: int) -> None:
        seen = await _traverse(kpi_store, limit)
        ids = [row["id"] for row in seen]

        assert ids == [make_uuid(n) for n in range(1, 11)]
        assert len(set(ids)) == len(ids)

    async def test_descending_traversal(self, kpi_store: FakeFilterFunction) -> None:
        seen = await _traverse(kpi_store, 4, direction=SortDirection.DESC)
        assert [row["id"] for row in seen] == [make_uuid(n) for n in range(10, 0, -1)]

    async def test_numeric_sort_with_duplicates(self) -> None:
        values = ["3.5", "1.0", "3.5", "2.25", "1.0", "3.5"]
        store = FakeFilterFunction(
            KPI_VALUE_METADATA,
            [make_kpi_row(n, date(2024, 1, 1), value) for n, value in enumerate(values, start=1)],
            parse_tiebreak=Decimal,
        )
        seen = await _traverse(store, 2, sort_by="value")

        assert [row["id"] for row in seen] == [
            make_uuid(n) for n in (2, 5, 4, 1, 3, 6)
        ]

    async def test_no_skip_or_duplicate_under_inserts(self, kpi_store: FakeFilterFunction) -> None:
        inserted: List[int] = []

        def insert_rows(store: FakeFilterFunction) -> None:
            # One row behind every position, one ahead of every position
            n = 100 + len(inserted)
            store.rows.append(make_kpi_row(n, date(2023, 12, 31)))
            store.rows.append(make_kpi_row(n + 50, date(2024, 2, 1)))
            inserted.append(n)

        seen = await _traverse(kpi_store, 3, between_pages=insert_rows)
        ids = [row["id"] for row in seen]

        assert len(set(ids)) == len(ids)
        assert set(make_uuid(n) for n in range(1, 11)) <= set(ids)
        for n in inserted:
            assert make_uuid(n) not in ids
            assert make_uuid(n + 50) in ids

    async def test_offset_mode_pages(self, kpi_store: FakeFilterFunction) -> None:
        pages = []
        for page in range(4):
            result = await fetch_kpi_values(
                kpi_store, QueryFilters(), PaginationOptions(limit=3, page=page)
            )
            pages.append([row["id"] for row in result.rows])

        assert pages == [
            [make_uuid(1), make_uuid(2), make_uuid(3)],
            [make_uuid(4), make_uuid(5), make_uuid(6)],
            [make_uuid(7), make_uuid(8), make_uuid(9)],
            [make_uuid(10)],
        ]


# =============================================================================
# Test Class: TestTotals
# =============================================================================

class TestTotals:

    async def test_include_total_runs_count(self, mock_conn: AsyncMock, school_id: str) -> None:
        mock_conn.fetchval.return_value = 42
        result = await fetch_aggregates(
            mock_conn,
            QueryFilters(schoolId=school_id),
            PaginationOptions(includeTotal=True),
        )

        assert result.pageInfo.total == 42
        mock_conn.fetchval.assert_awaited_once()
        sql, *params = mock_conn.fetchval.call_args.args
        assert "count(*)" in sql
        assert params == [school_id, None, None]

    async def test_total_omitted_by_default(self, mock_conn: AsyncMock) -> None:
        result = await fetch_aggregates(mock_conn, QueryFilters())
        assert result.pageInfo.total is None
        mock_conn.fetchval.assert_not_awaited()


# =============================================================================
# Test Class: TestErrorPropagation
# =============================================================================

class TestErrorPropagation:

    @pytest.mark.parametrize(
        "error",
        [OSError("connection refused"), asyncio.TimeoutError()],
    )
    async def test_driver_error_becomes_data_access_error(
        self, mock_conn: AsyncMock, error: Exception
    ) -> None:
        mock_conn.fetch.side_effect = error

        with pytest.raises(DataAccessError) as exc_info:
            await fetch_comparisons(mock_conn, QueryFilters())

        assert exc_info.value.status_code == 500
        assert exc_info.value.__cause__ is error

    async def test_count_failure_becomes_data_access_error(self, mock_conn: AsyncMock) -> None:
        mock_conn.fetchval.side_effect = OSError("connection reset")

        with pytest.raises(DataAccessError):
            await fetch_kpi_values(mock_conn, QueryFilters(), PaginationOptions(includeTotal=True))

    async def test_invalid_sort_raised_before_execution(self, mock_conn: AsyncMock) -> None:
        with pytest.raises(InvalidSortField):
            await fetch_aggregates(mock_conn, QueryFilters(), PaginationOptions(sortBy="rank"))
        mock_conn.fetch.assert_not_awaited()

    async def test_execute_page_passes_bound_params(self, mock_conn: AsyncMock, kpi_id: str) -> None:
        built = build_page_query(EntityKind.KPI_VALUE, QueryFilters(kpiId=kpi_id))
        await execute_page(mock_conn, built)

        mock_conn.fetch.assert_awaited_once_with(built.sql, *built.params)


# =============================================================================
# Test Class: TestEntityEntryPoints
# =============================================================================

class TestEntityEntryPoints:

    @pytest.mark.parametrize(
        "fetcher, function_name",
        [
            (fetch_kpi_values, "public.filter_kpi_values("),
            (fetch_aggregates, "public.filter_school_aggregates("),
            (fetch_comparisons, "public.filter_school_comparison("),
        ],
    )
    async def test_fetcher_targets_filter_function(
        self, mock_conn: AsyncMock, fetcher, function_name: str
    ) -> None:
        await fetcher(mock_conn, QueryFilters())
        sql = mock_conn.fetch.call_args.args[0]
        assert function_name in sql
