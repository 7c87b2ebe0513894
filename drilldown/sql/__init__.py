"""
SQL Query Module for the drilldown service.

Provides:
- Identifier whitelists and per-entity metadata (whitelists)
- The generic parameterized page-query assembler (query_builder)

Example usage:
    from drilldown.sql import build_page_query
    from drilldown.models import EntityKind

    built = build_page_query(EntityKind.KPI_VALUE, filters, pagination)
    rows = await conn.fetch(built.sql, *built.params)
"""

# =============================================================================
# WHITELISTS - The only source of SQL identifiers
# =============================================================================

from drilldown.sql.whitelists import (
    EntityMetadata,
    FilterParam,
    SortColumn,
    ENTITY_METADATA,
    KPI_VALUE_SORT_FIELDS,
    AGGREGATE_SORT_FIELDS,
    COMPARISON_SORT_FIELDS,
    ALLOWED_FILTER_KEYS,
    get_entity_metadata,
)

# =============================================================================
# QUERY ASSEMBLER
# =============================================================================

from drilldown.sql.query_builder import (
    BuiltQuery,
    KeysetPage,
    OffsetPage,
    PageMode,
    build_page_query,
    resolve_page_mode,
    resolve_sort_column,
)

__all__ = [
    # Whitelists
    'EntityMetadata',
    'FilterParam',
    'SortColumn',
    'ENTITY_METADATA',
    'KPI_VALUE_SORT_FIELDS',
    'AGGREGATE_SORT_FIELDS',
    'COMPARISON_SORT_FIELDS',
    'ALLOWED_FILTER_KEYS',
    'get_entity_metadata',
    # Assembler
    'BuiltQuery',
    'KeysetPage',
    'OffsetPage',
    'PageMode',
    'build_page_query',
    'resolve_page_mode',
    'resolve_sort_column',
]
