"""
Package initialization file for drilldown models.

Re-exports all Pydantic schemas and enumerations so other modules can write:

    from drilldown.models import EntityKind, QueryFilters, PaginationOptions
"""

# =============================================================================
# Enums
# =============================================================================

from drilldown.models.enums import (
    EntityKind,
    SortDirection,
    SqlType,
)


# =============================================================================
# Schemas
# =============================================================================

from drilldown.models.schemas import (
    # Validated input
    QueryFilters,
    PaginationOptions,
    # Page output
    PageInfo,
    QueryBuilderResult,
    # HTTP envelopes
    QueryResponse,
    EntityDescription,
    EntityListResponse,
)


__all__ = [
    # Enums
    'EntityKind',
    'SortDirection',
    'SqlType',
    # Schemas
    'QueryFilters',
    'PaginationOptions',
    'PageInfo',
    'QueryBuilderResult',
    'QueryResponse',
    'EntityDescription',
    'EntityListResponse',
]
