"""
Pydantic request/response models for the drilldown query service.

Field names are camelCase because they are the wire contract: they match the
query-string keys clients send and the JSON keys they read back.

- QueryFilters: validated filter values (every populated field passed a shape check)
- PaginationOptions: validated, clamped pagination controls
- PageInfo / QueryBuilderResult: one page of rows plus continuation metadata
- QueryResponse: HTTP envelope for GET /api/query
- EntityDescription: HTTP model for GET /api/query/entities

All models use Pydantic v2 syntax.
"""

from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, ConfigDict

from drilldown.models.enums import EntityKind, SortDirection


RowT = TypeVar("RowT")


# =============================================================================
# Validated Input Models
# =============================================================================


class QueryFilters(BaseModel):
    """
    Typed filter set produced by validate_filters().

    Absent fields mean "no constraint on this dimension"; the assembler binds
    them as SQL NULL and the filter function treats NULL as unconstrained.
    """

    model_config = ConfigDict(frozen=True)

    kpiId: Optional[str] = Field(default=None, description="KPI definition UUID")
    schoolId: Optional[str] = Field(default=None, description="School UUID")
    sellerId: Optional[str] = Field(default=None, description="Seller UUID")
    metricKey: Optional[str] = Field(
        default=None,
        description="Metric key, lowercase letters, digits and underscores",
    )
    periodStart: Optional[str] = Field(default=None, description="YYYY-MM-DD")
    periodEnd: Optional[str] = Field(default=None, description="YYYY-MM-DD")
    dateFrom: Optional[str] = Field(default=None, description="YYYY-MM-DD")
    dateTo: Optional[str] = Field(default=None, description="YYYY-MM-DD")

    def applied(self) -> Dict[str, str]:
        """Return only the populated filters, keyed by their wire names."""
        return self.model_dump(exclude_none=True)


class PaginationOptions(BaseModel):
    """
    Typed pagination controls produced by validate_pagination().

    `cursor` (keyset mode) and `page` (offset mode) are alternative strategies;
    when both are present the cursor wins. `sortBy` has only passed a lexical
    check here; the per-entity whitelist is enforced by the query assembler.
    """

    model_config = ConfigDict(frozen=True)

    page: Optional[int] = Field(default=None, ge=0, description="0-indexed page (offset mode)")
    limit: Optional[int] = Field(default=None, description="Rows per page before clamping")
    cursor: Optional[str] = Field(default=None, description="Opaque cursor (keyset mode)")
    sortBy: Optional[str] = Field(default=None, description="Requested sort token")
    sortDirection: SortDirection = Field(default=SortDirection.ASC)
    includeTotal: bool = Field(
        default=False,
        description="Also run a COUNT over the filtered set and report it as pageInfo.total",
    )


# =============================================================================
# Page Output Models
# =============================================================================


class PageInfo(BaseModel):
    """
    Continuation metadata for one page.

    Invariant: nextCursor is non-null iff hasNextPage is true and at least one
    row was returned.
    """

    hasNextPage: bool = Field(..., description="True when more rows follow this page")
    nextCursor: Optional[str] = Field(
        default=None,
        description="Opaque cursor for the next page; pass back verbatim",
    )
    total: Optional[int] = Field(
        default=None,
        ge=0,
        description="Size of the filtered set, only when includeTotal was requested",
    )


class QueryBuilderResult(BaseModel, Generic[RowT]):
    """One page of rows of a single entity kind. Built fresh per request."""

    rows: List[RowT] = Field(default_factory=list)
    pageInfo: PageInfo


# =============================================================================
# HTTP Envelope Models
# =============================================================================


class QueryResponse(BaseModel):
    """Response model for GET /api/query."""

    rows: List[Dict[str, Any]] = Field(default_factory=list, description="Page rows")
    pageInfo: PageInfo
    entity: EntityKind = Field(..., description="Entity kind that was queried")
    appliedFilters: Dict[str, str] = Field(
        default_factory=dict,
        description="Filters that survived validation and were bound to the query",
    )


class EntityDescription(BaseModel):
    """Sort/filter capabilities of one entity kind."""

    entity: EntityKind
    sortFields: List[str] = Field(..., description="Accepted sortBy values")
    defaultSort: str = Field(..., description="Sort column used when sortBy is omitted")
    filterKeys: List[str] = Field(..., description="Filters bound to this entity's query")


class EntityListResponse(BaseModel):
    """Response model for GET /api/query/entities."""

    entities: List[EntityDescription] = Field(default_factory=list)
