"""
Identifier whitelists and per-entity query metadata.

SQL cannot bind column or function names as parameters, so every identifier
that appears in generated SQL comes from this module. Client-supplied sort
tokens are looked up in an entity's `sort_columns` mapping; a token that is not
a key of that mapping never reaches the query text.

Adding a sortable column means adding an entry here. Nothing else in the
codebase may widen the set.

Filter functions (external, SECURITY INVOKER so RLS applies):
    public.filter_kpi_values(kpi_id uuid, school_id uuid, period_start date, period_end date)
    public.filter_school_aggregates(school_id uuid, date_from date, date_to date)
    public.filter_school_comparison(metric_key varchar, school_id uuid, date_from date, date_to date)
Every parameter is nullable; NULL means "no filter on that dimension".
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

from drilldown.models.enums import EntityKind, SqlType


# =============================================================================
# METADATA TYPES
# =============================================================================


@dataclass(frozen=True)
class SortColumn:
    """
    A whitelisted sort column.

    Attributes:
        column: Column name on the filter function's row type.
        sql_type: Cast applied to the cursor tie-break parameter.
        null_sentinel: SQL literal substituted for NULL in ordering and keyset
            comparisons. Only set for nullable columns.
    """
    column: str
    sql_type: SqlType
    null_sentinel: Optional[str] = None

    def expression(self, alias: str) -> str:
        """Column reference used in ORDER BY and the keyset predicate."""
        ref = f"{alias}.{self.column}"
        if self.null_sentinel is None:
            return ref
        return f"COALESCE({ref}, '{self.null_sentinel}'::{self.sql_type.value})"


@dataclass(frozen=True)
class FilterParam:
    """One positional argument of a filter function."""
    field: str
    sql_type: SqlType


@dataclass(frozen=True)
class EntityMetadata:
    """
    Everything the generic query assembler needs to know about one entity kind.

    Attributes:
        kind: Entity kind this metadata describes.
        function_name: Schema-qualified filter function.
        alias: Row alias used in the generated statement.
        filter_params: Filter arguments in the function's positional order.
        sort_columns: Exhaustive mapping of accepted sortBy token to column.
        default_sort: Token used when the caller omits sortBy.
        id_column: Always-unique tie-break column.
    """
    kind: EntityKind
    function_name: str
    alias: str
    filter_params: Tuple[FilterParam, ...]
    sort_columns: Dict[str, SortColumn]
    default_sort: str
    id_column: str = "id"

    @property
    def sort_fields(self) -> FrozenSet[str]:
        """Accepted sortBy tokens for this entity."""
        return frozenset(self.sort_columns)

    @property
    def filter_keys(self) -> List[str]:
        """QueryFilters fields bound to the filter function, in argument order."""
        return [param.field for param in self.filter_params]


# =============================================================================
# ENTITY METADATA
# =============================================================================

KPI_VALUE_METADATA = EntityMetadata(
    kind=EntityKind.KPI_VALUE,
    function_name="public.filter_kpi_values",
    alias="kv",
    filter_params=(
        FilterParam("kpiId", SqlType.UUID),
        FilterParam("schoolId", SqlType.UUID),
        FilterParam("periodStart", SqlType.DATE),
        FilterParam("periodEnd", SqlType.DATE),
    ),
    sort_columns={
        "period_start": SortColumn("period_start", SqlType.DATE),
        "period_end": SortColumn("period_end", SqlType.DATE),
        "value": SortColumn("value", SqlType.NUMERIC),
        "computed_at": SortColumn("computed_at", SqlType.TIMESTAMPTZ),
        "created_at": SortColumn("created_at", SqlType.TIMESTAMPTZ),
    },
    default_sort="period_start",
)

AGGREGATE_METADATA = EntityMetadata(
    kind=EntityKind.AGGREGATE,
    function_name="public.filter_school_aggregates",
    alias="sa",
    filter_params=(
        FilterParam("schoolId", SqlType.UUID),
        FilterParam("dateFrom", SqlType.DATE),
        FilterParam("dateTo", SqlType.DATE),
    ),
    sort_columns={
        "date": SortColumn("date", SqlType.DATE),
        "computed_at": SortColumn("computed_at", SqlType.TIMESTAMPTZ),
    },
    default_sort="date",
)

COMPARISON_METADATA = EntityMetadata(
    kind=EntityKind.COMPARISON,
    function_name="public.filter_school_comparison",
    alias="sc",
    filter_params=(
        FilterParam("metricKey", SqlType.VARCHAR),
        FilterParam("schoolId", SqlType.UUID),
        FilterParam("dateFrom", SqlType.DATE),
        FilterParam("dateTo", SqlType.DATE),
    ),
    sort_columns={
        "date": SortColumn("date", SqlType.DATE),
        "metric_value": SortColumn("metric_value", SqlType.NUMERIC),
        "rank": SortColumn("rank", SqlType.INT),
        # Nullable column; -Infinity keeps the order total (numeric infinity needs PostgreSQL 14+)
        "variance_to_network": SortColumn(
            "variance_to_network", SqlType.NUMERIC, null_sentinel="-Infinity"
        ),
    },
    default_sort="rank",
)

ENTITY_METADATA: Dict[EntityKind, EntityMetadata] = {
    EntityKind.KPI_VALUE: KPI_VALUE_METADATA,
    EntityKind.AGGREGATE: AGGREGATE_METADATA,
    EntityKind.COMPARISON: COMPARISON_METADATA,
}


# =============================================================================
# WHITELISTS
# =============================================================================

KPI_VALUE_SORT_FIELDS: FrozenSet[str] = KPI_VALUE_METADATA.sort_fields
AGGREGATE_SORT_FIELDS: FrozenSet[str] = AGGREGATE_METADATA.sort_fields
COMPARISON_SORT_FIELDS: FrozenSet[str] = COMPARISON_METADATA.sort_fields

# Top-level filter keys accepted from the client
ALLOWED_FILTER_KEYS: FrozenSet[str] = frozenset({
    "kpiId",
    "schoolId",
    "sellerId",
    "metricKey",
    "periodStart",
    "periodEnd",
    "dateFrom",
    "dateTo",
})


def get_entity_metadata(kind: EntityKind) -> EntityMetadata:
    """Look up the metadata for an entity kind."""
    return ENTITY_METADATA[kind]
