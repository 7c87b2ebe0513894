"""
Enumeration definitions for the drilldown query service.

All enums inherit from both `str` and `Enum` to ensure JSON serialization
compatibility with Pydantic models and FastAPI query parameters.
"""

from enum import Enum


class EntityKind(str, Enum):
    """
    Result sets reachable through the drilldown query endpoint.

    The value is the token clients pass as the `entity` query parameter.
    Each kind selects its own sort whitelist, filter function and row alias
    (see drilldown.sql.whitelists.ENTITY_METADATA).

    - KPI_VALUE: Computed KPI values per school and period
    - AGGREGATE: Per-school daily aggregate rows
    - COMPARISON: Cross-school ranking / variance rows per metric
    """
    KPI_VALUE = "kpi_values"
    AGGREGATE = "aggregates"
    COMPARISON = "comparisons"


class SortDirection(str, Enum):
    """Sort direction applied to both the sort column and the id tie-break."""
    ASC = "ASC"
    DESC = "DESC"


class SqlType(str, Enum):
    """
    PostgreSQL types used as explicit casts on bound parameters.

    Values are emitted verbatim after `::` in generated SQL, so the set is
    closed and never derived from client input.
    """
    UUID = "uuid"
    DATE = "date"
    TIMESTAMPTZ = "timestamptz"
    NUMERIC = "numeric"
    INT = "int"
    VARCHAR = "varchar"
