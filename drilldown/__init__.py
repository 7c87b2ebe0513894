"""
Drilldown Query Service Package.

FastAPI service layer for filtered, paginated drilldown over time-series
business metrics (KPI values, school daily aggregates, cross-school comparisons).

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, dependencies and error types
    - models: Pydantic schemas and enums
    - services: Input validation, cursor codec and the pagination executor
    - sql: Identifier whitelists and the parameterized query assembler

Every client-supplied value reaches PostgreSQL as a bound $N parameter.
Column identifiers are taken exclusively from the per-entity whitelists in
drilldown.sql.whitelists.
"""

__version__ = "1.0.0"
