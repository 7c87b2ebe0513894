"""
FastAPI router module for filtered drilldown queries.

Implements:
- GET /api/query: one page of kpi_values, aggregates or comparisons
- GET /api/query/entities: sortable columns and filter keys per entity

Query string contract:
    ?entity=kpi_values|aggregates|comparisons
    &kpiId=uuid&schoolId=uuid&sellerId=uuid&metricKey=key
    &periodStart=YYYY-MM-DD&periodEnd=YYYY-MM-DD&dateFrom=YYYY-MM-DD&dateTo=YYYY-MM-DD
    &sortBy=column&sortDirection=ASC|DESC
    &cursor=opaque&page=0&limit=50&includeTotal=true

Every parameter goes through validate_filters() / validate_pagination() before
it reaches the query layer. Invalid values are dropped; an unknown sortBy for
the chosen entity is a 400.

Response shape:
    { rows, pageInfo: { hasNextPage, nextCursor, total? }, entity, appliedFilters }

Role-based access to this route is enforced upstream, not here.
"""

import logging

from fastapi import APIRouter, HTTPException, Request

from drilldown.core.dependencies import DBSessionDep
from drilldown.core.exceptions import DataAccessError, InvalidSortField
from drilldown.models.enums import EntityKind
from drilldown.models.schemas import (
    EntityDescription,
    EntityListResponse,
    QueryResponse,
)
from drilldown.services.pagination import run_paginated_query
from drilldown.services.validation import validate_filters, validate_pagination
from drilldown.sql.whitelists import ENTITY_METADATA


logger = logging.getLogger(__name__)


# =============================================================================
# Router Definition
# =============================================================================

router = APIRouter(prefix="/api/query")

ALLOWED_ENTITIES = ", ".join(kind.value for kind in EntityKind)


# =============================================================================
# Endpoint Implementations
# =============================================================================


@router.get("", response_model=QueryResponse)
async def query_entity(request: Request, db: DBSessionDep) -> QueryResponse:
    """
    Fetch one filtered, sorted page of an entity kind.

    The raw query string is read as a whole (rather than as typed Query
    parameters) so that malformed values are dropped by the validators instead
    of being rejected with a 422.

    Returns:
        QueryResponse with rows, pageInfo, entity and appliedFilters

    Raises:
        HTTPException(400): Unknown entity or sortBy outside the entity whitelist
        HTTPException(500): Database failure
    """
    raw = request.query_params
    entity_token = raw.get("entity")

    try:
        entity = EntityKind(entity_token)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown entity. Allowed: {ALLOWED_ENTITIES}",
        )

    filters = validate_filters(raw)
    pagination = validate_pagination(raw)

    try:
        result = await run_paginated_query(db, entity, filters, pagination)
    except InvalidSortField as e:
        logger.warning(f"Rejected {entity.value} query: {e.detail}")
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    except DataAccessError as e:
        # Already logged with traceback by the executor
        raise HTTPException(
            status_code=e.status_code,
            detail=f"Query failed for {entity.value}",
        )

    return QueryResponse(
        rows=result.rows,
        pageInfo=result.pageInfo,
        entity=entity,
        appliedFilters=filters.applied(),
    )


@router.get("/entities", response_model=EntityListResponse)
async def list_entities() -> EntityListResponse:
    """
    Describe what each entity kind can be sorted and filtered by.

    Derived from the same whitelists the assembler enforces, so clients can
    build sort menus without hard-coding column names.
    """
    entities = [
        EntityDescription(
            entity=metadata.kind,
            sortFields=sorted(metadata.sort_fields),
            defaultSort=metadata.default_sort,
            filterKeys=metadata.filter_keys,
        )
        for metadata in ENTITY_METADATA.values()
    ]
    return EntityListResponse(entities=entities)
