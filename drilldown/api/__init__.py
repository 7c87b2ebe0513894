"""
API package for the drilldown query service.

Exposes FastAPI routers:
- query_router: GET /api/query and GET /api/query/entities

Usage in main.py:
    from drilldown.api import query_router

    app.include_router(query_router, tags=["query"])
"""

from drilldown.api.query import router as query_router

__all__ = [
    "query_router",
]
