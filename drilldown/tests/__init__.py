'''
Drilldown Query Service Test Suite

Test Modules:
-------------
- test_cursor.py: Cursor codec
  - Round-trip for arbitrary (id, tiebreak) pairs
  - Non-JSON, truncated and shape-mismatched tokens decode to None

- test_validation.py: Filter and pagination validators
  - Malformed values and unknown keys are dropped
  - Limit clamping and default

- test_query_builder.py: Generic query assembler
  - Sort whitelist enforcement per entity
  - Filter argument order and NULL binding
  - Keyset predicate, LIMIT limit + 1, OFFSET, cursor-over-page precedence

- test_database.py: Pool lifecycle and per-request connection dependency

- test_pagination.py: Pagination executor
  - hasNextPage accuracy and nextCursor invariants
  - Sequential cursor traversal visits each row once, also under inserts
  - DataAccessError propagation

- test_query_api.py: HTTP surface
  - GET /api/query status mapping and response shape
  - GET /api/query/entities

Running Tests:
--------------
    pip install -e ".[test]"
    pytest drilldown/tests/ -v
'''

__all__ = []
