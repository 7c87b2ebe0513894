"""
Error taxonomy for the query engine.

Two failures are surfaced to callers:

- InvalidSortField: the caller asked to sort by a column outside the entity's
  whitelist. A contract violation (programming error or tampering), mapped to
  HTTP 400 and never retried.
- DataAccessError: executing the assembled statement failed (connectivity,
  syntax, constraint, timeout). Mapped to HTTP 500. The engine does not retry:
  a cursor is only meaningful if the page it describes reached the client.

Malformed filter values, pagination values and cursors are NOT errors; the
validators and the cursor codec normalize them by omission.
"""

from typing import Iterable, List, Optional


class QueryEngineError(Exception):
    """
    Base class for query engine failures.

    Attributes:
        status_code: HTTP status the API layer should answer with.
        detail: Human-readable error message.
    """

    status_code: int = 500

    def __init__(self, detail: str, status_code: Optional[int] = None) -> None:
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        super().__init__(detail)


class InvalidSortField(QueryEngineError):
    """Raised when sortBy is not in the entity's sort whitelist."""

    status_code = 400

    def __init__(self, field: str, allowed: Iterable[str]) -> None:
        self.field = field
        self.allowed: List[str] = sorted(allowed)
        super().__init__(
            f'Invalid sort field "{field}". Allowed: {", ".join(self.allowed)}'
        )


class DataAccessError(QueryEngineError):
    """Raised when the underlying query execution fails; chained to the driver error."""

    status_code = 500
