"""
Request-path services for the drilldown query engine.

- validation: validate_filters / validate_pagination for untrusted input
- cursor: opaque cursor encode/decode
- pagination: executor and per-entity entry points (import from
  drilldown.services.pagination; it depends on drilldown.sql, which in turn
  depends on the two modules above)
"""

from drilldown.services.cursor import (
    Cursor,
    MAX_CURSOR_LENGTH,
    decode_cursor,
    encode_cursor,
)
from drilldown.services.validation import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    normalize_direction,
    resolve_limit,
    validate_filters,
    validate_pagination,
)

__all__ = [
    # Cursor codec
    'Cursor',
    'MAX_CURSOR_LENGTH',
    'decode_cursor',
    'encode_cursor',
    # Validation
    'DEFAULT_LIMIT',
    'MAX_LIMIT',
    'normalize_direction',
    'resolve_limit',
    'validate_filters',
    'validate_pagination',
]
