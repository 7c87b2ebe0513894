"""
Validation of untrusted filter and pagination input.

Both validators are permissive but safe: anything malformed or unrecognized is
dropped silently and never raises. Callers pass the raw query-string mapping
straight in and get back only the subset that is safe to bind.

The one hard failure in the request path, an unknown sort column, is raised
later by the query assembler, because the same sortBy token is meaningful only
once the entity kind is known.
"""

import math
import re
from datetime import date
from typing import Any, Dict, Mapping, Optional

from drilldown.models.enums import SortDirection
from drilldown.models.schemas import PaginationOptions, QueryFilters


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_LIMIT: int = 50
MAX_LIMIT: int = 200

# OFFSET is bound as a PostgreSQL bigint
PG_BIGINT_MAX: int = 2**63 - 1
MAX_PAGE: int = PG_BIGINT_MAX // MAX_LIMIT

UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)
DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
METRIC_KEY_RE = re.compile(r"[a-z0-9_]{1,100}")
SORT_BY_RE = re.compile(r"[a-z_]{1,50}")
INTEGER_RE = re.compile(r"\s*[+-]?[0-9]+\s*")

UUID_FILTER_KEYS = ("kpiId", "schoolId", "sellerId")
DATE_FILTER_KEYS = ("periodStart", "periodEnd", "dateFrom", "dateTo")

_TRUTHY = frozenset({"true", "1", "yes"})


# =============================================================================
# SHAPE CHECKS
# =============================================================================

def is_uuid(value: Any) -> bool:
    """True for a canonical 8-4-4-4-12 hex UUID string (either case)."""
    return isinstance(value, str) and UUID_RE.fullmatch(value) is not None


def is_date_string(value: Any) -> bool:
    """YYYY-MM-DD that is also a real calendar date (2024-02-30 is rejected)."""
    if not isinstance(value, str) or DATE_RE.fullmatch(value) is None:
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_metric_key(value: Any) -> bool:
    """True for 1-100 characters of lowercase letters, digits and underscores."""
    return isinstance(value, str) and METRIC_KEY_RE.fullmatch(value) is not None


def _coerce_number(value: Any) -> Optional[float]:
    """
    Coerce a query-string value to a finite number.

    Booleans are rejected even though Python treats them as ints.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _coerce_whole_number(value: Any) -> Optional[int]:
    """
    Coerce a query-string value to an int.

    Integer literals are parsed exactly; anything else goes through
    _coerce_number and must be a whole float ("25.0", "1e3").
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and INTEGER_RE.fullmatch(value):
        try:
            return int(value)
        except ValueError:
            # Beyond the interpreter's int-from-string digit limit
            return None
    number = _coerce_number(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def normalize_direction(value: Any) -> SortDirection:
    """Anything other than a case-insensitive "desc" means ASC."""
    if isinstance(value, str) and value.strip().upper() == SortDirection.DESC.value:
        return SortDirection.DESC
    return SortDirection.ASC


def resolve_limit(limit: Optional[int]) -> int:
    """
    Effective page size: DEFAULT_LIMIT when absent or zero, otherwise clamped
    to [1, MAX_LIMIT].
    """
    if not limit:
        return DEFAULT_LIMIT
    return min(max(1, int(limit)), MAX_LIMIT)


# =============================================================================
# VALIDATORS
# =============================================================================

def validate_filters(raw: Mapping[str, Any]) -> QueryFilters:
    """
    Parse an untrusted mapping into QueryFilters.

    Identifier filters must be UUID shaped, date filters must be real
    YYYY-MM-DD dates, metricKey must match [a-z0-9_]{1,100}. Failing values and
    unknown keys are dropped.

    Example:
        >>> validate_filters({"kpiId": "not-a-uuid", "dateFrom": "2024-01-01"}).applied()
        {'dateFrom': '2024-01-01'}
    """
    accepted: Dict[str, str] = {}

    for key in UUID_FILTER_KEYS:
        value = raw.get(key)
        if is_uuid(value):
            accepted[key] = value

    metric_key = raw.get("metricKey")
    if is_metric_key(metric_key):
        accepted["metricKey"] = metric_key

    for key in DATE_FILTER_KEYS:
        value = raw.get(key)
        if is_date_string(value):
            accepted[key] = value

    return QueryFilters(**accepted)


def validate_pagination(raw: Mapping[str, Any]) -> PaginationOptions:
    """
    Parse untrusted pagination controls into PaginationOptions.

    - limit: kept when it is a whole number > 0 (clamping happens in resolve_limit)
    - page: kept when it is a whole number in [0, MAX_PAGE], so page * limit
      always fits the bigint OFFSET
    - cursor: kept when it is a non-empty string; content is checked by the cursor codec
    - sortDirection: normalized to ASC or DESC
    - sortBy: kept when it matches [a-z_]{1,50}; whitelist check is deferred
    - includeTotal: true for "true", "1" or "yes"
    """
    options: Dict[str, Any] = {}

    limit = _coerce_whole_number(raw.get("limit"))
    if limit is not None and limit > 0:
        options["limit"] = limit

    page = _coerce_whole_number(raw.get("page"))
    if page is not None and 0 <= page <= MAX_PAGE:
        options["page"] = page

    cursor = raw.get("cursor")
    if isinstance(cursor, str) and len(cursor) > 0:
        options["cursor"] = cursor

    if isinstance(raw.get("sortDirection"), str):
        options["sortDirection"] = normalize_direction(raw["sortDirection"])

    sort_by = raw.get("sortBy")
    if isinstance(sort_by, str) and SORT_BY_RE.fullmatch(sort_by):
        options["sortBy"] = sort_by

    include_total = raw.get("includeTotal")
    if include_total is True or (
        isinstance(include_total, str) and include_total.strip().lower() in _TRUTHY
    ):
        options["includeTotal"] = True

    return PaginationOptions(**options)
