from __future__ import annotations

import math
from typing import Any, Optional

from gateway.metrics import limit_rewrites_total

MIN_LIMIT = 1
MAX_LIMIT = 1_000_000
FALLBACK_LIMIT = 50_000

UNION_ALIAS = "union_result"


def clamp_limit(value: Any) -> int:
    """
    Resolve a caller-supplied row cap into [MIN_LIMIT, MAX_LIMIT].

    Finite numbers are truncated toward zero and clamped. Anything else
    (NaN, infinities, strings, booleans, None) resolves to FALLBACK_LIMIT.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return FALLBACK_LIMIT
    if isinstance(value, float) and not math.isfinite(value):
        return FALLBACK_LIMIT
    return max(MIN_LIMIT, min(MAX_LIMIT, math.trunc(value)))


def rewrite(sql: str, limit: Optional[Any] = None) -> str:
    """
    Bound the number of rows a read-only statement can return.

    Detection is substring based on the uppercased text: a LIMIT anywhere
    (subquery, CTE, identifier, literal) means "already bounded", and a
    UNION anywhere forces the subquery wrapper.
    """
    body = (sql or "").strip()
    upper = body.upper()

    if "LIMIT" in upper:
        limit_rewrites_total.labels(mode="existing_limit").inc()
        return body

    if limit is None:
        limit_rewrites_total.labels(mode="unbounded").inc()
        return body

    n = clamp_limit(limit)
    if "UNION" in upper:
        # A trailing LIMIT on a UNION only binds the last branch.
        limit_rewrites_total.labels(mode="union_wrapped").inc()
        return f"SELECT * FROM ({body}) AS {UNION_ALIAS} LIMIT {n}"

    limit_rewrites_total.labels(mode="appended").inc()
    return f"{body} LIMIT {n}"
