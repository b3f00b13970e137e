from __future__ import annotations

from gateway.types import QueryResult, RawResult


def normalize(raw: RawResult) -> QueryResult:
    """
    Shape adapter output into the uniform QueryResult.

    columns is None only when the cursor described zero columns; an empty
    row list keeps its column names. Row values are not converted.
    """
    columns = list(raw.columns) if raw.columns else None
    return QueryResult(rows=list(raw.rows), columns=columns)
