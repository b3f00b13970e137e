from decimal import Decimal

from gateway.normalizer import normalize
from gateway.types import QueryResult, RawResult


def test_normalize_keeps_rows_and_columns():
    raw = RawResult(rows=[{"id": 1, "total": Decimal("9.50")}], columns=["id", "total"])
    result = normalize(raw)
    assert result == QueryResult(
        rows=[{"id": 1, "total": Decimal("9.50")}], columns=["id", "total"]
    )


def test_normalize_zero_rows_still_reports_columns():
    result = normalize(RawResult(rows=[], columns=["id", "name"]))
    assert result.rows == []
    assert result.columns == ["id", "name"]
    assert result.to_payload() == {"rows": [], "columns": ["id", "name"]}


def test_normalize_without_description_omits_columns():
    result = normalize(RawResult(rows=[], columns=[]))
    assert result.columns is None
    assert result.to_payload() == {"rows": []}


def test_column_count_matches_row_keys():
    rows = [
        {"id": 1, "name": "a", "created_at": "2024-05-01"},
        {"id": 2, "name": None, "created_at": "2024-05-02"},
    ]
    result = normalize(RawResult(rows=rows, columns=["id", "name", "created_at"]))

    for row in result.rows:
        assert len(result.columns) == len(set(row))
        assert set(result.columns) == set(row)
