from __future__ import annotations

import calendar
import re
from datetime import datetime, timedelta
from typing import Any, Callable, List, Optional, Sequence, Tuple

from gateway.errors import ValidationError
from gateway.rewriter import clamp_limit
from gateway.types import FilterRule

# Row cap for structured table queries when the caller sends none
DEFAULT_TABLE_LIMIT = 500_000

# Both PyMySQL and psycopg use the "format" paramstyle
PLACEHOLDER = "%s"

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

Clock = Callable[[], datetime]
Condition = Tuple[str, List[Any]]


# -------------------------------
# Time helpers
# -------------------------------


def _start_of_day(d: datetime) -> datetime:
    return d.replace(hour=0, minute=0, second=0, microsecond=0)


def _end_of_day(d: datetime) -> datetime:
    return d.replace(hour=23, minute=59, second=59, microsecond=999_999)


def _shift_months(d: datetime, months: int) -> datetime:
    index = d.year * 12 + (d.month - 1) - months
    year, month0 = divmod(index, 12)
    day = min(d.day, calendar.monthrange(year, month0 + 1)[1])
    return d.replace(year=year, month=month0 + 1, day=day)


def _parse_datetime(value: Any) -> datetime:
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(f"Invalid date value: {value!r}") from None


def _parse_number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid numeric value: {value!r}") from None


def _positive_int(value: Any) -> Optional[int]:
    try:
        n = int(float(value))
    except (TypeError, ValueError):
        return None
    return n if n > 0 else None


def _has(value: Any) -> bool:
    return value is not None and value != ""


def _range(field: str, start: datetime, end: datetime, *, inclusive_end: bool = True) -> Condition:
    op = "<=" if inclusive_end else "<"
    return (
        f"{field} >= {PLACEHOLDER} AND {field} {op} {PLACEHOLDER}",
        [start, end],
    )


def _week_bounds(now: datetime, weeks_back: int) -> Tuple[datetime, datetime]:
    monday = _start_of_day(now - timedelta(days=now.weekday(), weeks=weeks_back))
    sunday = _end_of_day(monday + timedelta(days=6))
    return monday, sunday


# -------------------------------
# Filter translation
# -------------------------------


def _condition(field: str, rule: FilterRule, now: Clock) -> Optional[Condition]:
    """Translate one rule; None means the rule contributes nothing."""
    op, value = rule.op, rule.value

    if op == "equals":
        if not _has(value):
            return None
        if _DATE_ONLY_RE.match(str(value)):
            day = _parse_datetime(value)
            return _range(field, _start_of_day(day), _end_of_day(day))
        return f"{field} = {PLACEHOLDER}", [value]

    if op == "not_equals":
        return (f"{field} != {PLACEHOLDER}", [value]) if _has(value) else None

    like_patterns = {
        "contains": ("LIKE", "%{}%"),
        "not_contains": ("NOT LIKE", "%{}%"),
        "begins_with": ("LIKE", "{}%"),
        "ends_with": ("LIKE", "%{}"),
    }
    if op in like_patterns:
        if not _has(value):
            return None
        keyword, pattern = like_patterns[op]
        return f"{field} {keyword} {PLACEHOLDER}", [pattern.format(value)]

    if op in ("gt", "lt"):
        if not _has(value):
            return None
        sign = ">" if op == "gt" else "<"
        return f"{field} {sign} {PLACEHOLDER}", [_parse_number(value)]

    if op == "blank":
        return f"({field} IS NULL OR {field} = '')", []

    if op == "not_blank":
        return f"({field} IS NOT NULL AND {field} != '')", []

    if op == "today":
        start = _start_of_day(now())
        return _range(field, start, start + timedelta(days=1), inclusive_end=False)

    if op in ("before", "after"):
        if not _has(value):
            return None
        target = now() if str(value).lower() == "today" else _parse_datetime(value)
        sign = "<" if op == "before" else ">"
        return f"{field} {sign} {PLACEHOLDER}", [target]

    if op == "between":
        if not (_has(value) and _has(rule.value2)):
            return None
        start = _parse_datetime(value)
        end = _end_of_day(_parse_datetime(rule.value2))
        return _range(field, start, end)

    if op == "last_days":
        days = _positive_int(value)
        if days is None:
            return None
        end = _end_of_day(now())
        return _range(field, _start_of_day(end - timedelta(days=days)), end)

    if op == "last_months":
        months = _positive_int(value)
        if months is None:
            return None
        end = _end_of_day(now())
        return _range(field, _start_of_day(_shift_months(end, months)), end)

    if op == "last_week":
        return _range(field, *_week_bounds(now(), weeks_back=1))

    if op == "this_week":
        return _range(field, *_week_bounds(now(), weeks_back=0))

    return None


def _bind_safe(quote: Callable[[str], str]) -> Callable[[str], str]:
    """Quote an identifier and double any `%` so it survives %s-style binding."""
    return lambda name: quote(name).replace("%", "%%")


def build_where(
    filters: Sequence[FilterRule],
    quote: Callable[[str], str],
    now: Clock = datetime.now,
) -> Tuple[str, List[Any]]:
    quote = _bind_safe(quote)
    conditions: List[str] = []
    params: List[Any] = []
    for rule in filters or ():
        if not rule.field or not rule.op:
            continue
        cond = _condition(quote(rule.field), rule, now)
        if cond is None:
            continue
        sql, values = cond
        conditions.append(sql)
        params.extend(values)

    if not conditions:
        return "", []
    return "WHERE " + " AND ".join(conditions), params


def build_table_query(
    quote: Callable[[str], str],
    table: str,
    columns: Optional[Sequence[str]] = None,
    filters: Optional[Sequence[FilterRule]] = None,
    limit: Any = None,
    now: Clock = datetime.now,
) -> Tuple[str, List[Any]]:
    """
    Build a parameterized SELECT over one table.

    Identifiers go through `quote` (the adapter's dialect quoting) with `%`
    doubled for the driver's format paramstyle; every filter value and the
    row cap are bound parameters.
    """
    ident = _bind_safe(quote)
    cols = ", ".join(ident(c) for c in columns) if columns else "*"
    where, params = build_where(filters or [], quote, now)
    n = clamp_limit(DEFAULT_TABLE_LIMIT if limit is None else limit)

    parts = [f"SELECT {cols} FROM {ident(table)}"]
    if where:
        parts.append(where)
    parts.append(f"LIMIT {PLACEHOLDER}")
    return " ".join(parts), [*params, n]
