from __future__ import annotations

import logging

from gateway.errors import InvalidStatement
from gateway.metrics import guard_blocks_total, guard_checks_total

log = logging.getLogger(__name__)

INVALID_STATEMENT_MESSAGE = "Only SELECT and WITH statements are allowed"

_ALLOWED_PREFIXES = ("SELECT", "WITH")


def guard(sql: str) -> str:
    """
    Reject anything that does not start with SELECT or WITH.

    Purely lexical: the statement is not parsed, so a SELECT that calls a
    function with side effects passes. Returns the trimmed statement.
    """
    body = (sql or "").strip()
    if not body:
        guard_blocks_total.labels(reason="empty_sql").inc()
        guard_checks_total.labels(ok="false").inc()
        raise InvalidStatement(INVALID_STATEMENT_MESSAGE)

    if not body.upper().startswith(_ALLOWED_PREFIXES):
        guard_blocks_total.labels(reason="non_readonly").inc()
        guard_checks_total.labels(ok="false").inc()
        log.info(
            "Statement rejected by guard",
            extra={"leading_token": body.split(None, 1)[0][:32]},
        )
        raise InvalidStatement(INVALID_STATEMENT_MESSAGE)

    guard_checks_total.labels(ok="true").inc()
    return body
