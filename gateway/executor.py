from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional, Sequence

from adapters.db import AdapterRegistry
from gateway.deadline import run_with_deadline
from gateway.descriptor import MISSING_FIELDS_MESSAGE, ConnectionDescriptor
from gateway.errors import MissingFields
from gateway.guard import guard
from gateway.normalizer import normalize
from gateway.rewriter import rewrite
from gateway.table_query import Clock, build_table_query
from gateway.types import FilterRule, QueryResult

log = logging.getLogger(__name__)


class QueryExecutor:
    """
    Ad hoc SQL: guard → limit rewrite → adapter session → normalize.

    Validation happens before any adapter is touched; the connection lives
    only for the duration of one call.
    """

    name = "executor"

    def __init__(
        self,
        registry: AdapterRegistry,
        timeout: float = 30.0,
        clock: Clock = datetime.now,
    ) -> None:
        self.registry = registry
        self.timeout = timeout
        self.clock = clock

    async def run_sql(
        self,
        descriptor: ConnectionDescriptor,
        sql: str,
        limit: Optional[Any] = None,
    ) -> QueryResult:
        descriptor.require("host", "user", "database")
        if not sql:
            raise MissingFields(MISSING_FIELDS_MESSAGE)
        statement = guard(sql)
        final_sql = rewrite(statement, limit)
        adapter = self.registry.for_engine(descriptor.engine)

        log.debug(
            "Running ad hoc query",
            extra={
                "target": descriptor.redacted(),
                "rewritten": final_sql != statement,
                "sql_length": len(final_sql),
            },
        )

        async def op() -> QueryResult:
            async with adapter.session(descriptor) as handle:
                raw = await adapter.execute(handle, final_sql)
            return normalize(raw)

        return await run_with_deadline(
            op, timeout=self.timeout, engine=descriptor.engine.value, operation="query_sql"
        )

    async def run_table_query(
        self,
        descriptor: ConnectionDescriptor,
        columns: Optional[Sequence[str]] = None,
        filters: Optional[Sequence[FilterRule]] = None,
        limit: Optional[Any] = None,
    ) -> QueryResult:
        descriptor.require("host", "user", "database", "table")
        adapter = self.registry.for_engine(descriptor.engine)
        sql, params = build_table_query(
            adapter.quote_identifier,
            descriptor.table,
            columns=columns,
            filters=filters,
            limit=limit,
            now=self.clock,
        )

        async def op() -> QueryResult:
            async with adapter.session(descriptor) as handle:
                raw = await adapter.execute(handle, sql, params)
            return normalize(raw)

        return await run_with_deadline(
            op, timeout=self.timeout, engine=descriptor.engine.value, operation="table_query"
        )
