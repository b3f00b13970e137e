from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from adapters.db import AdapterRegistry
from gateway.descriptor import build_descriptor
from gateway.executor import QueryExecutor
from gateway.introspector import SchemaIntrospector
from gateway.types import FilterRule

logger = logging.getLogger(__name__)


@dataclass
class QueryService:
    """
    Application-level service behind the /api/db routes.

    Responsibilities:
        - Turn raw request fields into a validated ConnectionDescriptor.
        - Dispatch to the executor (ad hoc / table queries) or the
          introspector (catalog lookups).
        - Shape results into the JSON payloads the dashboard expects.
    """

    executor: QueryExecutor
    introspector: SchemaIntrospector

    @classmethod
    def from_registry(cls, registry: AdapterRegistry, timeout: float) -> "QueryService":
        return cls(
            executor=QueryExecutor(registry, timeout=timeout),
            introspector=SchemaIntrospector(registry, timeout=timeout),
        )

    async def query_sql(
        self, fields: Dict[str, Any], sql: Optional[str], limit: Optional[Any]
    ) -> Dict[str, Any]:
        descriptor = build_descriptor(fields)
        result = await self.executor.run_sql(descriptor, sql or "", limit)
        logger.debug(
            "Ad hoc query finished",
            extra={"target": descriptor.redacted(), "row_count": len(result.rows)},
        )
        return result.to_payload()

    async def query_table(
        self,
        fields: Dict[str, Any],
        columns: Optional[Sequence[str]],
        filters: Sequence[FilterRule],
        limit: Optional[Any],
    ) -> Dict[str, Any]:
        descriptor = build_descriptor(fields)
        result = await self.executor.run_table_query(
            descriptor, columns=columns, filters=filters, limit=limit
        )
        return result.to_payload()

    async def list_databases_or_tables(self, fields: Dict[str, Any]) -> Dict[str, List[str]]:
        descriptor = build_descriptor(fields)
        if not descriptor.database:
            return {"databases": await self.introspector.list_databases(descriptor)}
        return {"tables": await self.introspector.list_tables(descriptor)}

    async def list_columns(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        descriptor = build_descriptor(fields)
        columns = await self.introspector.list_columns(descriptor)
        return {"columns": [c.to_payload() for c in columns]}
