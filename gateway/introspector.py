from __future__ import annotations

from typing import List

from adapters.db import AdapterRegistry
from gateway.deadline import run_with_deadline
from gateway.descriptor import ConnectionDescriptor
from gateway.types import ColumnDescriptor


class SchemaIntrospector:
    """
    Catalog lookups (databases, tables, columns) for a descriptor.

    Statements are fixed per engine and never pass through the guard or the
    limit rewriter. Each call opens and closes its own connection.
    """

    def __init__(self, registry: AdapterRegistry, timeout: float = 30.0) -> None:
        self.registry = registry
        self.timeout = timeout

    async def list_databases(self, descriptor: ConnectionDescriptor) -> List[str]:
        descriptor.require("host", "user")
        adapter = self.registry.for_engine(descriptor.engine)

        async def op() -> List[str]:
            async with adapter.session(descriptor) as handle:
                return await adapter.list_databases(handle)

        return await run_with_deadline(
            op, timeout=self.timeout, engine=descriptor.engine.value, operation="list_databases"
        )

    async def list_tables(self, descriptor: ConnectionDescriptor) -> List[str]:
        descriptor.require("host", "user", "database")
        adapter = self.registry.for_engine(descriptor.engine)

        async def op() -> List[str]:
            async with adapter.session(descriptor) as handle:
                return await adapter.list_tables(handle, descriptor.database)

        return await run_with_deadline(
            op, timeout=self.timeout, engine=descriptor.engine.value, operation="list_tables"
        )

    async def list_columns(self, descriptor: ConnectionDescriptor) -> List[ColumnDescriptor]:
        descriptor.require("host", "user", "database", "table")
        adapter = self.registry.for_engine(descriptor.engine)

        async def op() -> List[ColumnDescriptor]:
            async with adapter.session(descriptor) as handle:
                return await adapter.list_columns(handle, descriptor.table)

        return await run_with_deadline(
            op, timeout=self.timeout, engine=descriptor.engine.value, operation="list_columns"
        )
