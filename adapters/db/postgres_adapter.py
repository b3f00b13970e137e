from __future__ import annotations

import logging
from typing import Any, List

import psycopg
from psycopg.rows import dict_row

from adapters.db.base import EngineAdapter, Params, driver_message
from gateway.descriptor import ConnectionDescriptor, Engine
from gateway.errors import EngineConnectionError, QueryError
from gateway.types import ColumnDescriptor, RawResult

log = logging.getLogger(__name__)

# Maintenance database used when the caller has not picked one yet
DEFAULT_DATABASE = "postgres"


class PostgresAdapter(EngineAdapter):
    name = "postgres"
    engine = Engine.POSTGRESQL
    dialect = "postgres"

    async def connect(self, descriptor: ConnectionDescriptor) -> Any:
        log.debug("Opening PostgreSQL connection to %s", descriptor.redacted())
        try:
            return await psycopg.AsyncConnection.connect(
                host=descriptor.host,
                port=descriptor.resolved_port,
                user=descriptor.user,
                password=descriptor.password,
                dbname=descriptor.database or DEFAULT_DATABASE,
                connect_timeout=self.timeout_seconds,
                # server-side backstop for the gateway deadline (milliseconds)
                options=f"-c statement_timeout={int(self.timeout * 1000)}",
                autocommit=True,
                row_factory=dict_row,
            )
        except psycopg.Error as exc:
            message = driver_message(exc)
            log.info(
                "PostgreSQL connection failed",
                extra={"target": descriptor.redacted(), "error": message},
            )
            raise EngineConnectionError(message) from exc

    async def execute(self, handle: Any, sql: str, params: Params = None) -> RawResult:
        log.debug("Executing PostgreSQL statement: %s", sql.strip().replace("\n", " ")[:200])
        try:
            async with handle.cursor() as cur:
                await cur.execute(sql, params)
                description = cur.description or ()
                columns = [d.name for d in description]
                rows = await cur.fetchall() if description else []
        except psycopg.Error as exc:
            raise QueryError(driver_message(exc)) from exc
        return RawResult(rows=list(rows), columns=columns)

    async def _close(self, handle: Any) -> None:
        await handle.close()

    async def list_databases(self, handle: Any) -> List[str]:
        raw = await self.execute(
            handle, "SELECT datname FROM pg_database WHERE datistemplate = false"
        )
        return [row["datname"] for row in raw.rows]

    async def list_tables(self, handle: Any, database: str) -> List[str]:
        raw = await self.execute(
            handle, "SELECT tablename FROM pg_tables WHERE schemaname = 'public'"
        )
        return [row["tablename"] for row in raw.rows]

    async def list_columns(self, handle: Any, table: str) -> List[ColumnDescriptor]:
        raw = await self.execute(
            handle,
            """
            SELECT column_name, data_type, is_nullable
            FROM information_schema.columns
            WHERE table_name = %s AND table_schema = 'public'
            ORDER BY ordinal_position
            """,
            (table,),
        )
        return [
            ColumnDescriptor(
                name=row["column_name"],
                type=row["data_type"],
                nullable=row["is_nullable"] == "YES",
            )
            for row in raw.rows
        ]
