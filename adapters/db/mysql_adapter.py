from __future__ import annotations

import asyncio
import logging
from typing import Any, List

import pymysql
import pymysql.cursors

from adapters.db.base import EngineAdapter, Params, driver_message
from gateway.descriptor import ConnectionDescriptor, Engine
from gateway.errors import EngineConnectionError, QueryError
from gateway.types import ColumnDescriptor, RawResult

log = logging.getLogger(__name__)


def _quit_quietly(conn: Any) -> None:
    try:
        conn.close()
    except Exception:
        log.debug("Orphaned MySQL connection was already closed")


def _close_orphan(task: "asyncio.Future[Any]") -> None:
    """Close a connection whose opener was cancelled before it was handed out."""
    if task.cancelled() or task.exception() is not None:
        return
    # close() sends COM_QUIT over the socket; keep it off the event loop
    task.get_loop().run_in_executor(None, _quit_quietly, task.result())


class MySQLAdapter(EngineAdapter):
    """
    MySQL/MariaDB via PyMySQL.

    PyMySQL is blocking, so every driver call runs in a worker thread. The
    driver's own connect/read/write timeouts are set from the gateway
    deadline so an abandoned worker gives up its socket call too.
    """

    name = "mysql"
    engine = Engine.MYSQL
    dialect = "mysql"

    def _connect_params(self, descriptor: ConnectionDescriptor) -> dict:
        params = {
            "host": descriptor.host,
            "port": descriptor.resolved_port,
            "user": descriptor.user,
            "password": descriptor.password,
            "charset": "utf8mb4",
            "cursorclass": pymysql.cursors.DictCursor,
            "autocommit": True,
            "connect_timeout": self.timeout_seconds,
            "read_timeout": self.timeout_seconds,
            "write_timeout": self.timeout_seconds,
        }
        # Only select a database when one is given (database listing has none)
        if descriptor.database:
            params["database"] = descriptor.database
        return params

    async def connect(self, descriptor: ConnectionDescriptor) -> Any:
        params = self._connect_params(descriptor)
        log.debug("Opening MySQL connection to %s", descriptor.redacted())
        opener = asyncio.ensure_future(asyncio.to_thread(pymysql.connect, **params))
        try:
            return await asyncio.shield(opener)
        except asyncio.CancelledError:
            opener.add_done_callback(_close_orphan)
            raise
        except pymysql.Error as exc:
            message = driver_message(exc)
            log.info(
                "MySQL connection failed",
                extra={"target": descriptor.redacted(), "error": message},
            )
            raise EngineConnectionError(message) from exc

    async def execute(self, handle: Any, sql: str, params: Params = None) -> RawResult:
        def run() -> RawResult:
            with handle.cursor() as cur:
                cur.execute(sql, params)
                description = cur.description or ()
                columns = [d[0] for d in description]
                rows = list(cur.fetchall()) if description else []
            return RawResult(rows=rows, columns=columns)

        log.debug("Executing MySQL statement: %s", sql.strip().replace("\n", " ")[:200])
        try:
            return await asyncio.to_thread(run)
        except pymysql.Error as exc:
            raise QueryError(driver_message(exc)) from exc

    async def _close(self, handle: Any) -> None:
        if handle.open:
            await asyncio.to_thread(handle.close)

    async def list_databases(self, handle: Any) -> List[str]:
        raw = await self.execute(handle, "SHOW DATABASES")
        return [row["Database"] for row in raw.rows]

    async def list_tables(self, handle: Any, database: str) -> List[str]:
        raw = await self.execute(handle, "SHOW TABLES")
        key = f"Tables_in_{database}"
        tables: List[str] = []
        for row in raw.rows:
            if key in row:
                tables.append(row[key])
            elif row:
                # Server folded the database name's case differently
                tables.append(next(iter(row.values())))
        return tables

    async def list_columns(self, handle: Any, table: str) -> List[ColumnDescriptor]:
        raw = await self.execute(handle, f"SHOW COLUMNS FROM {self.quote_identifier(table)}")
        return [
            ColumnDescriptor(
                name=row["Field"],
                type=row["Type"],
                nullable=row["Null"] == "YES",
            )
            for row in raw.rows
        ]
