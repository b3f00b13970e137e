from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional, Sequence

from sqlglot import exp

from gateway.descriptor import ConnectionDescriptor, Engine
from gateway.metrics import connection_close_failures_total, connections_opened_total
from gateway.types import ColumnDescriptor, RawResult

log = logging.getLogger(__name__)

Params = Optional[Sequence[Any]]


def driver_message(exc: BaseException) -> str:
    """
    Best human-readable message from a DB-API exception.

    PyMySQL packs (errno, message) into args; psycopg's str() is already the
    server message. Falls back to the exception class name.
    """
    args = getattr(exc, "args", ())
    if len(args) >= 2 and isinstance(args[0], int) and isinstance(args[1], str):
        return args[1]
    text = str(exc).strip()
    return text or type(exc).__name__


class EngineAdapter(ABC):
    """
    One SQL engine behind the gateway's capability interface.

    Connections are per operation: use session() so that every exit path
    (success, driver error, cancellation) closes the handle exactly once.
    """

    name: str
    engine: Engine
    dialect: str  # sqlglot dialect name

    def __init__(self, timeout: float = 30.0) -> None:
        self.timeout = timeout

    @property
    def timeout_seconds(self) -> int:
        """Driver-level timeouts want whole seconds, at least one."""
        return max(1, int(math.ceil(self.timeout)))

    # --- connection lifecycle ---

    @abstractmethod
    async def connect(self, descriptor: ConnectionDescriptor) -> Any:
        """Open a handle. Raises EngineConnectionError."""

    @abstractmethod
    async def execute(self, handle: Any, sql: str, params: Params = None) -> RawResult:
        """Run one statement. Raises QueryError."""

    @abstractmethod
    async def _close(self, handle: Any) -> None:
        """Driver-specific close; may raise."""

    async def close(self, handle: Any) -> None:
        """Best-effort close. Failures are logged and never raised."""
        try:
            await self._close(handle)
        except Exception as exc:
            connection_close_failures_total.labels(engine=self.engine.value).inc()
            log.warning(
                "Ignoring error while closing %s connection: %s",
                self.name,
                exc,
                extra={"engine": self.engine.value},
            )

    @asynccontextmanager
    async def session(self, descriptor: ConnectionDescriptor) -> AsyncIterator[Any]:
        handle = await self.connect(descriptor)
        connections_opened_total.labels(engine=self.engine.value).inc()
        try:
            yield handle
        finally:
            await self.close(handle)

    # --- catalog ---

    @abstractmethod
    async def list_databases(self, handle: Any) -> List[str]: ...

    @abstractmethod
    async def list_tables(self, handle: Any, database: str) -> List[str]: ...

    @abstractmethod
    async def list_columns(self, handle: Any, table: str) -> List[ColumnDescriptor]: ...

    # --- dialect helpers ---

    def quote_identifier(self, name: str) -> str:
        """Quote (and escape) an identifier for this dialect."""
        return exp.to_identifier(str(name), quoted=True).sql(dialect=self.dialect)
