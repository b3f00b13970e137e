from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from adapters.db.base import EngineAdapter
from adapters.db.mysql_adapter import MySQLAdapter
from gateway.descriptor import ConnectionDescriptor
from gateway.errors import GatewayError

log = logging.getLogger(__name__)

PING_SQL = "SELECT 1 AS ok"


class LivenessPool:
    """
    Long-lived MySQL pool used only for the liveness check.

    Unrelated to the gateway's per-request connections. Capacity is fixed,
    callers beyond capacity wait without a queue limit, connections are
    opened lazily and reused. Lifecycle is explicit: init() before use,
    shutdown() closes every idle connection. Each ping, waiting for a slot
    included, is bounded by ping_timeout.
    """

    def __init__(
        self,
        descriptor: ConnectionDescriptor,
        size: int = 10,
        adapter: Optional[EngineAdapter] = None,
        ping_timeout: float = 5.0,
    ) -> None:
        self.descriptor = descriptor
        self.size = size
        self.ping_timeout = ping_timeout
        # driver connect/read timeouts follow the ping deadline
        self.adapter = adapter or MySQLAdapter(timeout=ping_timeout)
        self._idle: List[Any] = []
        self._slots: Optional[asyncio.Semaphore] = None
        self._closed = True

    @property
    def initialized(self) -> bool:
        return not self._closed

    @property
    def idle_count(self) -> int:
        return len(self._idle)

    async def init(self) -> None:
        self._slots = asyncio.Semaphore(self.size)
        self._idle = []
        self._closed = False
        log.debug(
            "Initialized liveness pool",
            extra={"target": self.descriptor.redacted(), "size": self.size},
        )

    async def shutdown(self) -> None:
        self._closed = True
        idle, self._idle = self._idle, []
        for handle in idle:
            await self.adapter.close(handle)
        log.debug("Liveness pool shut down", extra={"closed": len(idle)})

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[Any]:
        if self._closed or self._slots is None:
            raise RuntimeError("LivenessPool.init() has not been called")

        async with self._slots:
            handle = self._idle.pop() if self._idle else await self.adapter.connect(self.descriptor)
            reusable = True
            try:
                yield handle
            except BaseException:
                # state unknown after a failure or cancellation
                reusable = False
                raise
            finally:
                if reusable and not self._closed:
                    self._idle.append(handle)
                else:
                    await self.adapter.close(handle)

    async def _ping_once(self) -> None:
        async with self.connection() as handle:
            await self.adapter.execute(handle, PING_SQL)

    async def ping(self) -> Dict[str, Any]:
        try:
            await asyncio.wait_for(self._ping_once(), timeout=self.ping_timeout)
        except asyncio.TimeoutError:
            log.warning(
                "Liveness ping exceeded deadline",
                extra={"target": self.descriptor.redacted(), "timeout_sec": self.ping_timeout},
            )
            return {"ok": False, "message": f"MySQL ping timed out after {self.ping_timeout:g}s"}
        except GatewayError as exc:
            return {"ok": False, "message": exc.message or "MySQL error"}
        return {"ok": True, "message": "MySQL connected"}
