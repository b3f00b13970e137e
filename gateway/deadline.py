from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, TypeVar

from gateway.errors import (
    EngineConnectionError,
    QueryError,
    QueryTimeoutError,
    ValidationError,
)
from gateway.metrics import queries_total, query_duration_ms

log = logging.getLogger(__name__)

T = TypeVar("T")


def _ms(t0: float) -> float:
    return (time.perf_counter() - t0) * 1000


async def run_with_deadline(
    op: Callable[[], Awaitable[T]],
    *,
    timeout: float,
    engine: str,
    operation: str,
) -> T:
    """
    Await op() under a deadline and record its outcome.

    On expiry the in-flight driver call is cancelled; the adapter session's
    cleanup closes the connection before QueryTimeoutError is raised. Nothing
    is retried.
    """
    t0 = time.perf_counter()
    status = "ok"
    try:
        return await asyncio.wait_for(op(), timeout=timeout)
    except asyncio.TimeoutError:
        status = "timeout"
        log.warning(
            "Gateway operation exceeded deadline",
            extra={"engine": engine, "operation": operation, "timeout_sec": timeout},
        )
        raise QueryTimeoutError(
            f"Query exceeded the {timeout:g}s deadline and was cancelled"
        ) from None
    except ValidationError:
        status = "validation"
        raise
    except EngineConnectionError:
        status = "connection"
        raise
    except QueryError:
        status = "query"
        raise
    except Exception:
        status = "error"
        raise
    finally:
        queries_total.labels(engine=engine, operation=operation, status=status).inc()
        query_duration_ms.labels(engine=engine, operation=operation).observe(_ms(t0))
