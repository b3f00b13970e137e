from __future__ import annotations

# --- Stdlib ---
import logging
from typing import Any, Dict

# --- Third-party ---
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

# --- Local ---
from app.dependencies import get_liveness_pool, get_query_service
from app.schemas import (
    ColumnsRequest,
    ColumnsResponse,
    ConnectionRequest,
    ErrorResponse,
    PingResponse,
    QuerySqlRequest,
    TableQueryRequest,
)
from app.services.query_service import QueryService
from gateway.errors import GatewayError
from gateway.liveness import LivenessPool
from gateway.types import FilterRule

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/db", tags=["db"])

ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


def _internal_error(where: str, exc: Exception) -> HTTPException:
    logger.exception("Unexpected error in %s", where, exc_info=exc)
    return HTTPException(status_code=500, detail="Internal server error")


@router.post(
    "/query-sql", name="query_sql", response_model=None, responses=ERROR_RESPONSES
)
async def query_sql(
    request: QuerySqlRequest,
    svc: QueryService = Depends(get_query_service),
) -> Dict[str, Any]:
    """Run a caller-supplied SELECT/WITH statement and return {rows, columns}."""
    try:
        return await svc.query_sql(request.descriptor_fields(), request.sql, request.limit)
    except GatewayError:
        # Handled by the global GatewayError handler.
        raise
    except Exception as exc:
        raise _internal_error("query_sql", exc) from exc


@router.post(
    "/query", name="query_table", response_model=None, responses=ERROR_RESPONSES
)
async def query_table(
    request: TableQueryRequest,
    svc: QueryService = Depends(get_query_service),
) -> Dict[str, Any]:
    """Structured SELECT over one table with optional column list and filters."""
    filters = [
        FilterRule(field=f.field or "", op=f.op or "", value=f.value, value2=f.value2)
        for f in request.filters
    ]
    try:
        return await svc.query_table(
            request.descriptor_fields(), request.columns, filters, request.limit
        )
    except GatewayError:
        raise
    except Exception as exc:
        raise _internal_error("query_table", exc) from exc


@router.post(
    "/tables", name="list_tables", response_model=None, responses=ERROR_RESPONSES
)
async def list_tables(
    request: ConnectionRequest,
    svc: QueryService = Depends(get_query_service),
) -> Dict[str, Any]:
    """{databases: [...]} without a database, {tables: [...]} with one."""
    try:
        return await svc.list_databases_or_tables(request.descriptor_fields())
    except GatewayError:
        raise
    except Exception as exc:
        raise _internal_error("list_tables", exc) from exc


@router.post(
    "/columns",
    name="list_columns",
    response_model=ColumnsResponse,
    responses=ERROR_RESPONSES,
)
async def list_columns(
    request: ColumnsRequest,
    svc: QueryService = Depends(get_query_service),
) -> Dict[str, Any]:
    try:
        return await svc.list_columns(request.descriptor_fields())
    except GatewayError:
        raise
    except Exception as exc:
        raise _internal_error("list_columns", exc) from exc


@router.get("/ping", name="ping", response_model=PingResponse)
async def ping(pool: LivenessPool = Depends(get_liveness_pool)):
    """Liveness check through the long-lived MySQL pool."""
    result = await pool.ping()
    return JSONResponse(status_code=200 if result["ok"] else 500, content=result)
