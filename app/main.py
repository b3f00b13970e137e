import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, HTTPException
from fastapi.responses import PlainTextResponse, JSONResponse
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

from gateway.liveness import LivenessPool
from gateway.prom import REGISTRY
from app.routers import db
from app.settings import get_settings
from app.exception_handlers import register_exception_handlers

from dotenv import load_dotenv

load_dotenv()


settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    pool = LivenessPool(
        settings.ping_descriptor(),
        size=settings.ping_pool_size,
        ping_timeout=settings.ping_timeout_sec,
    )
    await pool.init()
    app.state.liveness_pool = pool
    try:
        yield
    finally:
        await pool.shutdown()


# ----------------------------------------------------------------------------
#  App definition
# ----------------------------------------------------------------------------
application = FastAPI(
    title="Dashboard SQL Gateway",
    version=settings.app_version,
    description="Read-only ad hoc SQL and schema introspection for MySQL and PostgreSQL",
    lifespan=lifespan,
)
register_exception_handlers(application)

application.include_router(db.router, prefix="/api")


@application.exception_handler(HTTPException)
async def http_exception_to_error_contract(request: Request, exc: HTTPException):
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        return JSONResponse(status_code=exc.status_code, content=exc.detail)

    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


# ----------------------------------------------------------------------------
#  HTTP metrics
# ----------------------------------------------------------------------------
HTTP_REQUESTS = Counter(
    "http_requests_total",
    "HTTP requests by route name, method and status",
    ["route", "method", "status_code"],
    registry=REGISTRY,
)
HTTP_LATENCY = Histogram(
    "http_request_latency_seconds",
    "End-to-end request latency (seconds), connection time included",
    ["route", "method"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60),
    registry=REGISTRY,
)

# Scrapes and probes would drown out gateway traffic
_UNTRACKED_PATHS = {"/metrics", "/healthz", "/readyz"}


@application.middleware("http")
async def http_metrics_middleware(request: Request, call_next):
    if request.url.path in _UNTRACKED_PATHS:
        return await call_next(request)

    t0 = time.perf_counter()
    status = 500
    try:
        response: Response = await call_next(request)
        status = response.status_code
        return response
    finally:
        route = request.scope.get("route")
        name = getattr(route, "name", None) or "unmatched"
        HTTP_REQUESTS.labels(route=name, method=request.method, status_code=str(status)).inc()
        HTTP_LATENCY.labels(route=name, method=request.method).observe(
            time.perf_counter() - t0
        )


# ----------------------------------------------------------------------------
#  System endpoints
# ----------------------------------------------------------------------------
@application.get("/healthz", response_class=PlainTextResponse, tags=["system"])
def healthz() -> str:
    return "ok"


@application.get("/readyz", response_class=PlainTextResponse, tags=["system"])
async def readyz(request: Request) -> str:
    """Ready once the liveness pool is up and its MySQL answers a ping."""
    pool = getattr(request.app.state, "liveness_pool", None)
    if pool is None or not pool.initialized:
        raise HTTPException(status_code=503, detail="not ready")
    result = await pool.ping()
    if not result["ok"]:
        raise HTTPException(status_code=503, detail="not ready")
    return "ready"


@application.get("/metrics", tags=["system"])
def metrics():
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)


app = application
