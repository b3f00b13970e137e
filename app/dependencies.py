from functools import lru_cache

from fastapi import Request

from adapters.db import default_registry
from app.services.query_service import QueryService
from app.settings import get_settings
from gateway.liveness import LivenessPool


@lru_cache()
def get_query_service() -> QueryService:
    """
    Singleton-ish QueryService for the FastAPI app.

    The service holds no connections; every call opens its own.
    """
    settings = get_settings()
    registry = default_registry(timeout=settings.query_timeout_sec)
    return QueryService.from_registry(registry, timeout=settings.query_timeout_sec)


def get_liveness_pool(request: Request) -> LivenessPool:
    """Pool created and initialized by the app lifespan."""
    return request.app.state.liveness_pool
