from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class GatewayError(Exception):
    """Base class for gateway errors surfaced to HTTP callers."""

    message: str
    http_status: int = 500
    code: str = "gateway_error"
    extra: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


# 4xx: never touch the network
@dataclass
class ValidationError(GatewayError):
    http_status: int = 400
    code: str = "validation_error"


@dataclass
class MissingFields(ValidationError):
    code: str = "missing_fields"


@dataclass
class InvalidStatement(ValidationError):
    code: str = "invalid_statement"


# 5xx: driver message passed through verbatim
@dataclass
class EngineConnectionError(GatewayError):
    http_status: int = 500
    code: str = "connection_error"


@dataclass
class QueryError(GatewayError):
    http_status: int = 500
    code: str = "query_error"


@dataclass
class QueryTimeoutError(QueryError):
    http_status: int = 504
    code: str = "query_timeout"
