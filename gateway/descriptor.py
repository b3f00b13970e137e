from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from gateway.errors import MissingFields, ValidationError


class Engine(str, Enum):
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"


DEFAULT_PORTS = {
    Engine.MYSQL: 3306,
    Engine.POSTGRESQL: 5432,
}

MISSING_FIELDS_MESSAGE = "Missing required fields"


@dataclass(frozen=True)
class ConnectionDescriptor:
    """
    Identifies one engine instance (and optionally a database/table) for the
    lifetime of a single request. Never persisted.
    """

    host: str
    user: str
    password: str = ""
    engine: Engine = Engine.MYSQL
    port: Optional[int] = None
    database: Optional[str] = None
    table: Optional[str] = None

    @property
    def resolved_port(self) -> int:
        return self.port or DEFAULT_PORTS[self.engine]

    def redacted(self) -> str:
        """Connection target for logs: user@host:port/database, no password."""
        return f"{self.user}@{self.host}:{self.resolved_port}/{self.database or ''}"

    def require(self, *fields: str) -> "ConnectionDescriptor":
        """Raise MissingFields unless every named attribute is non-empty."""
        for name in fields:
            if not getattr(self, name, None):
                raise MissingFields(MISSING_FIELDS_MESSAGE, extra={"field": name})
        return self


def parse_engine(raw: Any) -> Engine:
    if raw is None or raw == "":
        return Engine.MYSQL
    if isinstance(raw, Engine):
        return raw
    try:
        return Engine(str(raw).strip().lower())
    except ValueError:
        raise ValidationError(
            f"Unsupported engine: {raw!r}",
            extra={"supported": [e.value for e in Engine]},
        ) from None


def build_descriptor(payload: Mapping[str, Any]) -> ConnectionDescriptor:
    """
    Build a validated descriptor from caller input.

    host and user are always required; callers add their own requirements
    (database, table) with ConnectionDescriptor.require().
    """
    host = payload.get("host")
    user = payload.get("user")
    if not host or not user:
        raise MissingFields(MISSING_FIELDS_MESSAGE)

    port = payload.get("port")
    if port in ("", 0):
        port = None
    if port is not None:
        try:
            port = int(port)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid port: {port!r}") from None

    return ConnectionDescriptor(
        engine=parse_engine(payload.get("engine")),
        host=str(host),
        port=port,
        user=str(user),
        password=payload.get("password") or "",
        database=payload.get("database") or None,
        table=payload.get("table") or None,
    )
