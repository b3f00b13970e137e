"""Engine adapters and the engine-tag → adapter registry."""

from __future__ import annotations

from typing import Dict, Type

from adapters.db.base import EngineAdapter
from adapters.db.mysql_adapter import MySQLAdapter
from adapters.db.postgres_adapter import PostgresAdapter
from gateway.descriptor import Engine
from gateway.errors import ValidationError

__all__ = [
    "AdapterRegistry",
    "EngineAdapter",
    "MySQLAdapter",
    "PostgresAdapter",
    "default_registry",
]


class AdapterRegistry:
    """
    Closed set of engine variants. Adding an engine means registering one
    adapter class here; call sites only ever ask for_engine().
    """

    def __init__(self, timeout: float = 30.0) -> None:
        self.timeout = timeout
        self._classes: Dict[Engine, Type[EngineAdapter]] = {}

    def register(self, adapter_cls: Type[EngineAdapter]) -> None:
        self._classes[adapter_cls.engine] = adapter_cls

    def for_engine(self, engine: Engine) -> EngineAdapter:
        adapter_cls = self._classes.get(engine)
        if adapter_cls is None:
            raise ValidationError(f"Unsupported engine: {engine.value!r}")
        return adapter_cls(timeout=self.timeout)


def default_registry(timeout: float = 30.0) -> AdapterRegistry:
    registry = AdapterRegistry(timeout=timeout)
    registry.register(MySQLAdapter)
    registry.register(PostgresAdapter)
    return registry
