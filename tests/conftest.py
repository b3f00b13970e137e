import asyncio
import os
from typing import Any, List, Optional

import pytest
from dotenv import load_dotenv

from adapters.db import AdapterRegistry
from adapters.db.base import EngineAdapter
from gateway.descriptor import Engine
from gateway.types import ColumnDescriptor, RawResult

# Load .env once for tests
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
ENV_PATH = os.path.join(ROOT, ".env")
load_dotenv(ENV_PATH)


class FakeAdapter(EngineAdapter):
    """In-memory engine adapter that records every lifecycle call."""

    name = "fake"
    engine = Engine.MYSQL
    dialect = "mysql"

    def __init__(
        self,
        timeout: float = 30.0,
        result: Optional[RawResult] = None,
        connect_error: Optional[Exception] = None,
        execute_error: Optional[Exception] = None,
        close_error: Optional[Exception] = None,
        delay: float = 0.0,
        databases: Optional[List[str]] = None,
        tables: Optional[List[str]] = None,
        columns: Optional[List[ColumnDescriptor]] = None,
    ) -> None:
        super().__init__(timeout)
        self.result = result or RawResult(rows=[], columns=[])
        self.connect_error = connect_error
        self.execute_error = execute_error
        self.close_error = close_error
        self.delay = delay
        self.databases = databases or []
        self.tables = tables or []
        self.columns = columns or []

        self.connects = 0
        self.closes = 0
        self.executed: List[tuple] = []
        self.descriptors: List[Any] = []

    async def connect(self, descriptor):
        self.connects += 1
        self.descriptors.append(descriptor)
        if self.connect_error:
            raise self.connect_error
        return object()

    async def execute(self, handle, sql, params=None):
        self.executed.append((sql, params))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.execute_error:
            raise self.execute_error
        return self.result

    async def _close(self, handle):
        self.closes += 1
        if self.close_error:
            raise self.close_error

    async def list_databases(self, handle):
        return list(self.databases)

    async def list_tables(self, handle, database):
        return list(self.tables)

    async def list_columns(self, handle, table):
        return list(self.columns)


class SingleAdapterRegistry(AdapterRegistry):
    """Registry that hands out one shared adapter and remembers the engines asked for."""

    def __init__(self, adapter: EngineAdapter) -> None:
        super().__init__(timeout=adapter.timeout)
        self.adapter = adapter
        self.requested: List[Engine] = []

    def for_engine(self, engine: Engine) -> EngineAdapter:
        self.requested.append(engine)
        return self.adapter


@pytest.fixture
def make_adapter():
    return FakeAdapter


@pytest.fixture
def make_registry():
    return SingleAdapterRegistry
