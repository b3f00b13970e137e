import asyncio

import pytest
from fastapi.testclient import TestClient

from app.dependencies import get_liveness_pool, get_query_service
from app.main import app
from app.services.query_service import QueryService
from gateway.descriptor import ConnectionDescriptor, Engine
from gateway.errors import EngineConnectionError, QueryError
from gateway.liveness import LivenessPool
from gateway.types import ColumnDescriptor, RawResult

client = TestClient(app)

CONN = {"host": "db", "user": "u", "password": "pw", "database": "shop"}


@pytest.fixture
def wire(make_adapter, make_registry):
    """Install a QueryService backed by a fake adapter; returns (adapter, registry)."""

    def _wire(**adapter_kwargs):
        adapter = make_adapter(**adapter_kwargs)
        registry = make_registry(adapter)
        svc = QueryService.from_registry(registry, timeout=adapter_kwargs.get("timeout", 5.0))
        app.dependency_overrides[get_query_service] = lambda: svc
        return adapter, registry

    yield _wire
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# /api/db/query-sql
# ---------------------------------------------------------------------------


def test_query_sql_happy_path(wire):
    adapter, _ = wire(result=RawResult(rows=[{"id": 1}], columns=["id"]))

    r = client.post("/api/db/query-sql", json={**CONN, "sql": "SELECT id FROM users", "limit": 10})

    assert r.status_code == 200
    assert r.json() == {"rows": [{"id": 1}], "columns": ["id"]}
    assert adapter.executed == [("SELECT id FROM users LIMIT 10", None)]


def test_query_sql_zero_rows_reports_columns(wire):
    wire(result=RawResult(rows=[], columns=["id", "name"]))

    r = client.post("/api/db/query-sql", json={**CONN, "sql": "SELECT id, name FROM users WHERE 1=0"})

    assert r.status_code == 200
    assert r.json() == {"rows": [], "columns": ["id", "name"]}


def test_query_sql_rejects_delete_without_connecting(wire):
    adapter, _ = wire()

    r = client.post("/api/db/query-sql", json={**CONN, "sql": "DELETE FROM users"})

    assert r.status_code == 400
    assert r.json()["error"] == "Only SELECT and WITH statements are allowed"
    assert adapter.connects == 0


@pytest.mark.parametrize("missing", ["host", "user", "database", "sql"])
def test_query_sql_missing_fields(wire, missing):
    adapter, _ = wire()
    body = {**CONN, "sql": "SELECT 1"}
    body.pop(missing)

    r = client.post("/api/db/query-sql", json=body)

    assert r.status_code == 400
    assert r.json() == {"error": "Missing required fields", "code": "missing_fields"}
    assert adapter.connects == 0


def test_query_sql_driver_error_is_500_with_message(wire):
    wire(execute_error=QueryError("Unknown column 'nope' in 'field list'"))

    r = client.post("/api/db/query-sql", json={**CONN, "sql": "SELECT nope FROM users"})

    assert r.status_code == 500
    assert r.json()["error"] == "Unknown column 'nope' in 'field list'"
    assert "X-Request-ID" in r.headers


def test_query_sql_timeout_is_504(wire):
    adapter, _ = wire(delay=5.0, timeout=0.05)

    r = client.post("/api/db/query-sql", json={**CONN, "sql": "SELECT SLEEP(10)"})

    assert r.status_code == 504
    assert r.json()["code"] == "query_timeout"
    assert adapter.closes == 1


def test_query_sql_accepts_type_alias(wire):
    _, registry = wire()

    r = client.post(
        "/api/db/query-sql", json={**CONN, "type": "postgresql", "sql": "SELECT 1"}
    )

    assert r.status_code == 200
    assert registry.requested == [Engine.POSTGRESQL]


def test_query_sql_unknown_engine_is_400(wire):
    wire()

    r = client.post("/api/db/query-sql", json={**CONN, "engine": "oracle", "sql": "SELECT 1"})

    assert r.status_code == 400
    assert "Unsupported engine" in r.json()["error"]


def test_malformed_body_is_400():
    r = client.post(
        "/api/db/query-sql",
        content="not json",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request body"


# ---------------------------------------------------------------------------
# /api/db/query
# ---------------------------------------------------------------------------


def test_query_table_builds_parameterized_select(wire):
    adapter, _ = wire(result=RawResult(rows=[{"id": 7}], columns=["id"]))

    r = client.post(
        "/api/db/query",
        json={
            **CONN,
            "table": "orders",
            "columns": ["id"],
            "filters": [{"field": "status", "op": "equals", "value": "paid"}],
            "limit": 3,
        },
    )

    assert r.status_code == 200
    assert r.json() == {"rows": [{"id": 7}], "columns": ["id"]}
    assert adapter.executed == [
        ("SELECT `id` FROM `orders` WHERE `status` = %s LIMIT %s", ["paid", 3])
    ]


def test_query_table_requires_table(wire):
    wire()
    r = client.post("/api/db/query", json=CONN)
    assert r.status_code == 400


# ---------------------------------------------------------------------------
# /api/db/tables and /api/db/columns
# ---------------------------------------------------------------------------


def test_tables_without_database_lists_databases(wire):
    wire(databases=["information_schema", "shop"])
    body = {k: v for k, v in CONN.items() if k != "database"}

    r = client.post("/api/db/tables", json=body)

    assert r.status_code == 200
    assert r.json() == {"databases": ["information_schema", "shop"]}


def test_tables_with_database_lists_tables(wire):
    wire(tables=["orders", "users"])

    r = client.post("/api/db/tables", json=CONN)

    assert r.status_code == 200
    assert r.json() == {"tables": ["orders", "users"]}


def test_tables_connection_error_is_500(wire):
    wire(connect_error=EngineConnectionError("Unknown database 'nope'"))

    r = client.post("/api/db/tables", json={**CONN, "database": "nope"})

    assert r.status_code == 500
    assert r.json() == {"error": "Unknown database 'nope'", "code": "connection_error"}


def test_columns(wire):
    wire(columns=[ColumnDescriptor(name="id", type="int(11)", nullable=False)])

    r = client.post("/api/db/columns", json={**CONN, "table": "users"})

    assert r.status_code == 200
    assert r.json() == {"columns": [{"name": "id", "type": "int(11)", "nullable": False}]}


def test_columns_missing_table(wire):
    wire()
    r = client.post("/api/db/columns", json=CONN)
    assert r.status_code == 400
    assert r.json()["error"] == "Missing required fields"


def test_unexpected_error_is_generic_500(wire):
    wire(execute_error=RuntimeError("boom"))

    r = client.post("/api/db/query-sql", json={**CONN, "sql": "SELECT 1"})

    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}


# ---------------------------------------------------------------------------
# /api/db/ping
# ---------------------------------------------------------------------------


def _install_pool(adapter):
    pool = LivenessPool(ConnectionDescriptor(host="db", user="u"), size=1, adapter=adapter)
    asyncio.run(pool.init())
    app.dependency_overrides[get_liveness_pool] = lambda: pool
    return pool


def test_ping_ok(make_adapter):
    _install_pool(make_adapter())
    try:
        r = client.get("/api/db/ping")
    finally:
        app.dependency_overrides.clear()

    assert r.status_code == 200
    assert r.json() == {"ok": True, "message": "MySQL connected"}


def test_ping_failure_is_500(make_adapter):
    _install_pool(make_adapter(connect_error=EngineConnectionError("Can't connect to MySQL server")))
    try:
        r = client.get("/api/db/ping")
    finally:
        app.dependency_overrides.clear()

    assert r.status_code == 500
    assert r.json() == {"ok": False, "message": "Can't connect to MySQL server"}
