import pytest

from gateway.descriptor import (
    MISSING_FIELDS_MESSAGE,
    ConnectionDescriptor,
    Engine,
    build_descriptor,
    parse_engine,
)
from gateway.errors import MissingFields, ValidationError


def test_build_descriptor_defaults_to_mysql():
    d = build_descriptor({"host": "db", "user": "u"})
    assert d.engine is Engine.MYSQL
    assert d.resolved_port == 3306
    assert d.password == ""
    assert d.database is None
    assert d.table is None


def test_build_descriptor_postgres_default_port():
    d = build_descriptor({"engine": "postgresql", "host": "db", "user": "u"})
    assert d.engine is Engine.POSTGRESQL
    assert d.resolved_port == 5432


@pytest.mark.parametrize("port", ["", 0, None])
def test_build_descriptor_empty_port_uses_default(port):
    d = build_descriptor({"host": "db", "user": "u", "port": port})
    assert d.port is None
    assert d.resolved_port == 3306


def test_build_descriptor_parses_string_port():
    d = build_descriptor({"host": "db", "user": "u", "port": "3307"})
    assert d.port == 3307


def test_build_descriptor_rejects_bad_port():
    with pytest.raises(ValidationError) as ei:
        build_descriptor({"host": "db", "user": "u", "port": "abc"})
    assert "Invalid port" in ei.value.message


@pytest.mark.parametrize(
    "payload",
    [{}, {"host": "db"}, {"user": "u"}, {"host": "", "user": "u"}],
)
def test_build_descriptor_requires_host_and_user(payload):
    with pytest.raises(MissingFields) as ei:
        build_descriptor(payload)
    assert ei.value.message == MISSING_FIELDS_MESSAGE
    assert ei.value.http_status == 400


def test_build_descriptor_empty_database_is_none():
    d = build_descriptor({"host": "db", "user": "u", "database": ""})
    assert d.database is None


def test_parse_engine_rejects_unknown():
    with pytest.raises(ValidationError) as ei:
        parse_engine("oracle")
    assert "Unsupported engine" in ei.value.message


@pytest.mark.parametrize("raw", [None, "", "mysql", "MySQL", " mysql "])
def test_parse_engine_mysql_variants(raw):
    assert parse_engine(raw) is Engine.MYSQL


def test_require_reports_missing_field():
    d = ConnectionDescriptor(host="db", user="u")
    with pytest.raises(MissingFields) as ei:
        d.require("host", "database")
    assert ei.value.extra == {"field": "database"}


def test_redacted_never_contains_password():
    d = ConnectionDescriptor(host="db", user="u", password="s3cret", database="shop")
    assert d.redacted() == "u@db:3306/shop"
    assert "s3cret" not in d.redacted()
