"""Tests for the schema adapters."""

from __future__ import annotations

from typing import Any

import pytest

from abcql.adapters import DEMO_CATALOG, AdapterError, PostgresAdapter, StaticAdapter, build_adapter
from abcql.config import DataSourceConfig
from abcql.sqlintel import ColumnInfo, SchemaAdapter, SchemaCache


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class _FakePool:
    def __init__(self, fail: bool = False) -> None:
        self.queries: list[tuple[str, tuple[object, ...]]] = []
        self.closed = False
        self._fail = fail

    async def fetch(self, query: str, *args: object) -> list[dict[str, str]]:
        assert "information_schema" in query
        self.queries.append((query, args))
        if self._fail:
            raise RuntimeError("permission denied")
        if "schemata" in query:
            return [{"schema_name": "public"}]
        if "information_schema.tables" in query:
            return [{"table_name": "accounts"}]
        return [
            {"column_name": "id", "data_type": "integer"},
            {"column_name": "email", "data_type": "text"},
        ]

    async def close(self) -> None:
        self.closed = True


def _install_pool(monkeypatch: pytest.MonkeyPatch, pool: _FakePool) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    async def _fake_create_pool(**kwargs: Any) -> _FakePool:
        calls.append(kwargs)
        return pool

    monkeypatch.setattr("abcql.adapters.asyncpg.create_pool", _fake_create_pool)
    return calls


@pytest.mark.anyio
async def test_static_adapter_serves_demo_catalog() -> None:
    adapter = StaticAdapter()

    assert isinstance(adapter, SchemaAdapter)
    assert list(await adapter.get_databases()) == list(DEMO_CATALOG)
    assert "users" in await adapter.get_tables("shop")
    assert list(await adapter.get_tables("missing")) == []
    columns = await adapter.get_columns("shop", "users")
    assert columns[0] == ColumnInfo(name="id", type="int")
    assert adapter.calls == ["databases", "tables:shop", "tables:missing", "columns:shop.users"]


@pytest.mark.anyio
async def test_static_adapter_raises_configured_failures() -> None:
    adapter = StaticAdapter(failures={"columns:shop.users": "boom"})

    with pytest.raises(AdapterError, match="boom"):
        await adapter.get_columns("shop", "users")


@pytest.mark.anyio
async def test_postgres_adapter_maps_schemas_to_databases(monkeypatch: pytest.MonkeyPatch) -> None:
    pool = _FakePool()
    calls = _install_pool(monkeypatch, pool)
    adapter = PostgresAdapter(name="local", host="db", port=5433, database="app", user="app", password="secret")

    cache = SchemaCache()
    await cache.load_schema("local", adapter)

    assert cache.get_databases("local") == ("public",)
    assert cache.get_tables("local", "public") == ("accounts",)
    assert cache.get_columns("local", "public", "accounts") == (
        ColumnInfo(name="id", type="integer"),
        ColumnInfo(name="email", type="text"),
    )
    assert len(calls) == 1
    assert calls[0]["host"] == "db"
    assert calls[0]["port"] == 5433
    assert calls[0]["database"] == "app"
    assert calls[0]["password"] == "secret"
    assert calls[0]["timeout"] == 5.0
    assert pool.queries[-1][1] == ("public", "accounts")

    await adapter.aclose()
    assert pool.closed is True


@pytest.mark.anyio
async def test_postgres_adapter_prefers_dsn(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _install_pool(monkeypatch, _FakePool())
    adapter = PostgresAdapter(dsn="postgresql://app@db/app", host="ignored")

    await adapter.get_databases()

    assert calls[0]["dsn"] == "postgresql://app@db/app"
    assert "host" not in calls[0]


@pytest.mark.anyio
async def test_postgres_adapter_wraps_connection_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _broken_create_pool(**kwargs: Any) -> None:
        raise OSError("connection refused")

    monkeypatch.setattr("abcql.adapters.asyncpg.create_pool", _broken_create_pool)
    adapter = PostgresAdapter(name="broken")

    with pytest.raises(AdapterError, match="Failed to connect to data source 'broken'"):
        await adapter.get_databases()


@pytest.mark.anyio
async def test_postgres_adapter_wraps_query_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    _install_pool(monkeypatch, _FakePool(fail=True))
    adapter = PostgresAdapter(name="local")

    with pytest.raises(AdapterError, match="permission denied"):
        await adapter.get_tables("public")


def test_build_adapter_selects_variant() -> None:
    static = build_adapter(DataSourceConfig(name="demo", kind="static"))
    postgres = build_adapter(DataSourceConfig(name="db", host="localhost"))

    assert isinstance(static, StaticAdapter)
    assert isinstance(postgres, PostgresAdapter)
