"""Schema adapters feeding the schema cache."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Sequence

import asyncpg

from .config import DataSourceConfig
from .sqlintel.metadata import SchemaAdapter
from .sqlintel.models import ColumnInfo

LOG = logging.getLogger(__name__)


class AdapterError(RuntimeError):
    """Raised when an adapter cannot fetch schema information."""


class PostgresAdapter:
    """Schema adapter that queries PostgreSQL via asyncpg.

    PostgreSQL cannot query across databases on one connection, so schemas
    play the role of databases: ``shop.users`` means schema ``shop``.
    """

    _DATABASES_QUERY = """
        SELECT schema_name
        FROM information_schema.schemata
        WHERE schema_name NOT IN ('pg_catalog', 'information_schema')
          AND schema_name NOT LIKE 'pg_toast%'
          AND schema_name NOT LIKE 'pg_temp_%'
        ORDER BY schema_name
    """

    _TABLES_QUERY = """
        SELECT table_name
        FROM information_schema.tables
        WHERE table_schema = $1
        ORDER BY table_name
    """

    _COLUMNS_QUERY = """
        SELECT column_name, data_type
        FROM information_schema.columns
        WHERE table_schema = $1 AND table_name = $2
        ORDER BY ordinal_position
    """

    def __init__(
        self,
        *,
        name: str = "postgres",
        dsn: str | None = None,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        connect_timeout: float = 5.0,
        max_connections: int = 4,
    ) -> None:
        self._name = name
        self._dsn = dsn
        self._host = host
        self._port = port
        self._database = database
        self._user = user
        self._password = password
        self._connect_timeout = connect_timeout
        self._max_connections = max_connections
        self._pool: Any | None = None
        self._pool_lock = asyncio.Lock()

    async def get_databases(self) -> Sequence[str]:
        rows = await self._fetch(self._DATABASES_QUERY)
        return [str(row["schema_name"]) for row in rows]

    async def get_tables(self, database: str) -> Sequence[str]:
        rows = await self._fetch(self._TABLES_QUERY, database)
        return [str(row["table_name"]) for row in rows]

    async def get_columns(self, database: str, table: str) -> Sequence[ColumnInfo]:
        rows = await self._fetch(self._COLUMNS_QUERY, database, table)
        return [ColumnInfo(name=str(row["column_name"]), type=str(row["data_type"])) for row in rows]

    async def aclose(self) -> None:
        """Close the connection pool, if one was opened."""

        pool, self._pool = self._pool, None
        if pool is not None:
            await pool.close()

    async def _fetch(self, query: str, *args: object) -> Sequence[Mapping[str, Any]]:
        pool = await self._ensure_pool()
        try:
            return await pool.fetch(query, *args)
        except Exception as exc:
            raise AdapterError(f"Query failed for data source '{self._name}': {exc}") from exc

    async def _ensure_pool(self) -> Any:
        async with self._pool_lock:
            if self._pool is None:
                try:
                    self._pool = await asyncpg.create_pool(
                        min_size=1,
                        max_size=self._max_connections,
                        **self._connect_kwargs(),
                    )
                except Exception as exc:
                    raise AdapterError(f"Failed to connect to data source '{self._name}': {exc}") from exc
                LOG.debug("Opened connection pool", extra={"data_source": self._name})
            return self._pool

    def _connect_kwargs(self) -> dict[str, object]:
        kwargs: dict[str, object] = {}
        if self._dsn:
            kwargs["dsn"] = self._dsn
        else:
            kwargs["host"] = self._host or "localhost"
            if self._port is not None:
                kwargs["port"] = self._port
            if self._user:
                kwargs["user"] = self._user
            if self._database:
                kwargs["database"] = self._database
        if self._password:
            kwargs["password"] = self._password
        kwargs.setdefault("timeout", self._connect_timeout)
        return kwargs


DEMO_CATALOG: Mapping[str, Mapping[str, Mapping[str, str]]] = {
    "shop": {
        "users": {"id": "int", "email": "varchar(255)", "name": "varchar(100)", "created_at": "datetime"},
        "orders": {"id": "int", "user_id": "int", "total": "decimal(10,2)", "created_at": "datetime"},
        "order_items": {"id": "int", "order_id": "int", "product_id": "int", "quantity": "int"},
        "products": {"id": "int", "name": "varchar(200)", "price": "decimal(10,2)"},
    },
    "analytics": {
        "sessions": {"id": "int", "user_id": "int", "started_at": "datetime", "device": "varchar(50)"},
        "events": {"id": "int", "session_id": "int", "name": "varchar(100)", "payload": "json"},
    },
}


class StaticAdapter:
    """In-memory adapter serving a fixed catalog.

    ``failures`` maps a fetch key (``"databases"``, ``"tables:<db>"`` or
    ``"columns:<db>.<table>"``) to an error message raised for that fetch.
    """

    def __init__(
        self,
        catalog: Mapping[str, Mapping[str, Mapping[str, str]]] | None = None,
        *,
        failures: Mapping[str, str] | None = None,
        delay: float = 0.0,
    ) -> None:
        source = DEMO_CATALOG if catalog is None else catalog
        self._catalog: dict[str, dict[str, tuple[ColumnInfo, ...]]] = {
            database: {
                table: tuple(ColumnInfo(name=column, type=column_type) for column, column_type in columns.items())
                for table, columns in tables.items()
            }
            for database, tables in source.items()
        }
        self._failures = dict(failures or {})
        self._delay = delay
        self.calls: list[str] = []

    async def get_databases(self) -> Sequence[str]:
        await self._simulate("databases")
        return list(self._catalog)

    async def get_tables(self, database: str) -> Sequence[str]:
        await self._simulate(f"tables:{database}")
        return list(self._catalog.get(database, {}))

    async def get_columns(self, database: str, table: str) -> Sequence[ColumnInfo]:
        await self._simulate(f"columns:{database}.{table}")
        return list(self._catalog.get(database, {}).get(table, ()))

    async def _simulate(self, key: str) -> None:
        self.calls.append(key)
        await asyncio.sleep(self._delay)
        message = self._failures.get(key)
        if message is not None:
            raise AdapterError(message)


def build_adapter(config: DataSourceConfig) -> SchemaAdapter:
    """Instantiate the adapter variant named by ``config.kind``."""

    if config.kind == "static":
        return StaticAdapter(config.catalog)
    return PostgresAdapter(
        name=config.name,
        dsn=config.dsn,
        host=config.host,
        port=config.port,
        database=config.database,
        user=config.user,
        password=config.password,
        connect_timeout=config.connect_timeout,
    )


__all__ = [
    "AdapterError",
    "DEMO_CATALOG",
    "PostgresAdapter",
    "StaticAdapter",
    "build_adapter",
]
