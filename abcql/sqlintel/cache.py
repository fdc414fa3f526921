"""Per data source schema cache (databases, tables, columns).

A snapshot becomes visible only after every fetch in the hierarchy
succeeded. Snapshots are immutable; refresh replaces them wholesale.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping

from .metadata import SchemaAdapter
from .models import ColumnInfo

LOG = logging.getLogger(__name__)

TableKey = tuple[str, str]


class SchemaLoadError(RuntimeError):
    """Raised when any fetch of a schema load fails."""

    def __init__(
        self,
        message: str,
        *,
        stage: str,
        database: str | None = None,
        table: str | None = None,
    ) -> None:
        super().__init__(message)
        self.stage = stage
        self.database = database
        self.table = table

    @classmethod
    def for_stage(
        cls,
        stage: str,
        reason: BaseException,
        *,
        database: str | None = None,
        table: str | None = None,
    ) -> "SchemaLoadError":
        if stage == "databases":
            message = f"Failed to load databases: {reason}"
        elif stage == "tables":
            message = f"Failed to load tables for database '{database}': {reason}"
        else:
            message = f"Failed to load columns for table '{database}.{table}': {reason}"
        return cls(message, stage=stage, database=database, table=table)


@dataclass(frozen=True, slots=True)
class CacheMetadata:
    """Summary of a loaded snapshot."""

    loaded_at: datetime
    database_count: int
    table_count: int
    column_count: int


@dataclass(frozen=True, slots=True)
class SchemaSnapshot:
    """Complete schema hierarchy for one data source."""

    databases: tuple[str, ...]
    tables: Mapping[str, tuple[str, ...]]
    columns: Mapping[TableKey, tuple[ColumnInfo, ...]]
    loaded_at: datetime

    @property
    def metadata(self) -> CacheMetadata:
        return CacheMetadata(
            loaded_at=self.loaded_at,
            database_count=len(self.databases),
            table_count=sum(len(tables) for tables in self.tables.values()),
            column_count=sum(len(columns) for columns in self.columns.values()),
        )


class SchemaCache:
    """Schema snapshots keyed by data source name.

    Concurrent loads for the same name share one in-flight task. ``clear``
    detaches an in-flight load so its result is discarded.
    """

    def __init__(self) -> None:
        self._snapshots: dict[str, SchemaSnapshot] = {}
        self._inflight: dict[str, asyncio.Task[None]] = {}
        self._generations: dict[str, int] = {}

    async def load_schema(self, name: str, adapter: SchemaAdapter) -> None:
        """Fetch and publish the full schema for ``name``.

        Raises :class:`SchemaLoadError` naming the failing stage; the cache
        for ``name`` is left untouched on failure.
        """

        task = self._inflight.get(name)
        if task is None:
            generation = self._generations.get(name, 0)
            task = asyncio.create_task(
                self._load(name, adapter, generation),
                name=f"abcql-schema-load:{name}",
            )
            self._inflight[name] = task
            task.add_done_callback(partial(self._forget, name))
        else:
            LOG.debug("Joining in-flight schema load", extra={"data_source": name})
        await asyncio.shield(task)

    async def refresh_schema(self, name: str, adapter: SchemaAdapter) -> None:
        """Drop the cached schema for ``name`` and load it again."""

        self.clear(name)
        await self.load_schema(name, adapter)

    def clear(self, name: str) -> None:
        """Forget the schema for ``name``; safe to call repeatedly."""

        self._snapshots.pop(name, None)
        self._inflight.pop(name, None)
        self._generations[name] = self._generations.get(name, 0) + 1

    def has_cache(self, name: str) -> bool:
        return name in self._snapshots

    def snapshot(self, name: str) -> SchemaSnapshot | None:
        return self._snapshots.get(name)

    def get_databases(self, name: str) -> tuple[str, ...] | None:
        snapshot = self._snapshots.get(name)
        return snapshot.databases if snapshot else None

    def get_tables(self, name: str, database: str) -> tuple[str, ...] | None:
        snapshot = self._snapshots.get(name)
        if not snapshot:
            return None
        return snapshot.tables.get(database)

    def get_all_tables(self, name: str) -> Mapping[str, tuple[str, ...]] | None:
        snapshot = self._snapshots.get(name)
        return snapshot.tables if snapshot else None

    def get_columns(self, name: str, database: str, table: str) -> tuple[ColumnInfo, ...] | None:
        snapshot = self._snapshots.get(name)
        if not snapshot:
            return None
        return snapshot.columns.get((database, table))

    def get_metadata(self, name: str) -> CacheMetadata | None:
        snapshot = self._snapshots.get(name)
        return snapshot.metadata if snapshot else None

    def locate_table(self, name: str, table: str, database: str | None = None) -> TableKey | None:
        """Find the cached ``(database, table)`` spelling for ``table``.

        Exact matches win; otherwise the first case-insensitive match in
        database order is returned.
        """

        snapshot = self._snapshots.get(name)
        if not snapshot:
            return None
        wanted_table = table.lower()
        wanted_db = database.lower() if database else None
        fallback: TableKey | None = None
        for db, tables in snapshot.tables.items():
            if wanted_db is not None and db.lower() != wanted_db:
                continue
            for candidate in tables:
                if candidate == table and (database is None or db == database):
                    return db, candidate
                if fallback is None and candidate.lower() == wanted_table:
                    fallback = (db, candidate)
        return fallback

    def _forget(self, name: str, task: asyncio.Task[None]) -> None:
        if self._inflight.get(name) is task:
            del self._inflight[name]
        # Mark a failure retrieved even when every waiter was cancelled; _load logged it.
        if not task.cancelled():
            task.exception()

    async def _load(self, name: str, adapter: SchemaAdapter, generation: int) -> None:
        loaded_at = datetime.now(tz=timezone.utc)
        LOG.info("Loading schema", extra={"data_source": name})
        try:
            snapshot = await self._fetch_snapshot(adapter, loaded_at)
        except SchemaLoadError as exc:
            LOG.warning(
                "Schema load failed",
                extra={"data_source": name, "stage": exc.stage, "error": str(exc)},
            )
            raise
        if self._generations.get(name, 0) != generation:
            LOG.debug("Discarding superseded schema load", extra={"data_source": name})
            return
        self._snapshots[name] = snapshot
        metadata = snapshot.metadata
        LOG.info(
            "Schema loaded",
            extra={
                "data_source": name,
                "databases": metadata.database_count,
                "tables": metadata.table_count,
                "columns": metadata.column_count,
            },
        )

    async def _fetch_snapshot(self, adapter: SchemaAdapter, loaded_at: datetime) -> SchemaSnapshot:
        databases = await _fetch(adapter.get_databases, stage="databases")
        tables: dict[str, tuple[str, ...]] = {}
        columns: dict[TableKey, tuple[ColumnInfo, ...]] = {}
        try:
            async with asyncio.TaskGroup() as group:
                for database in databases:
                    group.create_task(self._fetch_database(adapter, database, tables, columns))
        except ExceptionGroup as failure:
            raise _first_load_error(failure)

        ordered_tables = {database: tables.get(database, ()) for database in databases}
        ordered_columns = {
            (database, table): columns[(database, table)]
            for database, names in ordered_tables.items()
            for table in names
        }
        return SchemaSnapshot(
            databases=databases,
            tables=MappingProxyType(ordered_tables),
            columns=MappingProxyType(ordered_columns),
            loaded_at=loaded_at,
        )

    async def _fetch_database(
        self,
        adapter: SchemaAdapter,
        database: str,
        tables: dict[str, tuple[str, ...]],
        columns: dict[TableKey, tuple[ColumnInfo, ...]],
    ) -> None:
        names = await _fetch(partial(adapter.get_tables, database), stage="tables", database=database)
        tables[database] = names
        if not names:
            return
        async with asyncio.TaskGroup() as group:
            for table in names:
                group.create_task(self._fetch_columns(adapter, database, table, columns))

    async def _fetch_columns(
        self,
        adapter: SchemaAdapter,
        database: str,
        table: str,
        columns: dict[TableKey, tuple[ColumnInfo, ...]],
    ) -> None:
        result = await _fetch(
            partial(adapter.get_columns, database, table),
            stage="columns",
            database=database,
            table=table,
        )
        columns[(database, table)] = result


async def _fetch(
    fetch: Callable[[], Awaitable[Any]],
    *,
    stage: str,
    database: str | None = None,
    table: str | None = None,
) -> tuple[Any, ...]:
    try:
        return tuple(await fetch())
    except Exception as exc:
        raise SchemaLoadError.for_stage(stage, exc, database=database, table=table) from exc


def _first_load_error(group: BaseExceptionGroup[Any]) -> BaseException:
    for error in group.exceptions:
        if isinstance(error, BaseExceptionGroup):
            return _first_load_error(error)
        return error
    return group


__all__ = [
    "CacheMetadata",
    "SchemaCache",
    "SchemaLoadError",
    "SchemaSnapshot",
]
