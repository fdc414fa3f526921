"""Schema adapter contract consumed by the schema cache."""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from .models import ColumnInfo


@runtime_checkable
class SchemaAdapter(Protocol):
    """Backend-specific schema introspection.

    Each call is a single asynchronous operation; failures are raised.
    Timeouts and retries belong to the implementation.
    """

    async def get_databases(self) -> Sequence[str]:
        """Return database names visible to the connection."""

    async def get_tables(self, database: str) -> Sequence[str]:
        """Return table names inside ``database``."""

    async def get_columns(self, database: str, table: str) -> Sequence[ColumnInfo]:
        """Return the columns of ``database.table`` in ordinal order."""


__all__ = ["SchemaAdapter"]
