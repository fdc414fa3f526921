"""Completion service coordinating parsing, schema lookups and item building."""

from __future__ import annotations

import logging

from .aliases import extract_table_names
from .cache import SchemaCache
from .completion import CompletionBuilder, rank
from .models import CompletionItem, ContextType, ParseContext
from .parser import parse_context
from .statements import statement_at

LOG = logging.getLogger(__name__)

MAX_ITEMS = 200


class CompletionService:
    """Facade answering completion requests for one data source.

    Reads never mutate the cache; a data source whose schema is not loaded
    yields no items.
    """

    def __init__(
        self,
        cache: SchemaCache,
        data_source: str,
        builder: CompletionBuilder | None = None,
        *,
        statement_scope: bool = True,
        max_items: int = MAX_ITEMS,
    ) -> None:
        self._cache = cache
        self._data_source = data_source
        self._builder = builder or CompletionBuilder()
        self._statement_scope = statement_scope
        self._max_items = max_items

    @property
    def data_source(self) -> str:
        return self._data_source

    @property
    def cache(self) -> SchemaCache:
        return self._cache

    def analyze(
        self,
        line: str,
        cursor_column: int,
        full_query: str | None = None,
        *,
        cursor_offset: int | None = None,
    ) -> tuple[ParseContext, str | None]:
        """Return the parse context plus the query text used to derive it."""

        query = full_query
        if query and self._statement_scope and cursor_offset is not None:
            query = statement_at(query, cursor_offset)
        return parse_context(line, cursor_column, query), query

    def complete(
        self,
        line: str,
        cursor_column: int,
        full_query: str | None = None,
        *,
        cursor_offset: int | None = None,
    ) -> list[CompletionItem]:
        """Return ranked items for the cursor at ``cursor_column`` of ``line``."""

        context, query = self.analyze(line, cursor_column, full_query, cursor_offset=cursor_offset)
        if not self._cache.has_cache(self._data_source):
            LOG.debug("Schema not cached; no completions", extra={"data_source": self._data_source})
            return []
        LOG.debug(
            "Completion context",
            extra={
                "data_source": self._data_source,
                "context": context.type.value,
                "table": context.table,
                "database": context.database,
            },
        )
        items = self.items_for(context, query if query is not None else line)
        return self._limit(items)

    def items_for(self, context: ParseContext, query: str) -> list[CompletionItem]:
        """Build items for an already parsed context."""

        if context.type is ContextType.DATABASE:
            databases = self._cache.get_databases(self._data_source)
            return self._builder.database_items(databases, context.partial) if databases else []

        if context.type is ContextType.TABLE:
            return self._table_items(context)

        if context.type is ContextType.COLUMN:
            if context.table:
                return self._qualified_column_items(context)
            return self._scoped_column_items(context, query)

        return self._builder.keyword_items(context.partial)

    def _table_items(self, context: ParseContext) -> list[CompletionItem]:
        if context.database:
            database = self._match_database(context.database)
            if database is None:
                return []
            tables = self._cache.get_tables(self._data_source, database) or ()
            return self._builder.table_items(tables, context.partial, database)
        all_tables = self._cache.get_all_tables(self._data_source)
        if not all_tables:
            return []
        return self._builder.all_table_items(all_tables, context.partial)

    def _qualified_column_items(self, context: ParseContext) -> list[CompletionItem]:
        assert context.table is not None
        located = self._cache.locate_table(self._data_source, context.table, context.database)
        if located is None and context.database:
            located = self._cache.locate_table(self._data_source, context.table)
        if located is None:
            return []
        columns = self._cache.get_columns(self._data_source, *located)
        if not columns:
            return []
        return self._builder.column_items(
            columns,
            context.partial,
            located[1],
            context.resolved_from_alias,
        )

    def _scoped_column_items(self, context: ParseContext, query: str) -> list[CompletionItem]:
        table_names = extract_table_names(query)
        if table_names:
            return self._builder.columns_from_tables(
                self._cache,
                self._data_source,
                table_names,
                None,
                context.partial,
            )

        # Nothing referenced yet: offer every column of every table.
        items: list[CompletionItem] = []
        for database, tables in (self._cache.get_all_tables(self._data_source) or {}).items():
            for table in tables:
                columns = self._cache.get_columns(self._data_source, database, table)
                if columns:
                    items.extend(self._builder.column_items(columns, context.partial, table))
        return rank(items)

    def _match_database(self, name: str) -> str | None:
        databases = self._cache.get_databases(self._data_source) or ()
        if name in databases:
            return name
        wanted = name.lower()
        for database in databases:
            if database.lower() == wanted:
                return database
        return None

    def _limit(self, items: list[CompletionItem]) -> list[CompletionItem]:
        # Items arrive ranked, so trimming keeps the best matches.
        if not self._max_items:
            return items
        return items[: self._max_items]


__all__ = ["CompletionService", "MAX_ITEMS"]
