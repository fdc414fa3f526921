"""Turns cached schema names into ranked completion items."""

from __future__ import annotations

from typing import Callable, Iterable, Mapping, Sequence

from .cache import SchemaCache
from .catalog import KeywordCatalog
from .models import ColumnInfo, CompletionItem, CompletionItemKind

DetailFn = Callable[[str], str]


def match_priority(name: str, partial: str) -> int | None:
    """0 for a case-insensitive prefix match, 1 for a substring match, None otherwise."""

    needle = partial.lower()
    haystack = name.lower()
    if haystack.startswith(needle):
        return 0
    if needle in haystack:
        return 1
    return None


def build(
    kind: CompletionItemKind,
    candidates: Iterable[str],
    partial: str,
    *,
    detail: DetailFn,
    documentation: DetailFn,
) -> list[CompletionItem]:
    """Filter ``candidates`` by ``partial`` and rank prefix matches first.

    Ties keep the source order.
    """

    ranked: list[tuple[int, int, CompletionItem]] = []
    for index, name in enumerate(candidates):
        priority = match_priority(name, partial)
        if priority is None:
            continue
        item = CompletionItem(
            label=name,
            kind=kind,
            detail=detail(name),
            documentation=documentation(name),
            insert_text=name,
            sort_text=f"{priority}_{name}",
            filter_text=name,
        )
        ranked.append((priority, index, item))
    ranked.sort(key=lambda entry: (entry[0], entry[1]))
    return [item for _, _, item in ranked]


def rank(items: Iterable[CompletionItem]) -> list[CompletionItem]:
    """Stable re-sort of merged batches so every prefix match precedes every substring match."""

    return sorted(items, key=lambda item: item.sort_text.partition("_")[0])


class CompletionBuilder:
    """Builds completion batches for each context type."""

    def __init__(self, keyword_catalog: KeywordCatalog | None = None) -> None:
        self._keywords = keyword_catalog or KeywordCatalog.default()

    def database_items(self, databases: Sequence[str], partial: str) -> list[CompletionItem]:
        return build(
            CompletionItemKind.MODULE,
            databases,
            partial,
            detail=lambda _name: "Database",
            documentation=lambda name: f"Database: {name}",
        )

    def table_items(
        self,
        tables: Sequence[str],
        partial: str,
        database: str | None = None,
    ) -> list[CompletionItem]:
        detail = f"Table in database: {database}" if database else "Table"
        return build(
            CompletionItemKind.CLASS,
            tables,
            partial,
            detail=lambda _name: detail,
            documentation=lambda _name: "Type: TABLE",
        )

    def all_table_items(
        self,
        all_tables: Mapping[str, Sequence[str]],
        partial: str,
    ) -> list[CompletionItem]:
        """Tables from every database, ranked together; ties keep cache order."""

        items: list[CompletionItem] = []
        for database, tables in all_tables.items():
            items.extend(self.table_items(tables, partial, database))
        return rank(items)

    def column_items(
        self,
        columns: Sequence[ColumnInfo],
        partial: str,
        table: str | None = None,
        alias: str | None = None,
    ) -> list[CompletionItem]:
        types = {column.name: column.type for column in columns}

        def _detail(name: str) -> str:
            column_type = types[name]
            if alias and table and alias != table:
                return f"{column_type} ({alias} → {table})"
            if table:
                return f"{column_type} ({table})"
            return column_type

        def _documentation(name: str) -> str:
            column_type = types[name]
            if alias and table and alias != table:
                return f"Type: {column_type}\nTable: {table} (alias: {alias})"
            if table:
                return f"Type: {column_type}\nTable: {table}"
            return f"Type: {column_type}"

        return build(
            CompletionItemKind.FIELD,
            [column.name for column in columns],
            partial,
            detail=_detail,
            documentation=_documentation,
        )

    def keyword_items(self, partial: str) -> list[CompletionItem]:
        """Keywords matched in uppercase regardless of how the user typed them."""

        details = {entry.keyword: entry.detail for entry in self._keywords.entries}
        return build(
            CompletionItemKind.KEYWORD,
            self._keywords.keywords(),
            partial.upper(),
            detail=lambda name: details[name],
            documentation=lambda name: f"SQL keyword: {name}",
        )

    def columns_from_tables(
        self,
        cache: SchemaCache,
        data_source: str,
        table_names: Iterable[str],
        database: str | None,
        partial: str,
    ) -> list[CompletionItem]:
        """Columns of every referenced table, each column name offered once.

        Without an explicit ``database`` each table is looked up in every
        cached database, first match wins.
        """

        items: list[CompletionItem] = []
        seen: set[str] = set()
        for table_name in table_names:
            located = cache.locate_table(data_source, table_name, database)
            if located is None:
                continue
            columns = cache.get_columns(data_source, *located)
            if not columns:
                continue
            fresh = [column for column in columns if column.name not in seen]
            seen.update(column.name for column in fresh)
            items.extend(self.column_items(fresh, partial, located[1]))
        return rank(items)


__all__ = ["CompletionBuilder", "build", "match_priority", "rank"]
