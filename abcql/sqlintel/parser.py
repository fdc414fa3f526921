"""Cursor context detection for SQL completion."""

from __future__ import annotations

import re

from .aliases import resolve_alias
from .models import ContextType, ParseContext

TABLE_KEYWORDS: tuple[str, ...] = (
    "FROM",
    "JOIN",
    "INTO",
    "UPDATE",
    "LEFT JOIN",
    "RIGHT JOIN",
    "INNER JOIN",
    "OUTER JOIN",
    "FULL JOIN",
    "CROSS JOIN",
)

COLUMN_KEYWORDS: tuple[str, ...] = (
    "SELECT",
    "WHERE",
    "ORDER BY",
    "GROUP BY",
    "HAVING",
    "SET",
    "ON",
    "AND",
    "OR",
)


def _keyword_source(keyword: str) -> str:
    return r"\s+".join(re.escape(part) for part in keyword.split())


# Keyword at the very end, or followed by whitespace and an optional partial word.
_TABLE_CONTEXT: tuple[re.Pattern[str], ...] = tuple(
    re.compile(rf"(?:^|\s){_keyword_source(kw)}(?:\s+[A-Za-z0-9_]*)?$", re.IGNORECASE)
    for kw in TABLE_KEYWORDS
)
# Column keywords need at least one whitespace character after them.
_COLUMN_CONTEXT: tuple[re.Pattern[str], ...] = tuple(
    re.compile(rf"(?:^|\s){_keyword_source(kw)}\s+[A-Za-z0-9_]*$", re.IGNORECASE)
    for kw in COLUMN_KEYWORDS
)
_SELECT_LIST = re.compile(r"\bSELECT\s+.*,\s*[A-Za-z0-9_]*$", re.IGNORECASE | re.DOTALL)
_USE_STATEMENT = re.compile(r"(?:^|\s)USE\s+[A-Za-z0-9_]*$", re.IGNORECASE)
_QUALIFIED = re.compile(r"([A-Za-z0-9_]+)\.([A-Za-z0-9_]*)$")
_PARTIAL = re.compile(r"[A-Za-z0-9_]*$")


def parse_context(line: str, cursor_column: int, full_query: str | None = None) -> ParseContext:
    """Classify what should be completed at ``cursor_column`` (0-based) of ``line``.

    ``full_query`` is the surrounding statement text; when present, a
    qualifier before a dot is first tried as a table alias.
    """

    before_cursor = line[: max(cursor_column, 0)]
    partial = extract_partial_word(before_cursor)

    qualified = _QUALIFIED.search(before_cursor)
    if qualified:
        qualifier, dot_partial = qualified.group(1), qualified.group(2)
        if full_query:
            resolved = resolve_alias(qualifier, full_query)
            if resolved:
                table, database = resolved
                return ParseContext(
                    type=ContextType.COLUMN,
                    database=database,
                    table=table,
                    partial=dot_partial,
                    resolved_from_alias=qualifier,
                )

        # `FROM shop.|` completes tables of database `shop`; otherwise `users.|` completes columns.
        prefix = before_cursor[: qualified.start()]
        if prefix[-1:].isspace() and is_after_table_keyword(prefix[:-1]):
            return ParseContext(type=ContextType.TABLE, database=qualifier, partial=dot_partial)
        return ParseContext(type=ContextType.COLUMN, table=qualifier, partial=dot_partial)

    if _USE_STATEMENT.search(before_cursor):
        return ParseContext(type=ContextType.DATABASE, partial=partial)

    if is_after_table_keyword(before_cursor):
        return ParseContext(type=ContextType.TABLE, partial=partial)

    if is_after_column_keyword(before_cursor):
        return ParseContext(type=ContextType.COLUMN, partial=partial)

    return ParseContext(type=ContextType.KEYWORD, partial=partial)


def extract_partial_word(text: str) -> str:
    """Return the trailing run of word characters in ``text``."""

    match = _PARTIAL.search(text)
    return match.group(0) if match else ""


def is_after_table_keyword(text: str) -> bool:
    """True when ``text`` ends with a table keyword plus an optional partial name."""

    return any(pattern.search(text) for pattern in _TABLE_CONTEXT)


def is_after_column_keyword(text: str) -> bool:
    """True when ``text`` ends in a column position (keyword or SELECT list)."""

    if any(pattern.search(text) for pattern in _COLUMN_CONTEXT):
        return True
    return bool(_SELECT_LIST.search(text))


__all__ = [
    "COLUMN_KEYWORDS",
    "TABLE_KEYWORDS",
    "extract_partial_word",
    "is_after_column_keyword",
    "is_after_table_keyword",
    "parse_context",
]
