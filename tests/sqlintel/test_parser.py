"""Tests for cursor context classification."""

from __future__ import annotations

import pytest

from abcql.sqlintel import ContextType, ParseContext, extract_partial_word, parse_context
from abcql.sqlintel.parser import is_after_column_keyword, is_after_table_keyword


def _at_end(line: str, full_query: str | None = None) -> ParseContext:
    return parse_context(line, len(line), full_query)


def test_table_context_after_from() -> None:
    context = _at_end("SELECT * FROM ")

    assert context.type is ContextType.TABLE
    assert context.partial == ""
    assert context.database is None


def test_alias_qualifier_resolves_to_table() -> None:
    context = parse_context("SELECT u.", 9, "SELECT u. FROM users u")

    assert context == ParseContext(
        type=ContextType.COLUMN,
        table="users",
        partial="",
        resolved_from_alias="u",
    )


def test_use_statement_completes_databases() -> None:
    context = _at_end("USE my")

    assert context.type is ContextType.DATABASE
    assert context.partial == "my"


def test_select_list_after_comma_completes_columns() -> None:
    context = _at_end("SELECT id, na")

    assert context.type is ContextType.COLUMN
    assert context.partial == "na"
    assert context.table is None


def test_database_qualifier_after_from() -> None:
    context = _at_end("SELECT * FROM shop.us")

    assert context.type is ContextType.TABLE
    assert context.database == "shop"
    assert context.partial == "us"


def test_database_qualifier_after_join() -> None:
    context = _at_end("SELECT * FROM users u LEFT JOIN shop.")

    assert context.type is ContextType.TABLE
    assert context.database == "shop"


def test_table_qualifier_without_alias_match() -> None:
    context = _at_end("SELECT users.na")

    assert context.type is ContextType.COLUMN
    assert context.table == "users"
    assert context.partial == "na"
    assert context.resolved_from_alias is None


def test_unknown_alias_falls_back_to_table_name() -> None:
    context = parse_context("SELECT x.", 9, "SELECT x. FROM users u")

    assert context.type is ContextType.COLUMN
    assert context.table == "x"
    assert context.resolved_from_alias is None


def test_alias_carries_database_qualifier() -> None:
    query = "SELECT * FROM shop.users u JOIN orders o ON o."

    context = _at_end(query, query)

    assert context.table == "orders"
    assert context.database is None
    assert context.resolved_from_alias == "o"


@pytest.mark.parametrize(
    ("line", "expected", "partial"),
    [
        ("SELECT * FROM users WHERE ", ContextType.COLUMN, ""),
        ("SELECT * FROM users ORDER BY cr", ContextType.COLUMN, "cr"),
        ("SELECT * FROM users u JOIN orders o ON ", ContextType.COLUMN, ""),
        ("UPDATE us", ContextType.TABLE, "us"),
        ("INSERT INTO ", ContextType.TABLE, ""),
        ("select * from ", ContextType.TABLE, ""),
        ("SEL", ContextType.KEYWORD, "SEL"),
        ("", ContextType.KEYWORD, ""),
    ],
)
def test_context_classification(line: str, expected: ContextType, partial: str) -> None:
    context = _at_end(line)

    assert context.type is expected
    assert context.partial == partial


def test_cursor_in_middle_of_line_ignores_trailing_text() -> None:
    context = parse_context("SELECT * FROM users", 14)

    assert context.type is ContextType.TABLE
    assert context.partial == ""


def test_extract_partial_word() -> None:
    assert extract_partial_word("SELECT na") == "na"
    assert extract_partial_word("SELECT ") == ""
    assert extract_partial_word("a.b") == "b"
    assert extract_partial_word("") == ""


def test_keyword_helpers() -> None:
    assert is_after_table_keyword("SELECT * FROM")
    assert is_after_table_keyword("SELECT * FROM us")
    assert not is_after_table_keyword("SELECT * FROM users WHERE")
    assert is_after_column_keyword("SELECT ")
    assert not is_after_column_keyword("SELECT")
