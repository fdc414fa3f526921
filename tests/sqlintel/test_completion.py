"""Tests for completion item building and ranking."""

from __future__ import annotations

import pytest

from abcql.adapters import StaticAdapter
from abcql.sqlintel import ColumnInfo, CompletionBuilder, CompletionItemKind, KeywordCatalog, SchemaCache
from abcql.sqlintel.catalog import KeywordEntry
from abcql.sqlintel.completion import build, match_priority, rank


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


def _labels(items) -> list[str]:  # type: ignore[no-untyped-def]
    return [item.label for item in items]


def test_match_priority() -> None:
    assert match_priority("id", "id") == 0
    assert match_priority("ID", "i") == 0
    assert match_priority("user_id", "id") == 1
    assert match_priority("users", "id") is None
    assert match_priority("anything", "") == 0


def test_prefix_matches_rank_before_substring_matches() -> None:
    items = build(
        CompletionItemKind.FIELD,
        ["user_id", "id", "paid_at", "identity", "users"],
        "id",
        detail=lambda _name: "int",
        documentation=lambda _name: "",
    )

    assert _labels(items) == ["id", "identity", "user_id", "paid_at"]
    assert [item.sort_text for item in items] == ["0_id", "0_identity", "1_user_id", "1_paid_at"]


def test_empty_partial_keeps_source_order() -> None:
    items = CompletionBuilder().table_items(["users", "orders", "products"], "")

    assert _labels(items) == ["users", "orders", "products"]
    assert all(item.sort_text.startswith("0_") for item in items)


def test_item_fields_mirror_label() -> None:
    item = CompletionBuilder().database_items(["shop"], "sh")[0]

    assert item.kind is CompletionItemKind.MODULE
    assert item.detail == "Database"
    assert item.documentation == "Database: shop"
    assert item.insert_text == item.filter_text == "shop"
    assert item.to_lsp() == {
        "label": "shop",
        "kind": 9,
        "detail": "Database",
        "documentation": "Database: shop",
        "insertText": "shop",
        "sortText": "0_shop",
        "filterText": "shop",
    }


def test_table_detail_names_database() -> None:
    builder = CompletionBuilder()

    qualified = builder.table_items(["users"], "", "shop")[0]
    plain = builder.table_items(["users"], "")[0]

    assert qualified.kind is CompletionItemKind.CLASS
    assert qualified.detail == "Table in database: shop"
    assert plain.detail == "Table"
    assert plain.documentation == "Type: TABLE"


def test_all_table_items_ranks_across_databases() -> None:
    items = CompletionBuilder().all_table_items({"shop": ["users", "orders"], "analytics": ["sessions"]}, "s")

    assert _labels(items) == ["sessions", "users", "orders"]
    assert [item.detail for item in items] == [
        "Table in database: analytics",
        "Table in database: shop",
        "Table in database: shop",
    ]


def test_column_detail_shows_alias_binding() -> None:
    columns = [ColumnInfo(name="id", type="int"), ColumnInfo(name="email", type="varchar")]
    builder = CompletionBuilder()

    aliased = builder.column_items(columns, "", "users", "u")
    plain = builder.column_items(columns, "em", "users")
    bare = builder.column_items(columns, "id")

    assert aliased[0].detail == "int (u → users)"
    assert aliased[0].documentation == "Type: int\nTable: users (alias: u)"
    assert plain[0].label == "email"
    assert plain[0].detail == "varchar (users)"
    assert bare[0].detail == "int"
    assert bare[0].kind is CompletionItemKind.FIELD


def test_keywords_match_in_uppercase() -> None:
    items = CompletionBuilder().keyword_items("join")

    assert items[0].label == "JOIN"
    assert set(_labels(items)) >= {"LEFT JOIN", "RIGHT JOIN", "INNER JOIN"}
    assert all(item.kind is CompletionItemKind.KEYWORD for item in items)
    assert items[0].detail == "Combine rows from another table"
    assert items[0].documentation == "SQL keyword: JOIN"


def test_keyword_substring_matches() -> None:
    labels = _labels(CompletionBuilder().keyword_items("by"))

    assert "ORDER BY" in labels
    assert "GROUP BY" in labels


def test_custom_keyword_catalog() -> None:
    catalog = KeywordCatalog([KeywordEntry("EXPLAIN", detail="Plan")])

    items = CompletionBuilder(catalog).keyword_items("ex")

    assert _labels(items) == ["EXPLAIN"]
    assert items[0].detail == "Plan"


def test_default_catalog_contains_core_keywords() -> None:
    keywords = KeywordCatalog.default().keywords()

    assert keywords[0] == "SELECT"
    assert {"FROM", "WHERE", "USE", "ORDER BY"} <= set(keywords)


@pytest.mark.anyio
async def test_columns_from_tables_offers_each_name_once() -> None:
    cache = SchemaCache()
    await cache.load_schema(
        "local",
        StaticAdapter(
            {
                "shop": {
                    "users": {"id": "int", "email": "varchar"},
                    "orders": {"id": "bigint", "user_id": "int"},
                }
            }
        ),
    )

    items = CompletionBuilder().columns_from_tables(cache, "local", ["users", "orders", "missing"], None, "")

    assert _labels(items) == ["id", "email", "user_id"]
    assert items[0].detail == "int (users)"
    assert items[2].detail == "int (orders)"


@pytest.mark.anyio
async def test_columns_from_tables_ranks_across_tables() -> None:
    cache = SchemaCache()
    await cache.load_schema(
        "local",
        StaticAdapter(
            {
                "app": {
                    "sessions": {"id": "int", "user_id": "int", "started_at": "datetime"},
                    "events": {"id": "int", "session_id": "int"},
                }
            }
        ),
    )

    items = CompletionBuilder().columns_from_tables(cache, "local", ["sessions", "events"], None, "s")

    assert _labels(items) == ["started_at", "session_id", "user_id"]
    assert [item.sort_text.partition("_")[0] for item in items] == ["0", "0", "1"]


def test_rank_is_stable_within_a_priority() -> None:
    builder = CompletionBuilder()
    merged = builder.table_items(["users", "orders"], "s", "shop") + builder.table_items(["sessions", "stats"], "s", "analytics")

    assert _labels(rank(merged)) == ["sessions", "stats", "users", "orders"]
