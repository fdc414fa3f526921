"""Heuristic extraction of table references and aliases from SQL text.

No tokenizer or AST is involved: table references are found with regular
expressions anchored on ``FROM`` and ``JOIN``. A fixed keyword set guards
against reading the next clause keyword as an alias (``FROM users WHERE``).
Subqueries, CTEs and comma-joined ``FROM a, b`` lists are not handled.
"""

from __future__ import annotations

import re
from typing import Iterable

from .models import AliasMapping

_IDENT = r"[A-Za-z0-9_]+"
_TABLE_REF = r"[A-Za-z0-9_.]+"

# Order matters only for documentation; results are re-sorted by position.
_ALIAS_PATTERNS: tuple[tuple[re.Pattern[str], bool], ...] = (
    (re.compile(rf"\bFROM\s+({_TABLE_REF})\s+AS\s+({_IDENT})", re.IGNORECASE), False),
    (re.compile(rf"\bFROM\s+({_TABLE_REF})\s+({_IDENT})", re.IGNORECASE), True),
    (re.compile(rf"\bJOIN\s+({_TABLE_REF})\s+AS\s+({_IDENT})", re.IGNORECASE), False),
    (re.compile(rf"\bJOIN\s+({_TABLE_REF})\s+({_IDENT})", re.IGNORECASE), True),
)

_FROM_TABLE = re.compile(rf"\bFROM\s+({_TABLE_REF})", re.IGNORECASE)
_JOIN_TABLE = re.compile(rf"\bJOIN\s+({_TABLE_REF})", re.IGNORECASE)
_QUALIFIED = re.compile(rf"^({_IDENT})\.({_IDENT})$")

SQL_KEYWORDS: frozenset[str] = frozenset(
    {
        "WHERE",
        "AND",
        "OR",
        "ON",
        "USING",
        "GROUP",
        "ORDER",
        "HAVING",
        "LIMIT",
        "OFFSET",
        "UNION",
        "INTERSECT",
        "EXCEPT",
        "SELECT",
        "FROM",
        "JOIN",
        "LEFT",
        "RIGHT",
        "INNER",
        "OUTER",
        "CROSS",
        "FULL",
        "AS",
        "IN",
        "EXISTS",
        "BETWEEN",
        "LIKE",
        "IS",
        "NULL",
        "NOT",
        "SET",
        "VALUES",
        "INTO",
        "UPDATE",
        "INSERT",
        "DELETE",
        "CREATE",
        "ALTER",
        "DROP",
        "TABLE",
        "DATABASE",
        "INDEX",
        "VIEW",
    }
)


def is_sql_keyword(word: str) -> bool:
    """Return True when ``word`` is in the alias keyword guard set."""

    return word.upper() in SQL_KEYWORDS


def split_table_reference(reference: str) -> tuple[str, str | None]:
    """Split ``db.table`` into ``(table, db)``; anything else is a bare table."""

    match = _QUALIFIED.match(reference)
    if match:
        return match.group(2), match.group(1)
    return reference, None


def extract_table_aliases(text: str) -> list[AliasMapping]:
    """Return alias bindings ordered left to right, deduplicated on (alias, table)."""

    found: list[tuple[int, AliasMapping]] = []
    seen: set[tuple[str, str]] = set()
    for pattern, guarded in _ALIAS_PATTERNS:
        for match in pattern.finditer(text):
            reference, alias = match.group(1), match.group(2)
            if guarded and is_sql_keyword(alias):
                continue
            table_name, database = split_table_reference(reference)
            key = (alias.lower(), table_name.lower())
            if key in seen:
                continue
            seen.add(key)
            found.append(
                (
                    match.start(),
                    AliasMapping(
                        table_name=table_name.lower(),
                        alias=alias.lower(),
                        database=database.lower() if database else None,
                    ),
                )
            )
    found.sort(key=lambda entry: entry[0])
    return [mapping for _, mapping in found]


def resolve_alias(alias: str, text: str) -> tuple[str, str | None] | None:
    """Resolve ``alias`` to ``(table, database)`` using the bindings in ``text``."""

    return find_alias(alias, extract_table_aliases(text))


def find_alias(alias: str, mappings: Iterable[AliasMapping]) -> tuple[str, str | None] | None:
    wanted = alias.lower()
    for mapping in mappings:
        if mapping.alias == wanted:
            return mapping.table_name, mapping.database
    return None


def extract_table_names(text: str) -> list[str]:
    """Return bare lowercase table names after every FROM, then every JOIN.

    Aliases and database qualifiers are discarded; duplicates are kept.
    """

    tables: list[str] = []
    for pattern in (_FROM_TABLE, _JOIN_TABLE):
        for match in pattern.finditer(text):
            name = _strip_qualifier(match.group(1))
            if name:
                tables.append(name.lower())
    return tables


def _strip_qualifier(reference: str) -> str:
    trimmed = reference.strip(".")
    return trimmed.rsplit(".", 1)[-1]


__all__ = [
    "SQL_KEYWORDS",
    "extract_table_aliases",
    "extract_table_names",
    "find_alias",
    "is_sql_keyword",
    "resolve_alias",
    "split_table_reference",
]
