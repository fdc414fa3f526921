"""Keyword catalog powering deterministic keyword completion."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple


@dataclass(frozen=True, slots=True)
class KeywordEntry:
    """Keyword plus the short description shown next to it."""

    keyword: str
    detail: str


class KeywordCatalog:
    """Ordered, immutable list of SQL keywords offered when nothing else fits."""

    def __init__(self, entries: Sequence[KeywordEntry]) -> None:
        self._entries = tuple(entries)

    @classmethod
    def default(cls) -> "KeywordCatalog":
        return cls(_DEFAULT_ENTRIES)

    @property
    def entries(self) -> Tuple[KeywordEntry, ...]:
        return self._entries

    def keywords(self) -> list[str]:
        """Return the keywords in catalog order."""

        return [entry.keyword for entry in self._entries]


_DEFAULT_ENTRIES: Tuple[KeywordEntry, ...] = (
    KeywordEntry("SELECT", "Start a query"),
    KeywordEntry("FROM", "Choose a table or view"),
    KeywordEntry("WHERE", "Filter rows"),
    KeywordEntry("JOIN", "Combine rows from another table"),
    KeywordEntry("LEFT JOIN", "Keep every row from the left table"),
    KeywordEntry("RIGHT JOIN", "Keep every row from the right table"),
    KeywordEntry("INNER JOIN", "Keep matching rows only"),
    KeywordEntry("OUTER JOIN", "Keep unmatched rows from both sides"),
    KeywordEntry("ON", "Join condition"),
    KeywordEntry("AND", "Both conditions hold"),
    KeywordEntry("OR", "Either condition holds"),
    KeywordEntry("NOT", "Negate a condition"),
    KeywordEntry("IN", "Match any listed value"),
    KeywordEntry("EXISTS", "Subquery returns rows"),
    KeywordEntry("BETWEEN", "Inclusive range test"),
    KeywordEntry("LIKE", "Pattern match"),
    KeywordEntry("IS", "Compare with NULL or a boolean"),
    KeywordEntry("NULL", "Missing value"),
    KeywordEntry("ORDER BY", "Sort result set"),
    KeywordEntry("GROUP BY", "Aggregate rows"),
    KeywordEntry("HAVING", "Filter aggregates"),
    KeywordEntry("LIMIT", "Restrict row count"),
    KeywordEntry("OFFSET", "Skip leading rows"),
    KeywordEntry("INSERT", "Add rows"),
    KeywordEntry("INTO", "Target table for inserted rows"),
    KeywordEntry("VALUES", "Literal rows"),
    KeywordEntry("UPDATE", "Modify rows"),
    KeywordEntry("SET", "Assign column values"),
    KeywordEntry("DELETE", "Remove rows"),
    KeywordEntry("CREATE", "Define a new object"),
    KeywordEntry("ALTER", "Change an existing object"),
    KeywordEntry("DROP", "Remove an object"),
    KeywordEntry("TABLE", "Table object"),
    KeywordEntry("DATABASE", "Database object"),
    KeywordEntry("INDEX", "Index object"),
    KeywordEntry("VIEW", "View object"),
    KeywordEntry("AS", "Name a column or table alias"),
    KeywordEntry("DISTINCT", "Deduplicate rows"),
    KeywordEntry("COUNT", "Count rows"),
    KeywordEntry("SUM", "Sum of values"),
    KeywordEntry("AVG", "Average of values"),
    KeywordEntry("MAX", "Largest value"),
    KeywordEntry("MIN", "Smallest value"),
    KeywordEntry("CASE", "Conditional expression"),
    KeywordEntry("WHEN", "Case branch condition"),
    KeywordEntry("THEN", "Case branch result"),
    KeywordEntry("ELSE", "Case fallback result"),
    KeywordEntry("END", "Close a CASE expression"),
    KeywordEntry("UNION", "Append another query's rows"),
    KeywordEntry("ALL", "Keep duplicates"),
    KeywordEntry("ASC", "Ascending order"),
    KeywordEntry("DESC", "Descending order"),
    KeywordEntry("USE", "Switch the current database"),
)


__all__ = ["KeywordCatalog", "KeywordEntry"]
