"""Core dataclasses shared by the SQL intelligence services."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any


class ContextType(str, Enum):
    """Kind of identifier expected under the cursor."""

    DATABASE = "database"
    TABLE = "table"
    COLUMN = "column"
    KEYWORD = "keyword"


class CompletionItemKind(IntEnum):
    """Subset of LSP completion item kinds surfaced to the editor."""

    FIELD = 5
    CLASS = 7
    MODULE = 9
    KEYWORD = 14


@dataclass(frozen=True, slots=True)
class ColumnInfo:
    """Column name plus its declared type."""

    name: str
    type: str


@dataclass(frozen=True, slots=True)
class AliasMapping:
    """Table binding introduced by `FROM`/`JOIN` with an alias."""

    table_name: str
    alias: str
    database: str | None = None


@dataclass(frozen=True, slots=True)
class ParseContext:
    """Result of analyzing the text before the cursor."""

    type: ContextType
    partial: str = ""
    database: str | None = None
    table: str | None = None
    resolved_from_alias: str | None = None


@dataclass(frozen=True, slots=True)
class CompletionItem:
    """Single completion candidate."""

    label: str
    kind: CompletionItemKind
    detail: str
    documentation: str
    insert_text: str
    sort_text: str
    filter_text: str

    def to_lsp(self) -> dict[str, Any]:
        """Serialize using LSP field names."""

        return {
            "label": self.label,
            "kind": int(self.kind),
            "detail": self.detail,
            "documentation": self.documentation,
            "insertText": self.insert_text,
            "sortText": self.sort_text,
            "filterText": self.filter_text,
        }


__all__ = [
    "AliasMapping",
    "ColumnInfo",
    "CompletionItem",
    "CompletionItemKind",
    "ContextType",
    "ParseContext",
]
