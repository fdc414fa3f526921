"""SQL intelligence services and helpers."""

from __future__ import annotations

from .aliases import extract_table_aliases, extract_table_names, is_sql_keyword, resolve_alias
from .cache import CacheMetadata, SchemaCache, SchemaLoadError, SchemaSnapshot
from .catalog import KeywordCatalog
from .completion import CompletionBuilder
from .metadata import SchemaAdapter
from .models import (
    AliasMapping,
    ColumnInfo,
    CompletionItem,
    CompletionItemKind,
    ContextType,
    ParseContext,
)
from .parser import extract_partial_word, parse_context
from .server import CompletionServer, InvalidParamsError, MethodNotFoundError, RpcError
from .service import CompletionService
from .statements import statement_at

__all__ = [
    "AliasMapping",
    "CacheMetadata",
    "ColumnInfo",
    "CompletionBuilder",
    "CompletionItem",
    "CompletionItemKind",
    "CompletionServer",
    "CompletionService",
    "ContextType",
    "InvalidParamsError",
    "KeywordCatalog",
    "MethodNotFoundError",
    "ParseContext",
    "RpcError",
    "SchemaAdapter",
    "SchemaCache",
    "SchemaLoadError",
    "SchemaSnapshot",
    "extract_partial_word",
    "extract_table_aliases",
    "extract_table_names",
    "is_sql_keyword",
    "parse_context",
    "resolve_alias",
    "statement_at",
]
