"""Command line access to schema loading and completion."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from .buffers import TextBuffer
from .config import load_config
from .session import SessionManager, SessionNotice
from .sqlintel import SchemaLoadError

LOG = logging.getLogger(__name__)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="abcql", description=__doc__)
    parser.add_argument("--config", type=Path, default=None, help="Path to config.toml")
    parser.add_argument("--data-source", default=None, help="Data source name (defaults to the configured default)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    complete = commands.add_parser("complete", help="Print completion items for SQL text")
    complete.add_argument("sql", help="SQL text; use a literal newline for multi-line buffers")
    complete.add_argument("--cursor", type=int, default=None, help="Cursor offset (defaults to end of text)")

    commands.add_parser("schema", help="Print the loaded schema as JSON")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(_run(args))


async def _run(args: argparse.Namespace) -> int:
    manager = SessionManager(config=load_config(args.config))
    manager.subscribe(_report)
    buffer = TextBuffer(getattr(args, "sql", ""))
    try:
        server = await manager.attach("cli", buffer, args.data_source)
    except (SchemaLoadError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        await manager.aclose()
        return 1

    try:
        if args.command == "complete":
            cursor = len(buffer.text) if args.cursor is None else args.cursor
            line, character = buffer.position_of(cursor)
            result: Any = server.dispatch(
                "textDocument/completion",
                {"position": {"line": line, "character": character}},
            )
        else:
            result = _schema_dump(manager, server.data_source)
    finally:
        await manager.aclose()
    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


def _schema_dump(manager: SessionManager, name: str) -> dict[str, Any]:
    snapshot = manager.cache.snapshot(name)
    if snapshot is None:
        return {}
    return {
        database: {
            table: [{"name": column.name, "type": column.type} for column in snapshot.columns.get((database, table), ())]
            for table in tables
        }
        for database, tables in snapshot.tables.items()
    }


def _report(notice: SessionNotice) -> None:
    LOG.info(notice.message, extra={"data_source": notice.data_source, "level": notice.level.value})


__all__ = ["main", "parse_args"]
