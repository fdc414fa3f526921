"""Shared dataclasses used across adapter/session modules."""

from __future__ import annotations

from dataclasses import dataclass

from .sqlintel.metadata import SchemaAdapter


@dataclass(frozen=True, slots=True)
class DataSource:
    """Named connection target bound to the adapter that introspects it."""

    name: str
    adapter: SchemaAdapter


__all__ = ["DataSource"]
