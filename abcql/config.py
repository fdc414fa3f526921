"""App configuration loading helpers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import tomllib

from pydantic import BaseModel, Field, ValidationError

LOG = logging.getLogger(__name__)

CONFIG_FILE = Path.home() / ".config" / "abcql" / "config.toml"

# database -> table -> column -> type
StaticCatalog = dict[str, dict[str, dict[str, str]]]


class CompletionSettings(BaseModel):
    """Knobs for the completion service."""

    max_items: int = Field(default=200, ge=0)
    statement_scope: bool = True


class DataSourceConfig(BaseModel):
    """Data source entry stored in config.toml."""

    name: str
    kind: Literal["postgres", "static"] = "postgres"
    dsn: str | None = None
    host: str | None = None
    port: int | None = None
    database: str | None = None
    user: str | None = None
    password: str | None = None
    connect_timeout: float = Field(default=5.0, gt=0)
    catalog: StaticCatalog | None = None


class AppConfig(BaseModel):
    """Shape of the application configuration file."""

    data_sources: list[DataSourceConfig] = Field(default_factory=lambda: list(_default_data_sources()))
    default_data_source: str | None = None
    completion: CompletionSettings = Field(default_factory=CompletionSettings)

    def data_source(self, name: str) -> DataSourceConfig:
        """Return the named data source entry."""

        for entry in self.data_sources:
            if entry.name == name:
                return entry
        raise ValueError(f"Data source '{name}' not found.")

    def active_data_source(self) -> DataSourceConfig | None:
        """Configured default, else the first entry."""

        if self.default_data_source:
            return self.data_source(self.default_data_source)
        return self.data_sources[0] if self.data_sources else None

    def with_default_data_source(self, name: str) -> AppConfig:
        """Return a copy with the default data source updated."""

        self.data_source(name)
        return self.model_copy(update={"default_data_source": name})


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from disk; fall back to defaults if missing or invalid."""

    target = path or CONFIG_FILE
    try:
        with target.open("rb") as handle:
            raw = tomllib.load(handle)
    except FileNotFoundError:
        return AppConfig()
    except (tomllib.TOMLDecodeError, OSError) as exc:
        LOG.warning("Ignoring unreadable config file", extra={"path": str(target), "error": str(exc)})
        return AppConfig()

    try:
        return AppConfig.model_validate(raw)
    except ValidationError as exc:
        LOG.warning(
            "Ignoring invalid config file",
            extra={"path": str(target), "errors": exc.error_count()},
        )
        return AppConfig()


def _default_data_sources() -> tuple[DataSourceConfig, ...]:
    """Data source shown on first run before config is customized."""

    return (DataSourceConfig(name="demo", kind="static"),)


__all__ = [
    "AppConfig",
    "CONFIG_FILE",
    "CompletionSettings",
    "DataSourceConfig",
    "StaticCatalog",
    "load_config",
]
