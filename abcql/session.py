"""Session manager attaching editor buffers to data sources."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Hashable, Sequence

from .adapters import build_adapter
from .buffers import Buffer
from .config import AppConfig, CompletionSettings, DataSourceConfig
from .models import DataSource
from .sqlintel import CompletionServer, CompletionService, SchemaCache, SchemaLoadError
from .sqlintel.metadata import SchemaAdapter

LOG = logging.getLogger(__name__)

BufferId = Hashable
AdapterFactory = Callable[[DataSourceConfig], SchemaAdapter]


class NoticeLevel(str, Enum):
    """Severity of a session notice."""

    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class SessionNotice:
    """User-facing message about schema loading."""

    data_source: str
    level: NoticeLevel
    message: str
    at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))


SessionListener = Callable[[SessionNotice], None]


@dataclass(frozen=True, slots=True)
class Attachment:
    """A buffer bound to a data source through its completion server."""

    buffer_id: BufferId
    data_source: str
    server: CompletionServer


class SessionManager:
    """Owns the shared schema cache and the per-buffer completion servers."""

    def __init__(
        self,
        *,
        config: AppConfig | None = None,
        data_sources: Sequence[DataSource] | None = None,
        cache: SchemaCache | None = None,
        adapter_factory: AdapterFactory = build_adapter,
    ) -> None:
        self._config = config or AppConfig()
        self._cache = cache or SchemaCache()
        if data_sources is None:
            data_sources = tuple(
                DataSource(name=entry.name, adapter=adapter_factory(entry))
                for entry in self._config.data_sources
            )
        self._data_sources = tuple(data_sources)
        self._attachments: dict[BufferId, Attachment] = {}
        self._listeners: set[SessionListener] = set()

    @property
    def cache(self) -> SchemaCache:
        return self._cache

    @property
    def data_sources(self) -> tuple[DataSource, ...]:
        """Data sources available to attach."""

        return self._data_sources

    @property
    def settings(self) -> CompletionSettings:
        return self._config.completion

    def data_source(self, name: str) -> DataSource:
        for source in self._data_sources:
            if source.name == name:
                return source
        raise ValueError(f"Data source '{name}' not found.")

    def default_data_source(self) -> DataSource | None:
        """Configured default, else the first available data source."""

        if self._config.default_data_source:
            return self.data_source(self._config.default_data_source)
        return self._data_sources[0] if self._data_sources else None

    async def attach(
        self,
        buffer_id: BufferId,
        buffer: Buffer,
        data_source: str | None = None,
    ) -> CompletionServer:
        """Bind ``buffer`` to a data source, loading its schema on first use.

        Raises :class:`SchemaLoadError` after notifying listeners when the
        schema cannot be loaded; the buffer is left detached.
        """

        source = self._resolve(data_source)
        if buffer_id in self._attachments:
            self.detach(buffer_id)

        if not self._cache.has_cache(source.name):
            self._notify(source.name, NoticeLevel.INFO, f"Loading schema for {source.name}...")
            try:
                await self._cache.load_schema(source.name, source.adapter)
            except SchemaLoadError as exc:
                self._notify(source.name, NoticeLevel.ERROR, f"Failed to load schema: {exc}")
                raise
            self._notify(source.name, NoticeLevel.INFO, f"Schema loaded for {source.name}")

        server = CompletionServer(self._service_for(source.name), buffer)
        self._attachments[buffer_id] = Attachment(buffer_id=buffer_id, data_source=source.name, server=server)
        LOG.debug("Attached buffer", extra={"buffer": repr(buffer_id), "data_source": source.name})
        return server

    def detach(self, buffer_id: BufferId) -> None:
        """Unbind a buffer; unknown ids are ignored."""

        attachment = self._attachments.pop(buffer_id, None)
        if attachment is not None:
            attachment.server.handle_shutdown()
            LOG.debug("Detached buffer", extra={"buffer": repr(buffer_id), "data_source": attachment.data_source})

    def is_attached(self, buffer_id: BufferId) -> bool:
        return buffer_id in self._attachments

    def data_source_name(self, buffer_id: BufferId) -> str | None:
        attachment = self._attachments.get(buffer_id)
        return attachment.data_source if attachment else None

    def server_for(self, buffer_id: BufferId) -> CompletionServer | None:
        attachment = self._attachments.get(buffer_id)
        return attachment.server if attachment else None

    async def refresh_schema(self, name: str) -> None:
        """Reload the schema for ``name``; attached buffers see it once complete."""

        source = self.data_source(name)
        self._notify(name, NoticeLevel.INFO, f"Refreshing schema for {name}...")
        try:
            await self._cache.refresh_schema(name, source.adapter)
        except SchemaLoadError as exc:
            self._notify(name, NoticeLevel.ERROR, f"Failed to refresh schema: {exc}")
            raise
        self._notify(name, NoticeLevel.INFO, f"Schema refreshed for {name}")

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Subscribe to session notices; returns an unsubscribe handle."""

        self._listeners.add(listener)

        def _unsubscribe() -> None:
            self._listeners.discard(listener)

        return _unsubscribe

    async def aclose(self) -> None:
        """Detach every buffer and release adapter resources."""

        for buffer_id in tuple(self._attachments):
            self.detach(buffer_id)
        for source in self._data_sources:
            closer = getattr(source.adapter, "aclose", None)
            if closer is not None:
                await closer()

    def _resolve(self, name: str | None) -> DataSource:
        if name is not None:
            return self.data_source(name)
        source = self.default_data_source()
        if source is None:
            raise ValueError("No data sources configured.")
        return source

    def _service_for(self, name: str) -> CompletionService:
        settings = self._config.completion
        return CompletionService(
            self._cache,
            name,
            statement_scope=settings.statement_scope,
            max_items=settings.max_items,
        )

    def _notify(self, data_source: str, level: NoticeLevel, message: str) -> None:
        notice = SessionNotice(data_source=data_source, level=level, message=message)
        for listener in tuple(self._listeners):
            listener(notice)


__all__ = [
    "Attachment",
    "NoticeLevel",
    "SessionListener",
    "SessionManager",
    "SessionNotice",
]
