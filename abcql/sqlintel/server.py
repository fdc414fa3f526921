"""Request dispatcher exposing the completion service to an editor host."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from ..buffers import Buffer
from .service import CompletionService

LOG = logging.getLogger(__name__)

TRIGGER_CHARACTERS: tuple[str, ...] = (".", " ")


class RpcError(Exception):
    """Protocol-level failure reported back to the host."""

    code = -32603

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


class MethodNotFoundError(RpcError):
    """Raised for request methods the server does not implement."""

    code = -32601

    def __init__(self, method: str) -> None:
        super().__init__(f"Method not found: {method}")
        self.method = method


class InvalidParamsError(RpcError):
    """Raised when request parameters do not have the expected shape."""

    code = -32602


class CompletionServer:
    """Per-buffer server answering initialize, completion and shutdown."""

    def __init__(self, service: CompletionService, buffer: Buffer) -> None:
        self._service = service
        self._buffer = buffer
        self._handlers: dict[str, Callable[[Mapping[str, Any]], Any]] = {
            "initialize": self.handle_initialize,
            "textDocument/completion": self.handle_completion,
            "shutdown": lambda _params: self.handle_shutdown(),
        }

    @property
    def service(self) -> CompletionService:
        return self._service

    @property
    def data_source(self) -> str:
        return self._service.data_source

    def dispatch(self, method: str, params: Mapping[str, Any] | None = None) -> Any:
        """Route ``method`` to its handler; unknown methods raise MethodNotFoundError."""

        handler = self._handlers.get(method)
        if handler is None:
            LOG.debug("Rejecting unsupported method", extra={"method": method})
            raise MethodNotFoundError(method)
        return handler(params or {})

    def request(self, method: str, params: Mapping[str, Any] | None = None) -> tuple[dict[str, Any] | None, Any]:
        """Callback-style variant of :meth:`dispatch` returning ``(error, result)``."""

        try:
            return None, self.dispatch(method, params)
        except RpcError as exc:
            return exc.to_dict(), None

    def handle_initialize(self, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return {
            "capabilities": {
                "completionProvider": {
                    "triggerCharacters": list(TRIGGER_CHARACTERS),
                    "resolveProvider": False,
                }
            }
        }

    def handle_completion(self, params: Mapping[str, Any]) -> list[dict[str, Any]]:
        line_index, character = _position(params)
        line = self._buffer.line(line_index)
        if line is None:
            return []
        full_text = self._buffer.text_through(line_index)
        cursor_offset = len(full_text) - len(line) + min(character, len(line))
        items = self._service.complete(line, character, full_text, cursor_offset=cursor_offset)
        return [item.to_lsp() for item in items]

    def handle_shutdown(self) -> None:
        return None


def _position(params: Mapping[str, Any]) -> tuple[int, int]:
    position = params.get("position")
    if not isinstance(position, Mapping):
        raise InvalidParamsError("Completion request is missing 'position'")
    line = position.get("line")
    character = position.get("character")
    if not isinstance(line, int) or not isinstance(character, int):
        raise InvalidParamsError("Completion position needs integer 'line' and 'character'")
    return line, character


__all__ = [
    "CompletionServer",
    "InvalidParamsError",
    "MethodNotFoundError",
    "RpcError",
    "TRIGGER_CHARACTERS",
]
