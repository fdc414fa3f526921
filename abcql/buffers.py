"""Buffer text access used by the completion server."""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable


@runtime_checkable
class Buffer(Protocol):
    """Read-only view of an editor buffer, addressed by 0-based line index."""

    def line(self, index: int) -> str | None:
        """Return the text of line ``index`` or None when it does not exist."""

    def text_through(self, index: int) -> str:
        """Return lines ``0..index`` inclusive joined with newlines."""


class TextBuffer:
    """In-memory buffer backed by a string."""

    def __init__(self, text: str = "") -> None:
        self._lines: list[str] = text.split("\n")

    @classmethod
    def from_lines(cls, lines: Sequence[str]) -> "TextBuffer":
        return cls("\n".join(lines))

    @property
    def text(self) -> str:
        return "\n".join(self._lines)

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def set_text(self, text: str) -> None:
        self._lines = text.split("\n")

    def line(self, index: int) -> str | None:
        if 0 <= index < len(self._lines):
            return self._lines[index]
        return None

    def text_through(self, index: int) -> str:
        if index < 0:
            return ""
        return "\n".join(self._lines[: index + 1])

    def position_of(self, offset: int) -> tuple[int, int]:
        """Convert a character offset into a ``(line, character)`` pair."""

        offset = min(max(offset, 0), len(self.text))
        before = self.text[:offset]
        line = before.count("\n")
        character = offset - (before.rfind("\n") + 1)
        return line, character


__all__ = ["Buffer", "TextBuffer"]
