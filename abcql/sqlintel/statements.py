"""Locate the statement under the cursor in a multi-statement buffer."""

from __future__ import annotations

import logging

from sqlglot.errors import TokenError
from sqlglot.tokens import Tokenizer, TokenType

LOG = logging.getLogger(__name__)


def statement_bounds(text: str, offset: int) -> tuple[int, int]:
    """Return ``(start, end)`` of the `;`-delimited statement containing ``offset``.

    Semicolons inside string literals and comments are ignored. Text that the
    tokenizer rejects (an unterminated string while typing, say) falls back to
    splitting on every semicolon.
    """

    offset = min(max(offset, 0), len(text))
    separators = _separator_offsets(text)
    start = 0
    for position in separators:
        if position < offset:
            start = position + 1
            continue
        return start, position
    return start, len(text)


def statement_at(text: str, offset: int) -> str:
    """Return the text of the statement containing ``offset``."""

    start, end = statement_bounds(text, offset)
    return text[start:end]


def _separator_offsets(text: str) -> list[int]:
    if ";" not in text:
        return []
    try:
        tokens = Tokenizer().tokenize(text)
    except TokenError as exc:
        LOG.debug("Tokenizer rejected buffer, splitting on raw semicolons", extra={"error": str(exc)})
        return [index for index, char in enumerate(text) if char == ";"]
    return [token.start for token in tokens if token.token_type == TokenType.SEMICOLON]


__all__ = ["statement_at", "statement_bounds"]
