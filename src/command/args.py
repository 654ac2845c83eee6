"""Argument normalization for generated shell commands.

LLM output is usually strict JSON, but shell-style literals (`{name: 'John'}`) slip through. Decoding
is attempted strictly first; only on failure is a best-effort textual repair applied. The repair is a
heuristic, not a parser: single quotes inside double-quoted strings and colons inside string values
can still be mangled.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from src.command.errors import MalformedArgumentsError

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"""(['"])?([a-zA-Z0-9_$]+)(['"])?:""")
_SINGLE_QUOTED_RE = re.compile(r"'([^']+)'")

_OPENERS = {"{": "}", "[": "]"}
_CLOSERS = {"}", "]"}


@dataclass(frozen=True)
class ParsedArgs:
    """A decoded argument plus whether the repair pass was needed to produce it."""

    value: Any
    repaired: bool = False


def repair_json_text(text: str) -> str:
    """Quote identifier keys and turn single-quoted literals into double-quoted ones."""

    value = _KEY_RE.sub(r'"\2":', text)
    return _SINGLE_QUOTED_RE.sub(r'"\1"', value)


def _reject_non_finite(name: str) -> Any:
    raise ValueError(f"non-finite number {name} is not supported")


def _loads(text: str) -> Any:
    return json.loads(text, parse_constant=_reject_non_finite)


def parse_strict(text: str) -> Any:
    """Decode `text` as strict JSON (no repair pass). `NaN` and `Infinity` are rejected.

    Raises:
        ValueError: If the text is not valid JSON (`json.JSONDecodeError`) or holds a non-finite
            number.
    """

    return _loads(text.strip())


def parse_args(text: str | None) -> ParsedArgs:
    """Decode one argument into structured data.

    Empty input decodes to an empty document.

    Raises:
        MalformedArgumentsError: If neither the strict nor the repaired text decodes.
    """

    value = (text or "").strip()
    if not value:
        return ParsedArgs(value={})

    try:
        return ParsedArgs(value=_loads(value))
    except ValueError:
        pass

    repaired = repair_json_text(value)
    try:
        return ParsedArgs(value=_loads(repaired), repaired=True)
    except ValueError as exc:
        logger.warning("argument decode failed text=%r repaired=%r reason=%s", value, repaired, exc)
        raise MalformedArgumentsError(value) from exc


def parse_mongo_args(text: str | None) -> Any:
    """Decode one argument and return only the value (see `parse_args`)."""

    return parse_args(text).value


def split_top_level(text: str) -> list[str]:
    """Split an argument list on commas that are not nested inside `{}`/`[]` or a string literal.

    `'{a:1,b:2}, {c:3}'` yields `['{a:1,b:2}', '{c:3}']`. Segments are stripped; empty input yields
    an empty list.
    """

    if not text.strip():
        return []

    segments: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None
    escaped = False

    for ch in text:
        if quote is not None:
            current.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
            continue

        if ch in ("'", '"'):
            quote = ch
        elif ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(depth - 1, 0)
        elif ch == "," and depth == 0:
            segments.append("".join(current).strip())
            current = []
            continue
        current.append(ch)

    segments.append("".join(current).strip())
    return segments
