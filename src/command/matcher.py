"""Shape matching for generated shell commands.

Two command shapes are understood:

- database level: `db.<operation>(<args>)`
- collection level: `db.<collection>.<operation>(<args>)`

The database-level shape is tried first. Both patterns are anchored, so trailing content (a second
statement, a chained call) makes the command unparseable rather than partially executed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

from src.command.errors import UnparseableCommandError

_DB_LEVEL_RE = re.compile(r"db\.(\w+)\((.*)\)", flags=re.DOTALL)
_COLLECTION_LEVEL_RE = re.compile(r"db\.(\w+)\.(\w+)\((.*)\)", flags=re.DOTALL)


def _parens_balanced(raw_args: str) -> bool:
    """True if every `)` in the argument text closes a `(` opened inside it (strings skipped).

    A greedy `(.*)` would otherwise swallow `); db.other(` and hide a second statement.
    """

    depth = 0
    quote: str | None = None
    escaped = False
    for ch in raw_args:
        if quote is not None:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0 and quote is None


class CommandKind(StrEnum):
    """Which object the command's operation is invoked on."""

    db_level = "db_level"
    collection_level = "collection_level"


@dataclass(frozen=True)
class MatchedCommand:
    """A classified command: operation name, target collection (if any) and raw argument text."""

    kind: CommandKind
    operation: str
    raw_args: str
    collection: str | None = None

    def __post_init__(self) -> None:
        if (self.kind == CommandKind.collection_level) != (self.collection is not None):
            raise ValueError("collection must be set iff kind is collection_level")


def match_command(text: str) -> MatchedCommand | None:
    """Classify a command, or return `None` if it matches neither shape."""

    value = text.strip()

    m = _DB_LEVEL_RE.fullmatch(value)
    if m and _parens_balanced(m.group(2)):
        return MatchedCommand(
            kind=CommandKind.db_level,
            operation=m.group(1),
            raw_args=m.group(2),
        )

    m = _COLLECTION_LEVEL_RE.fullmatch(value)
    if m and _parens_balanced(m.group(3)):
        return MatchedCommand(
            kind=CommandKind.collection_level,
            collection=m.group(1),
            operation=m.group(2),
            raw_args=m.group(3),
        )

    return None


def require_match(text: str) -> MatchedCommand:
    """Classify a command.

    Raises:
        UnparseableCommandError: If the command matches neither shape.
    """

    matched = match_command(text)
    if matched is None:
        raise UnparseableCommandError(text)
    return matched
