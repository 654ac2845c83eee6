"""Error taxonomy for command interpretation and execution.

Every `CommandError` is reported in-band: the request still succeeds and the message is embedded in
the response's result field.
"""

from __future__ import annotations


class CommandError(ValueError):
    """Base class for failures to interpret or execute one generated command."""


class UnparseableCommandError(CommandError):
    """Raised when a command matches neither the database-level nor the collection-level shape."""

    def __init__(self, command: str) -> None:
        super().__init__(
            "Could not parse generated MongoDB command. "
            "It might be malformed or an unsupported operation type."
        )
        self.command = command


class MalformedArgumentsError(CommandError):
    """Raised when argument text cannot be decoded, even after the repair pass."""

    def __init__(self, text: str) -> None:
        super().__init__(f"Invalid JSON syntax for MongoDB argument: {text}")
        self.text = text


class InvalidArgumentsError(CommandError):
    """Raised when decoded arguments violate an operation's arity or type contract."""


class UnsupportedOperationError(CommandError):
    """Raised for a well-formed command naming an operation the dispatcher does not know."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(message)
        self.operation = operation


class StoreExecutionError(CommandError):
    """Raised when the MongoDB call itself fails."""
