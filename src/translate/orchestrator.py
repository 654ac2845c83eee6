"""Request-level pipeline: query -> generated command -> matched command -> dispatch result.

Stages run strictly in order (`received -> generated -> matched -> dispatched -> responded`) and the
first failure is terminal. Only a missing query and a failed generator call are raised; everything
that goes wrong with the generated command itself is reported inside the envelope's result.
"""

from __future__ import annotations

import asyncio
import logging
import re
from time import monotonic
from typing import Any

from src.command.dispatcher import OperationDispatcher
from src.command.errors import UnparseableCommandError
from src.command.matcher import require_match
from src.llm.generator import TextGenerator, load_instructions
from src.translate.schema import ResponseEnvelope

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:[\w+-]*\n)?\s*(.*?)\s*```$", flags=re.DOTALL)
_ANSWER_PREFIX = "mongo-ai:"
_TO_ARRAY_SUFFIX = ".toArray()"


class TranslationError(RuntimeError):
    """Base class for failures reported at the transport level."""


class MissingQueryError(TranslationError):
    """Raised when the request carries no query text."""

    def __init__(self) -> None:
        super().__init__("Query parameter is required in the request body.")


class TranslationFailedError(TranslationError):
    """Raised when the text generator is unreachable or errors."""


def clean_generated_command(text: str | None) -> str:
    """Strip what LLMs wrap around a command.

    Removes surrounding whitespace, markdown fences (with an optional language tag), inline
    backticks, a leading `mongo-ai:` answer marker, one trailing `;` and a trailing `.toArray()`
    (cursors are always drained by the dispatcher).
    """

    value = (text or "").strip()

    m = _FENCE_RE.match(value)
    if m:
        value = m.group(1)
    value = value.strip().strip("`").strip()

    if value.lower().startswith(_ANSWER_PREFIX):
        value = value[len(_ANSWER_PREFIX):].lstrip()
    if value.endswith(";"):
        value = value[:-1].rstrip()
    if value.endswith(_TO_ARRAY_SUFFIX):
        value = value[: -len(_TO_ARRAY_SUFFIX)].rstrip()
    return value


class Translator:
    """Translate natural-language queries into MongoDB commands and execute them."""

    def __init__(
            self,
            generator: TextGenerator,
            dispatcher: OperationDispatcher,
            *,
            instructions: str | None = None,
    ) -> None:
        self._generator = generator
        self._dispatcher = dispatcher
        self._instructions = instructions if instructions is not None else load_instructions()

    async def translate(self, query: str | None) -> ResponseEnvelope:
        """Run the full pipeline for one query.

        Raises:
            MissingQueryError: If `query` is missing or blank.
            TranslationFailedError: If the text generator fails.
        """

        started = monotonic()

        if query is None or not query.strip():
            raise MissingQueryError()
        logger.info("received query=%r", query)

        try:
            generated = await asyncio.to_thread(self._generator.generate, self._instructions, query)
        except Exception as exc:  # noqa: BLE001
            # Generator boundary: any failure of the external call is a translation failure.
            logger.warning("generation failed reason=%s", exc)
            raise TranslationFailedError(str(exc)) from exc

        command = clean_generated_command(generated)
        logger.info("generated raw=%r command=%r", generated, command)

        db_result: Any
        try:
            matched = require_match(command)
        except UnparseableCommandError as exc:
            logger.info("unparseable command=%r", exc.command)
            db_result = {"error": str(exc), "command": exc.command}
        else:
            db_result = await self._dispatcher.dispatch(matched)

        envelope = ResponseEnvelope(
            user_query=query,
            generated_command=command,
            db_result=db_result,
        )

        latency_ms = int((monotonic() - started) * 1000)
        logger.info("responded latency_ms=%d", latency_ms)
        return envelope
