"""HTTP routes.

Contract: a request that reaches the generator always produces a 200 response carrying the
envelope, even when the generated command could not be parsed or executed (the failure is embedded
in `dbResult`). Only a missing query (400) and a failed translation (500) are transport errors.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from src.translate.orchestrator import MissingQueryError
from src.translate.schema import QueryRequest

logger = logging.getLogger(__name__)

TRANSLATION_FAILED_MESSAGE = "Failed to process query with AI or execute MongoDB command."

router = APIRouter()


def get_container(request: Request) -> Any:
    """Return the application container stored on the FastAPI app state."""

    return request.app.state.container


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/api/mongo-ai")
async def mongo_ai(request: Request, body: QueryRequest | None = None) -> JSONResponse:
    """Translate a natural-language query into a MongoDB command and run it."""

    container = get_container(request)
    query = body.query if body is not None else None

    # noinspection PyBroadException
    try:
        envelope = await container.translator.translate(query)
    except MissingQueryError as exc:
        logger.info("rejected reason=%s", exc)
        return JSONResponse(status_code=400, content={"error": str(exc)})
    except Exception as exc:
        # Handler boundary: generator failures and unexpected errors become a 500 with details.
        logger.exception("request failed")
        return JSONResponse(
            status_code=500,
            content={"error": TRANSLATION_FAILED_MESSAGE, "details": str(exc)},
        )

    return JSONResponse(content=envelope.to_wire())
