"""API process entrypoint."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.routes import router
from src.app import create_app
from src.config.logging import configure_logging
from src.config.settings import load_settings
from src.db.client import get_database, ping

logger = logging.getLogger(__name__)


def create_api(container: Any, *, cors_origins: list[str] | None = None) -> FastAPI:
    """Build the FastAPI application around an application container.

    The lifespan pings MongoDB once at startup (so a bad URI fails fast) and closes the client on
    shutdown; both are skipped when the container carries no client.
    """

    @asynccontextmanager
    async def lifespan(_api: FastAPI) -> AsyncIterator[None]:
        client = getattr(container, "client", None)
        if client is not None:
            await ping(get_database(client, container.settings.db_name))
            logger.info("connected to MongoDB db=%s", container.settings.db_name)
        try:
            yield
        finally:
            if client is not None:
                logger.info("shutting down")
                await client.close()

    api = FastAPI(title="MongoDB AI Agent", lifespan=lifespan)
    api.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    api.state.container = container
    api.include_router(router)
    return api


def main() -> None:
    """Run the HTTP server."""

    settings = load_settings()
    configure_logging(settings.log_level)

    container = create_app(settings)
    api = create_api(container, cors_origins=settings.cors_origins())
    uvicorn.run(api, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
