"""Async MongoDB client helpers.

The service shares one `AsyncMongoClient` across all requests; the driver pools connections
internally, so nothing here partitions or locks it.
"""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase


def require_mongodb_uri() -> str:
    """Read `MONGODB_URI` from the environment or raise a clear error."""

    mongodb_uri = os.getenv("MONGODB_URI")
    if not mongodb_uri:
        raise RuntimeError("MONGODB_URI is required (set it in .env or environment)")
    return mongodb_uri


def create_client(
        mongodb_uri: str | None = None,
        *,
        server_selection_timeout_ms: int = 10_000,
) -> AsyncMongoClient:
    """Create an async MongoDB client.

    Notes:
        - The client connects lazily; call `ping()` at startup to fail fast.
        - If `mongodb_uri` is omitted, the function loads `.env` and reads `MONGODB_URI`.
    """

    if mongodb_uri is None:
        load_dotenv(".env")
        mongodb_uri = require_mongodb_uri()

    return AsyncMongoClient(
        mongodb_uri,
        serverSelectionTimeoutMS=server_selection_timeout_ms,
    )


def get_database(client: AsyncMongoClient, name: str) -> AsyncDatabase:
    """Return the single pre-selected database every command runs against."""

    return client.get_database(name)


async def ping(database: AsyncDatabase) -> dict[str, Any]:
    """Round-trip to the server; raises `pymongo.errors.PyMongoError` when unreachable."""

    return await database.command("ping")
