"""Integration tests against a real MongoDB server.

These tests exercise the dispatcher end to end:
matched command -> argument decoding -> pymongo async driver -> sanitized result.

They are skipped if `MONGODB_URI` is not configured or the server is unreachable. Each run works in
its own throwaway database.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import AsyncIterator
from typing import Any, NoReturn

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from pymongo.errors import PyMongoError

from src.command.dispatcher import OperationDispatcher
from src.command.matcher import match_command
from src.db.client import create_client, get_database, ping


def _skip(reason: str) -> NoReturn:
    pytest.skip(reason)


def _require_mongodb_uri() -> str:
    load_dotenv(".env")
    mongodb_uri = os.getenv("MONGODB_URI")
    if not mongodb_uri:
        _skip("MONGODB_URI is not set; skipping integration tests")
    return mongodb_uri


@pytest_asyncio.fixture
async def dispatcher() -> AsyncIterator[OperationDispatcher]:
    """A dispatcher bound to an isolated database that is dropped afterwards."""

    client = create_client(_require_mongodb_uri(), server_selection_timeout_ms=2_000)
    database = get_database(client, f"it_{uuid.uuid4().hex}")
    try:
        await ping(database)
    except PyMongoError as exc:
        await client.close()
        _skip(f"MongoDB is unreachable ({exc}); skipping integration tests")

    try:
        yield OperationDispatcher(database)
    finally:
        await client.drop_database(database.name)
        await client.close()


async def _run(dispatcher: OperationDispatcher, command: str) -> Any:
    matched = match_command(command)
    assert matched is not None, command
    return await dispatcher.dispatch(matched)


@pytest.mark.asyncio
async def test_collection_lifecycle(dispatcher: OperationDispatcher) -> None:
    created = await _run(dispatcher, 'db.createCollection("users")')
    assert created["collectionName"] == "users"

    for i in range(7):
        inserted = await _run(dispatcher, f'db.users.insertOne({{"name": "user{i}", "city": "Perth"}})')
        assert inserted["acknowledged"] is True
        assert isinstance(inserted["insertedId"], str)

    found = await _run(dispatcher, "db.users.find({})")
    assert len(found) == 5

    assert await _run(dispatcher, "db.users.countDocuments({city: 'Perth'})") == 7

    updated = await _run(dispatcher, 'db.users.updateMany({"city": "Perth"}, {"$set": {"city": "Fremantle"}})')
    assert updated["matchedCount"] == 7
    assert updated["modifiedCount"] == 7

    grouped = await _run(
        dispatcher,
        'db.users.aggregate([{"$group": {"_id": "$city", "count": {"$sum": 1}}}])',
    )
    assert grouped == [{"_id": "Fremantle", "count": 7}]

    assert await _run(dispatcher, 'db.users.createIndex({"name": 1})') == "name_1"

    deleted = await _run(dispatcher, 'db.users.deleteMany({"city": "Fremantle"})')
    assert deleted["deletedCount"] == 7

    collections = await _run(dispatcher, "db.listCollections()")
    assert [c["name"] for c in collections] == ["users"]


@pytest.mark.asyncio
async def test_duplicate_collection_is_reported_in_band(dispatcher: OperationDispatcher) -> None:
    await _run(dispatcher, 'db.createCollection("logs")')

    result = await _run(dispatcher, 'db.createCollection("logs")')

    assert result["error"].startswith("MongoDB operation failed: ")


@pytest.mark.asyncio
async def test_run_command_ping(dispatcher: OperationDispatcher) -> None:
    result = await _run(dispatcher, 'db.runCommand({"ping": 1})')

    assert result["ok"] == 1.0
