"""Execution of matched commands against MongoDB.

The dispatcher owns the operation allowlist: each supported shell method maps to one handler that
decodes and validates its own arguments, calls the async driver, and returns a JSON-safe value.
Live driver objects (cursors, collection handles, write results) never leave this module.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from functools import partial
from time import monotonic
from typing import Any

from bson.errors import BSONError
from pymongo.errors import PyMongoError

from src.command.args import parse_mongo_args, parse_strict, split_top_level
from src.command.errors import (
    CommandError,
    InvalidArgumentsError,
    StoreExecutionError,
    UnsupportedOperationError,
)
from src.command.matcher import CommandKind, MatchedCommand
from src.command.results import (
    collection_info,
    delete_result,
    insert_one_result,
    to_jsonable,
    update_result,
)

logger = logging.getLogger(__name__)

OperationResult = dict[str, Any] | list[Any] | int | str

DEFAULT_FIND_LIMIT = 5
STORE_FAILURE_PREFIX = "MongoDB operation failed"

DbHandler = Callable[[str], Awaitable[OperationResult]]
CollectionHandler = Callable[[Any, str], Awaitable[OperationResult]]


def _require_document(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise InvalidArgumentsError(f"{what} must be a document, got {type(value).__name__}")
    return value


def _first_segment(raw_args: str) -> str:
    segments = split_top_level(raw_args)
    return segments[0] if segments else ""


class OperationDispatcher:
    """Run `MatchedCommand`s against one database.

    Args:
        database: An async database handle (`pymongo.AsyncMongoClient(...)[name]` or a substitute
            exposing the same coroutine methods).
        find_limit: Maximum number of documents a `find` returns.
    """

    def __init__(self, database: Any, *, find_limit: int = DEFAULT_FIND_LIMIT) -> None:
        self._db = database
        self._find_limit = find_limit

        self._db_ops: dict[str, DbHandler] = {
            "createCollection": self._create_collection,
            "dropDatabase": self._drop_database,
            "listCollections": self._list_collections,
            "runCommand": self._run_command,
        }
        self._collection_ops: dict[str, CollectionHandler] = {
            "find": self._find,
            "insertOne": self._insert_one,
            "updateOne": partial(self._update, many=False),
            "updateMany": partial(self._update, many=True),
            "deleteOne": partial(self._delete, many=False),
            "deleteMany": partial(self._delete, many=True),
            "createIndex": self._create_index,
            "countDocuments": self._count_documents,
            "aggregate": self._aggregate,
        }

    @property
    def db_operations(self) -> frozenset[str]:
        return frozenset(self._db_ops)

    @property
    def collection_operations(self) -> frozenset[str]:
        return frozenset(self._collection_ops)

    async def dispatch(self, matched: MatchedCommand) -> OperationResult:
        """Execute a matched command and return its sanitized result.

        Interpretation and store failures are returned as `{"error": message}` instead of raised.
        Unsupported operations report their message verbatim; every other failure is prefixed with
        `"MongoDB operation failed: "`.
        """

        started = monotonic()
        try:
            result = await self._execute(matched)
        except UnsupportedOperationError as exc:
            logger.info(
                "unsupported kind=%s collection=%s operation=%s",
                matched.kind,
                matched.collection,
                matched.operation,
            )
            return {"error": str(exc)}
        except CommandError as exc:
            logger.info(
                "operation failed kind=%s collection=%s operation=%s reason=%s",
                matched.kind,
                matched.collection,
                matched.operation,
                exc,
            )
            return {"error": f"{STORE_FAILURE_PREFIX}: {exc}"}

        latency_ms = int((monotonic() - started) * 1000)
        logger.info(
            "dispatched kind=%s collection=%s operation=%s latency_ms=%d",
            matched.kind,
            matched.collection,
            matched.operation,
            latency_ms,
        )
        return result

    async def _execute(self, matched: MatchedCommand) -> OperationResult:
        try:
            if matched.kind == CommandKind.db_level:
                db_handler = self._db_ops.get(matched.operation)
                if db_handler is None:
                    raise UnsupportedOperationError(
                        matched.operation,
                        f"Unsupported direct 'db.' operation: {matched.operation}",
                    )
                return await db_handler(matched.raw_args)

            handler = self._collection_ops.get(matched.operation)
            if handler is None:
                raise UnsupportedOperationError(
                    matched.operation,
                    f"Unsupported MongoDB collection operation: {matched.operation}",
                )
            collection = self._db.get_collection(matched.collection)
            return await handler(collection, matched.raw_args)
        except CommandError:
            raise
        except (PyMongoError, BSONError, OverflowError, TypeError, ValueError) as exc:
            logger.warning(
                "store call failed collection=%s operation=%s error=%s",
                matched.collection,
                matched.operation,
                exc,
            )
            raise StoreExecutionError(str(exc)) from exc

    # Database-level operations.

    async def _create_collection(self, raw_args: str) -> OperationResult:
        segments = split_top_level(raw_args)
        if not segments or not segments[0]:
            raise InvalidArgumentsError("Missing collection name for createCollection.")

        name = parse_mongo_args(segments[0])
        if not isinstance(name, str) or not name:
            raise InvalidArgumentsError("Collection name must be a string (e.g., 'myCollection').")

        options: dict[str, Any] = {}
        if len(segments) > 1:
            options = _require_document(parse_mongo_args(segments[1]), "createCollection options")

        created = await self._db.create_collection(name, **options)
        return {
            "acknowledged": True,
            "collectionName": created.name,
            "message": f"Collection '{created.name}' created successfully.",
        }

    async def _drop_database(self, raw_args: str) -> OperationResult:
        if raw_args.strip():
            raise InvalidArgumentsError(f"dropDatabase takes no arguments, got: {raw_args}")
        return to_jsonable(await self._db.command("dropDatabase"))

    async def _list_collections(self, raw_args: str) -> OperationResult:
        query = _require_document(parse_mongo_args(raw_args), "listCollections filter")
        cursor = await self._db.list_collections(filter=query)
        return [collection_info(info) for info in await cursor.to_list()]

    async def _run_command(self, raw_args: str) -> OperationResult:
        command = _require_document(parse_mongo_args(raw_args), "runCommand argument")
        if not command:
            raise InvalidArgumentsError("runCommand requires a non-empty command document.")
        return to_jsonable(await self._db.command(command))

    # Collection-level operations.

    async def _find(self, collection: Any, raw_args: str) -> OperationResult:
        # Only the filter is honored; projection and options segments are ignored.
        query = _require_document(parse_mongo_args(_first_segment(raw_args)), "find filter")
        cursor = collection.find(query).limit(self._find_limit)
        return to_jsonable(await cursor.to_list())

    async def _insert_one(self, collection: Any, raw_args: str) -> OperationResult:
        document = _require_document(parse_mongo_args(raw_args), "insertOne argument")
        return insert_one_result(await collection.insert_one(document))

    async def _update(self, collection: Any, raw_args: str, *, many: bool) -> OperationResult:
        segments = split_top_level(raw_args)
        if len(segments) != 2:
            raise InvalidArgumentsError(
                "Invalid arguments for update operation: expected a filter and an update document, "
                f"got {len(segments)} argument(s)."
            )

        query = _require_document(parse_mongo_args(segments[0]), "update filter")
        update = parse_mongo_args(segments[1])
        if not isinstance(update, (dict, list)):
            raise InvalidArgumentsError("update must be a document or an aggregation pipeline")

        if many:
            result = await collection.update_many(query, update)
        else:
            result = await collection.update_one(query, update)
        return update_result(result)

    async def _delete(self, collection: Any, raw_args: str, *, many: bool) -> OperationResult:
        query = _require_document(parse_mongo_args(raw_args), "delete filter")
        if many:
            result = await collection.delete_many(query)
        else:
            result = await collection.delete_one(query)
        return delete_result(result)

    async def _create_index(self, collection: Any, raw_args: str) -> OperationResult:
        spec = _require_document(parse_mongo_args(_first_segment(raw_args)), "index specification")
        if not spec:
            raise InvalidArgumentsError("createIndex requires at least one indexed field.")
        return await collection.create_index(list(spec.items()))

    async def _count_documents(self, collection: Any, raw_args: str) -> OperationResult:
        query = _require_document(parse_mongo_args(raw_args), "countDocuments filter")
        return await collection.count_documents(query)

    async def _aggregate(self, collection: Any, raw_args: str) -> OperationResult:
        try:
            pipeline = parse_strict(raw_args)
        except ValueError as exc:
            raise InvalidArgumentsError(f"Invalid JSON for aggregation pipeline: {exc}") from exc
        if not isinstance(pipeline, list):
            raise InvalidArgumentsError("Aggregation pipeline must be an array of stages.")

        cursor = await collection.aggregate(pipeline)
        return to_jsonable(await cursor.to_list())
