"""Conversion of driver results into JSON-safe values.

Write results are reported with the field names the MongoDB shell prints (`insertedId`,
`deletedCount`, ...), so the response reads the same as the command that produced it.
"""

from __future__ import annotations

import base64
import json
import math
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from bson import Binary, Decimal128, ObjectId, json_util
from pymongo.results import DeleteResult, InsertOneResult, UpdateResult


def to_jsonable(value: Any) -> Any:
    """Recursively convert BSON / driver values into plain JSON types."""

    if isinstance(value, float) and not math.isfinite(value):
        # NaN/Infinity stored by other clients; plain JSON cannot carry them.
        if math.isnan(value):
            return {"$numberDouble": "NaN"}
        return {"$numberDouble": "Infinity" if value > 0 else "-Infinity"}
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal128):
        return str(value)
    if isinstance(value, (bytes, Binary)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(v) for v in value]
    # Remaining BSON types (Timestamp, Regex, MinKey, ...) as relaxed Extended JSON.
    return json.loads(json_util.dumps(value, json_options=json_util.RELAXED_JSON_OPTIONS))


def insert_one_result(result: InsertOneResult) -> dict[str, Any]:
    return {
        "acknowledged": result.acknowledged,
        "insertedId": to_jsonable(result.inserted_id),
    }


def update_result(result: UpdateResult) -> dict[str, Any]:
    upserted_id = result.upserted_id
    return {
        "acknowledged": result.acknowledged,
        "matchedCount": result.matched_count,
        "modifiedCount": result.modified_count,
        "upsertedCount": 0 if upserted_id is None else 1,
        "upsertedId": to_jsonable(upserted_id),
    }


def delete_result(result: DeleteResult) -> dict[str, Any]:
    return {
        "acknowledged": result.acknowledged,
        "deletedCount": result.deleted_count,
    }


def collection_info(info: Mapping[str, Any]) -> dict[str, Any]:
    """Project a `listCollections` entry onto its name, type and options."""

    return {
        "name": info.get("name"),
        "type": info.get("type"),
        "options": to_jsonable(info.get("options", {})),
    }
