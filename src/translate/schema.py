"""Request/response models for the translation endpoint (Pydantic).

The response envelope is the only wire contract of the service: the original query, the generated
command text, and the dispatch result (a success payload or an `{"error": ...}` object).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class QueryRequest(BaseModel):
    """Incoming request body.

    `query` is optional at the schema level so a missing value is reported by the orchestrator with
    the service's own error message rather than a generic validation error.
    """

    model_config = ConfigDict(extra="ignore")

    query: str | None = None


class ResponseEnvelope(BaseModel):
    """Result of one translated request; immutable once built."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_query: str = Field(alias="userQuery")
    generated_command: str = Field(alias="generatedCommand")
    db_result: Any = Field(alias="dbResult")

    def to_wire(self) -> dict[str, Any]:
        """Serialize with the camelCase field names used on the wire."""

        return self.model_dump(by_alias=True)
