"""Application composition root.

This module wires together configuration, the MongoDB client, the LLM generator and the translation
pipeline for the API runtime.
"""

from __future__ import annotations

from dataclasses import dataclass

from pymongo import AsyncMongoClient

from src.command.dispatcher import OperationDispatcher
from src.config.settings import Settings
from src.db.client import create_client, get_database
from src.llm.generator import ChatCompletionsGenerator, llm_config_from_settings
from src.translate.orchestrator import Translator


@dataclass(frozen=True)
class App:
    """Shared application dependencies for request handlers."""

    settings: Settings
    client: AsyncMongoClient
    translator: Translator


def create_app(settings: Settings) -> App:
    """Create the application container.

    Note:
        The MongoDB client connects lazily. Call `await ping(...)` at startup to fail fast and
        `await app.client.close()` at shutdown.
    """

    client = create_client(settings.mongodb_uri)
    database = get_database(client, settings.db_name)
    translator = Translator(
        generator=ChatCompletionsGenerator(llm_config_from_settings(settings)),
        dispatcher=OperationDispatcher(database, find_limit=settings.find_limit),
    )
    return App(settings=settings, client=client, translator=translator)
