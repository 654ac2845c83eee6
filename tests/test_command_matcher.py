"""Tests for command shape classification."""

from __future__ import annotations

import pytest

from src.command.errors import UnparseableCommandError
from src.command.matcher import CommandKind, MatchedCommand, match_command, require_match


def test_db_level_command() -> None:
    matched = match_command('db.createCollection("myNewCollection")')
    assert matched == MatchedCommand(
        kind=CommandKind.db_level,
        operation="createCollection",
        raw_args='"myNewCollection"',
    )
    assert matched.collection is None


def test_db_level_without_args() -> None:
    matched = match_command("db.dropDatabase()")
    assert matched is not None
    assert matched.kind == CommandKind.db_level
    assert matched.operation == "dropDatabase"
    assert matched.raw_args == ""


def test_collection_level_command() -> None:
    matched = match_command('db.orders.updateMany({"status": "pending"}, {"$set": {"status": "shipped"}})')
    assert matched is not None
    assert matched.kind == CommandKind.collection_level
    assert matched.collection == "orders"
    assert matched.operation == "updateMany"
    assert matched.raw_args == '{"status": "pending"}, {"$set": {"status": "shipped"}}'


def test_single_character_names_are_collection_level() -> None:
    matched = match_command("db.u.f({})")
    assert matched is not None
    assert matched.kind == CommandKind.collection_level
    assert (matched.collection, matched.operation) == ("u", "f")


def test_multiline_arguments_are_accepted() -> None:
    matched = match_command('db.users.aggregate([\n  {"$match": {"a": 1}}\n])')
    assert matched is not None
    assert matched.operation == "aggregate"
    assert matched.raw_args.startswith("[\n")


@pytest.mark.parametrize(
    "text",
    [
        "Here are all the users",
        "users.find({})",
        "db.users.find({}); db.users.drop()x",
        "db.users.find({}).sort",
        "db.a.b.c({})",
        "db.users-archive.find({})",
        "",
    ],
)
def test_unparseable_commands(text: str) -> None:
    assert match_command(text) is None


def test_matcher_yields_exactly_one_kind() -> None:
    for text in ["db.x()", "db.x.y()", 'db.createCollection("a")', "db.users.find({})"]:
        matched = match_command(text)
        assert matched is not None
        expected = CommandKind.db_level if text.count(".") == 1 else CommandKind.collection_level
        assert matched.kind == expected


def test_require_match_raises_with_command_text() -> None:
    with pytest.raises(UnparseableCommandError) as exc_info:
        require_match("show me the users")

    assert exc_info.value.command == "show me the users"


def test_collection_must_match_kind() -> None:
    with pytest.raises(ValueError):
        MatchedCommand(kind=CommandKind.db_level, operation="find", raw_args="", collection="users")
    with pytest.raises(ValueError):
        MatchedCommand(kind=CommandKind.collection_level, operation="find", raw_args="")


@pytest.mark.parametrize(
    "text",
    [
        "db.dropDatabase(); db.users.find({})",
        "db.users.find({}); db.users.deleteMany({})",
        "db.users.find({})).count(",
    ],
)
def test_trailing_statements_are_unparseable(text: str) -> None:
    assert match_command(text) is None


def test_parentheses_inside_strings_do_not_count() -> None:
    matched = match_command('db.users.find({"note": "see (1)) and (2"})')

    assert matched is not None
    assert matched.raw_args == '{"note": "see (1)) and (2"}'
