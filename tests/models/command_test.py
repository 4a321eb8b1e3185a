"""Tests for parsing directory commands."""

from __future__ import annotations

import pytest

from ldapdirectory.exceptions import InputValidationError, UnknownCommandError
from ldapdirectory.models.command import (
    AuthCommand,
    PeopleCommand,
    parse_command,
)


def test_people() -> None:
    assert parse_command("people", "alice") == PeopleCommand("alice")
    assert parse_command("people", "alice,bob") == PeopleCommand("alice,bob")
    assert parse_command("people", ["alice", "bob"]) == PeopleCommand(
        "alice,bob"
    )
    assert parse_command("people", ["alice"]) == PeopleCommand("alice")


def test_auth() -> None:
    assert parse_command("auth", ["alice", "secret"]) == AuthCommand(
        "alice", "secret"
    )
    assert parse_command("auth", [None, None]) == AuthCommand(None, None)

    for arguments in ([], ["alice"], ["alice", "secret", "extra"], "alice"):
        with pytest.raises(InputValidationError):
            parse_command("auth", arguments)


def test_unknown() -> None:
    with pytest.raises(UnknownCommandError) as excinfo:
        parse_command("groups", ["admins"])
    assert excinfo.value.command == "groups"
    assert isinstance(excinfo.value, NotImplementedError)
