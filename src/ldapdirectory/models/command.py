"""Commands accepted by the directory."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..constants import USERNAME_DELIMITER
from ..exceptions import InputValidationError, UnknownCommandError

__all__ = [
    "AuthCommand",
    "Command",
    "PeopleCommand",
    "parse_command",
]


@dataclass(frozen=True)
class PeopleCommand:
    """Look up people by username."""

    usernames: str | list[str]
    """Single username, comma-separated usernames, or list of usernames."""


@dataclass(frozen=True)
class AuthCommand:
    """Check a user's password."""

    userid: str | None
    """Username of the user."""

    password: str | None
    """Password to check."""


type Command = PeopleCommand | AuthCommand
"""Any command the directory can execute."""


def parse_command(name: str, arguments: str | Sequence[str | None]) -> Command:
    """Build a command from its name and arguments.

    Parameters
    ----------
    name
        Name of the command, either ``people`` or ``auth``.
    arguments
        Arguments of the command. For ``people``, a list of usernames is
        joined into a single comma-separated string. ``auth`` takes exactly
        the username and the password.

    Returns
    -------
    Command
        The corresponding command.

    Raises
    ------
    InputValidationError
        Raised if the arguments to ``auth`` are not a username and password.
    UnknownCommandError
        Raised if the command name is not recognized.
    """
    match name:
        case "people":
            if not isinstance(arguments, str):
                arguments = USERNAME_DELIMITER.join(a or "" for a in arguments)
            return PeopleCommand(usernames=arguments)
        case "auth":
            if isinstance(arguments, str) or len(arguments) != 2:
                msg = "auth takes a username and a password as arguments"
                raise InputValidationError(msg)
            return AuthCommand(userid=arguments[0], password=arguments[1])
        case _:
            raise UnknownCommandError(name)
