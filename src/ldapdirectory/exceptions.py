"""Exceptions for ldapdirectory."""

from __future__ import annotations

__all__ = [
    "AuthError",
    "ConfigError",
    "DirectoryError",
    "InputValidationError",
    "LDAPConnectionError",
    "LDAPError",
    "NotFoundError",
    "UnknownCommandError",
]


class DirectoryError(Exception):
    """Base class for all errors raised by ldapdirectory."""


class AuthError(DirectoryError):
    """The LDAP server rejected the administrative bind."""


class ConfigError(DirectoryError):
    """A configuration setting required for the operation is missing."""


class LDAPError(DirectoryError):
    """An LDAP operation failed for a reason other than connectivity."""


class InputValidationError(DirectoryError, ValueError):
    """The arguments to a lookup or command were invalid."""


class LDAPConnectionError(DirectoryError, ConnectionError):
    """The LDAP server could not be reached."""


class NotFoundError(DirectoryError, LookupError):
    """The requested user or attribute is neither buffered nor cached."""


class UnknownCommandError(DirectoryError, NotImplementedError):
    """The named command is not supported.

    Parameters
    ----------
    command
        Name of the command that was requested.
    """

    def __init__(self, command: str) -> None:
        super().__init__(f"Command {command} is not implemented")
        self.command = command
