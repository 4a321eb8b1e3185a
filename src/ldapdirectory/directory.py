"""The people directory façade."""

from __future__ import annotations

import weakref
from collections.abc import Iterable, Sequence
from dataclasses import replace
from types import TracebackType
from typing import Literal, Self

import structlog
from structlog.stdlib import BoundLogger

from .cache import CacheStore, TTLCacheStore
from .config import DirectoryConfig
from .models.command import AuthCommand, Command, PeopleCommand, parse_command
from .models.ldap import DirectoryEntry, QueryRequest
from .services.auth import AuthVerifier
from .services.projection import AttributeProjector, ProjectedPeople
from .services.query import QueryEngine
from .storage.ldap import LDAPConnectionManager

__all__ = ["Directory", "PeopleQuery"]


class PeopleQuery:
    """Result of a people lookup, ready to be projected onto attributes.

    Parameters
    ----------
    request
        The lookup request.
    projector
        Projector used to render the result.
    """

    def __init__(
        self, request: QueryRequest, projector: AttributeProjector
    ) -> None:
        self._request = request
        self._projector = projector

    @property
    def attributes(self) -> tuple[str, ...]:
        """Attributes of the last projection, empty before any."""
        return self._request.attributes

    @property
    def usernames(self) -> tuple[str, ...]:
        """Usernames that were looked up."""
        return self._request.usernames

    def get(
        self, attributes: str | Iterable[str] | None = None
    ) -> str | ProjectedPeople:
        """Return the requested attributes of the looked-up people.

        See `~ldapdirectory.services.projection.AttributeProjector.render`
        for the shape of the result.
        """
        selected = self._projector.select_attributes(attributes)
        self._request = replace(self._request, attributes=selected)
        return self._projector.render(self._request)

    def get_attribute(self, name: str) -> str | ProjectedPeople:
        """Return one attribute of the looked-up people.

        For a single person, this is the value of the attribute.
        """
        return self.get([name])


class Directory:
    """Caching lookups of people in an LDAP directory.

    The LDAP session is opened on first use and closed by `close` or when
    the directory is discarded. Used as a context manager, the directory
    closes the session on exit.

    Parameters
    ----------
    config
        Configuration of the directory.
    cache
        Cache of people entries. Pass the same store to several directories
        to share cached entries between them. If not given, a private
        in-process store is created.
    logger
        Logger to use. Defaults to the ``ldapdirectory`` logger.
    """

    def __init__(
        self,
        config: DirectoryConfig,
        cache: CacheStore | None = None,
        logger: BoundLogger | None = None,
    ) -> None:
        self.config = config
        if cache is None:
            cache = TTLCacheStore(config.cachesize)
        self.cache = cache
        self._logger = logger or structlog.get_logger("ldapdirectory")
        self._ldap = LDAPConnectionManager(config, self._logger)
        self._finalizer = weakref.finalize(self, self._ldap.close)
        self._engine = QueryEngine(
            config=config,
            ldap=self._ldap,
            cache=self.cache,
            logger=self._logger,
        )
        self._projector = AttributeProjector(config, self._engine)
        self._verifier = AuthVerifier(
            config=config,
            engine=self._engine,
            ldap=self._ldap,
            logger=self._logger,
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> Literal[False]:
        self.close()
        return False

    def auth(self, userid: str | None, password: str | None) -> bool:
        """Check whether a password is valid for a user.

        Never raises for directory failures, which are treated as an invalid
        password.
        """
        return self._verifier.authenticate(userid, password)

    def close(self) -> None:
        """Close the LDAP session."""
        self._finalizer()

    def execute(self, command: Command) -> PeopleQuery | bool:
        """Run a command.

        Parameters
        ----------
        command
            Command to run.

        Returns
        -------
        PeopleQuery or bool
            The people lookup for a people command, or whether the password
            is valid for an auth command.
        """
        match command:
            case PeopleCommand(usernames=usernames):
                return self.people(usernames)
            case AuthCommand(userid=userid, password=password):
                return self.auth(userid, password)

    def get_entry(self, username: str) -> DirectoryEntry | None:
        """Return the entry for an already looked-up person, if any."""
        return self._engine.get_entry(username)

    def people(self, usernames: str | Iterable[str]) -> PeopleQuery:
        """Look up people by username.

        Parameters
        ----------
        usernames
            A username, several usernames separated by commas, or a list of
            usernames. The wildcard ``*`` is refused.

        Returns
        -------
        PeopleQuery
            The lookup result, to be projected onto attributes with
            `PeopleQuery.get` or `PeopleQuery.get_attribute`.
        """
        request = self._engine.lookup(usernames)
        return PeopleQuery(request, self._projector)

    def query(
        self, name: str, arguments: str | Sequence[str | None]
    ) -> PeopleQuery | bool:
        """Run a command given by name.

        Parameters
        ----------
        name
            Name of the command, either ``people`` or ``auth``.
        arguments
            Arguments of the command.

        Returns
        -------
        PeopleQuery or bool
            Result of the command as returned by `execute`.

        Raises
        ------
        InputValidationError
            Raised if the arguments are invalid for the command.
        UnknownCommandError
            Raised if the command is not recognized.
        """
        return self.execute(parse_command(name, arguments))
