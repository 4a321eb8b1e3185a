"""Batched people lookups with caching."""

from __future__ import annotations

from collections.abc import Iterable

from bonsai.utils import escape_filter_exp
from structlog.stdlib import BoundLogger

from ..cache import CacheStore
from ..config import DirectoryConfig
from ..constants import USERNAME_DELIMITER, USERNAME_PLACEHOLDER, WILDCARD
from ..exceptions import ConfigError, InputValidationError
from ..models.ldap import DirectoryEntry, QueryRequest
from ..storage.ldap import LDAPConnectionManager

__all__ = ["QueryEngine"]


class QueryEngine:
    """Look up people in LDAP, avoiding searches for already known people.

    Entries are remembered in a result buffer private to this engine and in
    a cache store that may be shared with other engines. A username found in
    either is never searched for again. All usernames missing from both are
    retrieved with a single search.

    Parameters
    ----------
    config
        Configuration of the directory.
    ldap
        Session with the LDAP server.
    cache
        Shared cache of people entries.
    logger
        Logger to use.
    """

    def __init__(
        self,
        *,
        config: DirectoryConfig,
        ldap: LDAPConnectionManager,
        cache: CacheStore,
        logger: BoundLogger,
    ) -> None:
        self._config = config
        self._ldap = ldap
        self._cache = cache
        self._logger = logger
        self._results: dict[str, DirectoryEntry] = {}

    def get_entry(self, username: str) -> DirectoryEntry | None:
        """Return the buffered or cached entry for a username.

        Parameters
        ----------
        username
            Username of the person.

        Returns
        -------
        DirectoryEntry or None
            The entry, or `None` if the person has not been found.
        """
        if username in self._results:
            return self._results[username]
        return self._cache.get(username)

    def has_entry(self, username: str) -> bool:
        """Return whether the entry for a username is buffered or cached."""
        return username in self._results or self._cache.has(username)

    def lookup(self, usernames: str | Iterable[str]) -> QueryRequest:
        """Ensure the entries for the given usernames are available.

        Parameters
        ----------
        usernames
            A username, several usernames separated by commas, or a list of
            usernames.

        Returns
        -------
        QueryRequest
            The normalized request. Entries for its usernames can then be
            retrieved with `get_entry`. People not found in LDAP have no
            entry.

        Raises
        ------
        AuthError
            Raised if the administrative bind failed.
        ConfigError
            Raised if a search is needed and no people DN is configured.
        InputValidationError
            Raised if the wildcard username was requested or no username was
            given.
        LDAPConnectionError
            Raised if the LDAP server could not be reached.
        LDAPError
            Raised if the search failed.
        """
        request = QueryRequest(usernames=self.normalize(usernames))
        missing = [u for u in request.usernames if not self.has_entry(u)]
        if missing:
            self._request(missing)
        else:
            self._logger.debug(
                "All people already known", users=list(request.usernames)
            )
        return request

    def normalize(self, usernames: str | Iterable[str]) -> tuple[str, ...]:
        """Convert requested usernames to a deduplicated tuple.

        Parameters
        ----------
        usernames
            A username, several usernames separated by commas, or a list of
            usernames.

        Returns
        -------
        tuple of str
            Usernames in the order first requested, stripped of surrounding
            whitespace.

        Raises
        ------
        InputValidationError
            Raised if the wildcard username was requested or no username was
            given.
        """
        if isinstance(usernames, str):
            usernames = [usernames]
        result: dict[str, None] = {}
        for value in usernames:
            for username in value.split(USERNAME_DELIMITER):
                username = username.strip()
                if username == WILDCARD:
                    msg = "Cannot enumerate entire directory"
                    raise InputValidationError(msg)
                if username:
                    result[username] = None
        if not result:
            raise InputValidationError("No usernames given")
        return tuple(result)

    def _build_filter(self, usernames: list[str]) -> str:
        template = self._config.basefilter
        fragments = [
            template.replace(USERNAME_PLACEHOLDER, escape_filter_exp(u))
            for u in usernames
        ]
        return "(|" + "".join(fragments) + ")"

    def _request(self, usernames: list[str]) -> None:
        """Search LDAP for the given usernames and store the results."""
        peopledn = self._config.peopledn
        if not peopledn:
            raise ConfigError("No people DN configured")
        key = self._config.key
        logger = self._logger.bind(users=usernames)
        entries = self._ldap.search(
            peopledn, self._build_filter(usernames), self._config.attributes
        )
        for entry in entries:
            value = entry.first_value(key)
            if value is None:
                msg = f"LDAP entry has no {key} attribute, ignoring"
                logger.warning(msg, ldap_dn=entry.dn)
                continue
            self._store(value, entry)
        logger.debug("Stored LDAP results", count=len(entries))

    def _store(self, key: str, entry: DirectoryEntry) -> None:
        self._cache.put(key, entry, self._config.cachettl)
        self._results[key] = entry
