"""LDAP storage layer for ldapdirectory."""

from __future__ import annotations

import bonsai
from bonsai import LDAPClient, LDAPConnection, LDAPSearchScope
from structlog.stdlib import BoundLogger

from ..config import DirectoryConfig
from ..constants import LDAP_TIMEOUT
from ..exceptions import AuthError, LDAPConnectionError, LDAPError
from ..models.ldap import DirectoryEntry

__all__ = ["LDAPConnectionManager"]


class LDAPConnectionManager:
    """Owner of the LDAP session of one directory.

    The session is opened by `connect` and marked bound by `bind`. Both are
    idempotent, and `search` calls them as needed, so callers normally never
    call them directly. bonsai performs the bind when a connection is
    opened, so if a bind DN is configured the session is opened with the
    administrative credentials and there is never an anonymous bind.

    There is no reconnection logic. After an error, the caller must `close`
    the manager and create a new one to try again.

    Parameters
    ----------
    config
        Configuration of the directory.
    logger
        Logger for debug messages and errors.
    """

    def __init__(self, config: DirectoryConfig, logger: BoundLogger) -> None:
        self._config = config
        self._logger = logger.bind(ldap_url=config.url)
        self._client: LDAPClient | None = None
        self._conn: LDAPConnection | None = None
        self._bound = False
        self._closed = False

    @property
    def bound(self) -> bool:
        """Whether the session is bound with the administrative credentials."""
        return self._bound

    @property
    def connected(self) -> bool:
        """Whether the session has been opened."""
        return self._conn is not None

    def connect(self) -> LDAPConnection:
        """Open the session if it is not already open.

        If a bind DN is configured, the connection is opened with the
        administrative credentials. Otherwise it is opened anonymously.

        Returns
        -------
        bonsai.LDAPConnection
            The open connection.

        Raises
        ------
        AuthError
            Raised if the LDAP server rejected the administrative
            credentials or refused an anonymous bind.
        LDAPConnectionError
            Raised if the LDAP server could not be reached.
        LDAPError
            Raised if the LDAP server failed for another reason.
        """
        if self._conn is not None:
            return self._conn
        if self._closed:
            raise LDAPConnectionError("LDAP session has already been closed")
        client = self._build_client()
        binddn = self._config.binddn
        logger = self._logger
        if binddn:
            password = self._config.bindpassword
            client.set_credentials(
                "SIMPLE",
                user=binddn,
                password=password.get_secret_value() if password else "",
            )
            logger = logger.bind(ldap_binddn=binddn)
        try:
            self._conn = self._open(client)
        except bonsai.AuthenticationError as e:
            logger.exception("Cannot bind to LDAP", error=str(e))
            if binddn:
                msg = f"Cannot bind to LDAP server as {binddn}"
            else:
                msg = "LDAP server refused anonymous bind"
            raise AuthError(msg) from e
        self._client = client
        logger.debug("Connected to LDAP server")
        return self._conn

    def bind(self) -> None:
        """Ensure the session is bound with the administrative credentials.

        Does nothing if the session is already bound. Otherwise opens the
        session with `connect`, which binds as the configured bind DN, or
        anonymously if none is configured.

        Raises
        ------
        AuthError
            Raised if the LDAP server rejected the credentials.
        LDAPConnectionError
            Raised if the LDAP server could not be reached.
        LDAPError
            Raised if the LDAP server failed for another reason.
        """
        if self._bound:
            return
        self.connect()
        self._bound = True

    def search(
        self, base: str, filter_exp: str, attributes: list[str]
    ) -> list[DirectoryEntry]:
        """Search the directory with the administrative session.

        Parameters
        ----------
        base
            Base DN of the search.
        filter_exp
            Search filter.
        attributes
            Attributes to retrieve.

        Returns
        -------
        list of DirectoryEntry
            Matching entries with the requested attributes that they have.

        Raises
        ------
        AuthError
            Raised if the administrative bind failed.
        LDAPError
            Raised if the LDAP server returned an error for the search.
        LDAPConnectionError
            Raised if the LDAP server could not be reached.
        """
        self.bind()
        assert self._conn
        logger = self._logger.bind(
            ldap_attrs=attributes, ldap_base=base, ldap_search=filter_exp
        )
        logger.debug("Querying LDAP")
        try:
            results = self._conn.search(
                base=base,
                scope=LDAPSearchScope.SUB,
                filter_exp=filter_exp,
                attrlist=attributes,
                timeout=LDAP_TIMEOUT,
            )
        except (bonsai.ConnectionError, bonsai.TimeoutError) as e:
            logger.exception("Cannot query LDAP", error=str(e))
            raise LDAPConnectionError(f"Cannot query LDAP: {e!s}") from e
        except bonsai.LDAPError as e:
            logger.exception("Cannot query LDAP", error=str(e))
            raise LDAPError(f"Cannot query LDAP: {e!s}") from e

        # bonsai matches attribute names case-insensitively, so index by the
        # configured spelling rather than by what the server returned.
        entries = []
        for result in results:
            values = {
                a: [_decode_value(v) for v in result[a]]
                for a in attributes
                if a in result
            }
            entry = DirectoryEntry(dn=str(result.dn), attributes=values)
            entries.append(entry)
        logger.debug("LDAP search complete", count=len(entries))
        return entries

    def verify_credentials(self, dn: str, password: str) -> bool:
        """Check whether a DN and password can bind to the LDAP server.

        The check uses a separate connection so that the administrative
        session stays bound as the administrative user.

        Parameters
        ----------
        dn
            DN to bind as.
        password
            Password for that DN.

        Returns
        -------
        bool
            Whether the bind succeeded.

        Raises
        ------
        LDAPConnectionError
            Raised if the LDAP server could not be reached.
        LDAPError
            Raised if the LDAP server failed for another reason.
        """
        client = self._build_client()
        client.set_credentials("SIMPLE", user=dn, password=password)
        try:
            conn = self._open(client)
        except bonsai.AuthenticationError:
            self._logger.debug("LDAP bind rejected", ldap_binddn=dn)
            return False
        conn.close()
        return True

    def close(self) -> None:
        """Release the session.

        Safe to call more than once. The session is only closed the first
        time.
        """
        if self._closed:
            return
        self._closed = True
        if self._conn:
            self._conn.close()
            self._logger.debug("Closed LDAP connection")
        self._conn = None
        self._client = None
        self._bound = False

    def _build_client(self) -> LDAPClient:
        client = LDAPClient(self._config.url)
        client.server_chase_referrals = False
        return client

    def _open(self, client: LDAPClient) -> LDAPConnection:
        """Open a connection, converting bonsai errors.

        `bonsai.AuthenticationError` is left for the caller to handle.
        """
        try:
            return client.connect(timeout=LDAP_TIMEOUT)
        except bonsai.AuthenticationError:
            raise
        except (bonsai.ConnectionError, bonsai.TimeoutError) as e:
            msg = f"Cannot connect to LDAP server at {self._config.url}"
            self._logger.exception(msg, error=str(e))
            raise LDAPConnectionError(msg) from e
        except bonsai.LDAPError as e:
            msg = f"Cannot open LDAP connection to {self._config.url}"
            self._logger.exception(msg, error=str(e))
            raise LDAPError(f"{msg}: {e!s}") from e


def _decode_value(value: object) -> str:
    """Convert an attribute value returned by bonsai to a string.

    bonsai returns values of attributes with binary syntax as `bytes`. Those
    are decoded as UTF-8, replacing undecodable bytes.
    """
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)
