"""Verification of user passwords against LDAP."""

from __future__ import annotations

from structlog.stdlib import BoundLogger

from ..config import DirectoryConfig
from ..exceptions import DirectoryError, InputValidationError, NotFoundError
from ..models.auth import AuthFailure, AuthResult, AuthSuccess
from ..storage.ldap import LDAPConnectionManager
from .query import QueryEngine

__all__ = ["AuthVerifier"]


class AuthVerifier:
    """Check user passwords by binding to LDAP as the user.

    The user's entry is first looked up with the administrative session to
    find the DN to bind as. That entry is cached like any other lookup.

    Parameters
    ----------
    config
        Configuration of the directory.
    engine
        Engine used to look up the user's entry.
    ldap
        Session with the LDAP server.
    logger
        Logger to use.
    """

    def __init__(
        self,
        *,
        config: DirectoryConfig,
        engine: QueryEngine,
        ldap: LDAPConnectionManager,
        logger: BoundLogger,
    ) -> None:
        self._config = config
        self._engine = engine
        self._ldap = ldap
        self._logger = logger

    def authenticate(self, userid: str | None, password: str | None) -> bool:
        """Check whether a password is valid for a user.

        This never raises an exception for a directory failure. Any failure
        to look up the user or to contact the LDAP server means the password
        is not valid.

        Parameters
        ----------
        userid
            Username of the user.
        password
            Password to check.

        Returns
        -------
        bool
            Whether the password is valid. Always `False` if either the
            username or password is empty, without contacting LDAP, since
            an empty password would otherwise be an unauthenticated bind.
        """
        if not userid or not password:
            return False
        logger = self._logger.bind(user=userid)
        match self._verify(userid, password):
            case AuthSuccess(valid=valid):
                if not valid:
                    logger.info("Password rejected by LDAP")
                return valid
            case AuthFailure(error=error):
                logger.warning("Cannot verify password", error=str(error))
                return False

    def _verify(self, userid: str, password: str) -> AuthResult:
        try:
            request = self._engine.lookup(userid)
            if len(request.usernames) != 1:
                raise InputValidationError("Only one user may authenticate")
            entry = self._engine.get_entry(request.usernames[0])
            if entry is None:
                raise NotFoundError(f"Person {userid} not found")
            dn = entry.first_value(self._config.userdn)
            if not dn:
                msg = f"Person {userid} has no {self._config.userdn}"
                raise NotFoundError(msg)
            return AuthSuccess(self._ldap.verify_credentials(dn, password))
        except DirectoryError as e:
            return AuthFailure(e)
