"""Projection of people entries onto requested attributes."""

from __future__ import annotations

from collections.abc import Iterable

from ..config import DirectoryConfig
from ..constants import ATTRIBUTE_DELIMITER
from ..exceptions import NotFoundError
from ..models.ldap import QueryRequest
from .query import QueryEngine

__all__ = ["AttributeProjector", "ProjectedPeople"]

type ProjectedPeople = dict[str, dict[str, str | None]]
"""Mapping of username to the first value of each requested attribute."""


class AttributeProjector:
    """Render the attributes of looked-up people.

    Parameters
    ----------
    config
        Configuration of the directory.
    engine
        Engine holding the looked-up entries.
    """

    def __init__(self, config: DirectoryConfig, engine: QueryEngine) -> None:
        self._config = config
        self._engine = engine

    def select_attributes(
        self, attributes: str | Iterable[str] | None = None
    ) -> tuple[str, ...]:
        """Determine which attributes were requested.

        Parameters
        ----------
        attributes
            `None` for all configured attributes, a string of attribute
            names separated by commas, a single attribute name, or a list of
            attribute names.

        Returns
        -------
        tuple of str
            Requested attribute names.
        """
        if attributes is None:
            return tuple(self._config.attributes)
        if isinstance(attributes, str):
            if ATTRIBUTE_DELIMITER in attributes:
                split = attributes.split(ATTRIBUTE_DELIMITER)
                return self.select_attributes(
                    [a.strip() for a in split if a.strip()]
                )
            return (attributes.strip(),)
        return tuple(attributes)

    def render(
        self,
        request: QueryRequest | Iterable[str],
        attributes: str | Iterable[str] | None = None,
    ) -> str | ProjectedPeople:
        """Project looked-up people onto the requested attributes.

        Multi-valued attributes are reduced to their first value.

        Parameters
        ----------
        request
            Lookup request, or the usernames that were looked up.
        attributes
            Requested attributes, in any form accepted by
            `select_attributes`. Defaults to the attributes recorded in
            the request, if any.

        Returns
        -------
        str or dict
            If one username and one attribute were requested, the value of
            that attribute. Otherwise, a mapping from username to a mapping
            of attribute name to value. People without an entry are omitted
            and attributes missing from an entry are `None`.

        Raises
        ------
        NotFoundError
            Raised if one username and one attribute were requested and the
            person has no entry or no value for that attribute.
        """
        if isinstance(request, QueryRequest):
            usernames = request.usernames
            if attributes is None and request.attributes:
                attributes = request.attributes
        else:
            usernames = tuple(request)
        selected = self.select_attributes(attributes)
        if len(usernames) == 1 and len(selected) == 1:
            return self._render_scalar(usernames[0], selected[0])

        output: ProjectedPeople = {}
        for username in usernames:
            entry = self._engine.get_entry(username)
            if entry is None:
                continue
            output[username] = {a: entry.first_value(a) for a in selected}
        return output

    def _render_scalar(self, username: str, attribute: str) -> str:
        entry = self._engine.get_entry(username)
        if entry is None:
            raise NotFoundError(f"Person {username} not found")
        value = entry.first_value(attribute)
        if value is None:
            msg = f"Person {username} has no {attribute} attribute"
            raise NotFoundError(msg)
        return value
