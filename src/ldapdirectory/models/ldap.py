"""Data models for LDAP people entries."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..constants import DN_ATTRIBUTE

__all__ = ["DirectoryEntry", "QueryRequest"]


@dataclass
class DirectoryEntry:
    """A person entry retrieved from LDAP.

    Only the attributes requested in the search are present. Attribute names
    are as given in the configuration, not as returned by the server.
    """

    dn: str
    """Distinguished name of the entry."""

    attributes: dict[str, list[str]] = field(default_factory=dict)
    """Values of each retrieved attribute."""

    def get_attribute(self, name: str) -> list[str]:
        """Return all values of an attribute.

        Parameters
        ----------
        name
            Name of the attribute. The name ``dn`` returns the DN of the
            entry unless the entry also has a real attribute by that name.

        Returns
        -------
        list of str
            Values of the attribute, which will be empty if the entry does
            not have that attribute.
        """
        if name in self.attributes:
            return self.attributes[name]
        if name == DN_ATTRIBUTE:
            return [self.dn]
        return []

    def first_value(self, name: str) -> str | None:
        """Return the first value of an attribute, or `None` if it has none."""
        values = self.get_attribute(name)
        return values[0] if values else None


@dataclass(frozen=True)
class QueryRequest:
    """The usernames and attributes of one logical people lookup."""

    usernames: tuple[str, ...]
    """Requested usernames, deduplicated, in the order requested."""

    attributes: tuple[str, ...] = ()
    """Requested attributes, empty for all configured attributes."""
