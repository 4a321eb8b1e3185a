"""Constants for ldapdirectory."""

from datetime import timedelta

__all__ = [
    "ATTRIBUTE_DELIMITER",
    "CONFIG_PATH",
    "DEFAULT_BASE_FILTER",
    "DEFAULT_CACHE_LIFETIME",
    "DEFAULT_CACHE_SIZE",
    "DEFAULT_PORT",
    "DN_ATTRIBUTE",
    "LDAP_TIMEOUT",
    "USERNAME_DELIMITER",
    "USERNAME_PLACEHOLDER",
    "WILDCARD",
]

ATTRIBUTE_DELIMITER = ","
"""Separator between attribute names given as a single string."""

CONFIG_PATH = "/etc/ldapdirectory/ldapdirectory.yaml"
"""Default configuration path."""

DEFAULT_BASE_FILTER = "(uid=%uid)"
"""Default search filter template for people entries."""

DEFAULT_CACHE_LIFETIME = timedelta(minutes=10)
"""Default lifetime of cached people entries."""

DEFAULT_CACHE_SIZE = 1000
"""Default maximum number of entries in the in-process cache store."""

DEFAULT_PORT = 389
"""Default LDAP port."""

DN_ATTRIBUTE = "dn"
"""Pseudo-attribute name under which the entry DN is exposed."""

LDAP_TIMEOUT = 5.0
"""Timeout (in seconds) for LDAP connections and queries."""

USERNAME_DELIMITER = ","
"""Separator between usernames given as a single string."""

USERNAME_PLACEHOLDER = "%uid"
"""Placeholder in the base filter that is replaced by each username."""

WILDCARD = "*"
"""Username that would match every entry and is therefore refused."""
