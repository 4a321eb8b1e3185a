"""Caching people lookups and password checks against an LDAP directory."""

from importlib.metadata import PackageNotFoundError, version

from .directory import Directory, PeopleQuery

__all__ = ["Directory", "PeopleQuery", "__version__"]

__version__: str
"""The version string of ldapdirectory."""

try:
    __version__ = version("ldapdirectory")
except PackageNotFoundError:
    # package is not installed
    __version__ = "0.0.0"
