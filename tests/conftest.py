"""Test fixtures."""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

from ldapdirectory.cache import TTLCacheStore
from ldapdirectory.config import DirectoryConfig
from ldapdirectory.directory import Directory

from .support.config import configure
from .support.ldap import MockLDAP, patch_ldap


@pytest.fixture(autouse=True)
def environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear environment variables that would override test settings."""
    for variable in list(os.environ):
        if variable.startswith("LDAPDIRECTORY_"):
            monkeypatch.delenv(variable)


@pytest.fixture
def config() -> DirectoryConfig:
    """Return the default test configuration."""
    return configure("base")


@pytest.fixture
def cache() -> TTLCacheStore:
    """Return an empty cache store."""
    return TTLCacheStore()


@pytest.fixture
def mock_ldap() -> Iterator[MockLDAP]:
    """Replace the bonsai LDAP API with a mock class."""
    yield from patch_ldap()


@pytest.fixture
def directory(
    config: DirectoryConfig, cache: TTLCacheStore, mock_ldap: MockLDAP
) -> Iterator[Directory]:
    """Return a directory using the mock LDAP server."""
    with Directory(config, cache) as directory:
        yield directory
