"""Tests for batched people lookups."""

from __future__ import annotations

from datetime import timedelta

import pytest
import structlog

from ldapdirectory.cache import TTLCacheStore
from ldapdirectory.config import DirectoryConfig
from ldapdirectory.exceptions import ConfigError, InputValidationError
from ldapdirectory.services.query import QueryEngine
from ldapdirectory.storage.ldap import LDAPConnectionManager

from ..support.config import configure
from ..support.ldap import MockLDAP, add_test_people
from ..support.timer import FakeTimer


def build_engine(
    config: DirectoryConfig, cache: TTLCacheStore | None = None
) -> QueryEngine:
    logger = structlog.get_logger("ldapdirectory")
    return QueryEngine(
        config=config,
        ldap=LDAPConnectionManager(config, logger),
        cache=cache if cache is not None else TTLCacheStore(),
        logger=logger,
    )


def test_normalize(config: DirectoryConfig) -> None:
    engine = build_engine(config)

    assert engine.normalize("alice") == ("alice",)
    assert engine.normalize("alice,bob") == ("alice", "bob")
    assert engine.normalize(" bob , alice,bob,") == ("bob", "alice")
    assert engine.normalize(["bob", "alice"]) == ("bob", "alice")
    assert engine.normalize(["carol", "alice,bob", " carol"]) == (
        "carol",
        "alice",
        "bob",
    )

    with pytest.raises(InputValidationError):
        engine.normalize("")
    with pytest.raises(InputValidationError):
        engine.normalize([" , "])


def test_wildcard(
    config: DirectoryConfig, cache: TTLCacheStore, mock_ldap: MockLDAP
) -> None:
    add_test_people(mock_ldap)
    engine = build_engine(config, cache)

    for usernames in ("*", " * ", ["*"], "alice,*", ["bob", "*"]):
        with pytest.raises(InputValidationError, match="entire directory"):
            engine.lookup(usernames)
    assert mock_ldap.clients == []

    # Still refused once everything else is cached.
    engine.lookup("alice,bob")
    with pytest.raises(InputValidationError):
        engine.lookup("*")
    assert len(mock_ldap.searches) == 1


def test_lookup(
    config: DirectoryConfig, cache: TTLCacheStore, mock_ldap: MockLDAP
) -> None:
    add_test_people(mock_ldap)
    engine = build_engine(config, cache)

    request = engine.lookup("alice,bob,alice")

    assert request.usernames == ("alice", "bob")
    assert mock_ldap.searches == [
        (
            "ou=people,dc=example,dc=com",
            "(|(uid=alice)(uid=bob))",
            ["uid", "cn", "mail"],
        )
    ]

    # Each entry is stored under its own key with its own data.
    alice = engine.get_entry("alice")
    bob = engine.get_entry("bob")
    assert alice
    assert bob
    assert alice.dn == "uid=alice,ou=people,dc=example,dc=com"
    assert alice.first_value("cn") == "Alice Example"
    assert bob.dn == "uid=bob,ou=people,dc=example,dc=com"
    assert bob.first_value("cn") == "Bob Example"
    assert bob.get_attribute("mail") == ["bob@example.com"]
    assert cache.get("alice") == alice
    assert cache.get("bob") == bob

    # A second lookup of known people does not search.
    engine.lookup(["bob", "alice"])
    engine.lookup("alice")
    assert len(mock_ldap.searches) == 1


def test_lookup_partial(
    config: DirectoryConfig, cache: TTLCacheStore, mock_ldap: MockLDAP
) -> None:
    add_test_people(mock_ldap)
    engine = build_engine(config, cache)
    engine.lookup("alice")

    # Only the missing people are searched for.
    engine.lookup("alice,bob,carol")
    assert mock_ldap.searches[-1][1] == "(|(uid=bob)(uid=carol))"
    assert engine.has_entry("bob")

    # People not in LDAP are not cached and are searched for again.
    assert not engine.has_entry("carol")
    assert engine.get_entry("carol") is None
    assert not cache.has("carol")
    engine.lookup("carol")
    assert len(mock_ldap.searches) == 3
    assert mock_ldap.searches[-1][1] == "(|(uid=carol))"


def test_shared_cache(
    config: DirectoryConfig, cache: TTLCacheStore, mock_ldap: MockLDAP
) -> None:
    add_test_people(mock_ldap)
    build_engine(config, cache).lookup("alice,bob")
    assert len(mock_ldap.searches) == 1

    other = build_engine(config, cache)
    other.lookup("bob,alice")
    assert len(mock_ldap.searches) == 1
    entry = other.get_entry("alice")
    assert entry
    assert entry.first_value("mail") == "alice@example.com"


def test_buffer_outlives_cache(
    config: DirectoryConfig, mock_ldap: MockLDAP
) -> None:
    add_test_people(mock_ldap)
    timer = FakeTimer()
    cache = TTLCacheStore(timer=timer)
    engine = build_engine(config, cache)
    engine.lookup("alice")

    timer.now += timedelta(minutes=11).total_seconds()
    assert not cache.has("alice")

    # The result buffer of the engine still knows alice, but another engine
    # sharing the cache has to search again.
    engine.lookup("alice")
    assert len(mock_ldap.searches) == 1
    build_engine(config, cache).lookup("alice")
    assert len(mock_ldap.searches) == 2
    assert cache.has("alice")


def test_filter_escaping(
    config: DirectoryConfig, mock_ldap: MockLDAP
) -> None:
    engine = build_engine(config)
    engine.lookup("a)(uid=*")
    filter_exp = mock_ldap.searches[0][1]
    assert filter_exp.lower() == r"(|(uid=a\29\28uid=\2a))"


def test_filter_template(mock_ldap: MockLDAP) -> None:
    mock_ldap.add_test_user("alice", mail="alice@example.com")
    config = configure("mail-only")
    engine = build_engine(config)

    engine.lookup("alice@example.com,bob@example.com")

    assert mock_ldap.searches == [
        (
            "ou=people,dc=example,dc=com",
            "(|(|(uid=alice@example.com)(mail=alice@example.com))"
            "(|(uid=bob@example.com)(mail=bob@example.com)))",
            ["mail"],
        )
    ]
    assert engine.has_entry("alice@example.com")


def test_missing_key(config: DirectoryConfig, mock_ldap: MockLDAP) -> None:
    mock_ldap.add_entry_for_test(
        "uid=broken,ou=people,dc=example,dc=com", {"cn": ["broken"]}
    )
    mock_ldap.add_test_user("alice", cn="broken")
    config = DirectoryConfig(
        server="ldap.example.com",
        peopledn="ou=people,dc=example,dc=com",
        basefilter="(cn=%uid)",
        attributes=["uid", "cn"],
    )
    engine = build_engine(config)

    engine.lookup("broken")

    assert engine.has_entry("alice")
    assert not engine.has_entry("broken")


def test_no_peopledn(mock_ldap: MockLDAP) -> None:
    engine = build_engine(configure("no-peopledn"))
    with pytest.raises(ConfigError):
        engine.lookup("alice")
    assert mock_ldap.clients == []
