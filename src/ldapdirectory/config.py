"""Configuration for ldapdirectory.

The directory is configured by a YAML file. Every setting may also be set
via an environment variable named after the setting with an
``LDAPDIRECTORY_`` prefix, such as ``LDAPDIRECTORY_BINDPASSWORD``.
Environment variables take precedence over the file so that the bind
password need not be stored in it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Self, override

import yaml
from pydantic import (
    AliasChoices,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from safir.logging import LogLevel, configure_logging
from safir.pydantic import HumanTimedelta

from .constants import (
    DEFAULT_BASE_FILTER,
    DEFAULT_CACHE_LIFETIME,
    DEFAULT_CACHE_SIZE,
    DEFAULT_PORT,
    DN_ATTRIBUTE,
    USERNAME_PLACEHOLDER,
)

__all__ = [
    "DirectoryConfig",
    "EnvFirstSettings",
]


class EnvFirstSettings(BaseSettings):
    """Base class for Pydantic settings with environment overrides.

    Classes that inherit from this base class will prioritize environment
    variables, prefixed with ``LDAPDIRECTORY_``, over arguments to the class
    constructor. Extra attributes are forbidden and the settings are
    immutable once loaded.
    """

    model_config = SettingsConfigDict(
        env_prefix="LDAPDIRECTORY_",
        extra="forbid",
        frozen=True,
        populate_by_name=True,
    )

    @override
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Override the sources of settings.

        Deactivate :file:`.env` and secret file support. Allow environment
        variables to override init parameters, since init parameters come
        from the YAML configuration file.
        """
        return (env_settings, init_settings)


class DirectoryConfig(EnvFirstSettings):
    """Configuration for a people directory backed by LDAP."""

    server: str = Field(
        ...,
        title="LDAP server",
        description="Hostname or IP address of the LDAP server",
    )

    port: int = Field(
        DEFAULT_PORT,
        title="LDAP port",
        description="Port of the LDAP server",
        ge=1,
        le=65535,
    )

    binddn: str | None = Field(
        None,
        title="Administrative bind DN",
        description=(
            "DN to bind as with simple bind when searching for people. If"
            " not set, searches are done with an anonymous bind."
        ),
    )

    bindpassword: SecretStr | None = Field(
        None,
        title="Administrative bind password",
        description="Password for the administrative bind DN",
    )

    peopledn: str | None = Field(
        None,
        title="Base DN for people searches",
        description=(
            "Base DN under which people entries are searched. Lookups that"
            " need the directory fail if this is not set."
        ),
    )

    basefilter: str = Field(
        DEFAULT_BASE_FILTER,
        title="Search filter template",
        description=(
            f"Filter matching one person, in which {USERNAME_PLACEHOLDER} is"
            " replaced by the username"
        ),
    )

    attributes: list[str] = Field(
        ...,
        title="Retrievable attributes",
        description="Ordered list of attributes retrieved for each person",
        min_length=1,
    )

    key: str = Field(
        "uid",
        title="Key attribute",
        description=(
            "Attribute whose value uniquely identifies a person and is used"
            " as the cache key. Must be one of the retrievable attributes."
        ),
    )

    cachettl: HumanTimedelta = Field(
        DEFAULT_CACHE_LIFETIME,
        title="Cache lifetime",
        description="How long retrieved people entries are cached",
    )

    cachesize: int = Field(
        DEFAULT_CACHE_SIZE,
        title="Cache size",
        description="Maximum number of entries in the in-process cache",
        ge=1,
    )

    userdn: str = Field(
        DN_ATTRIBUTE,
        title="Bind DN attribute",
        description=(
            "Attribute of a person entry holding the DN used to verify that"
            f" person's password. The special value {DN_ATTRIBUTE} uses the"
            " DN of the entry."
        ),
    )

    log_level: LogLevel = Field(
        LogLevel.INFO,
        title="Log level",
        description="Log level of the ldapdirectory logger",
        validation_alias=AliasChoices("LDAPDIRECTORY_LOG_LEVEL", "logLevel"),
    )

    @field_validator("basefilter")
    @classmethod
    def _validate_basefilter(cls, v: str) -> str:
        if USERNAME_PLACEHOLDER not in v:
            msg = f"basefilter must contain {USERNAME_PLACEHOLDER}"
            raise ValueError(msg)
        return v

    @field_validator("attributes")
    @classmethod
    def _validate_attributes(cls, v: list[str]) -> list[str]:
        attributes = [a.strip() for a in v]
        if not all(attributes):
            raise ValueError("attribute names must not be empty")
        return list(dict.fromkeys(attributes))

    @model_validator(mode="after")
    def _validate_key(self) -> Self:
        if self.key not in self.attributes:
            msg = f"key attribute {self.key} not in attributes"
            raise ValueError(msg)
        return self

    @model_validator(mode="after")
    def _validate_userdn(self) -> Self:
        if self.userdn != DN_ATTRIBUTE and self.userdn not in self.attributes:
            msg = f"userdn attribute {self.userdn} not in attributes"
            raise ValueError(msg)
        return self

    @property
    def url(self) -> str:
        """URL of the LDAP server as used by bonsai."""
        return f"ldap://{self.server}:{self.port}"

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Construct a DirectoryConfig object from a configuration file.

        Parameters
        ----------
        path
            Path to the configuration file in YAML.

        Returns
        -------
        DirectoryConfig
            The corresponding `DirectoryConfig` object.
        """
        with path.open("r") as f:
            return cls(**yaml.safe_load(f))

    def configure_logging(self) -> None:
        """Configure logging based on the directory configuration."""
        configure_logging(name="ldapdirectory", log_level=self.log_level)
