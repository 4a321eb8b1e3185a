"""Internal results of password verification."""

from __future__ import annotations

from dataclasses import dataclass

from ..exceptions import DirectoryError

__all__ = ["AuthFailure", "AuthResult", "AuthSuccess"]


@dataclass(frozen=True)
class AuthSuccess:
    """The bind was attempted and the server answered."""

    valid: bool
    """Whether the password was accepted."""


@dataclass(frozen=True)
class AuthFailure:
    """The password could not be checked."""

    error: DirectoryError
    """Error that prevented the check."""


type AuthResult = AuthSuccess | AuthFailure
"""Outcome of an attempt to verify a password."""
