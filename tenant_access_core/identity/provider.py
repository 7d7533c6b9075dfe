"""
Interface to the external identity provider.

The core only needs sign-up, password sign-in, password reset and sign-out,
and only consumes success (with the principal id) or failure. Provider
failures are raised as IdentityProviderError with a normalized kind so no
caller has to match raw provider text.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from ..enums import IdentityErrorKind
from ..exceptions import IdentityProviderError

# Lowercased substrings of provider messages, checked in order
_MESSAGE_KINDS = (
    ("invalid login credentials", IdentityErrorKind.INVALID_CREDENTIALS),
    ("invalid credentials", IdentityErrorKind.INVALID_CREDENTIALS),
    ("email not confirmed", IdentityErrorKind.EMAIL_NOT_CONFIRMED),
    ("user not found", IdentityErrorKind.USER_NOT_FOUND),
    ("user already registered", IdentityErrorKind.USER_ALREADY_REGISTERED),
    ("already been registered", IdentityErrorKind.USER_ALREADY_REGISTERED),
    ("already registered", IdentityErrorKind.USER_ALREADY_REGISTERED),
    ("password should be", IdentityErrorKind.WEAK_PASSWORD),
    ("weak password", IdentityErrorKind.WEAK_PASSWORD),
    ("rate limit", IdentityErrorKind.RATE_LIMITED),
    ("too many requests", IdentityErrorKind.RATE_LIMITED),
    ("network", IdentityErrorKind.UNAVAILABLE),
    ("timed out", IdentityErrorKind.UNAVAILABLE),
    ("service unavailable", IdentityErrorKind.UNAVAILABLE),
)


def classify_provider_message(text: Optional[str]) -> IdentityErrorKind:
    """Map raw provider error text to a stable IdentityErrorKind."""
    lowered = (text or "").lower()
    for needle, kind in _MESSAGE_KINDS:
        if needle in lowered:
            return kind
    return IdentityErrorKind.UNKNOWN


def provider_error(text: Optional[str], cause: Optional[Exception] = None) -> IdentityProviderError:
    """Build an IdentityProviderError from raw provider text."""
    kind = classify_provider_message(text)
    return IdentityProviderError(kind, message=text or None, cause=cause)


class AuthResult(BaseModel):
    """Principal returned by a successful sign-up or sign-in."""

    user_id: str
    email: str

    model_config = ConfigDict(frozen=True)


class IdentityProvider(ABC):
    """
    External identity provider.

    Implementations raise IdentityProviderError on every failure.
    """

    @abstractmethod
    def sign_up(
        self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None
    ) -> AuthResult:
        ...

    @abstractmethod
    def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        ...

    @abstractmethod
    def reset_password(self, email: str) -> None:
        ...

    @abstractmethod
    def sign_out(self) -> None:
        ...
