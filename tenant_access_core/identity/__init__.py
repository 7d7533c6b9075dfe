"""Identity provider interface consumed by the join flow."""

from .provider import (
    AuthResult,
    IdentityProvider,
    classify_provider_message,
    provider_error,
)

__all__ = ["AuthResult", "IdentityProvider", "classify_provider_message", "provider_error"]
