"""
Email-existence probe.

There is no existence endpoint on the identity provider, so the probe tries a
sign-in with a password nobody uses and reads the error: "invalid
credentials" or "email not confirmed" mean an account exists, anything else
means it does not. This is an account-enumeration side channel; deployments
that care can turn it off with FeatureFlags.enable_email_probe.
"""

from typing import Optional

from ..config import get_config
from ..enums import IdentityErrorKind
from ..exceptions import IdentityProviderError
from ..identity.provider import IdentityProvider
from ..utils.logger import get_logger

_EXISTS_KINDS = frozenset(
    {IdentityErrorKind.INVALID_CREDENTIALS, IdentityErrorKind.EMAIL_NOT_CONFIRMED}
)
# The probe can't tell anything from these, so they are failures, not "no account"
_INCONCLUSIVE_KINDS = frozenset({IdentityErrorKind.UNAVAILABLE, IdentityErrorKind.RATE_LIMITED})


def probe_email_exists(
    provider: IdentityProvider, email: str, probe_password: Optional[str] = None
) -> bool:
    """
    Guess whether email has an account by classifying a failed sign-in.

    Raises:
        IdentityProviderError: If the provider is unavailable or rate limiting
    """
    password = probe_password or get_config().join_flow.probe_password
    try:
        provider.sign_in_with_password(email, password)
    except IdentityProviderError as e:
        if e.kind in _INCONCLUSIVE_KINDS:
            raise
        exists = e.kind in _EXISTS_KINDS
        get_logger().debug(
            "Email probe classified sign-in error",
            extra={"provider_error_kind": e.kind.value, "account_exists": exists},
        )
        return exists

    # The probe password actually worked; don't leave that session behind
    provider.sign_out()
    return True
