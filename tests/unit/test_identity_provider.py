"""
Unit tests for identity-provider error normalization.
"""

import pytest

from tenant_access_core.enums import IdentityErrorKind
from tenant_access_core.exceptions import IdentityProviderError
from tenant_access_core.identity import classify_provider_message, provider_error


@pytest.mark.parametrize(
    "text,kind",
    [
        ("Invalid login credentials", IdentityErrorKind.INVALID_CREDENTIALS),
        ("AuthApiError: invalid credentials", IdentityErrorKind.INVALID_CREDENTIALS),
        ("Email not confirmed", IdentityErrorKind.EMAIL_NOT_CONFIRMED),
        ("User not found", IdentityErrorKind.USER_NOT_FOUND),
        ("User already registered", IdentityErrorKind.USER_ALREADY_REGISTERED),
        ("A user with this email address has already been registered", IdentityErrorKind.USER_ALREADY_REGISTERED),
        ("Password should be at least 6 characters", IdentityErrorKind.WEAK_PASSWORD),
        ("Email rate limit exceeded", IdentityErrorKind.RATE_LIMITED),
        ("Too Many Requests", IdentityErrorKind.RATE_LIMITED),
        ("Network request failed", IdentityErrorKind.UNAVAILABLE),
        ("Something odd happened", IdentityErrorKind.UNKNOWN),
        ("", IdentityErrorKind.UNKNOWN),
        (None, IdentityErrorKind.UNKNOWN),
    ],
)
def test_classify_provider_message(text, kind):
    assert classify_provider_message(text) == kind


def test_provider_error_keeps_raw_text_and_cause():
    cause = RuntimeError("HTTP 400")
    error = provider_error("Invalid login credentials", cause=cause)

    assert isinstance(error, IdentityProviderError)
    assert error.kind == IdentityErrorKind.INVALID_CREDENTIALS
    assert error.message == "Invalid login credentials"
    assert error.cause is cause


def test_provider_error_without_text():
    error = provider_error(None)
    assert error.kind == IdentityErrorKind.UNKNOWN
    assert error.message == "Identity provider error: unknown"
