"""
Unit tests for the exception system.

Covers the base error machinery and the access-control error taxonomy.
"""

import pytest

from tenant_access_core.enums import DenyReason, EntityType, IdentityErrorKind, ResourceKind
from tenant_access_core.exceptions import (
    AuthorizationDenied,
    BaseError,
    DuplicateMembership,
    ErrorCode,
    IdentityProviderError,
    InvalidTransition,
    InvitationExpired,
    InvitationInvalid,
    QuotaExceeded,
    RepositoryError,
    ServiceError,
    ValidationError,
    clear_correlation_id,
    duplicate,
    get_correlation_id,
    not_found,
    set_correlation_id,
)


class TestBaseError:
    def test_basic_error_creation(self):
        error = BaseError("Test error message")

        assert error.message == "Test error message"
        assert error.error_code == ErrorCode.INTERNAL_ERROR
        assert error.status_code == 500
        assert error.cause is None
        assert error.context["error_id"] == error.error_id

    def test_error_with_cause(self):
        original = ValueError("Original error")
        error = BaseError("Wrapped error", cause=original)

        assert error.context["cause"]["type"] == "ValueError"
        assert error.context["cause"]["message"] == "Original error"
        assert error.error_chain == [error, original]

    def test_error_with_correlation_id(self):
        set_correlation_id("corr-123")
        try:
            error = BaseError("Correlated")
            assert error.context["correlation_id"] == "corr-123"
            assert error.to_dict()["error"]["correlation_id"] == "corr-123"
        finally:
            clear_correlation_id()
        assert get_correlation_id() is None

    def test_to_dict_hides_cause_by_default(self):
        error = BaseError("Oops", cause=RuntimeError("db down"), tenant_id="t-1")
        payload = error.to_dict()

        assert payload["error"]["message"] == "Oops"
        assert payload["error"]["context"] == {"tenant_id": "t-1"}
        assert "cause" not in payload["error"]
        assert error.to_dict(include_cause=True)["error"]["cause"]["type"] == "RuntimeError"

    def test_add_context_is_fluent(self):
        error = BaseError("Oops").add_context(operation="x")
        assert error.context["operation"] == "x"


class TestLayerErrors:
    def test_service_error_records_operation(self):
        error = ServiceError("Failed", operation="create_group", status_code=409)
        assert error.context["operation"] == "create_group"
        assert error.status_code == 409

    def test_validation_error_is_400(self):
        error = ValidationError("Bad slug", field="slug")
        assert error.status_code == 400
        assert error.context["field"] == "slug"

    def test_not_found_factory(self):
        error = not_found("PriceTier", price_tier_id="p-1")
        assert isinstance(error, RepositoryError)
        assert error.status_code == 404
        assert error.message == "PriceTier not found: price_tier_id=p-1"

    def test_duplicate_factory(self):
        error = duplicate("GroupMember", group_id="g", user_id="u")
        assert error.error_code == ErrorCode.DUPLICATE
        assert error.status_code == 409


class TestAccessControlErrors:
    def test_authorization_denied_matches_not_found(self):
        error = AuthorizationDenied(EntityType.SERVICE_NOTE, "n-1", DenyReason.NOT_SERVICE_ADMIN)

        assert error.message == "Service note not found"
        assert error.error_code == ErrorCode.NOT_FOUND
        assert error.status_code == 404
        assert error.reason == DenyReason.NOT_SERVICE_ADMIN
        assert "reason" not in error.to_dict()["error"]["context"]

    def test_denied_and_missing_produce_same_payload_shape(self):
        denied = AuthorizationDenied(EntityType.GROUP, "g-1", DenyReason.TENANT_MISMATCH)
        missing = AuthorizationDenied(EntityType.GROUP, "g-2", DenyReason.ENTITY_NOT_FOUND)

        assert denied.message == missing.message
        assert denied.to_dict()["error"]["context"] == missing.to_dict()["error"]["context"]

    def test_quota_exceeded_is_distinct(self):
        error = QuotaExceeded(ResourceKind.GROUP, 5, "t-1", current_count=5)

        assert error.resource_kind == ResourceKind.GROUP
        assert error.limit == 5
        assert error.error_code == ErrorCode.QUOTA_EXCEEDED
        assert error.status_code == 403
        assert error.context["current_count"] == 5
        assert "Group limit of 5" in error.message

    def test_invitation_errors(self):
        assert InvitationInvalid().status_code == 404
        assert InvitationExpired().error_code == ErrorCode.EXPIRED

    def test_duplicate_membership(self):
        error = DuplicateMembership("t-1", "u-1")
        assert error.status_code == 409
        assert error.context["user_id"] == "u-1"

    def test_identity_provider_error_keeps_kind(self):
        error = IdentityProviderError(IdentityErrorKind.RATE_LIMITED, "Too many requests")

        assert error.kind == IdentityErrorKind.RATE_LIMITED
        assert error.status_code == 502
        assert error.context["service_name"] == "identity_provider"

    def test_identity_provider_error_default_message(self):
        error = IdentityProviderError(IdentityErrorKind.UNKNOWN)
        assert error.message == "Identity provider error: unknown"

    def test_invalid_transition(self):
        error = InvalidTransition("welcome", "joined")
        assert error.error_code == ErrorCode.INVALID_STATE_TRANSITION
        assert "joined" in error.message

    @pytest.mark.parametrize(
        "error",
        [
            AuthorizationDenied(EntityType.GROUP),
            QuotaExceeded(ResourceKind.USER, 1, "t"),
            InvitationInvalid(),
            InvitationExpired(),
            DuplicateMembership("t", "u"),
            IdentityProviderError(IdentityErrorKind.UNKNOWN),
        ],
    )
    def test_all_are_base_errors(self, error):
        assert isinstance(error, BaseError)
