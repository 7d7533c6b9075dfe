"""
Driver for the tenant join flow.

Performs the side effects of each step (identity provider calls, the email
probe, membership association) and feeds their outcomes into transition().
Every failure ends up in state.error as a JoinError; a quota denial during
association is reported as LIMIT_REACHED, never as a sign-in failure.
"""

from typing import Any, Dict, Optional

from ..config import get_config
from ..enums import IdentityErrorKind, JoinErrorKind, JoinStep
from ..exceptions import (
    AuthorizationDenied,
    DuplicateMembership,
    IdentityProviderError,
    InvalidTransition,
    InvitationExpired,
    InvitationInvalid,
    QuotaExceeded,
    ServiceError,
)
from ..identity.provider import AuthResult, IdentityProvider
from ..services.membership_service import MembershipService
from ..services.tenant_service import TenantService
from ..utils.logger import get_logger
from .probe import probe_email_exists
from .state import (
    SIGN_IN_STEPS,
    AccountExists,
    Back,
    ChooseExistingUser,
    ChooseMemberSignIn,
    ChooseNewUser,
    EmailProbed,
    JoinError,
    JoinEvent,
    JoinFlowState,
    Joined,
    ProbeFailed,
    StepFailed,
    SwitchToSignIn,
    transition,
)

_IDENTITY_ERROR_KINDS = {
    IdentityErrorKind.INVALID_CREDENTIALS: JoinErrorKind.INVALID_CREDENTIALS,
    IdentityErrorKind.EMAIL_NOT_CONFIRMED: JoinErrorKind.EMAIL_NOT_CONFIRMED,
    IdentityErrorKind.USER_NOT_FOUND: JoinErrorKind.INVALID_CREDENTIALS,
    IdentityErrorKind.USER_ALREADY_REGISTERED: JoinErrorKind.ACCOUNT_EXISTS,
    IdentityErrorKind.WEAK_PASSWORD: JoinErrorKind.WEAK_PASSWORD,
    IdentityErrorKind.RATE_LIMITED: JoinErrorKind.RATE_LIMITED,
    IdentityErrorKind.UNAVAILABLE: JoinErrorKind.IDENTITY_UNAVAILABLE,
    IdentityErrorKind.UNKNOWN: JoinErrorKind.UNKNOWN,
}


def join_error_for_identity(error: IdentityProviderError) -> JoinError:
    kind = _IDENTITY_ERROR_KINDS.get(error.kind, JoinErrorKind.UNKNOWN)
    if kind == JoinErrorKind.UNKNOWN:
        # Unrecognized provider text is passed through as-is
        return JoinError.of(kind, error.message)
    return JoinError.of(kind)


class TenantJoinFlow:
    """
    Walks a visitor from the welcome screen to a membership in one tenant.

    Args:
        identity: Identity provider
        tenant_slug: Slug of the tenant being joined
        invite_token: Invitation token from the join link, if any
        membership_service: Service used for association (default: new, owning its session)
        tenant_service: Service used to resolve the slug (default: new, owning its session)
        state: State to resume from
    """

    def __init__(
        self,
        identity: IdentityProvider,
        tenant_slug: str,
        invite_token: Optional[str] = None,
        membership_service: Optional[MembershipService] = None,
        tenant_service: Optional[TenantService] = None,
        state: Optional[JoinFlowState] = None,
    ):
        self.identity = identity
        self.tenant_slug = tenant_slug
        self.invite_token = invite_token
        self.memberships = membership_service or MembershipService()
        self.tenants = tenant_service or TenantService()
        self._state = state or JoinFlowState()
        self.logger = get_logger()

    @property
    def state(self) -> JoinFlowState:
        return self._state

    def dispatch(self, event: JoinEvent) -> JoinFlowState:
        previous = self._state.step
        self._state = transition(self._state, event)
        self.logger.debug(
            f"Join flow: {previous.value} -> {self._state.step.value}",
            extra={"tenant_slug": self.tenant_slug, "event": event.kind},
        )
        return self._state

    def _require_step(self, action: str, *steps: JoinStep) -> None:
        if self._state.step not in steps:
            raise InvalidTransition(self._state.step.value, action)

    # ==================== CHOICES ====================

    def choose_new_user(self) -> JoinFlowState:
        return self.dispatch(ChooseNewUser())

    def choose_existing_user(self) -> JoinFlowState:
        return self.dispatch(ChooseExistingUser())

    def choose_member_sign_in(self) -> JoinFlowState:
        return self.dispatch(ChooseMemberSignIn())

    def back(self) -> JoinFlowState:
        return self.dispatch(Back())

    def switch_to_sign_in(self) -> JoinFlowState:
        return self.dispatch(SwitchToSignIn())

    # ==================== STEPS WITH SIDE EFFECTS ====================

    def detect_email(self, email: str) -> JoinFlowState:
        """Route to sign-in or sign-up depending on whether email has an account."""
        self._require_step("detect_email", JoinStep.EMAIL_DETECTION)
        email = email.strip().lower()

        if not get_config().features.enable_email_probe:
            return self.dispatch(EmailProbed(email=email, exists=True))

        try:
            exists = probe_email_exists(self.identity, email)
        except IdentityProviderError:
            return self.dispatch(ProbeFailed(error=JoinError.of(JoinErrorKind.EMAIL_CHECK_FAILED)))
        return self.dispatch(EmailProbed(email=email, exists=exists))

    def sign_up(
        self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None
    ) -> JoinFlowState:
        """Create an account, then join the tenant."""
        self._require_step("sign_up", JoinStep.SIGNUP)
        email = email.strip().lower()
        try:
            auth = self.identity.sign_up(email, password, metadata)
        except IdentityProviderError as e:
            if e.kind == IdentityErrorKind.USER_ALREADY_REGISTERED:
                return self.dispatch(AccountExists(email=email))
            return self.dispatch(StepFailed(error=join_error_for_identity(e), email=email))
        return self._associate(auth)

    def sign_in(self, email: str, password: str) -> JoinFlowState:
        """Sign in (joining or returning member), then join the tenant."""
        self._require_step("sign_in", JoinStep.JOIN_SIGNIN, JoinStep.MEMBER_SIGNIN)
        email = email.strip().lower()
        try:
            auth = self.identity.sign_in_with_password(email, password)
        except IdentityProviderError as e:
            return self.dispatch(StepFailed(error=join_error_for_identity(e), email=email))
        return self._associate(auth)

    def reset_password(self, email: str) -> JoinFlowState:
        """Ask the provider to send a reset mail; the step doesn't change."""
        self._require_step("reset_password", *SIGN_IN_STEPS)
        email = email.strip().lower()
        try:
            self.identity.reset_password(email)
        except IdentityProviderError as e:
            return self.dispatch(StepFailed(error=join_error_for_identity(e), email=email))
        return self._state

    def _associate(self, auth: AuthResult) -> JoinFlowState:
        tenant = self.tenants.find_by_slug(self.tenant_slug)
        if tenant is None:
            return self.dispatch(StepFailed(error=JoinError.of(JoinErrorKind.TENANT_NOT_FOUND)))

        try:
            membership = self.memberships.associate_user(tenant.id, auth.user_id, self.invite_token)
        except QuotaExceeded:
            return self.dispatch(StepFailed(error=JoinError.of(JoinErrorKind.LIMIT_REACHED)))
        except InvitationExpired:
            return self.dispatch(StepFailed(error=JoinError.of(JoinErrorKind.INVITATION_EXPIRED)))
        except InvitationInvalid:
            return self.dispatch(StepFailed(error=JoinError.of(JoinErrorKind.INVITATION_INVALID)))
        except AuthorizationDenied:
            # Tenant deleted after the slug was resolved
            return self.dispatch(StepFailed(error=JoinError.of(JoinErrorKind.TENANT_NOT_FOUND)))
        except ServiceError as e:
            self.logger.error(
                "Join association failed",
                extra={"tenant_slug": self.tenant_slug, "error_id": e.error_id},
            )
            return self.dispatch(StepFailed(error=JoinError.of(JoinErrorKind.UNKNOWN)))
        except DuplicateMembership:
            # A concurrent join for the same principal won; it is a member now
            role = self.memberships.get_role(tenant.id, auth.user_id)
            return self.dispatch(Joined(user_id=auth.user_id, role=role))

        return self.dispatch(Joined(user_id=membership.user_id, role=membership.role))
