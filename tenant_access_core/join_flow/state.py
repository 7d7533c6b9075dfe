"""
Join flow as an explicit state machine.

JoinFlowState is immutable; transition() is a pure function from a state and
an event to the next state. Everything with side effects (identity provider
calls, the email probe, membership association) lives in the driver in
flow.py, which turns outcomes into events.

    welcome -> email_detection -> join_signin -> success
            -> signup ---------(account exists)--> join_signin
            -> member_signin -> success

Back returns to welcome from any non-terminal step and clears email and error.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..enums import JoinErrorKind, JoinStep, Role
from ..exceptions import InvalidTransition

_DEFAULT_MESSAGES = {
    JoinErrorKind.INVALID_CREDENTIALS: "Invalid email or password.",
    JoinErrorKind.EMAIL_NOT_CONFIRMED: "Please confirm your email address before signing in.",
    JoinErrorKind.ACCOUNT_EXISTS: "An account with this email already exists. Sign in instead.",
    JoinErrorKind.WEAK_PASSWORD: "Password is too weak.",
    JoinErrorKind.RATE_LIMITED: "Too many attempts. Please wait and try again.",
    JoinErrorKind.EMAIL_CHECK_FAILED: "We couldn't check this email right now. Please try again.",
    JoinErrorKind.IDENTITY_UNAVAILABLE: "Sign-in is temporarily unavailable.",
    JoinErrorKind.INVITATION_INVALID: "This invitation link is invalid or was already used.",
    JoinErrorKind.INVITATION_EXPIRED: "This invitation has expired. Ask for a new one.",
    JoinErrorKind.LIMIT_REACHED: (
        "This organization has reached its member limit. Ask an owner to upgrade the plan."
    ),
    JoinErrorKind.TENANT_NOT_FOUND: "Organization not found.",
    JoinErrorKind.UNKNOWN: "Something went wrong. Please try again.",
}


class JoinError(BaseModel):
    """User-facing failure of a join step."""

    kind: JoinErrorKind
    message: str

    model_config = ConfigDict(frozen=True)

    @classmethod
    def of(cls, kind: JoinErrorKind, message: Optional[str] = None) -> "JoinError":
        return cls(kind=kind, message=message or _DEFAULT_MESSAGES[kind])

    @property
    def is_limit_reached(self) -> bool:
        return self.kind == JoinErrorKind.LIMIT_REACHED


class JoinFlowState(BaseModel):
    step: JoinStep = JoinStep.WELCOME
    email: Optional[str] = None
    error: Optional[JoinError] = None
    offer_sign_in: bool = False
    user_id: Optional[str] = None
    role: Optional[Role] = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_complete(self) -> bool:
        return self.step == JoinStep.SUCCESS


# ==================== EVENTS ====================


class ChooseNewUser(BaseModel):
    kind: Literal["choose_new_user"] = "choose_new_user"


class ChooseExistingUser(BaseModel):
    kind: Literal["choose_existing_user"] = "choose_existing_user"


class ChooseMemberSignIn(BaseModel):
    kind: Literal["choose_member_sign_in"] = "choose_member_sign_in"


class Back(BaseModel):
    kind: Literal["back"] = "back"


class EmailProbed(BaseModel):
    kind: Literal["email_probed"] = "email_probed"
    email: str
    exists: bool


class ProbeFailed(BaseModel):
    kind: Literal["probe_failed"] = "probe_failed"
    error: JoinError


class AccountExists(BaseModel):
    kind: Literal["account_exists"] = "account_exists"
    email: str


class SwitchToSignIn(BaseModel):
    kind: Literal["switch_to_sign_in"] = "switch_to_sign_in"


class Joined(BaseModel):
    kind: Literal["joined"] = "joined"
    user_id: str
    role: Role


class StepFailed(BaseModel):
    kind: Literal["step_failed"] = "step_failed"
    error: JoinError
    email: Optional[str] = None


JoinEvent = Annotated[
    Union[
        ChooseNewUser,
        ChooseExistingUser,
        ChooseMemberSignIn,
        Back,
        EmailProbed,
        ProbeFailed,
        AccountExists,
        SwitchToSignIn,
        Joined,
        StepFailed,
    ],
    Field(discriminator="kind"),
]

SIGN_IN_STEPS = (JoinStep.SIGNUP, JoinStep.JOIN_SIGNIN, JoinStep.MEMBER_SIGNIN)

_WELCOME_CHOICES = {
    "choose_new_user": JoinStep.SIGNUP,
    "choose_existing_user": JoinStep.EMAIL_DETECTION,
    "choose_member_sign_in": JoinStep.MEMBER_SIGNIN,
}


def transition(state: JoinFlowState, event: JoinEvent) -> JoinFlowState:
    """
    Compute the next state.

    Raises:
        InvalidTransition: If event is not legal in state.step
    """
    step = state.step

    if step == JoinStep.SUCCESS:
        raise InvalidTransition(step.value, event.kind)

    if isinstance(event, Back):
        if step == JoinStep.WELCOME:
            raise InvalidTransition(step.value, event.kind)
        return JoinFlowState()

    if step == JoinStep.WELCOME:
        if event.kind in _WELCOME_CHOICES:
            return JoinFlowState(step=_WELCOME_CHOICES[event.kind])
        raise InvalidTransition(step.value, event.kind)

    if step == JoinStep.EMAIL_DETECTION:
        if isinstance(event, EmailProbed):
            next_step = JoinStep.JOIN_SIGNIN if event.exists else JoinStep.SIGNUP
            return JoinFlowState(step=next_step, email=event.email)
        if isinstance(event, ProbeFailed):
            return state.model_copy(update={"error": event.error})
        raise InvalidTransition(step.value, event.kind)

    # Sign-up / sign-in steps
    if isinstance(event, Joined):
        return state.model_copy(
            update={
                "step": JoinStep.SUCCESS,
                "error": None,
                "offer_sign_in": False,
                "user_id": event.user_id,
                "role": event.role,
            }
        )
    if isinstance(event, StepFailed):
        return state.model_copy(
            update={"error": event.error, "email": event.email or state.email}
        )
    if step == JoinStep.SIGNUP:
        if isinstance(event, AccountExists):
            return state.model_copy(
                update={
                    "email": event.email,
                    "error": JoinError.of(JoinErrorKind.ACCOUNT_EXISTS),
                    "offer_sign_in": True,
                }
            )
        if isinstance(event, SwitchToSignIn) and state.offer_sign_in:
            return JoinFlowState(step=JoinStep.JOIN_SIGNIN, email=state.email)

    raise InvalidTransition(step.value, event.kind)
