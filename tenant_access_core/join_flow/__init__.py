"""Tenant join flow: pure state machine plus the driver that runs its side effects."""

from .flow import TenantJoinFlow, join_error_for_identity
from .probe import probe_email_exists
from .state import (
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

__all__ = [
    "TenantJoinFlow",
    "join_error_for_identity",
    "probe_email_exists",
    "JoinFlowState",
    "JoinError",
    "JoinEvent",
    "transition",
    "ChooseNewUser",
    "ChooseExistingUser",
    "ChooseMemberSignIn",
    "Back",
    "EmailProbed",
    "ProbeFailed",
    "AccountExists",
    "SwitchToSignIn",
    "Joined",
    "StepFailed",
]
