"""
Authorization engine for tenant-scoped entities.

Decisions are a pure function of the principal, the action, the entity being
acted on and the membership facts loaded for the tenant. The policy itself is
a table keyed by (entity type, action) mapping to one of a small set of rules,
so each rule can be tested without a database.

A denial surfaces to callers as AuthorizationDenied, which looks exactly like
"not found": callers can't tell a missing entity from a forbidden one.
"""

import enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from ..enums import Action, DenyReason, EntityType, EventVisibility, Role
from ..exceptions import AuthorizationDenied
from ..utils.logger import get_logger


class Principal(BaseModel):
    """
    Caller identity as handed over by the identity provider.

    A principal without an id is anonymous.
    """

    id: Optional[str] = None
    email: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.id)

    @classmethod
    def anonymous(cls) -> "Principal":
        return cls()


class EntityRef(BaseModel):
    """
    What the engine needs to know about the entity acted on.

    For creation there is no entity yet; the ref then carries only what the
    new row will hold (for memberships, the subject user and granted role).
    """

    id: Optional[str] = None
    tenant_id: Optional[str] = None
    created_by: Optional[str] = None
    visibility: Optional[EventVisibility] = None
    service_id: Optional[str] = None
    user_id: Optional[str] = None
    role: Optional[Role] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_record(cls, record, **overrides) -> "EntityRef":
        """Build a ref from any model row, picking up the attributes it has."""
        values = {
            field: getattr(record, field)
            for field in cls.model_fields
            if getattr(record, field, None) is not None
        }
        values.update(overrides)
        return cls(**values)


class AccessFacts(BaseModel):
    """Membership facts about the principal in the target tenant."""

    role: Optional[Role] = None
    is_service_admin: bool = False
    tenant_has_owner: bool = True

    model_config = ConfigDict(frozen=True)

    @property
    def is_member(self) -> bool:
        return self.role is not None

    @property
    def is_owner(self) -> bool:
        return self.role == Role.OWNER


class Rule(str, enum.Enum):
    """Rules the policy table maps (entity type, action) pairs to."""

    AUTHENTICATED = "authenticated"
    MEMBER = "member"
    OWNER = "owner"
    OWNER_OR_CREATOR = "owner_or_creator"
    OWNER_OR_SERVICE_ADMIN = "owner_or_service_admin"
    OWNER_OR_INITIAL_OWNER = "owner_or_initial_owner"
    PUBLIC_EVENT_OR_MEMBER = "public_event_or_member"


def _rules(create: Rule, read: Rule, update: Rule, delete: Optional[Rule] = None) -> Dict[Action, Rule]:
    return {
        Action.CREATE: create,
        Action.READ: read,
        Action.UPDATE: update,
        Action.DELETE: delete or update,
    }


_POLICY_BY_ENTITY: Dict[EntityType, Dict[Action, Rule]] = {
    EntityType.TENANT: _rules(Rule.AUTHENTICATED, Rule.AUTHENTICATED, Rule.OWNER),
    EntityType.MEMBERSHIP: _rules(Rule.OWNER_OR_INITIAL_OWNER, Rule.MEMBER, Rule.OWNER),
    EntityType.INVITATION: _rules(Rule.OWNER, Rule.OWNER, Rule.OWNER),
    EntityType.GROUP: _rules(Rule.OWNER, Rule.MEMBER, Rule.OWNER),
    EntityType.GROUP_MEMBER: _rules(Rule.OWNER, Rule.MEMBER, Rule.OWNER),
    EntityType.RESOURCE: _rules(Rule.OWNER, Rule.MEMBER, Rule.OWNER),
    EntityType.SERVICE: _rules(Rule.OWNER, Rule.MEMBER, Rule.OWNER),
    EntityType.SERVICE_ADMIN: _rules(Rule.OWNER, Rule.MEMBER, Rule.OWNER),
    EntityType.SERVICE_GROUP: _rules(Rule.OWNER, Rule.MEMBER, Rule.OWNER),
    EntityType.EVENT: _rules(Rule.MEMBER, Rule.PUBLIC_EVENT_OR_MEMBER, Rule.OWNER_OR_CREATOR),
    EntityType.SERVICE_NOTE: _rules(
        Rule.OWNER_OR_SERVICE_ADMIN, Rule.MEMBER, Rule.OWNER_OR_SERVICE_ADMIN
    ),
    EntityType.SERVICE_ROLE: _rules(
        Rule.OWNER_OR_SERVICE_ADMIN, Rule.MEMBER, Rule.OWNER_OR_SERVICE_ADMIN
    ),
    EntityType.SERVICE_EVENT: _rules(
        Rule.OWNER_OR_SERVICE_ADMIN, Rule.MEMBER, Rule.OWNER_OR_SERVICE_ADMIN
    ),
    EntityType.SERVICE_EVENT_OWNER: _rules(
        Rule.OWNER_OR_SERVICE_ADMIN, Rule.MEMBER, Rule.OWNER_OR_SERVICE_ADMIN
    ),
}

POLICY_TABLE: Dict[Tuple[EntityType, Action], Rule] = {
    (entity_type, action): rule
    for entity_type, actions in _POLICY_BY_ENTITY.items()
    for action, rule in actions.items()
}


class Decision(BaseModel):
    allowed: bool
    reason: Optional[DenyReason] = None
    rule: Optional[Rule] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def allow(cls, rule: Rule) -> "Decision":
        return cls(allowed=True, rule=rule)

    @classmethod
    def deny(cls, reason: DenyReason, rule: Optional[Rule] = None) -> "Decision":
        return cls(allowed=False, reason=reason, rule=rule)


def _is_initial_owner(principal: Principal, ref: Optional[EntityRef], facts: AccessFacts) -> bool:
    """A principal may make itself owner of a tenant that has no owner yet."""
    return (
        not facts.tenant_has_owner
        and ref is not None
        and ref.role == Role.OWNER
        and ref.user_id == principal.id
    )


def _apply_member_rule(
    rule: Rule, principal: Principal, ref: Optional[EntityRef], facts: AccessFacts
) -> Decision:
    if rule in (Rule.MEMBER, Rule.PUBLIC_EVENT_OR_MEMBER):
        return Decision.allow(rule)

    if facts.is_owner:
        return Decision.allow(rule)

    if rule == Rule.OWNER_OR_CREATOR:
        if ref is not None and ref.created_by is not None and ref.created_by == principal.id:
            return Decision.allow(rule)
        return Decision.deny(DenyReason.NOT_CREATOR, rule)

    if rule == Rule.OWNER_OR_SERVICE_ADMIN:
        if facts.is_service_admin:
            return Decision.allow(rule)
        return Decision.deny(DenyReason.NOT_SERVICE_ADMIN, rule)

    return Decision.deny(DenyReason.INSUFFICIENT_ROLE, rule)


def decide(
    principal: Principal,
    action: Action,
    entity_type: EntityType,
    entity_ref: Optional[EntityRef],
    tenant_id: Optional[str],
    facts: AccessFacts,
) -> Decision:
    """
    Decide whether principal may perform action on an entity of entity_type.

    Args:
        principal: Caller (anonymous when it has no id)
        action: Action requested
        entity_type: Type of the entity acted on
        entity_ref: The entity (or, for create, the row about to be created)
        tenant_id: Tenant the caller is operating in
        facts: Membership facts of principal in tenant_id

    Returns:
        Decision with the deny reason set when not allowed
    """
    rule = POLICY_TABLE.get((entity_type, action))
    if rule is None:
        return Decision.deny(DenyReason.NO_POLICY)

    if entity_ref is not None and entity_ref.tenant_id is not None:
        if tenant_id is None or entity_ref.tenant_id != tenant_id:
            return Decision.deny(DenyReason.TENANT_MISMATCH, rule)

    # The only thing anonymous principals may do
    if (
        rule == Rule.PUBLIC_EVENT_OR_MEMBER
        and entity_ref is not None
        and entity_ref.visibility == EventVisibility.PUBLIC
    ):
        return Decision.allow(rule)

    if not principal.is_authenticated:
        return Decision.deny(DenyReason.NOT_AUTHENTICATED, rule)

    if rule == Rule.AUTHENTICATED:
        return Decision.allow(rule)

    if not facts.is_member:
        if rule == Rule.OWNER_OR_INITIAL_OWNER and _is_initial_owner(principal, entity_ref, facts):
            return Decision.allow(rule)
        return Decision.deny(DenyReason.NOT_A_MEMBER, rule)

    if rule == Rule.OWNER_OR_INITIAL_OWNER:
        if facts.is_owner or _is_initial_owner(principal, entity_ref, facts):
            return Decision.allow(rule)
        return Decision.deny(DenyReason.INSUFFICIENT_ROLE, rule)

    return _apply_member_rule(rule, principal, entity_ref, facts)


def enforce(
    principal: Principal,
    action: Action,
    entity_type: EntityType,
    entity_ref: Optional[EntityRef],
    tenant_id: Optional[str],
    facts: AccessFacts,
) -> Decision:
    """
    Like decide() but raises AuthorizationDenied on deny.

    Raises:
        AuthorizationDenied: Reported to the caller as the entity not being found
    """
    decision = decide(principal, action, entity_type, entity_ref, tenant_id, facts)
    if not decision.allowed:
        get_logger().debug(
            f"Denied {action.value} on {entity_type.value}",
            extra={
                "principal_id": principal.id,
                "tenant_id": tenant_id,
                "entity_id": entity_ref.id if entity_ref else None,
                "deny_reason": decision.reason.value if decision.reason else None,
                "rule": decision.rule.value if decision.rule else None,
            },
        )
        raise AuthorizationDenied(
            entity_type,
            entity_id=entity_ref.id if entity_ref else None,
            reason=decision.reason,
        )
    return decision
