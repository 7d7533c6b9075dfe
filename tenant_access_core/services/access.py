"""
Glue between the services and the authorization engine.

Loads the membership facts the engine needs and looks entities up in a way
that makes a missing row and a forbidden row indistinguishable.
"""

from typing import Optional, Type, TypeVar

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from ..authorization.engine import AccessFacts, Decision, EntityRef, Principal, enforce
from ..db.db_membership_models import TenantMember
from ..db.db_service_models import ServiceAdmin
from ..enums import Action, DenyReason, EntityType, Role
from ..exceptions import AuthorizationDenied
from ..utils.crud_helpers import get_record_by_id

T = TypeVar("T")


def get_role(session: Session, tenant_id: str, user_id: Optional[str]) -> Optional[Role]:
    if not user_id or not tenant_id:
        return None
    return session.scalar(
        select(TenantMember.role).where(
            TenantMember.tenant_id == tenant_id, TenantMember.user_id == user_id
        )
    )


def tenant_has_owner(session: Session, tenant_id: str) -> bool:
    return bool(
        session.scalar(
            select(
                exists().where(
                    TenantMember.tenant_id == tenant_id, TenantMember.role == Role.OWNER
                )
            )
        )
    )


def is_service_admin(session: Session, service_id: Optional[str], user_id: Optional[str]) -> bool:
    if not service_id or not user_id:
        return False
    return bool(
        session.scalar(
            select(
                exists().where(
                    ServiceAdmin.service_id == service_id, ServiceAdmin.user_id == user_id
                )
            )
        )
    )


def load_access_facts(
    session: Session,
    principal: Principal,
    tenant_id: Optional[str],
    service_id: Optional[str] = None,
    need_owner_check: bool = False,
) -> AccessFacts:
    """
    Gather what the engine needs to know about principal in tenant_id.

    Args:
        session: Database session
        principal: Caller
        tenant_id: Tenant acted in
        service_id: Service whose admins matter (service sub-resources only)
        need_owner_check: Also look up whether the tenant has any owner
    """
    if not tenant_id or not principal.is_authenticated:
        return AccessFacts()
    return AccessFacts(
        role=get_role(session, tenant_id, principal.id),
        is_service_admin=is_service_admin(session, service_id, principal.id),
        tenant_has_owner=tenant_has_owner(session, tenant_id) if need_owner_check else True,
    )


def authorize(
    session: Session,
    principal: Principal,
    action: Action,
    entity_type: EntityType,
    tenant_id: Optional[str],
    entity_ref: Optional[EntityRef] = None,
    service_id: Optional[str] = None,
) -> Decision:
    """
    Load facts and enforce the policy for one action.

    Raises:
        AuthorizationDenied: If the policy denies the action
    """
    facts = load_access_facts(
        session,
        principal,
        tenant_id,
        service_id=service_id,
        need_owner_check=entity_type == EntityType.MEMBERSHIP and action == Action.CREATE,
    )
    return enforce(principal, action, entity_type, entity_ref, tenant_id, facts)


def load_scoped(
    session: Session,
    model_class: Type[T],
    entity_type: EntityType,
    entity_id: str,
    tenant_id: str,
) -> T:
    """
    Load a tenant-scoped row, raising AuthorizationDenied when it is missing
    or lives in another tenant.
    """
    record = get_record_by_id(session, model_class, entity_id)
    if record is None:
        raise AuthorizationDenied(entity_type, entity_id, DenyReason.ENTITY_NOT_FOUND)
    if getattr(record, "tenant_id", tenant_id) != tenant_id:
        raise AuthorizationDenied(entity_type, entity_id, DenyReason.TENANT_MISMATCH)
    return record


def load_and_authorize(
    session: Session,
    principal: Principal,
    action: Action,
    model_class: Type[T],
    entity_type: EntityType,
    entity_id: str,
    tenant_id: str,
) -> T:
    """Load a tenant-scoped row and enforce action on it."""
    record = load_scoped(session, model_class, entity_type, entity_id, tenant_id)
    authorize(
        session,
        principal,
        action,
        entity_type,
        tenant_id,
        entity_ref=EntityRef.from_record(record),
        service_id=getattr(record, "service_id", None),
    )
    return record
