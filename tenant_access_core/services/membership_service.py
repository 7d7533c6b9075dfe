"""
Membership store: who belongs to which tenant, and with what role.

Memberships are created through one of three paths, all quota-gated through
QuotaService.insert_within_quota():
- tenant creation (the creator becomes owner)
- an owner adding a member
- the privileged join path (associate_user), with or without an invitation
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ..authorization.engine import EntityRef, Principal
from ..context.operation_context import operation
from ..context.service_decorators import handle_repository_errors, transactional
from ..db.db_membership_models import TenantMember
from ..enums import Action, DenyReason, EntityType, ResourceKind, Role
from ..exceptions import AuthorizationDenied, DuplicateMembership
from ..schemas.membership_schema import MembershipRead
from ..utils.crud_helpers import get_record, list_records
from . import access
from .base_service import SessionManagedService
from .invitation_service import InvitationService
from .membership_lifecycle import MembershipLifecycle
from .quota_service import QuotaService


class MembershipService(SessionManagedService):
    """
    Durable record of tenant memberships.
    """

    def __init__(self, session=None, logger=None):
        super().__init__(session=session, logger=logger)
        self.quota = self._share_session(QuotaService)
        self.invitations = self._share_session(InvitationService)
        self.lifecycle = self._share_session(MembershipLifecycle)

    def _find(self, tenant_id: str, user_id: str) -> Optional[TenantMember]:
        return get_record(self.session, TenantMember, {"tenant_id": tenant_id, "user_id": user_id})

    def _insert(self, tenant_id: str, user_id: str, role: Role) -> TenantMember:
        if self._find(tenant_id, user_id) is not None:
            raise DuplicateMembership(tenant_id, user_id)
        try:
            return self.quota.insert_within_quota(
                tenant_id,
                ResourceKind.USER,
                TenantMember(tenant_id=tenant_id, user_id=user_id, role=role),
            )
        except IntegrityError as e:
            # Lost a race against a concurrent insert of the same pair
            raise DuplicateMembership(tenant_id, user_id, cause=e) from e

    # ==================== LOOKUPS ====================

    @transactional()
    def get_membership(self, tenant_id: str, user_id: str) -> Optional[MembershipRead]:
        membership = self._find(tenant_id, user_id)
        return MembershipRead.model_validate(membership) if membership else None

    @transactional()
    def get_role(self, tenant_id: str, user_id: str) -> Optional[Role]:
        return access.get_role(self.session, tenant_id, user_id)

    def is_member(self, tenant_id: str, user_id: str) -> bool:
        return self.get_role(tenant_id, user_id) is not None

    @transactional()
    def tenant_has_owner(self, tenant_id: str) -> bool:
        return access.tenant_has_owner(self.session, tenant_id)

    @operation()
    @transactional()
    def list_members(self, principal: Principal, tenant_id: str) -> List[MembershipRead]:
        """List a tenant's memberships (members only)."""
        access.authorize(self.session, principal, Action.READ, EntityType.MEMBERSHIP, tenant_id)
        return [
            MembershipRead.model_validate(membership)
            for membership in list_records(
                self.session, TenantMember, tenant_id=tenant_id, order_by="created_at"
            )
        ]

    @operation()
    @transactional()
    def list_memberships_for_user(self, user_id: str) -> List[MembershipRead]:
        """Every membership a principal holds, across tenants."""
        memberships = self.session.scalars(
            select(TenantMember)
            .where(TenantMember.user_id == user_id)
            .order_by(TenantMember.created_at)
        )
        return [MembershipRead.model_validate(membership) for membership in memberships]

    # ==================== MUTATIONS ====================

    @operation()
    @transactional()
    def add_member(
        self, principal: Principal, tenant_id: str, user_id: str, role: Role = Role.MEMBER
    ) -> MembershipRead:
        """
        Add user_id to tenant_id with role.

        Owners only, except that a principal may make itself the owner of a
        tenant that has none.

        Raises:
            AuthorizationDenied: If the principal may not add members
            DuplicateMembership: If user_id is already a member
            QuotaExceeded: If the tenant is at its user limit
        """
        access.authorize(
            self.session,
            principal,
            Action.CREATE,
            EntityType.MEMBERSHIP,
            tenant_id,
            EntityRef(tenant_id=tenant_id, user_id=user_id, role=role),
        )
        membership = self._insert(tenant_id, user_id, role)
        self.logger.info(
            "Added member",
            extra={"tenant_id": tenant_id, "user_id": user_id, "role": role.value},
        )
        return MembershipRead.model_validate(membership)

    def _load_membership(self, tenant_id: str, user_id: str) -> TenantMember:
        membership = self._find(tenant_id, user_id)
        if membership is None:
            raise AuthorizationDenied(EntityType.MEMBERSHIP, user_id, DenyReason.ENTITY_NOT_FOUND)
        return membership

    @operation()
    @transactional()
    def update_role(
        self, principal: Principal, tenant_id: str, user_id: str, role: Role
    ) -> MembershipRead:
        """Change a member's role (owners only)."""
        membership = self._load_membership(tenant_id, user_id)
        access.authorize(
            self.session,
            principal,
            Action.UPDATE,
            EntityType.MEMBERSHIP,
            tenant_id,
            EntityRef.from_record(membership),
        )
        membership.role = role
        self.session.flush()
        self.logger.info(
            "Updated member role",
            extra={"tenant_id": tenant_id, "user_id": user_id, "role": role.value},
        )
        return MembershipRead.model_validate(membership)

    @operation()
    @transactional()
    def remove_member(self, principal: Principal, tenant_id: str, user_id: str) -> None:
        """
        Remove a member (owners only), cascading to group memberships in the
        same transaction.
        """
        membership = self._load_membership(tenant_id, user_id)
        access.authorize(
            self.session,
            principal,
            Action.DELETE,
            EntityType.MEMBERSHIP,
            tenant_id,
            EntityRef.from_record(membership),
        )
        self.lifecycle.remove_membership(tenant_id, user_id)

    @operation()
    @transactional()
    @handle_repository_errors("associate_user")
    def associate_user(
        self, tenant_id: str, user_id: str, invite_token: Optional[str] = None
    ) -> MembershipRead:
        """
        Privileged join path: attach a freshly authenticated principal.

        Returns the existing membership untouched when user_id is already a
        member (the invitation is not consumed). Otherwise redeems the
        invitation (or takes the default role without one) and inserts the
        membership within quota. Redemption and insert share one transaction,
        so a quota failure leaves the invitation in place.

        Raises:
            InvitationInvalid: Unknown or already consumed token
            InvitationExpired: Expired token
            QuotaExceeded: Tenant at its user limit
        """
        existing = self._find(tenant_id, user_id)
        if existing is not None:
            self.logger.info(
                "User already a member, skipping association",
                extra={"tenant_id": tenant_id, "user_id": user_id},
            )
            return MembershipRead.model_validate(existing)

        role = self.invitations.redeem(invite_token, tenant_id, user_id)
        membership = self._insert(tenant_id, user_id, role)
        self.logger.info(
            "Associated user with tenant",
            extra={
                "tenant_id": tenant_id,
                "user_id": user_id,
                "role": role.value,
                "with_invitation": bool(invite_token),
            },
        )
        return MembershipRead.model_validate(membership)

    @transactional()
    def create_owner_membership(self, tenant_id: str, user_id: str) -> MembershipRead:
        """Make the creator of a tenant its owner (tenant creation path)."""
        return MembershipRead.model_validate(self._insert(tenant_id, user_id, Role.OWNER))
