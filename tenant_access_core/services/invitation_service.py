"""
Invitation issuance and redemption.

An invitation is a single-use token that grants a role in one tenant. It is
valid while now < expires_at and is deleted on redemption, so redeeming the
same token twice fails the second time with InvitationInvalid.
"""

import secrets
from datetime import timedelta
from typing import List, Optional

from sqlalchemy import delete, select

from ..authorization.engine import EntityRef, Principal
from ..config import get_config
from ..context.operation_context import operation
from ..context.service_decorators import handle_repository_errors, transactional
from ..db.db_base import as_utc, utc_now
from ..db.db_membership_models import Invitation
from ..enums import Action, EntityType, Role
from ..exceptions import InvitationExpired, InvitationInvalid
from ..schemas.membership_schema import InvitationCreate, InvitationRead
from ..utils.crud_helpers import add_record, delete_record, list_records
from .access import authorize, load_and_authorize
from .base_service import SessionManagedService


class InvitationService(SessionManagedService):
    """
    Issues and redeems invitation tokens.
    """

    @staticmethod
    def _new_token() -> str:
        return secrets.token_urlsafe(get_config().invitation.token_bytes)

    @operation()
    @transactional()
    @handle_repository_errors("issue")
    def issue(
        self,
        principal: Principal,
        tenant_id: str,
        email: str,
        role: Role = Role.MEMBER,
    ) -> InvitationRead:
        """
        Issue an invitation for email to join tenant_id with role.

        Owners only. The email is not verified to be reachable.
        """
        authorize(
            self.session,
            principal,
            Action.CREATE,
            EntityType.INVITATION,
            tenant_id,
            EntityRef(tenant_id=tenant_id, role=role),
        )
        data = InvitationCreate(email=email, role=role)

        invitation = Invitation(
            tenant_id=tenant_id,
            email=data.email,
            role=data.role,
            token=self._new_token(),
            expires_at=utc_now() + timedelta(days=get_config().invitation.expiry_days),
        )
        add_record(self.session, invitation)

        self.logger.info(
            "Issued invitation",
            extra={"tenant_id": tenant_id, "invitation_id": invitation.id, "role": data.role.value},
        )
        return InvitationRead.model_validate(invitation)

    @operation()
    @transactional()
    def redeem(self, token: Optional[str], tenant_id: str, user_id: str) -> Role:
        """
        Consume an invitation and return the role it grants.

        Without a token the configured default role is returned and nothing
        is checked.

        Raises:
            InvitationInvalid: No invitation with this token for this tenant
            InvitationExpired: The invitation is past its expiry
        """
        if not token:
            return get_config().invitation.default_role

        invitation = self.session.scalars(
            select(Invitation)
            .where(Invitation.tenant_id == tenant_id, Invitation.token == token)
            .with_for_update()
        ).first()
        if invitation is None:
            raise InvitationInvalid(tenant_id=tenant_id)

        if utc_now() >= as_utc(invitation.expires_at):
            raise InvitationExpired(tenant_id=tenant_id, invitation_id=invitation.id)

        role = Role(invitation.role)
        delete_record(self.session, invitation)
        self.logger.info(
            "Redeemed invitation",
            extra={"tenant_id": tenant_id, "user_id": user_id, "role": role.value},
        )
        return role

    @operation()
    @transactional()
    def list_invitations(self, principal: Principal, tenant_id: str) -> List[InvitationRead]:
        """List a tenant's outstanding invitations (owners only)."""
        authorize(self.session, principal, Action.READ, EntityType.INVITATION, tenant_id)
        return [
            InvitationRead.model_validate(invitation)
            for invitation in list_records(self.session, Invitation, tenant_id=tenant_id)
        ]

    @operation()
    @transactional()
    def revoke(self, principal: Principal, tenant_id: str, invitation_id: str) -> None:
        """Delete an invitation before it is redeemed (owners only)."""
        invitation = load_and_authorize(
            self.session,
            principal,
            Action.DELETE,
            Invitation,
            EntityType.INVITATION,
            invitation_id,
            tenant_id,
        )
        delete_record(self.session, invitation)

    @operation()
    @transactional()
    def cleanup_expired(self, tenant_id: Optional[str] = None) -> int:
        """
        Delete expired invitations, for one tenant or all of them.

        Returns:
            Number of invitations deleted
        """
        stmt = delete(Invitation).where(Invitation.expires_at <= utc_now())
        if tenant_id:
            stmt = stmt.where(Invitation.tenant_id == tenant_id)
        result = self.session.execute(stmt.execution_options(synchronize_session="fetch"))
        removed = result.rowcount or 0
        if removed:
            self.logger.info("Deleted expired invitations", extra={"count": removed})
        return removed
