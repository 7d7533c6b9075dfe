"""
Side effects of a membership ending.

Whenever a tenant_members row is deleted, the principal's group memberships
inside that tenant are deleted in the same transaction, so there is no moment
where someone is out of the tenant but still listed in one of its groups.
"""

from sqlalchemy import delete, select

from ..context.operation_context import operation
from ..context.service_decorators import transactional
from ..db.db_content_models import Group, GroupMember
from ..db.db_membership_models import TenantMember
from ..utils.crud_helpers import delete_record, get_record, list_records
from .base_service import SessionManagedService


class MembershipLifecycle(SessionManagedService):
    @transactional()
    def on_membership_removed(self, tenant_id: str, user_id: str) -> int:
        """
        Delete user_id's group memberships for groups belonging to tenant_id.

        Returns:
            Number of group membership rows deleted
        """
        tenant_groups = select(Group.id).where(Group.tenant_id == tenant_id)
        result = self.session.execute(
            delete(GroupMember)
            .where(GroupMember.user_id == user_id, GroupMember.group_id.in_(tenant_groups))
            .execution_options(synchronize_session="fetch")
        )
        removed = result.rowcount or 0
        self.logger.info(
            "Removed group memberships after membership ended",
            extra={"tenant_id": tenant_id, "user_id": user_id, "group_memberships": removed},
        )
        return removed

    @operation()
    @transactional()
    def remove_membership(self, tenant_id: str, user_id: str) -> bool:
        """
        Delete a membership and cascade to group memberships atomically.

        Returns:
            False if there was no such membership
        """
        membership = get_record(
            self.session, TenantMember, {"tenant_id": tenant_id, "user_id": user_id}
        )
        if membership is None:
            return False
        self.on_membership_removed(tenant_id, user_id)
        delete_record(self.session, membership)
        return True

    @operation()
    @transactional()
    def remove_all_memberships(self, tenant_id: str) -> int:
        """Remove every membership of a tenant (tenant deletion)."""
        memberships = list_records(self.session, TenantMember, tenant_id=tenant_id)
        for membership in memberships:
            self.on_membership_removed(tenant_id, membership.user_id)
            delete_record(self.session, membership)
        return len(memberships)
