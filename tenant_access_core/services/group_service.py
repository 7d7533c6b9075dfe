"""
Groups and group membership.

Creating a group is quota-bound (group limit) and owner-only; group members
must already be members of the group's tenant.
"""

from typing import List

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError

from ..authorization.engine import EntityRef, Principal
from ..context.operation_context import operation
from ..context.service_decorators import handle_repository_errors, transactional
from ..db.db_content_models import Group, GroupMember
from ..db.db_service_models import ServiceGroup
from ..enums import Action, DenyReason, EntityType, ResourceKind
from ..exceptions import AuthorizationDenied, ErrorCode, ValidationError, duplicate
from ..schemas.content_schema import GroupCreate, GroupMemberRead, GroupRead, GroupUpdate
from ..utils.crud_helpers import add_record, delete_record, get_record, list_records, update_fields
from .access import authorize, get_role, load_and_authorize, load_scoped
from .base_service import SessionManagedService
from .quota_service import QuotaService


class GroupService(SessionManagedService):
    def __init__(self, session=None, logger=None):
        super().__init__(session=session, logger=logger)
        self.quota = self._share_session(QuotaService)

    @operation()
    @transactional()
    @handle_repository_errors("create_group")
    def create_group(self, principal: Principal, tenant_id: str, data: GroupCreate) -> GroupRead:
        """
        Create a group (owners only, within the tier's group limit).

        Raises:
            AuthorizationDenied: If the principal is not the tenant owner
            QuotaExceeded: If the tenant is at its group limit
        """
        authorize(
            self.session,
            principal,
            Action.CREATE,
            EntityType.GROUP,
            tenant_id,
            EntityRef(tenant_id=tenant_id),
        )
        group = self.quota.insert_within_quota(
            tenant_id,
            ResourceKind.GROUP,
            Group(tenant_id=tenant_id, name=data.name, description=data.description),
        )
        return GroupRead.model_validate(group)

    @operation()
    @transactional()
    def get_group(self, principal: Principal, tenant_id: str, group_id: str) -> GroupRead:
        group = load_and_authorize(
            self.session, principal, Action.READ, Group, EntityType.GROUP, group_id, tenant_id
        )
        return GroupRead.model_validate(group)

    @operation()
    @transactional()
    def list_groups(self, principal: Principal, tenant_id: str) -> List[GroupRead]:
        authorize(self.session, principal, Action.READ, EntityType.GROUP, tenant_id)
        return [
            GroupRead.model_validate(group)
            for group in list_records(self.session, Group, tenant_id=tenant_id, order_by="name")
        ]

    @operation()
    @transactional()
    @handle_repository_errors("update_group")
    def update_group(
        self, principal: Principal, tenant_id: str, group_id: str, data: GroupUpdate
    ) -> GroupRead:
        group = load_and_authorize(
            self.session, principal, Action.UPDATE, Group, EntityType.GROUP, group_id, tenant_id
        )
        update_fields(group, data.model_dump(exclude_unset=True))
        self.session.flush()
        return GroupRead.model_validate(group)

    @operation()
    @transactional()
    def delete_group(self, principal: Principal, tenant_id: str, group_id: str) -> None:
        group = load_and_authorize(
            self.session, principal, Action.DELETE, Group, EntityType.GROUP, group_id, tenant_id
        )
        for stmt in (
            delete(GroupMember).where(GroupMember.group_id == group.id),
            delete(ServiceGroup).where(ServiceGroup.group_id == group.id),
        ):
            self.session.execute(stmt.execution_options(synchronize_session="fetch"))
        delete_record(self.session, group)

    # ==================== GROUP MEMBERS ====================

    def _load_group_for(
        self, principal: Principal, action: Action, tenant_id: str, group_id: str
    ) -> Group:
        group = load_scoped(self.session, Group, EntityType.GROUP_MEMBER, group_id, tenant_id)
        authorize(
            self.session,
            principal,
            action,
            EntityType.GROUP_MEMBER,
            tenant_id,
            EntityRef(tenant_id=group.tenant_id),
        )
        return group

    @operation()
    @transactional()
    def add_group_member(
        self, principal: Principal, tenant_id: str, group_id: str, user_id: str
    ) -> GroupMemberRead:
        """
        Put a tenant member into a group (owners only).

        Raises:
            ValidationError: If user_id is not a member of the tenant
            RepositoryError: If user_id is already in the group
        """
        group = self._load_group_for(principal, Action.CREATE, tenant_id, group_id)

        if get_role(self.session, tenant_id, user_id) is None:
            raise ValidationError(
                "User is not a member of this tenant",
                field="user_id",
                error_code=ErrorCode.CONSTRAINT_VIOLATION,
                tenant_id=tenant_id,
            )

        if get_record(self.session, GroupMember, {"group_id": group.id, "user_id": user_id}):
            raise duplicate("GroupMember", group_id=group.id, user_id=user_id)
        try:
            member = add_record(self.session, GroupMember(group_id=group.id, user_id=user_id))
        except IntegrityError as e:
            raise duplicate("GroupMember", cause=e, group_id=group.id, user_id=user_id) from e
        return GroupMemberRead.model_validate(member)

    @operation()
    @transactional()
    def remove_group_member(
        self, principal: Principal, tenant_id: str, group_id: str, user_id: str
    ) -> None:
        group = self._load_group_for(principal, Action.DELETE, tenant_id, group_id)
        member = get_record(self.session, GroupMember, {"group_id": group.id, "user_id": user_id})
        if member is None:
            raise AuthorizationDenied(EntityType.GROUP_MEMBER, user_id, DenyReason.ENTITY_NOT_FOUND)
        delete_record(self.session, member)

    @operation()
    @transactional()
    def list_group_members(
        self, principal: Principal, tenant_id: str, group_id: str
    ) -> List[GroupMemberRead]:
        group = self._load_group_for(principal, Action.READ, tenant_id, group_id)
        return [
            GroupMemberRead.model_validate(member)
            for member in list_records(
                self.session, GroupMember, {"group_id": group.id}, order_by="created_at"
            )
        ]
