"""
Tests for ServiceService: services are owner-managed, while their notes,
roles, events and event owners may also be managed by the service's admins.
"""

from datetime import date, time

import pytest

from tenant_access_core.authorization.engine import Principal
from tenant_access_core.db import (
    ServiceAdmin,
    ServiceEvent,
    ServiceEventOwner,
    ServiceGroup,
    ServiceNote,
    ServiceRole,
)
from tenant_access_core.exceptions import AuthorizationDenied, RepositoryError, ValidationError
from tenant_access_core.schemas import (
    ServiceCreate,
    ServiceEventCreate,
    ServiceEventOwnerCreate,
    ServiceEventUpdate,
    ServiceNoteCreate,
    ServiceNoteUpdate,
    ServiceRoleCreate,
    ServiceRoleUpdate,
    ServiceUpdate,
)
from tests.fixtures.factories import (
    GroupFactory,
    MembershipFactory,
    ServiceAdminFactory,
    ServiceFactory,
)


@pytest.fixture
def service(tenant):
    return ServiceFactory(tenant=tenant, name="Sunday")


@pytest.fixture
def service_admin(tenant, service):
    membership = MembershipFactory(tenant=tenant)
    ServiceAdminFactory(service=service, user_id=membership.user_id)
    return Principal(id=membership.user_id)


def sunday(start=time(10), end=time(12)):
    return ServiceEventCreate(date=date(2026, 11, 1), start_time=start, end_time=end)


class TestServices:
    def test_owner_crud(self, service_service, tenant, owner):
        created = service_service.create_service(
            owner, tenant.id, ServiceCreate(name="Evening", default_start_time=time(18))
        )
        assert service_service.get_service(owner, tenant.id, created.id).name == "Evening"

        updated = service_service.update_service(
            owner, tenant.id, created.id, ServiceUpdate(name="Late")
        )
        assert updated.name == "Late"
        assert updated.default_start_time == time(18)

        service_service.delete_service(owner, tenant.id, created.id)
        assert service_service.list_services(owner, tenant.id) == []

    def test_member_reads_only(self, service_service, tenant, member, service):
        assert [s.name for s in service_service.list_services(member, tenant.id)] == ["Sunday"]
        with pytest.raises(AuthorizationDenied):
            service_service.create_service(member, tenant.id, ServiceCreate(name="Mine"))
        with pytest.raises(AuthorizationDenied):
            service_service.delete_service(member, tenant.id, service.id)

    def test_service_admin_cannot_manage_service_itself(
        self, service_service, tenant, service, service_admin
    ):
        with pytest.raises(AuthorizationDenied):
            service_service.update_service(
                service_admin, tenant.id, service.id, ServiceUpdate(name="Renamed")
            )

    def test_delete_cascades(self, service_service, tenant, owner, member, service, db_session):
        ServiceAdminFactory(service=service, user_id=member.id)
        db_session.add(ServiceGroup(service_id=service.id, group_id=GroupFactory(tenant=tenant).id))
        db_session.flush()
        service_service.create_note(owner, tenant.id, service.id, ServiceNoteCreate(text="Hi"))
        role = service_service.create_role(owner, tenant.id, service.id, ServiceRoleCreate(name="Lead"))
        event = service_service.create_service_event(owner, tenant.id, service.id, sunday())
        service_service.assign_event_owner(
            owner,
            tenant.id,
            event.id,
            ServiceEventOwnerCreate(service_role_id=role.id, user_id=member.id),
        )

        service_service.delete_service(owner, tenant.id, service.id)

        for model in (ServiceAdmin, ServiceGroup, ServiceNote, ServiceRole, ServiceEvent):
            assert db_session.query(model).filter_by(service_id=service.id).count() == 0
        assert db_session.query(ServiceEventOwner).count() == 0


class TestAdminsAndGroups:
    def test_owner_adds_admin(self, service_service, tenant, owner, member, service):
        service_service.add_service_admin(owner, tenant.id, service.id, member.id)
        admins = service_service.list_service_admins(member, tenant.id, service.id)
        assert [a.user_id for a in admins] == [member.id]

    def test_admin_must_be_member(self, service_service, tenant, owner, outsider, service):
        with pytest.raises(ValidationError):
            service_service.add_service_admin(owner, tenant.id, service.id, outsider.id)

    def test_duplicate_admin(self, service_service, tenant, owner, service, service_admin):
        with pytest.raises(RepositoryError):
            service_service.add_service_admin(owner, tenant.id, service.id, service_admin.id)

    def test_admin_cannot_appoint_admins(
        self, service_service, tenant, member, service, service_admin
    ):
        with pytest.raises(AuthorizationDenied):
            service_service.add_service_admin(service_admin, tenant.id, service.id, member.id)

    def test_remove_admin(self, service_service, tenant, owner, service, service_admin):
        service_service.remove_service_admin(owner, tenant.id, service.id, service_admin.id)
        assert service_service.list_service_admins(owner, tenant.id, service.id) == []

    def test_link_groups(self, service_service, tenant, owner, service):
        group = GroupFactory(tenant=tenant)
        service_service.add_service_group(owner, tenant.id, service.id, group.id)
        assert [g.group_id for g in service_service.list_service_groups(owner, tenant.id, service.id)] == [
            group.id
        ]

        service_service.remove_service_group(owner, tenant.id, service.id, group.id)
        assert service_service.list_service_groups(owner, tenant.id, service.id) == []

    def test_group_of_other_tenant_cannot_be_linked(
        self, service_service, tenant, other_tenant, owner, service
    ):
        foreign = GroupFactory(tenant=other_tenant)
        with pytest.raises(AuthorizationDenied):
            service_service.add_service_group(owner, tenant.id, service.id, foreign.id)


class TestSubResources:
    @pytest.mark.parametrize("who", ["owner", "service_admin"])
    def test_managers_handle_notes(self, request, service_service, tenant, service, who):
        principal = request.getfixturevalue(who)
        note = service_service.create_note(
            principal, tenant.id, service.id, ServiceNoteCreate(text="Bring music")
        )
        updated = service_service.update_note(
            principal, tenant.id, note.id, ServiceNoteUpdate(link="https://example.com")
        )
        assert updated.text == "Bring music"
        service_service.delete_note(principal, tenant.id, note.id)
        assert service_service.list_notes(principal, tenant.id, service.id) == []

    def test_plain_member_reads_but_cannot_manage(
        self, service_service, tenant, owner, member, service
    ):
        role = service_service.create_role(owner, tenant.id, service.id, ServiceRoleCreate(name="Lead"))

        assert [r.name for r in service_service.list_roles(member, tenant.id, service.id)] == ["Lead"]
        with pytest.raises(AuthorizationDenied):
            service_service.create_note(member, tenant.id, service.id, ServiceNoteCreate(text="x"))
        with pytest.raises(AuthorizationDenied):
            service_service.update_role(member, tenant.id, role.id, ServiceRoleUpdate(name="y"))
        with pytest.raises(AuthorizationDenied):
            service_service.create_service_event(member, tenant.id, service.id, sunday())

    def test_admin_of_one_service_only(self, service_service, tenant, service_admin):
        other_service = ServiceFactory(tenant=tenant)
        with pytest.raises(AuthorizationDenied):
            service_service.create_role(
                service_admin, tenant.id, other_service.id, ServiceRoleCreate(name="Lead")
            )

    def test_delete_role_removes_its_assignments(
        self, service_service, tenant, service_admin, member, service, db_session
    ):
        role = service_service.create_role(
            service_admin, tenant.id, service.id, ServiceRoleCreate(name="Lead")
        )
        event = service_service.create_service_event(service_admin, tenant.id, service.id, sunday())
        service_service.assign_event_owner(
            service_admin,
            tenant.id,
            event.id,
            ServiceEventOwnerCreate(service_role_id=role.id, user_id=member.id),
        )

        service_service.delete_role(service_admin, tenant.id, role.id)

        assert db_session.query(ServiceEventOwner).count() == 0
        assert service_service.list_service_events(member, tenant.id, service.id)[0].id == event.id


class TestServiceEvents:
    def test_end_must_follow_start(self):
        with pytest.raises(ValidationError):
            sunday(start=time(12), end=time(10))

    def test_update_checks_merged_times(self, service_service, tenant, owner, service):
        event = service_service.create_service_event(owner, tenant.id, service.id, sunday())
        with pytest.raises(ValidationError):
            service_service.update_service_event(
                owner, tenant.id, event.id, ServiceEventUpdate(end_time=time(9))
            )
        assert service_service.list_service_events(owner, tenant.id, service.id)[0].end_time == time(12)

    def test_update(self, service_service, tenant, owner, service):
        event = service_service.create_service_event(owner, tenant.id, service.id, sunday())
        updated = service_service.update_service_event(
            owner, tenant.id, event.id, ServiceEventUpdate(subtitle="Harvest")
        )
        assert updated.subtitle == "Harvest"

    def test_delete_removes_owners(self, service_service, tenant, owner, member, service, db_session):
        role = service_service.create_role(owner, tenant.id, service.id, ServiceRoleCreate(name="Lead"))
        event = service_service.create_service_event(owner, tenant.id, service.id, sunday())
        service_service.assign_event_owner(
            owner, tenant.id, event.id, ServiceEventOwnerCreate(service_role_id=role.id, user_id=member.id)
        )

        service_service.delete_service_event(owner, tenant.id, event.id)

        assert db_session.query(ServiceEventOwner).count() == 0


class TestEventOwners:
    @pytest.fixture
    def event(self, service_service, tenant, owner, service):
        return service_service.create_service_event(owner, tenant.id, service.id, sunday())

    @pytest.fixture
    def role(self, service_service, tenant, owner, service):
        return service_service.create_role(owner, tenant.id, service.id, ServiceRoleCreate(name="Lead"))

    def test_assign_and_list(self, service_service, tenant, owner, member, event, role):
        assigned = service_service.assign_event_owner(
            owner, tenant.id, event.id, ServiceEventOwnerCreate(service_role_id=role.id, user_id=member.id)
        )
        owners = service_service.list_event_owners(member, tenant.id, event.id)
        assert [(o.service_role_id, o.user_id) for o in owners] == [(role.id, member.id)]

        service_service.remove_event_owner(owner, tenant.id, assigned.id)
        assert service_service.list_event_owners(owner, tenant.id, event.id) == []

    def test_role_of_another_service(self, service_service, tenant, owner, member, event):
        other = ServiceFactory(tenant=tenant)
        foreign_role = service_service.create_role(
            owner, tenant.id, other.id, ServiceRoleCreate(name="Lead")
        )
        with pytest.raises(ValidationError):
            service_service.assign_event_owner(
                owner,
                tenant.id,
                event.id,
                ServiceEventOwnerCreate(service_role_id=foreign_role.id, user_id=member.id),
            )

    def test_owner_must_be_member(self, service_service, tenant, owner, outsider, event, role):
        with pytest.raises(ValidationError):
            service_service.assign_event_owner(
                owner,
                tenant.id,
                event.id,
                ServiceEventOwnerCreate(service_role_id=role.id, user_id=outsider.id),
            )

    def test_plain_member_cannot_assign(self, service_service, tenant, member, event, role):
        with pytest.raises(AuthorizationDenied):
            service_service.assign_event_owner(
                member,
                tenant.id,
                event.id,
                ServiceEventOwnerCreate(service_role_id=role.id, user_id=member.id),
            )
