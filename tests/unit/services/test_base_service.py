"""
Tests for SessionManagedService transaction handling.
"""

import pytest

from tenant_access_core.authorization.engine import Principal
from tenant_access_core.db import Group
from tenant_access_core.exceptions import QuotaExceeded
from tenant_access_core.schemas import GroupCreate
from tenant_access_core.services import GroupService
from tests.fixtures.factories import (
    GroupFactory,
    OwnerMembershipFactory,
    PriceTierFactory,
    TenantFactory,
)


@pytest.fixture
def seeded(file_session):
    """Tenant with a group limit of 2 and one existing group, committed."""
    tenant = TenantFactory(tier=PriceTierFactory(group_limit=2))
    owner = OwnerMembershipFactory(tenant=tenant)
    GroupFactory(tenant=tenant, name="Existing")
    file_session.commit()
    return tenant.id, Principal(id=owner.user_id)


def _group_names(manager, tenant_id):
    with manager.session_factory() as session:
        return sorted(g.name for g in session.query(Group).filter_by(tenant_id=tenant_id))


class TestOwnedSession:
    def test_commits_on_success(self, file_db_manager, seeded):
        tenant_id, owner = seeded
        with GroupService() as service:
            service.create_group(owner, tenant_id, GroupCreate(name="Committed"))

        assert _group_names(file_db_manager, tenant_id) == ["Committed", "Existing"]

    def test_rolls_back_on_error(self, file_db_manager, seeded):
        tenant_id, owner = seeded
        service = GroupService()
        try:
            service.create_group(owner, tenant_id, GroupCreate(name="Second"))
            with pytest.raises(QuotaExceeded):
                service.create_group(owner, tenant_id, GroupCreate(name="Third"))
            # the session stays usable after the rollback
            assert len(service.list_groups(owner, tenant_id)) == 2
        finally:
            service.close()

        assert _group_names(file_db_manager, tenant_id) == ["Existing", "Second"]

    def test_transaction_groups_calls(self, file_db_manager, seeded):
        tenant_id, owner = seeded
        service = GroupService()
        try:
            with pytest.raises(QuotaExceeded):
                with service.transaction():
                    service.create_group(owner, tenant_id, GroupCreate(name="Second"))
                    service.create_group(owner, tenant_id, GroupCreate(name="Third"))
        finally:
            service.close()

        assert _group_names(file_db_manager, tenant_id) == ["Existing"]


class TestSharedSession:
    def test_failure_rolls_back_to_savepoint(self, db_session, tenant, owner):
        GroupFactory.create_batch(4, tenant=tenant)
        service = GroupService(session=db_session)

        service.create_group(owner, tenant.id, GroupCreate(name="Fifth"))
        with pytest.raises(QuotaExceeded):
            service.create_group(owner, tenant.id, GroupCreate(name="Sixth"))

        names = [g.name for g in service.list_groups(owner, tenant.id)]
        assert "Fifth" in names
        assert "Sixth" not in names
        assert len(names) == 5

    def test_shared_session_is_not_committed(self, db_session, tenant, owner):
        service = GroupService(session=db_session)
        service.create_group(owner, tenant.id, GroupCreate(name="Pending"))

        db_session.rollback()

        assert db_session.query(Group).filter_by(name="Pending").count() == 0

    def test_collaborators_share_the_session(self, db_session):
        service = GroupService(session=db_session)
        assert service.quota.session is db_session
