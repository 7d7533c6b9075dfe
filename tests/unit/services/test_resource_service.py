"""
Tests for ResourceService.
"""

import pytest

from tenant_access_core.exceptions import AuthorizationDenied
from tenant_access_core.schemas import ResourceCreate, ResourceUpdate
from tests.fixtures.factories import ResourceFactory


def test_owner_crud(resource_service, tenant, owner):
    resource = resource_service.create_resource(
        owner, tenant.id, ResourceCreate(name="Songbook", url="https://example.com/songs")
    )
    assert resource.icon == "link"

    updated = resource_service.update_resource(
        owner, tenant.id, resource.id, ResourceUpdate(icon="book")
    )
    assert updated.icon == "book"
    assert updated.url == "https://example.com/songs"

    resource_service.delete_resource(owner, tenant.id, resource.id)
    assert resource_service.list_resources(owner, tenant.id) == []


def test_member_reads_but_cannot_write(resource_service, tenant, member):
    resource = ResourceFactory(tenant=tenant, name="Rota")

    assert resource_service.get_resource(member, tenant.id, resource.id).name == "Rota"
    assert [r.name for r in resource_service.list_resources(member, tenant.id)] == ["Rota"]

    with pytest.raises(AuthorizationDenied):
        resource_service.create_resource(
            member, tenant.id, ResourceCreate(name="Mine", url="https://example.com")
        )
    with pytest.raises(AuthorizationDenied):
        resource_service.update_resource(member, tenant.id, resource.id, ResourceUpdate(name="X"))
    with pytest.raises(AuthorizationDenied):
        resource_service.delete_resource(member, tenant.id, resource.id)


def test_resources_are_not_quota_bound(resource_service, tenant, owner):
    ResourceFactory.create_batch(30, tenant=tenant)
    resource_service.create_resource(
        owner, tenant.id, ResourceCreate(name="One more", url="https://example.com")
    )
    assert len(resource_service.list_resources(owner, tenant.id)) == 31


@pytest.mark.parametrize("who", ["outsider", "anonymous", "other_owner"])
def test_non_members_see_nothing(request, resource_service, tenant, who):
    principal = request.getfixturevalue(who)
    resource = ResourceFactory(tenant=tenant)

    with pytest.raises(AuthorizationDenied):
        resource_service.get_resource(principal, tenant.id, resource.id)
    with pytest.raises(AuthorizationDenied):
        resource_service.list_resources(principal, tenant.id)


def test_cross_tenant_id_is_not_found(resource_service, tenant, other_tenant, owner):
    foreign = ResourceFactory(tenant=other_tenant)
    with pytest.raises(AuthorizationDenied):
        resource_service.get_resource(owner, tenant.id, foreign.id)
    with pytest.raises(AuthorizationDenied):
        resource_service.delete_resource(owner, tenant.id, foreign.id)
