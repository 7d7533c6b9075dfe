"""
Unit tests for the authorization engine.

The engine is a pure function of its inputs, so these tests need no database:
membership facts are handed in directly.
"""

import pytest

from tenant_access_core.authorization.engine import (
    POLICY_TABLE,
    AccessFacts,
    EntityRef,
    Principal,
    Rule,
    decide,
    enforce,
)
from tenant_access_core.enums import Action, DenyReason, EntityType, EventVisibility, Role
from tenant_access_core.exceptions import AuthorizationDenied, ErrorCode

TENANT = "tenant-1"
OTHER_TENANT = "tenant-2"

ALICE = Principal(id="alice", email="alice@example.com")
BOB = Principal(id="bob", email="bob@example.com")
ANON = Principal.anonymous()

OWNER_FACTS = AccessFacts(role=Role.OWNER)
MEMBER_FACTS = AccessFacts(role=Role.MEMBER)
NO_FACTS = AccessFacts()

TENANT_SCOPED_TYPES = [t for t in EntityType if t != EntityType.TENANT]
ALL_ACTIONS = list(Action)


def ref(**kwargs) -> EntityRef:
    kwargs.setdefault("id", "entity-1")
    kwargs.setdefault("tenant_id", TENANT)
    return EntityRef(**kwargs)


class TestPolicyTable:
    def test_every_entity_type_has_every_action(self):
        for entity_type in EntityType:
            for action in Action:
                assert (entity_type, action) in POLICY_TABLE

    def test_delete_mirrors_update(self):
        for entity_type in EntityType:
            assert POLICY_TABLE[(entity_type, Action.DELETE)] == POLICY_TABLE[
                (entity_type, Action.UPDATE)
            ]

    @pytest.mark.parametrize(
        "entity_type,action,rule",
        [
            (EntityType.TENANT, Action.CREATE, Rule.AUTHENTICATED),
            (EntityType.TENANT, Action.UPDATE, Rule.OWNER),
            (EntityType.MEMBERSHIP, Action.CREATE, Rule.OWNER_OR_INITIAL_OWNER),
            (EntityType.MEMBERSHIP, Action.READ, Rule.MEMBER),
            (EntityType.GROUP, Action.CREATE, Rule.OWNER),
            (EntityType.RESOURCE, Action.READ, Rule.MEMBER),
            (EntityType.EVENT, Action.CREATE, Rule.MEMBER),
            (EntityType.EVENT, Action.READ, Rule.PUBLIC_EVENT_OR_MEMBER),
            (EntityType.EVENT, Action.UPDATE, Rule.OWNER_OR_CREATOR),
            (EntityType.SERVICE_NOTE, Action.CREATE, Rule.OWNER_OR_SERVICE_ADMIN),
            (EntityType.SERVICE_EVENT_OWNER, Action.DELETE, Rule.OWNER_OR_SERVICE_ADMIN),
        ],
    )
    def test_rule_assignment(self, entity_type, action, rule):
        assert POLICY_TABLE[(entity_type, action)] == rule


class TestOwnerAndOutsider:
    @pytest.mark.parametrize("entity_type", TENANT_SCOPED_TYPES)
    @pytest.mark.parametrize("action", ALL_ACTIONS)
    def test_owner_may_do_everything(self, entity_type, action):
        decision = decide(ALICE, action, entity_type, ref(), TENANT, OWNER_FACTS)
        assert decision.allowed

    @pytest.mark.parametrize("entity_type", TENANT_SCOPED_TYPES)
    @pytest.mark.parametrize("action", ALL_ACTIONS)
    def test_non_member_may_do_nothing(self, entity_type, action):
        decision = decide(ALICE, action, entity_type, ref(), TENANT, NO_FACTS)
        assert not decision.allowed
        assert decision.reason == DenyReason.NOT_A_MEMBER

    @pytest.mark.parametrize("entity_type", TENANT_SCOPED_TYPES)
    @pytest.mark.parametrize("action", ALL_ACTIONS)
    def test_cross_tenant_is_denied_even_for_owner(self, entity_type, action):
        decision = decide(
            ALICE, action, entity_type, ref(tenant_id=OTHER_TENANT), TENANT, OWNER_FACTS
        )
        assert not decision.allowed
        assert decision.reason == DenyReason.TENANT_MISMATCH


class TestMemberRules:
    @pytest.mark.parametrize(
        "entity_type",
        [EntityType.GROUP, EntityType.RESOURCE, EntityType.SERVICE, EntityType.INVITATION],
    )
    @pytest.mark.parametrize("action", [Action.CREATE, Action.UPDATE, Action.DELETE])
    def test_member_cannot_manage_owner_only_entities(self, entity_type, action):
        decision = decide(BOB, action, entity_type, ref(), TENANT, MEMBER_FACTS)
        assert not decision.allowed
        assert decision.reason == DenyReason.INSUFFICIENT_ROLE

    @pytest.mark.parametrize(
        "entity_type", [EntityType.GROUP, EntityType.RESOURCE, EntityType.SERVICE]
    )
    def test_member_can_read(self, entity_type):
        assert decide(BOB, Action.READ, entity_type, ref(), TENANT, MEMBER_FACTS).allowed

    def test_member_cannot_read_invitations(self):
        decision = decide(BOB, Action.READ, EntityType.INVITATION, ref(), TENANT, MEMBER_FACTS)
        assert not decision.allowed

    @pytest.mark.parametrize("action", [Action.UPDATE, Action.DELETE])
    def test_member_cannot_touch_own_membership(self, action):
        own = ref(user_id=BOB.id, role=Role.MEMBER)
        decision = decide(BOB, action, EntityType.MEMBERSHIP, own, TENANT, MEMBER_FACTS)
        assert not decision.allowed


class TestEvents:
    @pytest.mark.parametrize("principal", [ALICE, ANON])
    def test_public_event_readable_by_anyone(self, principal):
        event = ref(visibility=EventVisibility.PUBLIC)
        assert decide(principal, Action.READ, EntityType.EVENT, event, TENANT, NO_FACTS).allowed

    def test_private_event_hidden_from_non_members(self):
        event = ref(visibility=EventVisibility.PRIVATE)
        decision = decide(ALICE, Action.READ, EntityType.EVENT, event, TENANT, NO_FACTS)
        assert not decision.allowed

    def test_private_event_hidden_from_anonymous(self):
        event = ref(visibility=EventVisibility.PRIVATE)
        decision = decide(ANON, Action.READ, EntityType.EVENT, event, TENANT, NO_FACTS)
        assert decision.reason == DenyReason.NOT_AUTHENTICATED

    def test_private_event_readable_by_member(self):
        event = ref(visibility=EventVisibility.PRIVATE)
        assert decide(BOB, Action.READ, EntityType.EVENT, event, TENANT, MEMBER_FACTS).allowed

    def test_public_event_in_other_tenant_is_denied(self):
        event = ref(tenant_id=OTHER_TENANT, visibility=EventVisibility.PUBLIC)
        assert not decide(ANON, Action.READ, EntityType.EVENT, event, TENANT, NO_FACTS).allowed

    @pytest.mark.parametrize("action", [Action.UPDATE, Action.DELETE])
    def test_creator_may_change_own_event(self, action):
        event = ref(created_by=BOB.id)
        assert decide(BOB, action, EntityType.EVENT, event, TENANT, MEMBER_FACTS).allowed

    @pytest.mark.parametrize("action", [Action.UPDATE, Action.DELETE])
    def test_other_member_may_not_change_event(self, action):
        event = ref(created_by=ALICE.id)
        decision = decide(BOB, action, EntityType.EVENT, event, TENANT, MEMBER_FACTS)
        assert not decision.allowed
        assert decision.reason == DenyReason.NOT_CREATOR

    def test_event_without_creator_is_owner_only(self):
        event = ref(created_by=None)
        assert not decide(BOB, Action.UPDATE, EntityType.EVENT, event, TENANT, MEMBER_FACTS).allowed
        assert decide(ALICE, Action.UPDATE, EntityType.EVENT, event, TENANT, OWNER_FACTS).allowed

    def test_member_may_create_event(self):
        assert decide(BOB, Action.CREATE, EntityType.EVENT, ref(), TENANT, MEMBER_FACTS).allowed


class TestAnonymous:
    @pytest.mark.parametrize("entity_type", list(EntityType))
    @pytest.mark.parametrize("action", ALL_ACTIONS)
    def test_anonymous_only_reads_public_events(self, entity_type, action):
        decision = decide(ANON, action, entity_type, ref(), TENANT, NO_FACTS)
        assert not decision.allowed

    def test_anonymous_cannot_create_tenant(self):
        decision = decide(ANON, Action.CREATE, EntityType.TENANT, None, None, NO_FACTS)
        assert decision.reason == DenyReason.NOT_AUTHENTICATED


class TestServiceSubResources:
    SUB_RESOURCES = [
        EntityType.SERVICE_NOTE,
        EntityType.SERVICE_ROLE,
        EntityType.SERVICE_EVENT,
        EntityType.SERVICE_EVENT_OWNER,
    ]

    @pytest.mark.parametrize("entity_type", SUB_RESOURCES)
    @pytest.mark.parametrize("action", [Action.CREATE, Action.UPDATE, Action.DELETE])
    def test_service_admin_may_manage(self, entity_type, action):
        facts = AccessFacts(role=Role.MEMBER, is_service_admin=True)
        assert decide(BOB, action, entity_type, ref(), TENANT, facts).allowed

    @pytest.mark.parametrize("entity_type", SUB_RESOURCES)
    def test_plain_member_may_not_manage(self, entity_type):
        decision = decide(BOB, Action.CREATE, entity_type, ref(), TENANT, MEMBER_FACTS)
        assert decision.reason == DenyReason.NOT_SERVICE_ADMIN

    def test_service_admin_still_needs_membership(self):
        facts = AccessFacts(role=None, is_service_admin=True)
        decision = decide(BOB, Action.CREATE, EntityType.SERVICE_NOTE, ref(), TENANT, facts)
        assert decision.reason == DenyReason.NOT_A_MEMBER

    def test_service_admin_cannot_edit_service_itself(self):
        facts = AccessFacts(role=Role.MEMBER, is_service_admin=True)
        assert not decide(BOB, Action.UPDATE, EntityType.SERVICE, ref(), TENANT, facts).allowed


class TestInitialOwner:
    def test_principal_may_make_itself_owner_of_ownerless_tenant(self):
        facts = AccessFacts(tenant_has_owner=False)
        new_row = EntityRef(tenant_id=TENANT, user_id=ALICE.id, role=Role.OWNER)
        assert decide(ALICE, Action.CREATE, EntityType.MEMBERSHIP, new_row, TENANT, facts).allowed

    def test_not_when_tenant_already_has_owner(self):
        new_row = EntityRef(tenant_id=TENANT, user_id=ALICE.id, role=Role.OWNER)
        decision = decide(ALICE, Action.CREATE, EntityType.MEMBERSHIP, new_row, TENANT, NO_FACTS)
        assert not decision.allowed

    def test_not_for_someone_else(self):
        facts = AccessFacts(tenant_has_owner=False)
        new_row = EntityRef(tenant_id=TENANT, user_id=BOB.id, role=Role.OWNER)
        assert not decide(ALICE, Action.CREATE, EntityType.MEMBERSHIP, new_row, TENANT, facts).allowed

    def test_member_role_is_not_initial_owner(self):
        facts = AccessFacts(tenant_has_owner=False)
        new_row = EntityRef(tenant_id=TENANT, user_id=ALICE.id, role=Role.MEMBER)
        assert not decide(ALICE, Action.CREATE, EntityType.MEMBERSHIP, new_row, TENANT, facts).allowed


class TestTenantEntity:
    def test_any_authenticated_principal_may_create_and_read(self):
        assert decide(ALICE, Action.CREATE, EntityType.TENANT, None, None, NO_FACTS).allowed
        tenant_ref = ref(id=TENANT)
        assert decide(ALICE, Action.READ, EntityType.TENANT, tenant_ref, TENANT, NO_FACTS).allowed

    @pytest.mark.parametrize("action", [Action.UPDATE, Action.DELETE])
    def test_only_owner_may_change(self, action):
        tenant_ref = ref(id=TENANT)
        assert not decide(BOB, action, EntityType.TENANT, tenant_ref, TENANT, MEMBER_FACTS).allowed
        assert decide(ALICE, action, EntityType.TENANT, tenant_ref, TENANT, OWNER_FACTS).allowed


class TestEnforce:
    def test_returns_decision_when_allowed(self):
        decision = enforce(ALICE, Action.READ, EntityType.GROUP, ref(), TENANT, OWNER_FACTS)
        assert decision.allowed

    def test_denial_looks_like_not_found(self):
        with pytest.raises(AuthorizationDenied) as exc_info:
            enforce(ALICE, Action.READ, EntityType.GROUP, ref(id="g-1"), TENANT, NO_FACTS)

        error = exc_info.value
        assert error.status_code == 404
        assert error.error_code == ErrorCode.NOT_FOUND
        assert error.message == "Group not found"
        assert error.reason == DenyReason.NOT_A_MEMBER
        assert error.entity_id == "g-1"

    def test_deny_reason_never_reaches_response(self):
        with pytest.raises(AuthorizationDenied) as exc_info:
            enforce(ALICE, Action.UPDATE, EntityType.GROUP, ref(), TENANT, MEMBER_FACTS)

        payload = exc_info.value.to_dict()
        assert "reason" not in payload["error"]["context"]
        assert "insufficient_role" not in str(payload)


class TestEntityRef:
    def test_from_record_picks_known_attributes(self):
        class Row:
            id = "e-1"
            tenant_id = TENANT
            created_by = "bob"
            visibility = EventVisibility.PUBLIC
            unrelated = "ignored"

        entity = EntityRef.from_record(Row())
        assert entity.id == "e-1"
        assert entity.created_by == "bob"
        assert entity.visibility == EventVisibility.PUBLIC
        assert entity.service_id is None

    def test_overrides_win(self):
        class Row:
            id = "t-1"

        assert EntityRef.from_record(Row(), tenant_id="t-1").tenant_id == "t-1"
