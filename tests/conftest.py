"""
Test fixtures shared by unit and integration tests.

Unit tests run against an in-memory SQLite database through one shared
session; services built on that session run their work in savepoints.
Tests that need several independent sessions (concurrency, services that own
their sessions) use file_db_manager instead.
"""

import pytest

from tenant_access_core.authorization.engine import Principal
from tenant_access_core.config import reset_config
from tenant_access_core.context.tenant_context import TenantContext
from tenant_access_core.db import (
    DatabaseManager,
    get_development_config,
    import_all_models,
    set_db_manager,
)
from tenant_access_core.enums import Role
from tenant_access_core.exceptions import clear_correlation_id
from tenant_access_core.services import (
    EventService,
    GroupService,
    InvitationService,
    MembershipLifecycle,
    MembershipService,
    PriceTierCatalog,
    QuotaService,
    ResourceService,
    ServiceService,
    TenantService,
)
from tenant_access_core.utils.logger import reset_logging
from tests.fixtures.factories import (
    MembershipFactory,
    OwnerMembershipFactory,
    PriceTierFactory,
    TenantFactory,
    bind_session,
)
from tests.fixtures.fake_identity import FakeIdentityProvider


def _reset_globals():
    reset_config()
    reset_logging()
    PriceTierCatalog.invalidate()
    clear_correlation_id()
    TenantContext.clear_current_tenant()
    TenantContext.clear_current_user()


@pytest.fixture(autouse=True)
def clean_globals():
    """Every test starts with default config, no cached tiers and no context."""
    _reset_globals()
    yield
    _reset_globals()
    set_db_manager(None)
    bind_session(None)


# ==================== DATABASE ====================


@pytest.fixture(scope="function")
def db_manager():
    """In-memory SQLite database with every table created."""
    import_all_models()
    manager = DatabaseManager(get_development_config(":memory:"))
    manager.create_tables()
    set_db_manager(manager)
    yield manager
    manager.close()


@pytest.fixture(scope="function")
def db_session(db_manager):
    """
    Session shared by the test, its factories and its services.

    Rolled back and closed after each test.
    """
    session = db_manager.session_factory()
    bind_session(session)
    yield session
    session.rollback()
    session.close()


@pytest.fixture(scope="function")
def file_db_manager(tmp_path):
    """
    File-backed SQLite database for tests that need independent sessions.

    Registered as the global manager, so services created without a session
    open their own connection to it.
    """
    import_all_models()
    manager = DatabaseManager(get_development_config(str(tmp_path / "tenant_access.db")))
    manager.create_tables()
    set_db_manager(manager)
    yield manager
    manager.close()


# ==================== SERVICES ====================


@pytest.fixture
def tenant_service(db_session):
    return TenantService(session=db_session)


@pytest.fixture
def membership_service(db_session):
    return MembershipService(session=db_session)


@pytest.fixture
def invitation_service(db_session):
    return InvitationService(session=db_session)


@pytest.fixture
def lifecycle(db_session):
    return MembershipLifecycle(session=db_session)


@pytest.fixture
def quota_service(db_session):
    return QuotaService(session=db_session)


@pytest.fixture
def catalog(db_session):
    return PriceTierCatalog(session=db_session)


@pytest.fixture
def group_service(db_session):
    return GroupService(session=db_session)


@pytest.fixture
def event_service(db_session):
    return EventService(session=db_session)


@pytest.fixture
def resource_service(db_session):
    return ResourceService(session=db_session)


@pytest.fixture
def service_service(db_session):
    return ServiceService(session=db_session)


# ==================== TENANT SETUP ====================


@pytest.fixture
def tier(db_session):
    """Tier with room for 10 users, 5 groups and 20 events."""
    return PriceTierFactory(user_limit=10, group_limit=5, event_limit=20)


@pytest.fixture
def tenant(db_session, tier):
    return TenantFactory(tier=tier, slug="acme", name="Acme")


@pytest.fixture
def owner(db_session, tenant):
    membership = OwnerMembershipFactory(tenant=tenant)
    return Principal(id=membership.user_id, email="owner@acme.test")


@pytest.fixture
def member(db_session, tenant):
    membership = MembershipFactory(tenant=tenant, role=Role.MEMBER)
    return Principal(id=membership.user_id, email="member@acme.test")


@pytest.fixture
def outsider(db_session):
    """Authenticated principal with no membership anywhere."""
    return Principal(id="outsider-user", email="outsider@elsewhere.test")


@pytest.fixture
def anonymous():
    return Principal.anonymous()


@pytest.fixture
def other_tenant(db_session, tier):
    return TenantFactory(tier=tier, slug="globex", name="Globex")


@pytest.fixture
def other_owner(db_session, other_tenant):
    membership = OwnerMembershipFactory(tenant=other_tenant)
    return Principal(id=membership.user_id, email="owner@globex.test")


# ==================== IDENTITY ====================


@pytest.fixture
def identity():
    return FakeIdentityProvider()


@pytest.fixture
def file_session(file_db_manager):
    """
    Seeding session on the file database, bound to the factories.

    Commit after seeding so services that own their sessions see the rows.
    """
    session = file_db_manager.session_factory()
    bind_session(session)
    yield session
    session.rollback()
    session.close()
