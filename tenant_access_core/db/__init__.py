"""
SQLAlchemy models and database management for the tenant access core.
"""

from .db_base import TimestampMixin, UUIDMixin, as_utc, new_id, utc_now
from .db_config import (
    Base,
    DatabaseConfig,
    DatabaseManager,
    close_db,
    get_db_manager,
    get_development_config,
    get_production_config,
    import_all_models,
    init_db,
    initialize_db,
    set_db_manager,
)
from .db_content_models import Event, Group, GroupMember, Resource
from .db_membership_models import Invitation, TenantMember
from .db_service_models import (
    Service,
    ServiceAdmin,
    ServiceEvent,
    ServiceEventOwner,
    ServiceGroup,
    ServiceNote,
    ServiceRole,
)
from .db_tenant_models import PriceTier, Tenant

__all__ = [
    # Base definitions
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "as_utc",
    "new_id",
    "utc_now",
    # Configuration
    "DatabaseConfig",
    "DatabaseManager",
    "close_db",
    "get_db_manager",
    "get_development_config",
    "get_production_config",
    "import_all_models",
    "init_db",
    "initialize_db",
    "set_db_manager",
    # Models
    "PriceTier",
    "Tenant",
    "TenantMember",
    "Invitation",
    "Group",
    "GroupMember",
    "Event",
    "Resource",
    "Service",
    "ServiceAdmin",
    "ServiceGroup",
    "ServiceNote",
    "ServiceRole",
    "ServiceEvent",
    "ServiceEventOwner",
]
