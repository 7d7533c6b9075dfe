"""Context management for operations and tenant isolation."""

from .operation_context import OperationContext, OperationHandler, operation
from .service_decorators import handle_repository_errors, transactional
from .tenant_context import TenantContext, tenant_aware, tenant_context

__all__ = [
    "operation",
    "OperationContext",
    "OperationHandler",
    "handle_repository_errors",
    "transactional",
    "TenantContext",
    "tenant_aware",
    "tenant_context",
]
