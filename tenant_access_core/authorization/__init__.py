"""Policy table and decision function for tenant-scoped access control."""

from .engine import (
    POLICY_TABLE,
    AccessFacts,
    Decision,
    EntityRef,
    Principal,
    Rule,
    decide,
    enforce,
)

__all__ = [
    "POLICY_TABLE",
    "AccessFacts",
    "Decision",
    "EntityRef",
    "Principal",
    "Rule",
    "decide",
    "enforce",
]
