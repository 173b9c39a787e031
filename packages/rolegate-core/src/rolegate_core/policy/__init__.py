"""Policy data model and request context."""

from rolegate_core.policy.context import (
    MISSING,
    AccessContext,
    Environment,
    Location,
)
from rolegate_core.policy.models import (
    WILDCARD,
    Condition,
    ConditionType,
    ContextRef,
    Effect,
    Operator,
    Permission,
    Resource,
    Role,
    slugify_role_name,
)

__all__ = [
    "MISSING",
    "WILDCARD",
    "AccessContext",
    "Condition",
    "ConditionType",
    "ContextRef",
    "Effect",
    "Environment",
    "Location",
    "Operator",
    "Permission",
    "Resource",
    "Role",
    "slugify_role_name",
]
