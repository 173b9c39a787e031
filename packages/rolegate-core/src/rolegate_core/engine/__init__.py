"""Policy evaluation engine."""

from rolegate_core.engine.models import AccessRequest, AccessResult, EffectivePermissions
from rolegate_core.engine.hierarchy import resolve_many, resolve_permissions
from rolegate_core.engine.matcher import match_permissions, matches
from rolegate_core.engine.engine import PolicyEngine
from rolegate_core.engine.factory import create_engine

__all__ = [
    "AccessRequest",
    "AccessResult",
    "EffectivePermissions",
    "PolicyEngine",
    "create_engine",
    "match_permissions",
    "matches",
    "resolve_many",
    "resolve_permissions",
]
