"""Rolegate Core - role hierarchy and attribute-condition access policy engine."""

from rolegate_core.engine import (
    AccessRequest,
    AccessResult,
    EffectivePermissions,
    PolicyEngine,
    create_engine,
)
from rolegate_core.audit import AuditDispatcher, LoggingAuditSink
from rolegate_core.config import RolegateConfig, load_config
from rolegate_core.policy import (
    AccessContext,
    Condition,
    ContextRef,
    Effect,
    Environment,
    Operator,
    Permission,
    Resource,
    Role,
)
from rolegate_core.registry import PolicyStore, RegistryBusyError, RoleCycleError

__version__ = "0.1.0"

__all__ = [
    "AccessContext",
    "AccessRequest",
    "AccessResult",
    "AuditDispatcher",
    "Condition",
    "ContextRef",
    "Effect",
    "EffectivePermissions",
    "Environment",
    "LoggingAuditSink",
    "Operator",
    "Permission",
    "PolicyEngine",
    "PolicyStore",
    "RegistryBusyError",
    "Resource",
    "Role",
    "RoleCycleError",
    "RolegateConfig",
    "create_engine",
    "load_config",
]
