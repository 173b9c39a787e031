"""Policy registries backed by a copy-on-write snapshot store."""

from rolegate_core.registry.assignments import AssignmentStore
from rolegate_core.registry.permissions import PermissionRegistry
from rolegate_core.registry.resources import ResourceRegistry
from rolegate_core.registry.roles import RoleRegistry
from rolegate_core.registry.store import (
    PolicyDraft,
    PolicySnapshot,
    PolicyStore,
    RegistryBusyError,
    RoleCycleError,
    find_role_cycle,
)

__all__ = [
    "AssignmentStore",
    "PermissionRegistry",
    "PolicyDraft",
    "PolicySnapshot",
    "PolicyStore",
    "RegistryBusyError",
    "ResourceRegistry",
    "RoleCycleError",
    "RoleRegistry",
    "find_role_cycle",
]
