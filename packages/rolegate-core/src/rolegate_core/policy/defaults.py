"""Built-in system roles and permissions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rolegate_core.policy.models import Condition, Permission, Role, WILDCARD

if TYPE_CHECKING:
    from rolegate_core.registry.store import PolicyStore

_SELF_ONLY = Condition(
    field="userId",
    operator="eq",
    value="${user.id}",
    description="Callers may only touch their own profile",
)


def _perm(resource: str, action: str, name: str, description: str, **extra) -> Permission:
    return Permission(
        resource=resource, action=action, name=name, description=description, **extra
    )


SYSTEM_PERMISSIONS: tuple[Permission, ...] = (
    # users
    _perm("users", "create", "Create Users", "Create new user accounts"),
    _perm("users", "read", "Read Users", "View user information"),
    _perm("users", "update", "Update Users", "Modify user information"),
    _perm("users", "delete", "Delete Users", "Delete user accounts"),
    # profile
    _perm("profile", "read", "Read Own Profile", "View own profile information",
          conditions=[_SELF_ONLY]),
    _perm("profile", "update", "Update Own Profile", "Modify own profile information",
          conditions=[_SELF_ONLY]),
    # roles
    _perm("roles", "create", "Create Roles", "Create new roles"),
    _perm("roles", "read", "Read Roles", "View role information"),
    _perm("roles", "update", "Update Roles", "Modify role information"),
    _perm("roles", "delete", "Delete Roles", "Delete roles", conditions=[
        Condition(
            field="isSystemRole",
            operator="ne",
            value=True,
            description="System roles cannot be deleted",
        ),
    ]),
    # system
    _perm("system", "read", "Read System Info", "View system information and metrics"),
    _perm("system", "configure", "Configure System", "Modify system configuration"),
    # content
    _perm("content", "read", "Read Content", "View content"),
    _perm("content", "create", "Create Content", "Create new content"),
    _perm("content", "update", "Update Content", "Modify content"),
    _perm("content", "delete", "Delete Content", "Delete content"),
    # search, assistant, maps
    _perm("search", "use", "Use Search", "Use search functionality"),
    _perm("assistant", "use", "Use AI Assistant", "Use AI assistant functionality"),
    _perm("mapping", "view", "View Maps", "View mapping and location data"),
    # api
    _perm("api.search", "use", "API Search Access", "Use search API endpoints"),
    _perm("api.assistant", "use", "API Assistant Access", "Use assistant API endpoints"),
    _perm("api.data", "read", "API Data Read", "Read data via API"),
    # audit and reports
    _perm("audit", "read", "Read Audit Logs", "View audit logs and security events"),
    _perm("reports", "read", "Read Reports", "View reports and analytics"),
    _perm("reports", "update", "Update Reports", "Modify reports and analytics"),
)


def _system_role(role_id: str, name: str, description: str, permissions: list[str]) -> Role:
    return Role(
        id=role_id,
        name=name,
        description=description,
        permissions=permissions,
        is_system_role=True,
    )


SYSTEM_ROLES: tuple[Role, ...] = (
    _system_role("super_admin", "Super Administrator",
                 "Full system access with all permissions", [WILDCARD]),
    _system_role("admin", "Administrator",
                 "Administrative access to most system functions", [
                     "users.create", "users.read", "users.update", "users.delete",
                     "roles.create", "roles.read", "roles.update", "roles.delete",
                     "system.read", "system.configure",
                     "audit.read",
                 ]),
    _system_role("moderator", "Moderator",
                 "Content moderation and user management", [
                     "users.read", "users.update",
                     "content.read", "content.update", "content.delete",
                     "reports.read", "reports.update",
                 ]),
    _system_role("user", "User",
                 "Standard user with basic access rights", [
                     "profile.read", "profile.update",
                     "search.use",
                     "assistant.use",
                     "mapping.view",
                     "content.read",
                 ]),
    _system_role("guest", "Guest",
                 "Limited access for unauthenticated users",
                 ["content.read", "search.use"]),
    _system_role("api_user", "API User",
                 "Programmatic access via API",
                 ["api.search.use", "api.assistant.use", "api.data.read"]),
)


def seed_defaults(store: PolicyStore) -> None:
    """Install the built-in catalogue into ``store`` in a single write."""
    with store.transaction() as draft:
        for permission in SYSTEM_PERMISSIONS:
            draft.permissions[permission.id] = permission
        for role in SYSTEM_ROLES:
            draft.roles[role.id] = role
