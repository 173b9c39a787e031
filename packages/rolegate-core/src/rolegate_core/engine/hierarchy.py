"""Role hierarchy resolution."""

from __future__ import annotations

from collections.abc import Iterable

from rolegate_core.policy.models import Permission
from rolegate_core.registry.store import PolicySnapshot


def resolve_permissions(snapshot: PolicySnapshot, role_id: str) -> list[Permission]:
    """Flatten the permissions reachable from ``role_id`` through ``parent_roles``.

    Depth-first, with a visited set so cyclic graphs terminate; a role seen
    twice is not expanded again. Unknown roles contribute nothing. ``is_active``
    is not consulted here: the result is the union over the whole chain.
    A role granting ``"*"`` anywhere in the chain yields the whole permission
    registry. Result is de-duplicated by permission id.
    """
    visited: set[str] = set()
    resolved: dict[str, Permission] = {}
    stack = [role_id]

    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)

        role = snapshot.roles.get(current)
        if role is None:
            continue
        if role.grants_all:
            return list(snapshot.permissions.values())

        for permission_id in role.permissions:
            permission = snapshot.permissions.get(permission_id)
            if permission is not None:
                resolved[permission.id] = permission

        # Reversed so the first listed parent is expanded first.
        stack.extend(reversed(role.parent_roles))

    return list(resolved.values())


def resolve_many(snapshot: PolicySnapshot, role_ids: Iterable[str]) -> list[Permission]:
    """Union of :func:`resolve_permissions` over a user's assigned roles.

    An assigned role that is inactive grants nothing, its parents included.
    """
    resolved: dict[str, Permission] = {}
    for role_id in role_ids:
        role = snapshot.roles.get(role_id)
        if role is None or not role.is_active:
            continue
        for permission in resolve_permissions(snapshot, role_id):
            resolved[permission.id] = permission
    return list(resolved.values())
