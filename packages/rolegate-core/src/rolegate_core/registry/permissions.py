"""Permission registry, keyed by ``resource.action`` unless an id is given."""

from __future__ import annotations

import logging
from typing import Any

from rolegate_core.policy.models import Permission
from rolegate_core.registry.store import PolicyStore, apply_changes

logger = logging.getLogger(__name__)


class PermissionRegistry:
    def __init__(self, store: PolicyStore) -> None:
        self._store = store

    def create(self, permission: Permission) -> Permission:
        """Store ``permission``. An existing permission with the same id is replaced."""
        with self._store.transaction() as draft:
            if permission.id in draft.permissions:
                logger.info("Replacing permission %s", permission.id)
            draft.permissions[permission.id] = permission
        return permission

    def get(self, permission_id: str) -> Permission | None:
        return self._store.snapshot().permissions.get(permission_id)

    def list(self) -> list[Permission]:
        return list(self._store.snapshot().permissions.values())

    def update(self, permission_id: str, **changes: Any) -> Permission | None:
        """Apply ``changes``; the id never changes. Returns None for unknown ids."""
        with self._store.transaction() as draft:
            current = draft.permissions.get(permission_id)
            if current is None:
                return None
            updated = apply_changes(current, changes, id=permission_id)
            draft.permissions[permission_id] = updated
        return updated

    def delete(self, permission_id: str) -> bool:
        with self._store.transaction() as draft:
            return draft.permissions.pop(permission_id, None) is not None
