"""Role registry with system-role protection."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from rolegate_core.policy.models import Role
from rolegate_core.registry.store import PolicyStore, apply_changes

logger = logging.getLogger(__name__)


class RoleRegistry:
    """CRUD over roles.

    With ``reject_role_cycles`` enabled on the store, ``create`` and ``update``
    raise :class:`~rolegate_core.registry.store.RoleCycleError` instead of
    publishing a parent list that loops back on itself.
    """

    def __init__(self, store: PolicyStore) -> None:
        self._store = store

    def create(self, role: Role) -> Role:
        now = datetime.now(UTC)
        role = role.model_copy(update={"created_at": now, "updated_at": now})
        with self._store.transaction() as draft:
            if role.id in draft.roles:
                logger.info("Replacing role %s", role.id)
            draft.roles[role.id] = role
        return role

    def get(self, role_id: str) -> Role | None:
        return self._store.snapshot().roles.get(role_id)

    def list(self) -> list[Role]:
        return list(self._store.snapshot().roles.values())

    def update(self, role_id: str, **changes: Any) -> Role | None:
        """Apply ``changes`` and bump ``updated_at``. Returns None for unknown ids."""
        with self._store.transaction() as draft:
            current = draft.roles.get(role_id)
            if current is None:
                return None
            updated = apply_changes(
                current,
                changes,
                id=role_id,
                created_at=current.created_at,
                updated_at=datetime.now(UTC),
            )
            draft.roles[role_id] = updated
        return updated

    def delete(self, role_id: str) -> bool:
        """Delete a role. System roles and unknown ids return False and are left alone."""
        with self._store.transaction() as draft:
            role = draft.roles.get(role_id)
            if role is None:
                return False
            if role.is_system_role:
                logger.warning("Refusing to delete system role %s", role_id)
                return False
            del draft.roles[role_id]
        return True
