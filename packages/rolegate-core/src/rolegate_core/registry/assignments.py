"""User to role assignments."""

from __future__ import annotations

import logging

from rolegate_core.policy.models import Role
from rolegate_core.registry.store import PolicyStore

logger = logging.getLogger(__name__)


class AssignmentStore:
    """Multimap of user id -> role ids. Every operation is idempotent."""

    def __init__(self, store: PolicyStore) -> None:
        self._store = store

    def assign(self, user_id: str, role_id: str) -> bool:
        """Give ``user_id`` the role. False only when the role does not exist."""
        with self._store.transaction() as draft:
            if role_id not in draft.roles:
                logger.warning("Cannot assign unknown role %s to %s", role_id, user_id)
                return False
            current = draft.assignments.get(user_id, ())
            if role_id not in current:
                draft.assignments[user_id] = current + (role_id,)
        return True

    def remove(self, user_id: str, role_id: str) -> bool:
        """Take the role away. Removing a role the user lacks is a no-op."""
        with self._store.transaction() as draft:
            current = draft.assignments.get(user_id, ())
            if role_id in current:
                remaining = tuple(r for r in current if r != role_id)
                if remaining:
                    draft.assignments[user_id] = remaining
                else:
                    del draft.assignments[user_id]
        return True

    def role_ids(self, user_id: str) -> list[str]:
        return list(self._store.snapshot().assignments.get(user_id, ()))

    def list(self, user_id: str) -> list[Role]:
        """Roles held by ``user_id``; ids of deleted roles are skipped."""
        snapshot = self._store.snapshot()
        roles = (snapshot.roles.get(r) for r in snapshot.assignments.get(user_id, ()))
        return [role for role in roles if role is not None]

    def users_with_role(self, role_id: str) -> list[str]:
        assignments = self._store.snapshot().assignments
        return [user for user, roles in assignments.items() if role_id in roles]
