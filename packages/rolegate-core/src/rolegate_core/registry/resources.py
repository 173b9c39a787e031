"""Resource registry. Ids default to ``type:name``."""

from __future__ import annotations

from typing import Any

from rolegate_core.policy.models import Resource
from rolegate_core.registry.store import PolicyStore, apply_changes


class ResourceRegistry:
    def __init__(self, store: PolicyStore) -> None:
        self._store = store

    def create(self, resource: Resource) -> Resource:
        with self._store.transaction() as draft:
            draft.resources[resource.id] = resource
        return resource

    def get(self, resource_id: str) -> Resource | None:
        return self._store.snapshot().resources.get(resource_id)

    def list(self, type: str | None = None) -> list[Resource]:
        """All resources, optionally restricted to one resource type."""
        resources = self._store.snapshot().resources.values()
        return [r for r in resources if type is None or r.type == type]

    def update(self, resource_id: str, **changes: Any) -> Resource | None:
        with self._store.transaction() as draft:
            current = draft.resources.get(resource_id)
            if current is None:
                return None
            updated = apply_changes(current, changes, id=resource_id)
            draft.resources[resource_id] = updated
        return updated

    def delete(self, resource_id: str) -> bool:
        with self._store.transaction() as draft:
            return draft.resources.pop(resource_id, None) is not None
