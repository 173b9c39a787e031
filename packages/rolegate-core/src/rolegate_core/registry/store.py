"""Copy-on-write policy store.

Readers grab the current :class:`PolicySnapshot` (a single attribute read) and
work against it for the whole evaluation; the snapshot is never mutated in
place. Writers serialize on a lock, edit a :class:`PolicyDraft` copied from the
current snapshot and publish a new snapshot only if the edit completes.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from rolegate_core.policy.models import Permission, Resource, Role

if TYPE_CHECKING:
    from rolegate_core.config.models import RegistryConfig

logger = logging.getLogger(__name__)


class RegistryBusyError(Exception):
    """Raised when a writer cannot take the registry lock in time."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Registry write lock not acquired within {timeout}s")


class RoleCycleError(ValueError):
    """Raised when a role update would make a role inherit from itself."""

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__(f"Role inheritance cycle: {' -> '.join(cycle)}")


def _frozen(mapping: dict | None = None) -> Mapping:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class PolicySnapshot:
    """Consistent, read-only view of every registry."""

    permissions: Mapping[str, Permission] = field(default_factory=_frozen)
    roles: Mapping[str, Role] = field(default_factory=_frozen)
    resources: Mapping[str, Resource] = field(default_factory=_frozen)
    assignments: Mapping[str, tuple[str, ...]] = field(default_factory=_frozen)
    version: int = 0


@dataclass
class PolicyDraft:
    """Mutable working copy handed to writers inside a transaction."""

    permissions: dict[str, Permission]
    roles: dict[str, Role]
    resources: dict[str, Resource]
    assignments: dict[str, tuple[str, ...]]

    @classmethod
    def from_snapshot(cls, snapshot: PolicySnapshot) -> PolicyDraft:
        return cls(
            permissions=dict(snapshot.permissions),
            roles=dict(snapshot.roles),
            resources=dict(snapshot.resources),
            assignments=dict(snapshot.assignments),
        )

    def freeze(self, version: int) -> PolicySnapshot:
        return PolicySnapshot(
            permissions=_frozen(self.permissions),
            roles=_frozen(self.roles),
            resources=_frozen(self.resources),
            assignments=_frozen(self.assignments),
            version=version,
        )


def find_role_cycle(roles: Mapping[str, Role]) -> list[str] | None:
    """Return one inheritance cycle as a path (first id repeated at the end), or None."""
    done: set[str] = set()
    for root in roles:
        if root in done:
            continue
        path: list[str] = [root]
        on_path = {root}
        # Each frame is (role id, iterator over its parent ids).
        stack = [(root, iter(roles[root].parent_roles))]
        while stack:
            role_id, parents = stack[-1]
            parent = next(parents, None)
            if parent is None:
                stack.pop()
                path.pop()
                on_path.discard(role_id)
                done.add(role_id)
                continue
            if parent in on_path:
                return path[path.index(parent):] + [parent]
            if parent in done or parent not in roles:
                continue
            path.append(parent)
            on_path.add(parent)
            stack.append((parent, iter(roles[parent].parent_roles)))
    return None


def apply_changes(record: BaseModel, changes: dict[str, Any], **pinned: Any) -> BaseModel:
    """Return a re-validated copy of ``record`` with ``changes`` applied."""
    model_cls = type(record)
    unknown = set(changes) - set(model_cls.model_fields)
    if unknown:
        raise ValueError(f"Unknown {model_cls.__name__} fields: {sorted(unknown)}")
    data = {name: getattr(record, name) for name in model_cls.model_fields}
    data.update(changes)
    data.update(pinned)
    return model_cls.model_validate(data)


class PolicyStore:
    """Holds the current policy snapshot and serializes writers."""

    def __init__(self, write_timeout: float = 5.0, reject_role_cycles: bool = True) -> None:
        self.write_timeout = write_timeout
        self.reject_role_cycles = reject_role_cycles
        self._lock = threading.Lock()
        self._snapshot = PolicySnapshot()

    @classmethod
    def from_config(cls, config: RegistryConfig) -> PolicyStore:
        return cls(
            write_timeout=config.write_timeout,
            reject_role_cycles=config.reject_role_cycles,
        )

    def snapshot(self) -> PolicySnapshot:
        """The currently published snapshot."""
        return self._snapshot

    @property
    def version(self) -> int:
        return self._snapshot.version

    @contextmanager
    def transaction(self) -> Iterator[PolicyDraft]:
        """Yield a draft; publish it atomically if the block exits cleanly."""
        if not self._lock.acquire(timeout=self.write_timeout):
            raise RegistryBusyError(self.write_timeout)
        try:
            current = self._snapshot
            draft = PolicyDraft.from_snapshot(current)
            yield draft
            if self.reject_role_cycles:
                cycle = find_role_cycle(draft.roles)
                if cycle is not None:
                    raise RoleCycleError(cycle)
            self._snapshot = draft.freeze(current.version + 1)
            logger.debug("Published policy snapshot v%d", current.version + 1)
        finally:
            self._lock.release()
