"""Policy evaluation engine: roles -> permissions -> conditions -> decision."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from rolegate_core.conditions.evaluator import evaluate_conditions
from rolegate_core.config.models import EngineConfig
from rolegate_core.engine.hierarchy import resolve_many, resolve_permissions
from rolegate_core.engine.matcher import match_permissions
from rolegate_core.engine.models import AccessRequest, AccessResult, EffectivePermissions
from rolegate_core.policy.context import AccessContext
from rolegate_core.policy.models import Effect, Permission
from rolegate_core.registry import (
    AssignmentStore,
    PermissionRegistry,
    PolicySnapshot,
    PolicyStore,
    ResourceRegistry,
    RoleRegistry,
)

if TYPE_CHECKING:
    from rolegate_core.audit.dispatcher import AuditDispatcher

logger = logging.getLogger(__name__)

REASON_NO_APPLICABLE = "No applicable permissions found"
REASON_EXPLICIT_DENY = "Explicit deny permission found"
REASON_ALLOWED = "Allow permission granted"
REASON_NO_MATCH = "No matching permissions after condition evaluation"
REASON_INTERNAL_ERROR = "Internal evaluation error"


class PolicyEngine:
    """Answers access requests against a :class:`PolicyStore`.

    Each check reads one snapshot of the store, so a concurrent administrative
    write is either fully visible or not visible at all. The engine holds no
    per-request state and is safe to share between threads.
    """

    def __init__(
        self,
        store: PolicyStore,
        settings: EngineConfig | None = None,
        audit: AuditDispatcher | None = None,
    ) -> None:
        self._store = store
        self._settings = settings or EngineConfig()
        self._audit = audit
        self.permissions = PermissionRegistry(store)
        self.roles = RoleRegistry(store)
        self.resources = ResourceRegistry(store)
        self.assignments = AssignmentStore(store)

    @property
    def store(self) -> PolicyStore:
        return self._store

    # -- Decisions -------------------------------------------------------------

    def check_access(self, request: AccessRequest) -> AccessResult:
        """Decide ``request``. Never raises; internal faults come back as denials."""
        try:
            result = self._decide(self._store.snapshot(), request)
        except Exception as exc:
            logger.exception(
                "Access evaluation failed for %s on %s:%s",
                request.user_id,
                request.resource,
                request.action,
            )
            result = AccessResult(
                granted=False,
                reason=REASON_INTERNAL_ERROR,
                deny_reasons=["Evaluation failed"],
                error=f"{type(exc).__name__}: {exc}",
            )

        logger.debug(
            "%s %s:%s -> %s (%s)",
            request.user_id,
            request.resource,
            request.action,
            "granted" if result.granted else "denied",
            result.reason,
        )
        if self._audit is not None:
            self._audit.submit(request, result)
        return result

    def _decide(self, snapshot: PolicySnapshot, request: AccessRequest) -> AccessResult:
        user_permissions = resolve_many(
            snapshot, snapshot.assignments.get(request.user_id, ())
        )
        applicable = match_permissions(user_permissions, request.resource, request.action)
        if not applicable:
            return AccessResult(
                granted=False,
                reason=REASON_NO_APPLICABLE,
                deny_reasons=["No permissions for this resource and action"],
            )

        context = request.context.with_caller(request.user_id)
        allowed: list[Permission] = []
        denied: list[Permission] = []
        deny_reasons: list[str] = []
        warnings: list[str] = []

        # Conditions decide which permissions are in play; only the survivors
        # take part in deny-overrides-allow.
        for permission in applicable:
            if permission.conditions and not evaluate_conditions(permission.conditions, context):
                warnings.append(f"Permission {permission.name} conditions not met")
                continue
            if permission.effect == Effect.deny:
                denied.append(permission)
                deny_reasons.append(f"Explicit deny: {permission.name}")
            else:
                allowed.append(permission)

        if denied:
            return AccessResult(
                granted=False,
                reason=REASON_EXPLICIT_DENY,
                applied_permissions=denied,
                deny_reasons=deny_reasons,
                warnings=warnings,
            )
        if allowed:
            return AccessResult(
                granted=True,
                reason=REASON_ALLOWED,
                applied_permissions=allowed,
                warnings=warnings,
            )
        return AccessResult(
            granted=False,
            reason=REASON_NO_MATCH,
            deny_reasons=["No permissions matched conditions"],
            warnings=warnings,
        )

    def _check(
        self, user_id: str, resource: str, action: str, context: AccessContext | None
    ) -> bool:
        request = AccessRequest(
            user_id=user_id,
            resource=resource,
            action=action,
            context=context or AccessContext(),
        )
        return self.check_access(request).granted

    def can_read(self, user_id: str, resource: str, context: AccessContext | None = None) -> bool:
        return self._check(user_id, resource, "read", context)

    def can_write(self, user_id: str, resource: str, context: AccessContext | None = None) -> bool:
        return self._check(user_id, resource, "update", context)

    def can_create(self, user_id: str, resource: str, context: AccessContext | None = None) -> bool:
        return self._check(user_id, resource, "create", context)

    def can_delete(self, user_id: str, resource: str, context: AccessContext | None = None) -> bool:
        return self._check(user_id, resource, "delete", context)

    def check_bulk_access(self, requests: Iterable[AccessRequest]) -> list[AccessResult]:
        """Decide each request independently; results keep the input order.

        Batches of at least ``bulk_parallel_threshold`` requests are spread
        over a thread pool of ``bulk_workers``.
        """
        requests = list(requests)
        workers = min(self._settings.bulk_workers, len(requests))
        if len(requests) < self._settings.bulk_parallel_threshold or workers <= 1:
            return [self.check_access(r) for r in requests]
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="rolegate-bulk") as pool:
            return list(pool.map(self.check_access, requests))

    # -- Introspection ---------------------------------------------------------

    def resolve_role_permissions(self, role_id: str) -> list[Permission]:
        """Effective permissions of one role, inherited ones included."""
        return resolve_permissions(self._store.snapshot(), role_id)

    def get_effective_permissions(
        self, user_id: str, context: AccessContext | None = None
    ) -> EffectivePermissions:
        """Roles and resolved permissions of ``user_id``.

        With a ``context``, conditional permissions that do not hold in it are
        left out.
        """
        snapshot = self._store.snapshot()
        role_ids = snapshot.assignments.get(user_id, ())
        roles = [snapshot.roles[r] for r in role_ids if r in snapshot.roles]
        permissions = resolve_many(snapshot, role_ids)
        if context is not None:
            effective_context = context.with_caller(user_id)
            permissions = [
                p for p in permissions
                if evaluate_conditions(p.conditions, effective_context)
            ]
        return EffectivePermissions(
            permissions=permissions,
            roles=roles,
            resources=sorted({p.resource for p in permissions}),
        )

    def has_role(self, user_id: str, *role_ids: str) -> bool:
        """True when ``user_id`` holds at least one of ``role_ids``.

        Assignments that point at a deleted role do not count.
        """
        snapshot = self._store.snapshot()
        held = snapshot.assignments.get(user_id, ())
        return any(r in held and r in snapshot.roles for r in role_ids)

    # -- Lifecycle -------------------------------------------------------------

    def close(self, wait: bool = True) -> None:
        """Shut down the audit worker; with ``wait`` deliver what is queued first."""
        if self._audit is not None:
            self._audit.close(wait=wait)

    def __enter__(self) -> PolicyEngine:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
