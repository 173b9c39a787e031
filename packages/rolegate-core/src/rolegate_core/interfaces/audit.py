"""Audit sink interface."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from rolegate_core.engine.models import AccessRequest, AccessResult


@runtime_checkable
class AuditSink(Protocol):
    """Receives access decisions. Called off the request path."""

    def record(self, request: AccessRequest, result: AccessResult) -> None: ...
