"""Request and result models for the evaluation engine."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from rolegate_core.policy.context import AccessContext
from rolegate_core.policy.models import Permission, Role


class AccessRequest(BaseModel):
    """One authorization question: may ``user_id`` perform ``action`` on ``resource``?"""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(min_length=1)
    resource: str = Field(min_length=1)
    action: str = Field(min_length=1)
    context: AccessContext = Field(default_factory=AccessContext)


class AccessResult(BaseModel):
    """Outcome of an access check. A denial is a normal result, not an error.

    ``error`` is only set when evaluation itself failed; the request is then
    denied and the caller can tell the fault apart from a policy denial.
    """

    granted: bool
    reason: str
    applied_permissions: list[Permission] = Field(default_factory=list)
    deny_reasons: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    error: str | None = None


class EffectivePermissions(BaseModel):
    permissions: list[Permission] = Field(default_factory=list)
    roles: list[Role] = Field(default_factory=list)
    resources: list[str] = Field(default_factory=list)
