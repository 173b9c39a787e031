"""Namespaced request context with a safe dotted-path accessor."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Missing:
    """Sentinel for a path that does not resolve. Distinct from ``None``."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    country: str | None = None
    region: str | None = None
    city: str | None = None


class Environment(BaseModel):
    """Request environment. Unknown keys are kept and addressable as ``env.<key>``."""

    model_config = ConfigDict(frozen=True, extra="allow")

    timestamp: datetime | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    location: Location | None = None


class AccessContext(BaseModel):
    """Immutable attribute snapshot supplied with each access request."""

    model_config = ConfigDict(frozen=True)

    user_attributes: dict[str, Any] = Field(default_factory=dict)
    resource_attributes: dict[str, Any] = Field(default_factory=dict)
    environment: Environment = Field(default_factory=Environment)
    session_attributes: dict[str, Any] = Field(default_factory=dict)

    def namespace(self, name: str) -> Any:
        """Return the record behind a namespace prefix, or MISSING."""
        if name == "user":
            return self.user_attributes
        if name == "resource":
            return self.resource_attributes
        if name == "env":
            return self.environment
        if name == "session":
            return self.session_attributes
        return MISSING

    def lookup(self, namespace: str, path: str) -> Any:
        """Resolve ``path`` (dotted) inside ``namespace``; MISSING if any step fails."""
        current = self.namespace(namespace)
        if current is MISSING:
            return MISSING
        for part in path.split("."):
            current = _step(current, part)
            if current is MISSING:
                return MISSING
        return current

    def with_caller(self, user_id: str) -> AccessContext:
        """Copy of this context where ``user.id`` defaults to ``user_id``."""
        if "id" in self.user_attributes:
            return self
        return self.model_copy(
            update={"user_attributes": {**self.user_attributes, "id": user_id}}
        )


def _step(obj: Any, key: str) -> Any:
    if isinstance(obj, Mapping):
        return obj[key] if key in obj else MISSING
    if isinstance(obj, BaseModel):
        if key in type(obj).model_fields:
            # Unset optional fields on context records count as absent.
            value = getattr(obj, key)
            return MISSING if value is None else value
        extra = obj.model_extra or {}
        return extra[key] if key in extra else MISSING
    return MISSING
