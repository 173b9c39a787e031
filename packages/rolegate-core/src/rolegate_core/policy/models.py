"""Policy records: permissions, their conditions, roles and resources."""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_serializer,
    field_validator,
    model_validator,
)

WILDCARD = "*"

Namespace = Literal["user", "resource", "env", "session"]

# A value that is exactly one ${namespace.path} marker.
_REF_RE = re.compile(r"\$\{(user|resource|env|session)\.([A-Za-z0-9_\-.]+)\}")


def freeze(value: Any) -> Any:
    """Read-only deep copy: mappings become MappingProxyType, lists and sets tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of :func:`freeze` for serialization."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, (tuple, frozenset)):
        return [thaw(v) for v in value]
    return value


# Records held in a published snapshot must not be editable through nested
# containers, so dict fields are stored as read-only views.
FrozenDict = Annotated[dict[str, Any], AfterValidator(freeze), PlainSerializer(thaw)]


def _empty() -> Mapping[str, Any]:
    return MappingProxyType({})


class Effect(str, Enum):
    """What a matched, satisfied permission contributes to the decision."""

    allow = "allow"
    deny = "deny"


class ConditionType(str, Enum):
    attribute = "attribute"
    time = "time"
    location = "location"
    custom = "custom"


class Operator(str, Enum):
    """Comparison operators understood by the condition evaluator."""

    eq = "eq"
    ne = "ne"
    gt = "gt"
    gte = "gte"
    lt = "lt"
    lte = "lte"
    in_ = "in"
    nin = "nin"
    contains = "contains"
    regex = "regex"


class ContextRef(BaseModel):
    """Reference to a value in the request context, e.g. the caller's id."""

    model_config = ConfigDict(frozen=True)

    namespace: Namespace
    path: str = Field(min_length=1)

    @classmethod
    def parse(cls, dotted: str) -> ContextRef:
        """Build a reference from ``"namespace.path"``."""
        namespace, _, path = dotted.partition(".")
        return cls(namespace=namespace, path=path)

    def __str__(self) -> str:
        return "${%s.%s}" % (self.namespace, self.path)


class Condition(BaseModel):
    """A single attribute test. Conditions on one permission are AND-combined.

    ``operator`` is kept as a plain string: an operator the evaluator does not
    know is not a load error, it makes the condition unsatisfiable.
    """

    model_config = ConfigDict(frozen=True)

    type: ConditionType = ConditionType.attribute
    field: str = Field(min_length=1)
    operator: str
    value: Any = None
    description: str | None = None

    @field_validator("operator", mode="before")
    @classmethod
    def normalize_operator(cls, v: Any) -> Any:
        if isinstance(v, Enum):
            return v.value
        return v

    @field_validator("value", mode="before")
    @classmethod
    def parse_reference(cls, v: Any) -> Any:
        if isinstance(v, str):
            match = _REF_RE.fullmatch(v)
            if match:
                return ContextRef(namespace=match.group(1), path=match.group(2))
        elif isinstance(v, dict):
            if set(v) == {"ref"} and isinstance(v["ref"], str):
                return ContextRef.parse(v["ref"])
            if set(v) == {"namespace", "path"}:
                return ContextRef(**v)
        return freeze(v)

    @field_serializer("value")
    def dump_value(self, v: Any) -> Any:
        return thaw(v)


class Permission(BaseModel):
    """Permission on a (resource, action) pair, keyed ``resource.action`` by default."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = ""
    resource: str = Field(min_length=1)
    action: str = Field(min_length=1)
    effect: Effect = Effect.allow
    conditions: tuple[Condition, ...] = ()
    metadata: FrozenDict = Field(default_factory=_empty)

    @model_validator(mode="before")
    @classmethod
    def derive_id(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("id") and data.get("resource") and data.get("action"):
            data["id"] = f"{data['resource']}.{data['action']}"
        if not data.get("name") and data.get("id"):
            data["name"] = data["id"]
        return data


def slugify_role_name(name: str) -> str:
    """``"Content Editor"`` -> ``"content_editor"``."""
    return re.sub(r"\s+", "_", name.strip().lower())


class Role(BaseModel):
    """Named bundle of permission ids with optional parent roles.

    A ``"*"`` entry in ``permissions`` grants every registered permission.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = ""
    parent_roles: tuple[str, ...] = ()
    permissions: tuple[str, ...] = ()
    is_system_role: bool = False
    is_active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    metadata: FrozenDict = Field(default_factory=_empty)

    @model_validator(mode="before")
    @classmethod
    def derive_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("id") and data.get("name"):
            data = {**data, "id": slugify_role_name(data["name"])}
        return data

    @property
    def grants_all(self) -> bool:
        return WILDCARD in self.permissions


class Resource(BaseModel):
    """Descriptive resource record, used as condition input only."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    type: str = Field(min_length=1)
    parent_resource: str | None = None
    attributes: FrozenDict = Field(default_factory=_empty)
    owner_id: str | None = None
    organization_id: str | None = None
    metadata: FrozenDict = Field(default_factory=_empty)

    @model_validator(mode="before")
    @classmethod
    def derive_id(cls, data: Any) -> Any:
        if (
            isinstance(data, dict)
            and not data.get("id")
            and data.get("type")
            and data.get("name")
        ):
            data = {**data, "id": f"{data['type']}:{data['name']}"}
        return data
