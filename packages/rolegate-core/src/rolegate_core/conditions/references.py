"""Resolution of condition fields and context references."""

from __future__ import annotations

from typing import Any

from rolegate_core.policy.context import MISSING, AccessContext
from rolegate_core.policy.models import ContextRef

_NAMESPACES = frozenset({"user", "resource", "env", "session"})


def resolve_field(field: str, context: AccessContext) -> Any:
    """Look up a condition field.

    ``user.X``, ``resource.X``, ``env.X`` and ``session.X`` address one
    namespace. A bare field is looked up in the user attributes first, then
    in the resource attributes. Returns MISSING when nothing matches.
    """
    prefix, sep, rest = field.partition(".")
    if sep and rest and prefix in _NAMESPACES:
        return context.lookup(prefix, rest)
    value = context.lookup("user", field)
    if value is MISSING:
        value = context.lookup("resource", field)
    return value


def resolve_reference(ref: ContextRef, context: AccessContext) -> Any:
    return context.lookup(ref.namespace, ref.path)


def resolve_value(value: Any, context: AccessContext) -> Any:
    """Literal values pass through; references are looked up (MISSING if unresolved)."""
    if isinstance(value, ContextRef):
        return resolve_reference(value, context)
    return value
