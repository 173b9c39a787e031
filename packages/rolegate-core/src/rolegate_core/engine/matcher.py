"""Wildcard-aware (resource, action) filtering."""

from __future__ import annotations

from collections.abc import Iterable

from rolegate_core.policy.models import WILDCARD, Permission


def matches(permission: Permission, resource: str, action: str) -> bool:
    return permission.resource in (resource, WILDCARD) and permission.action in (action, WILDCARD)


def match_permissions(
    permissions: Iterable[Permission], resource: str, action: str
) -> list[Permission]:
    return [p for p in permissions if matches(p, resource, action)]
