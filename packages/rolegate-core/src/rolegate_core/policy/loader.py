"""YAML policy documents: permissions, roles, resources and assignments."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from rolegate_core.policy.models import Permission, Resource, Role
from rolegate_core.registry.store import PolicyStore, RoleCycleError

logger = logging.getLogger(__name__)


class PolicyLoadError(Exception):
    """Raised when a policy document cannot be read or applied."""

    def __init__(self, path: str | Path, message: str):
        self.path = str(path)
        super().__init__(f"Invalid policy in {path}: {message}")


class PolicyDocument(BaseModel):
    permissions: list[Permission] = Field(default_factory=list)
    roles: list[Role] = Field(default_factory=list)
    resources: list[Resource] = Field(default_factory=list)
    assignments: dict[str, list[str]] = Field(default_factory=dict)


def read_policy(path: str | Path) -> PolicyDocument:
    """Parse and validate a policy document without applying it."""
    path = Path(path)
    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise PolicyLoadError(path, str(e)) from e
    except yaml.YAMLError as e:
        raise PolicyLoadError(path, f"bad YAML: {e}") from e

    if raw is None:
        return PolicyDocument()
    if not isinstance(raw, dict):
        raise PolicyLoadError(path, "top level must be a mapping")
    try:
        return PolicyDocument(**raw)
    except ValidationError as e:
        raise PolicyLoadError(path, str(e)) from e


def apply_policy(document: PolicyDocument, store: PolicyStore) -> None:
    """Write ``document`` into ``store`` as one snapshot.

    Records replace existing ones with the same id. Assignments naming an
    unknown role are skipped with a warning.
    """
    with store.transaction() as draft:
        for permission in document.permissions:
            draft.permissions[permission.id] = permission
        for role in document.roles:
            draft.roles[role.id] = role
        for resource in document.resources:
            draft.resources[resource.id] = resource
        for user_id, role_ids in document.assignments.items():
            held = draft.assignments.get(user_id, ())
            for role_id in role_ids:
                if role_id not in draft.roles:
                    logger.warning("Skipping assignment of unknown role %s to %s", role_id, user_id)
                    continue
                if role_id not in held:
                    held = held + (role_id,)
            if held:
                draft.assignments[user_id] = held


def load_policy(path: str | Path, store: PolicyStore) -> PolicyDocument:
    """Read ``path`` and apply it to ``store``."""
    document = read_policy(path)
    try:
        apply_policy(document, store)
    except RoleCycleError as e:
        raise PolicyLoadError(path, str(e)) from e
    logger.info(
        "Loaded %s: %d permissions, %d roles, %d resources",
        path,
        len(document.permissions),
        len(document.roles),
        len(document.resources),
    )
    return document
