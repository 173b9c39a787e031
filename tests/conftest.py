"""Shared test fixtures for Rolegate."""

import pytest

from rolegate_core.config.models import RolegateConfig
from rolegate_core.engine import PolicyEngine
from rolegate_core.policy import AccessContext, Condition, Permission, Role
from rolegate_core.policy.defaults import seed_defaults
from rolegate_core.registry import PolicyStore


@pytest.fixture
def store():
    return PolicyStore()


@pytest.fixture
def cyclic_store():
    """A store that tolerates inheritance cycles at write time."""
    return PolicyStore(reject_role_cycles=False)


@pytest.fixture
def engine(store):
    return PolicyEngine(store)


@pytest.fixture
def seeded_engine():
    store = PolicyStore()
    seed_defaults(store)
    return PolicyEngine(store)


@pytest.fixture
def sample_permissions():
    return [
        Permission(resource="documents", action="read"),
        Permission(resource="documents", action="update"),
        Permission(resource="documents", action="delete", effect="deny"),
        Permission(
            resource="profile",
            action="read",
            name="Read Own Profile",
            conditions=[Condition(field="userId", operator="eq", value="${user.id}")],
        ),
    ]


@pytest.fixture
def editor_engine(engine, sample_permissions):
    """Engine with an ``editor`` role inheriting from ``viewer``, held by alice."""
    for permission in sample_permissions:
        engine.permissions.create(permission)
    engine.roles.create(Role(name="Viewer", permissions=["documents.read", "profile.read"]))
    engine.roles.create(
        Role(name="Editor", permissions=["documents.update"], parent_roles=["viewer"])
    )
    engine.assignments.assign("alice", "editor")
    return engine


@pytest.fixture
def sample_config():
    return RolegateConfig()


@pytest.fixture
def own_profile_context():
    return AccessContext(resource_attributes={"userId": "u1"})
