"""Tests for rolegate_core.policy models: id derivation, references, immutability."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from rolegate_core.policy import (
    MISSING,
    AccessContext,
    Condition,
    ConditionType,
    ContextRef,
    Effect,
    Environment,
    Location,
    Operator,
    Permission,
    Resource,
    Role,
    slugify_role_name,
)


# ── Permission ──────────────────────────────────────────────────────


class TestPermission:
    def test_id_derived_from_resource_and_action(self):
        perm = Permission(resource="documents", action="read")
        assert perm.id == "documents.read"

    def test_name_defaults_to_id(self):
        perm = Permission(resource="documents", action="read")
        assert perm.name == "documents.read"

    def test_explicit_id_kept(self):
        perm = Permission(id="docs-reader", resource="documents", action="read")
        assert perm.id == "docs-reader"

    def test_default_effect_is_allow(self):
        assert Permission(resource="a", action="b").effect == Effect.allow

    def test_effect_from_string(self):
        assert Permission(resource="a", action="b", effect="deny").effect == Effect.deny

    def test_invalid_effect_rejected(self):
        with pytest.raises(ValidationError):
            Permission(resource="a", action="b", effect="maybe")

    def test_wildcards_allowed(self):
        perm = Permission(resource="*", action="*")
        assert perm.id == "*.*"

    def test_missing_resource_rejected(self):
        with pytest.raises(ValidationError):
            Permission(action="read")

    def test_frozen(self):
        perm = Permission(resource="a", action="b")
        with pytest.raises(ValidationError):
            perm.effect = Effect.deny


# ── Condition and ContextRef ───────────────────────────────────────


class TestCondition:
    def test_template_string_becomes_reference(self):
        cond = Condition(field="userId", operator="eq", value="${user.id}")
        assert cond.value == ContextRef(namespace="user", path="id")

    def test_nested_template_path(self):
        cond = Condition(field="country", operator="eq", value="${env.location.country}")
        assert cond.value == ContextRef(namespace="env", path="location.country")

    def test_embedded_marker_stays_literal(self):
        cond = Condition(field="note", operator="eq", value="cost: ${user.id} dollars")
        assert cond.value == "cost: ${user.id} dollars"

    def test_unknown_namespace_stays_literal(self):
        cond = Condition(field="x", operator="eq", value="${request.id}")
        assert cond.value == "${request.id}"

    def test_ref_mapping(self):
        cond = Condition(field="orgId", operator="eq", value={"ref": "session.org"})
        assert cond.value == ContextRef(namespace="session", path="org")

    def test_plain_mapping_is_literal(self):
        cond = Condition(field="x", operator="eq", value={"a": 1})
        assert cond.value == {"a": 1}

    def test_list_value_frozen(self):
        cond = Condition(field="dept", operator="in", value=["legal", "finance"])
        assert cond.value == ("legal", "finance")
        assert cond.model_dump()["value"] == ["legal", "finance"]

    def test_reference_serializes_as_mapping(self):
        cond = Condition(field="userId", operator="eq", value="${user.id}")
        assert cond.model_dump()["value"] == {"namespace": "user", "path": "id"}

    def test_operator_enum_normalized(self):
        cond = Condition(field="x", operator=Operator.in_, value=[1])
        assert cond.operator == "in"

    def test_unknown_operator_accepted_at_load(self):
        cond = Condition(field="x", operator="approximately", value=1)
        assert cond.operator == "approximately"

    def test_default_type(self):
        assert Condition(field="x", operator="eq", value=1).type == ConditionType.attribute

    def test_empty_field_rejected(self):
        with pytest.raises(ValidationError):
            Condition(field="", operator="eq", value=1)

    def test_context_ref_parse_and_str(self):
        ref = ContextRef.parse("user.id")
        assert ref.namespace == "user"
        assert str(ref) == "${user.id}"

    def test_context_ref_bad_namespace(self):
        with pytest.raises(ValidationError):
            ContextRef.parse("request.id")


# ── Role and Resource ──────────────────────────────────────────────


class TestRole:
    def test_id_slugified_from_name(self):
        assert Role(name="Content Editor").id == "content_editor"

    def test_slugify_collapses_whitespace(self):
        assert slugify_role_name("  Power   User ") == "power_user"

    def test_explicit_id_kept(self):
        assert Role(id="ed", name="Editor").id == "ed"

    def test_defaults(self):
        role = Role(name="Viewer")
        assert role.parent_roles == ()
        assert role.permissions == ()
        assert role.is_system_role is False
        assert role.is_active is True

    def test_grants_all(self):
        assert Role(name="Root", permissions=["*"]).grants_all is True
        assert Role(name="Viewer", permissions=["documents.read"]).grants_all is False

    def test_lists_stored_as_tuples(self):
        role = Role(name="Editor", permissions=["documents.read"], parent_roles=["viewer"])
        assert role.permissions == ("documents.read",)
        with pytest.raises(AttributeError):
            role.parent_roles.append("admin")

    def test_metadata_read_only(self):
        role = Role(name="Editor", metadata={"team": {"lead": "u1"}})
        with pytest.raises(TypeError):
            role.metadata["team"] = "other"
        with pytest.raises(TypeError):
            role.metadata["team"]["lead"] = "u2"

    def test_metadata_serializes_as_dict(self):
        role = Role(name="Editor", metadata={"tags": ["a"]})
        assert role.model_dump()["metadata"] == {"tags": ["a"]}


class TestResource:
    def test_id_from_type_and_name(self):
        res = Resource(name="q3-report", type="document", owner_id="u1")
        assert res.id == "document:q3-report"
        assert res.owner_id == "u1"


# ── AccessContext ──────────────────────────────────────────────────


class TestAccessContext:
    def test_lookup_user(self):
        ctx = AccessContext(user_attributes={"department": "legal"})
        assert ctx.lookup("user", "department") == "legal"

    def test_lookup_missing(self):
        assert AccessContext().lookup("user", "department") is MISSING

    def test_lookup_nested_mapping(self):
        ctx = AccessContext(resource_attributes={"owner": {"team": "core"}})
        assert ctx.lookup("resource", "owner.team") == "core"

    def test_lookup_through_scalar_is_missing(self):
        ctx = AccessContext(resource_attributes={"owner": "u1"})
        assert ctx.lookup("resource", "owner.team") is MISSING

    def test_lookup_environment_field(self):
        ctx = AccessContext(environment=Environment(ip_address="10.0.0.1"))
        assert ctx.lookup("env", "ip_address") == "10.0.0.1"

    def test_unset_environment_field_is_missing(self):
        assert AccessContext().lookup("env", "ip_address") is MISSING

    def test_lookup_environment_location(self):
        ctx = AccessContext(environment=Environment(location=Location(country="NO")))
        assert ctx.lookup("env", "location.country") == "NO"

    def test_lookup_environment_extra(self):
        ctx = AccessContext(environment=Environment(device="kiosk"))
        assert ctx.lookup("env", "device") == "kiosk"

    def test_explicit_none_is_a_value(self):
        ctx = AccessContext(user_attributes={"manager": None})
        assert ctx.lookup("user", "manager") is None

    def test_unknown_namespace(self):
        assert AccessContext().lookup("request", "id") is MISSING

    def test_with_caller_adds_id(self):
        ctx = AccessContext(user_attributes={"role": "x"})
        derived = ctx.with_caller("u1")
        assert derived.user_attributes == {"role": "x", "id": "u1"}
        assert ctx.user_attributes == {"role": "x"}

    def test_with_caller_keeps_existing_id(self):
        ctx = AccessContext(user_attributes={"id": "u9"})
        assert ctx.with_caller("u1") is ctx

    def test_missing_is_falsy_singleton(self):
        assert not MISSING
        assert repr(MISSING) == "MISSING"
