"""Tests for YAML policy documents."""

from __future__ import annotations

import pytest

from rolegate_core.policy import ContextRef, Effect
from rolegate_core.policy.loader import PolicyLoadError, apply_policy, load_policy, read_policy
from rolegate_core.registry import AssignmentStore, PolicyStore

POLICY = """\
permissions:
  - resource: documents
    action: read
  - resource: documents
    action: delete
    effect: deny
    name: No Deletes
  - resource: profile
    action: update
    conditions:
      - field: userId
        operator: eq
        value: "${user.id}"
roles:
  - name: Reader
    permissions: [documents.read, profile.update]
  - name: Restricted Reader
    parent_roles: [reader]
    permissions: [documents.delete]
resources:
  - name: handbook
    type: document
    owner_id: u1
assignments:
  alice: [reader]
  bob: [restricted_reader, ghost]
"""


@pytest.fixture()
def policy_file(tmp_path):
    path = tmp_path / "policy.yaml"
    path.write_text(POLICY)
    return path


class TestReadPolicy:
    def test_parses_document(self, policy_file):
        doc = read_policy(policy_file)
        assert [p.id for p in doc.permissions] == [
            "documents.read", "documents.delete", "profile.update",
        ]
        assert doc.permissions[1].effect == Effect.deny
        assert [r.id for r in doc.roles] == ["reader", "restricted_reader"]
        assert doc.resources[0].id == "document:handbook"
        assert doc.assignments["alice"] == ["reader"]

    def test_reference_parsed(self, policy_file):
        doc = read_policy(policy_file)
        assert doc.permissions[2].conditions[0].value == ContextRef(namespace="user", path="id")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert read_policy(path).permissions == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(PolicyLoadError) as exc:
            read_policy(tmp_path / "absent.yaml")
        assert exc.value.path.endswith("absent.yaml")

    def test_bad_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("roles: [unterminated")
        with pytest.raises(PolicyLoadError, match="bad YAML"):
            read_policy(path)

    def test_top_level_list_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(PolicyLoadError, match="mapping"):
            read_policy(path)

    def test_schema_error(self, tmp_path):
        path = tmp_path / "schema.yaml"
        path.write_text("permissions:\n  - resource: documents\n    action: read\n    effect: maybe\n")
        with pytest.raises(PolicyLoadError, match="Invalid policy"):
            read_policy(path)


class TestLoadPolicy:
    def test_applies_everything(self, store: PolicyStore, policy_file):
        load_policy(policy_file, store)
        snap = store.snapshot()
        assert set(snap.permissions) == {"documents.read", "documents.delete", "profile.update"}
        assert set(snap.roles) == {"reader", "restricted_reader"}
        assert "document:handbook" in snap.resources

    def test_single_snapshot(self, store: PolicyStore, policy_file):
        load_policy(policy_file, store)
        assert store.version == 1

    def test_unknown_role_assignment_skipped(self, store: PolicyStore, policy_file, caplog):
        load_policy(policy_file, store)
        assert AssignmentStore(store).role_ids("bob") == ["restricted_reader"]
        assert "unknown role ghost" in caplog.text

    def test_existing_assignments_merged(self, store: PolicyStore, policy_file):
        load_policy(policy_file, store)
        load_policy(policy_file, store)
        assert AssignmentStore(store).role_ids("alice") == ["reader"]

    def test_cycle_rejected(self, store: PolicyStore, tmp_path):
        path = tmp_path / "cycle.yaml"
        path.write_text(
            "roles:\n"
            "  - name: A\n    parent_roles: [b]\n"
            "  - name: B\n    parent_roles: [a]\n"
        )
        with pytest.raises(PolicyLoadError, match="cycle"):
            load_policy(path, store)
        assert dict(store.snapshot().roles) == {}

    def test_cycle_tolerated_when_allowed(self, cyclic_store: PolicyStore, tmp_path):
        path = tmp_path / "cycle.yaml"
        path.write_text(
            "roles:\n"
            "  - name: A\n    parent_roles: [b]\n"
            "  - name: B\n    parent_roles: [a]\n"
        )
        load_policy(path, cyclic_store)
        assert set(cyclic_store.snapshot().roles) == {"a", "b"}

    def test_apply_policy_document(self, store: PolicyStore, policy_file):
        apply_policy(read_policy(policy_file), store)
        assert store.snapshot().assignments["alice"] == ("reader",)
