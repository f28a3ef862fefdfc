"""Tests for applying a change set."""
import json

import pytest

from rolemapper.core.applier import ApplyError, apply_change_set
from rolemapper.core.keycloak.exceptions import KeycloakAPIError, RoleNotFoundError
from rolemapper.core.models import Group
from rolemapper.core.reconciler import build_change_set

WRITES = ("create_role", "add_realm_roles_to_group")


@pytest.fixture
def store(make_store):
    return make_store(groups=[
        Group(id="g1", name="dev", sub_groups=(Group(id="g2", name="dev-leads"),)),
        Group(id="g3", name="ops"),
        Group(id="g4", name="qa", realm_roles=("qa",)),
    ], roles=["ops", "qa"])


def test_declined_confirmation_makes_no_calls(store):
    change_set = build_change_set(store)
    store.calls.clear()

    result = apply_change_set(store, change_set, confirmed=False, realm="demo")

    assert result.applied is False
    assert store.calls == []


def test_empty_change_set_makes_no_calls(make_store):
    store = make_store(groups=[Group(id="g1", name="dev", realm_roles=("dev",))], roles=["dev"])
    change_set = build_change_set(store)
    store.calls.clear()

    result = apply_change_set(store, change_set, confirmed=True, realm="demo")

    assert result.applied is False
    assert store.calls == []


def test_all_roles_created_before_any_mapping(store):
    change_set = build_change_set(store)
    store.calls.clear()

    result = apply_change_set(store, change_set, confirmed=True, realm="demo")

    writes = [call[0] for call in store.operations(*WRITES)]
    assert writes == ["create_role", "create_role",
                      "add_realm_roles_to_group", "add_realm_roles_to_group", "add_realm_roles_to_group"]
    assert result.roles_created == ["dev", "dev-leads"]
    assert result.mappings_created == [("g1", "dev"), ("g2", "dev-leads"), ("g3", "ops")]


def test_role_resolved_right_before_each_mapping(store):
    change_set = build_change_set(store)
    store.calls.clear()

    apply_change_set(store, change_set, confirmed=True, realm="demo")

    mapping_calls = store.operations("find_role_by_name", "add_realm_roles_to_group")
    assert mapping_calls == [
        ("find_role_by_name", "dev"), ("add_realm_roles_to_group", "g1", ("dev",)),
        ("find_role_by_name", "dev-leads"), ("add_realm_roles_to_group", "g2", ("dev-leads",)),
        ("find_role_by_name", "ops"), ("add_realm_roles_to_group", "g3", ("ops",)),
    ]


def test_role_failure_stops_before_mappings(store):
    change_set = build_change_set(store)
    store.fail("create_role", "dev")
    store.calls.clear()

    with pytest.raises(ApplyError) as excinfo:
        apply_change_set(store, change_set, confirmed=True, realm="demo")

    assert isinstance(excinfo.value.cause, KeycloakAPIError)
    assert "dev" in excinfo.value.operation
    assert excinfo.value.result.roles_created == []
    assert store.operations(*WRITES) == [("create_role", "dev")]


def test_mapping_failure_keeps_partial_result(store):
    change_set = build_change_set(store)
    store.fail("add_realm_roles_to_group", "g2")

    with pytest.raises(ApplyError) as excinfo:
        apply_change_set(store, change_set, confirmed=True, realm="demo")

    result = excinfo.value.result
    assert result.roles_created == ["dev", "dev-leads"]
    assert result.mappings_created == [("g1", "dev")]
    assert ("add_realm_roles_to_group", "g3", ("ops",)) not in store.calls
    assert store.mappings["g1"] == ["dev"]


def test_missing_role_at_mapping_time_fails(make_store):
    store = make_store(groups=[Group(id="g1", name="dev")], roles=["dev"])
    change_set = build_change_set(store)
    del store.roles["dev"]

    with pytest.raises(ApplyError) as excinfo:
        apply_change_set(store, change_set, confirmed=True, realm="demo")

    assert isinstance(excinfo.value.cause, RoleNotFoundError)
    assert store.operations("add_realm_roles_to_group") == []


def test_applied_changes_are_audited(store, temp_audit_log):
    apply_change_set(store, build_change_set(store), confirmed=True, realm="demo", operator="alice")

    events = [json.loads(line) for line in temp_audit_log.read_text().splitlines()]
    assert [event["event_type"] for event in events] == [
        "role_create", "role_create",
        "group_role_mapping", "group_role_mapping", "group_role_mapping",
    ]
    assert all(event["operator"] == "alice" and event["realm"] == "demo" for event in events)
    assert events[2]["details"] == {"group_id": "g1", "role_id": "role-dev"}


def test_failed_change_is_audited(store, temp_audit_log):
    change_set = build_change_set(store)
    store.fail("create_role", "dev")

    with pytest.raises(ApplyError):
        apply_change_set(store, change_set, confirmed=True, realm="demo")

    event = json.loads(temp_audit_log.read_text().splitlines()[-1])
    assert event["event_type"] == "role_create"
    assert event["success"] is False
    assert "error" in event["details"]
