"""Pytest shared fixtures for the group/role mapper."""
import pathlib
import sys
from typing import Iterable, Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from rolemapper.core.keycloak.exceptions import (
    GroupNotFoundError,
    KeycloakAPIError,
    RealmNotFoundError,
    RoleAlreadyExistsError,
)
from rolemapper.core.models import Group, Realm, Role
from scripts import audit


class FakeIdentityStore:
    """In-memory IdentityStore recording every call in order.

    ``list_groups`` returns the tree exactly as given (possibly stale);
    ``get_group`` reflects the live mappings, including ones added later.
    Operations listed in ``failures`` raise a 500 for the given argument.
    """

    def __init__(self, groups: Iterable[Group] = (), roles: Iterable[str] = (), realm: str = "demo"):
        self.realm = realm
        self.groups = list(groups)
        self.roles = {name: f"role-{name}" for name in roles}
        self.mappings: dict[str, list[str]] = {}
        self.names: dict[str, str] = {}
        self.calls: list[tuple] = []
        self.failures: dict[str, set] = {}
        for group in self.groups:
            self._index(group)

    def _index(self, group: Group) -> None:
        self.mappings[group.id] = list(group.realm_roles)
        self.names[group.id] = group.name
        for child in group.sub_groups:
            self._index(child)

    def fail(self, operation: str, argument: str) -> None:
        self.failures.setdefault(operation, set()).add(argument)

    def _record(self, operation: str, argument: str, *extra) -> None:
        self.calls.append((operation, argument, *extra))
        if argument in self.failures.get(operation, set()):
            raise KeycloakAPIError(500, f"{operation} failed", f"/fake/{operation}/{argument}")

    def get_realm(self, name: str) -> Realm:
        self._record("get_realm", name)
        if name != self.realm:
            raise RealmNotFoundError(f"Provided realm '{name}' is not configured")
        return Realm(id=f"realm-{name}", name=name)

    def list_groups(self):
        self._record("list_groups", self.realm)
        return list(self.groups)

    def get_group(self, group_id: str) -> Group:
        self._record("get_group", group_id)
        if group_id not in self.names:
            raise GroupNotFoundError(group_id)
        return Group(id=group_id, name=self.names[group_id], realm_roles=tuple(self.mappings[group_id]))

    def find_role_by_name(self, name: str) -> Optional[Role]:
        self._record("find_role_by_name", name)
        if name not in self.roles:
            return None
        return Role(name=name, id=self.roles[name])

    def create_role(self, name: str) -> Role:
        self._record("create_role", name)
        if name in self.roles:
            raise RoleAlreadyExistsError(name)
        self.roles[name] = f"role-{name}"
        return Role(name=name, id=self.roles[name])

    def add_realm_roles_to_group(self, group_id: str, roles) -> None:
        self._record("add_realm_roles_to_group", group_id, tuple(role.name for role in roles))
        if group_id not in self.mappings:
            raise GroupNotFoundError(group_id)
        for role in roles:
            if role.name not in self.mappings[group_id]:
                self.mappings[group_id].append(role.name)

    def remove_realm_roles_from_group(self, group_id: str, roles) -> None:
        self._record("remove_realm_roles_from_group", group_id, tuple(role.name for role in roles))
        for role in roles:
            if role.name in self.mappings.get(group_id, []):
                self.mappings[group_id].remove(role.name)

    def operations(self, *names: str) -> list[tuple]:
        return [call for call in self.calls if call[0] in names]


@pytest.fixture
def make_store():
    """Factory building a FakeIdentityStore from groups and existing role names."""
    def _make(groups=(), roles=(), realm="demo"):
        return FakeIdentityStore(groups, roles, realm)
    return _make


@pytest.fixture(autouse=True)
def temp_audit_log(monkeypatch, tmp_path):
    """Keep audit events of every test inside its tmp_path."""
    audit_dir = tmp_path / "audit"
    audit_file = audit_dir / "mapper-events.jsonl"
    monkeypatch.setattr(audit, "AUDIT_LOG_DIR", audit_dir)
    monkeypatch.setattr(audit, "AUDIT_LOG_FILE", audit_file)
    monkeypatch.setenv("AUDIT_LOG_SIGNING_KEY", "test-signing-key-for-audit-trail")
    return audit_file
