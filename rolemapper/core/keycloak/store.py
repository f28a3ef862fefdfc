"""IdentityStore implementation backed by the Keycloak Admin API."""
from __future__ import annotations
from typing import Optional, Sequence

from ..models import Group, Realm, Role
from .client import KeycloakClient
from .exceptions import RoleNotFoundError
from .groups import GroupService
from .realm import RealmService
from .roles import RoleService


def group_from_representation(rep: dict) -> Group:
    """Convert a Keycloak GroupRepresentation (with nested subGroups) to a Group."""
    return Group(
        id=rep["id"],
        name=rep["name"],
        realm_roles=tuple(rep.get("realmRoles") or ()),
        sub_groups=tuple(group_from_representation(child) for child in rep.get("subGroups") or ()),
    )


def role_from_representation(rep: dict) -> Role:
    return Role(name=rep["name"], id=rep.get("id"))


class KeycloakIdentityStore:
    """Keycloak-backed identity store bound to a single realm.
    
    Usage:
        client = KeycloakClient("http://keycloak:8080")
        client.authenticate_admin("admin", "password")
        store = KeycloakIdentityStore(client, "demo")
        store.get_realm("demo")
    """
    
    def __init__(self, client: KeycloakClient, realm: str):
        self.client = client
        self.realm = realm
        self.realms = RealmService(client)
        self.groups = GroupService(client)
        self.roles = RoleService(client)
    
    def get_realm(self, name: str) -> Realm:
        rep = self.realms.get_realm(name)
        return Realm(id=rep["id"], name=rep.get("realm", name))
    
    def list_groups(self) -> list[Group]:
        return [group_from_representation(rep) for rep in self.groups.list_groups(self.realm)]
    
    def get_group(self, group_id: str) -> Group:
        rep = self.groups.get_group(self.realm, group_id)
        # Detail lookups carry no children; the tree comes from list_groups
        rep["subGroups"] = []
        return group_from_representation(rep)
    
    def find_role_by_name(self, name: str) -> Optional[Role]:
        rep = self.roles.get_role_by_name(self.realm, name)
        if not rep or not rep.get("id"):
            return None
        return role_from_representation(rep)
    
    def create_role(self, name: str) -> Role:
        return role_from_representation(self.roles.create_role(self.realm, name))
    
    def add_realm_roles_to_group(self, group_id: str, roles: Sequence[Role]) -> None:
        self.groups.add_realm_roles(self.realm, group_id, _role_payload(roles))
    
    def remove_realm_roles_from_group(self, group_id: str, roles: Sequence[Role]) -> None:
        self.groups.remove_realm_roles(self.realm, group_id, _role_payload(roles))


def _role_payload(roles: Sequence[Role]) -> list[dict]:
    payload = []
    for role in roles:
        if not role.exists:
            raise RoleNotFoundError(f"Role '{role.name}' has no id; it must exist before it can be mapped")
        payload.append({"id": role.id, "name": role.name})
    return payload
