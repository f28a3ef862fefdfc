"""Keycloak group listing and group role-mapping operations."""
from __future__ import annotations
import sys
from typing import Optional

from .client import KeycloakClient
from .exceptions import KeycloakAPIError, GroupNotFoundError, InsufficientPermissionsError

# Page size for group listings; Keycloak pages /groups and /children with first/max
GROUP_PAGE_SIZE = 100


class GroupService:
    """Service for reading Keycloak groups and their realm-role mappings."""
    
    def __init__(self, client: KeycloakClient):
        """Initialize group service.
        
        Args:
            client: Authenticated Keycloak client
        """
        self.client = client
    
    def list_groups(self, realm: str) -> list[dict]:
        """Return the top-level groups of a realm with their full sub-group trees.
        
        Recent Keycloak versions only report ``subGroupCount`` on listed
        groups; missing children are fetched from the children endpoint.
        
        Args:
            realm: Realm name
            
        Returns:
            List of group representations with populated ``subGroups``
        """
        groups = self._get_all_pages(f"/admin/realms/{realm}/groups")
        for group in groups:
            self._populate_sub_groups(realm, group)
        return groups
    
    def _get_all_pages(self, path: str) -> list[dict]:
        """Fetch a paged group listing until a short page comes back."""
        items: list[dict] = []
        first = 0
        while True:
            resp = self.client.get(
                path,
                params={"briefRepresentation": "false", "first": first, "max": GROUP_PAGE_SIZE},
            )
            page = resp.json() or []
            items.extend(page)
            if len(page) < GROUP_PAGE_SIZE:
                return items
            first += GROUP_PAGE_SIZE
    
    def _populate_sub_groups(self, realm: str, group: dict) -> None:
        children = group.get("subGroups") or []
        if not children and group.get("subGroupCount", 0) > 0:
            children = self.get_group_children(realm, group["id"])
        group["subGroups"] = children
        for child in children:
            self._populate_sub_groups(realm, child)
    
    def get_group_children(self, realm: str, group_id: str) -> list[dict]:
        """Return all direct sub-groups of a group, across pages."""
        return self._get_all_pages(f"/admin/realms/{realm}/groups/{group_id}/children")
    
    def get_group(self, realm: str, group_id: str) -> dict:
        """Retrieve a group with its authoritative realm-role names.
        
        Args:
            realm: Realm name
            group_id: Group ID
            
        Returns:
            Group representation with a ``realmRoles`` list
            
        Raises:
            GroupNotFoundError: If the group no longer exists
        """
        try:
            resp = self.client.get(f"/admin/realms/{realm}/groups/{group_id}")
        except KeycloakAPIError as e:
            if e.status_code == 404:
                raise GroupNotFoundError(f"Group '{group_id}' not found in realm '{realm}'") from e
            raise
        
        group = resp.json() or {}
        if "realmRoles" not in group:
            group["realmRoles"] = [role["name"] for role in self.get_realm_role_mappings(realm, group_id)]
        return group
    
    def get_realm_role_mappings(self, realm: str, group_id: str) -> list[dict]:
        """Return the realm roles mapped directly to a group."""
        resp = self.client.get(f"/admin/realms/{realm}/groups/{group_id}/role-mappings/realm")
        return resp.json() or []
    
    def add_realm_roles(self, realm: str, group_id: str, roles: list[dict], group_name: Optional[str] = None) -> None:
        """Map realm roles to a group.
        
        Args:
            realm: Realm name
            group_id: Group ID
            roles: Role representations (``id`` and ``name``)
            group_name: Optional group name for progress output
        """
        payload = [{"id": role["id"], "name": role["name"]} for role in roles]
        try:
            self.client.post(f"/admin/realms/{realm}/groups/{group_id}/role-mappings/realm", json=payload)
        except KeycloakAPIError as e:
            if e.status_code == 404:
                raise GroupNotFoundError(f"Group '{group_name or group_id}' not found in realm '{realm}'") from e
            if e.status_code in (401, 403):
                raise InsufficientPermissionsError(
                    f"Missing permission to map roles to group '{group_name or group_id}'"
                ) from e
            raise
        names = ", ".join(role["name"] for role in payload)
        print(f"[mapper] Mapped role(s) {names} to group '{group_name or group_id}'", file=sys.stderr)
    
    def remove_realm_roles(self, realm: str, group_id: str, roles: list[dict]) -> None:
        """Remove realm-role mappings from a group.

        Raises:
            GroupNotFoundError: If the group does not exist
            InsufficientPermissionsError: If the admin may not change mappings
        """
        payload = [{"id": role["id"], "name": role["name"]} for role in roles]
        try:
            self.client.delete(
                f"/admin/realms/{realm}/groups/{group_id}/role-mappings/realm",
                json=payload,
            )
        except KeycloakAPIError as e:
            if e.status_code == 404:
                raise GroupNotFoundError(f"Group '{group_id}' not found in realm '{realm}'") from e
            if e.status_code in (401, 403):
                raise InsufficientPermissionsError(
                    f"Missing permission to remove roles from group '{group_id}'"
                ) from e
            raise
