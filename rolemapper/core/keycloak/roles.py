"""Keycloak realm-role operations."""
from __future__ import annotations
import sys
from typing import Optional
from urllib.parse import quote

from .client import KeycloakClient
from .exceptions import (
    KeycloakAPIError,
    RoleAlreadyExistsError,
    RoleNotFoundError,
    InsufficientPermissionsError,
)


class RoleService:
    """Service for managing Keycloak realm roles."""
    
    def __init__(self, client: KeycloakClient):
        """Initialize role service.
        
        Args:
            client: Authenticated Keycloak client
        """
        self.client = client
    
    def get_role_by_name(self, realm: str, role_name: str) -> Optional[dict]:
        """Look up a realm role by name.
        
        Args:
            realm: Realm name
            role_name: Role name
            
        Returns:
            Role representation or None if the role does not exist
        """
        try:
            resp = self.client.get(f"/admin/realms/{realm}/roles/{quote(role_name, safe='')}")
        except KeycloakAPIError as e:
            if e.status_code == 404:
                return None
            raise
        return resp.json()
    
    def create_role(self, realm: str, role_name: str) -> dict:
        """Create a realm-level role and return its representation.
        
        Args:
            realm: Realm name
            role_name: Role name
            
        Returns:
            Representation of the created role
            
        Raises:
            RoleAlreadyExistsError: If a role with that name exists
            InsufficientPermissionsError: If the admin may not create roles
        """
        print(f"[mapper] Creating missing role '{role_name}'", file=sys.stderr)
        try:
            self.client.post(f"/admin/realms/{realm}/roles", json={"name": role_name})
        except KeycloakAPIError as e:
            if e.status_code == 409:
                raise RoleAlreadyExistsError(f"Role '{role_name}' already exists in realm '{realm}'") from e
            if e.status_code in (401, 403):
                raise InsufficientPermissionsError(
                    f"Missing permission to create role '{role_name}' in realm '{realm}'"
                ) from e
            raise
        
        created = self.get_role_by_name(realm, role_name)
        if not created:
            raise RoleNotFoundError(f"Failed to retrieve role '{role_name}' after creation")
        return created
