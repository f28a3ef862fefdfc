"""Keycloak realm lookup operations."""
from __future__ import annotations

from .client import KeycloakClient
from .exceptions import KeycloakAPIError, RealmNotFoundError


class RealmService:
    """Service for reading Keycloak realms."""
    
    def __init__(self, client: KeycloakClient):
        """Initialize realm service.
        
        Args:
            client: Authenticated Keycloak client
        """
        self.client = client
    
    def get_realm(self, realm: str) -> dict:
        """Return the realm representation.
        
        Args:
            realm: Realm name
            
        Returns:
            Realm representation (contains at least ``id`` and ``realm``)
            
        Raises:
            RealmNotFoundError: If the realm is not configured
        """
        try:
            resp = self.client.get(f"/admin/realms/{realm}")
        except KeycloakAPIError as e:
            if e.status_code == 404:
                raise RealmNotFoundError(f"Provided realm '{realm}' is not configured") from e
            raise
        
        payload = resp.json() or {}
        if not payload.get("id"):
            raise RealmNotFoundError(f"Provided realm '{realm}' is not configured")
        return payload
