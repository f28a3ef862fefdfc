"""Keycloak Admin API client library.

This package provides a modular, testable interface to the Keycloak Admin API
operations the mapper needs.

Architecture:
- client.py: HTTP client with authentication and auto-refresh
- realm.py: Realm lookup
- groups.py: Group tree listing and group realm-role mappings
- roles.py: Realm role lookup and creation
- store.py: IdentityStore implementation composing the services above
- exceptions.py: Typed exceptions for error handling

Usage:
    from rolemapper.core.keycloak import KeycloakClient, KeycloakIdentityStore
    
    client = KeycloakClient("http://keycloak:8080")
    client.authenticate_admin("admin", "password")
    
    store = KeycloakIdentityStore(client, "demo")
    groups = store.list_groups()
"""
from .client import KeycloakClient, REQUEST_TIMEOUT, DEFAULT_ADMIN_CLIENT_ID
from .exceptions import (
    KeycloakError,
    KeycloakAPIError,
    AuthenticationError,
    RealmNotFoundError,
    RoleNotFoundError,
    RoleAlreadyExistsError,
    GroupNotFoundError,
    InsufficientPermissionsError,
)
from .realm import RealmService
from .groups import GroupService
from .roles import RoleService
from .store import KeycloakIdentityStore, group_from_representation

__all__ = [
    # Client
    "KeycloakClient",
    "REQUEST_TIMEOUT",
    "DEFAULT_ADMIN_CLIENT_ID",
    
    # Exceptions
    "KeycloakError",
    "KeycloakAPIError",
    "AuthenticationError",
    "RealmNotFoundError",
    "RoleNotFoundError",
    "RoleAlreadyExistsError",
    "GroupNotFoundError",
    "InsufficientPermissionsError",
    
    # Services
    "RealmService",
    "GroupService",
    "RoleService",
    
    # IdentityStore
    "KeycloakIdentityStore",
    "group_from_representation",
]
