"""Keycloak-specific exceptions for error handling."""


class KeycloakError(Exception):
    """Base exception for all Keycloak operations."""
    pass


class KeycloakAPIError(KeycloakError):
    """HTTP error from Keycloak Admin API.
    
    Attributes:
        status_code: HTTP status code
        message: Error message from response
        endpoint: API endpoint that failed
    """
    
    def __init__(self, status_code: int, message: str, endpoint: str):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class AuthenticationError(KeycloakAPIError):
    """Token endpoint rejected the admin credentials."""
    pass


class RealmNotFoundError(KeycloakError):
    """Realm does not exist."""
    pass


class RoleNotFoundError(KeycloakError):
    """Role does not exist in realm."""
    pass


class RoleAlreadyExistsError(KeycloakError):
    """Role creation failed - a role with that name already exists."""
    pass


class GroupNotFoundError(KeycloakError):
    """Group does not exist in realm."""
    pass


class InsufficientPermissionsError(KeycloakError):
    """Admin account lacks required permissions."""
    pass
