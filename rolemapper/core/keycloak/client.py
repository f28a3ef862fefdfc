"""Low-level HTTP client for Keycloak Admin API.

Handles authentication, token management, and HTTP operations.
"""
from __future__ import annotations
import os
from typing import Optional, Dict, Any, List
from datetime import datetime, timedelta

import requests

from .exceptions import KeycloakAPIError, AuthenticationError

REQUEST_TIMEOUT = 5
DEFAULT_ADMIN_CLIENT_ID = "admin-cli"


class KeycloakClient:
    """HTTP client for Keycloak Admin API with automatic token management.

    Features:
    - Password-grant authentication against the admin client
    - Automatic token refresh when expired
    - Centralized error handling

    Usage:
        client = KeycloakClient("http://keycloak:8080")
        client.authenticate_admin("admin", "password")
        response = client.get("/admin/realms/demo/groups")
    """

    def __init__(self, base_url: Optional[str] = None):
        """Initialize Keycloak client.

        Args:
            base_url: Keycloak base URL (defaults to KEYCLOAK_URL env var)
        """
        self.base_url = (base_url or os.environ.get("KEYCLOAK_URL", "http://localhost:8080")).rstrip("/")
        self._token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None
        self._auth_params: Dict[str, Any] = {}

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def authenticate_admin(
        self,
        username: str,
        password: str,
        realm: str = "master",
        client_id: str = DEFAULT_ADMIN_CLIENT_ID,
    ) -> str:
        """Authenticate as admin user and store credentials for auto-refresh.

        Args:
            username: Admin username
            password: Admin password
            realm: Authentication realm (default: master)
            client_id: Public client used for the password grant

        Returns:
            Access token

        Raises:
            AuthenticationError: If the token endpoint rejects the credentials
        """
        self._auth_params = {
            "username": username,
            "password": password,
            "realm": realm,
            "client_id": client_id,
        }
        self._refresh_token()
        return self._token

    def _refresh_token(self) -> None:
        token, expires_in = self._get_admin_token(**self._auth_params)
        self._token = token
        # Refresh ahead of the advertised expiry
        self._token_expires_at = datetime.now() + timedelta(seconds=max(expires_in - 10, 0))

    def _ensure_authenticated(self) -> None:
        """Ensure we have a valid token, refreshing if necessary."""
        if not self._token or not self._token_expires_at:
            raise KeycloakAPIError(401, "Not authenticated - call authenticate_admin first", "")

        if datetime.now() >= self._token_expires_at:
            self._refresh_token()

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = dict(extra or {})
        headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute GET request with automatic authentication.

        Args:
            path: API endpoint path (e.g., "/admin/realms/demo/groups")
            params: Query parameters
            **kwargs: Additional arguments for requests.get

        Returns:
            Response object

        Raises:
            KeycloakAPIError: On HTTP error
        """
        self._ensure_authenticated()
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("headers", None))

        resp = requests.get(url, params=params, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs)
        self._handle_error(resp)
        return resp

    def post(self, path: str, json: Optional[Any] = None, **kwargs) -> requests.Response:
        """Execute POST request with automatic authentication.

        Args:
            path: API endpoint path
            json: JSON payload
            **kwargs: Additional arguments for requests.post

        Returns:
            Response object

        Raises:
            KeycloakAPIError: On HTTP error
        """
        self._ensure_authenticated()
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("headers", None))

        resp = requests.post(url, json=json, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs)
        self._handle_error(resp)
        return resp

    def delete(self, path: str, json: Optional[List[Dict]] = None, **kwargs) -> requests.Response:
        """Execute DELETE request with automatic authentication.

        Role-mapping removal carries the role list in the request body.

        Raises:
            KeycloakAPIError: On HTTP error
        """
        self._ensure_authenticated()
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("headers", None))

        resp = requests.delete(url, json=json, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs)
        self._handle_error(resp)
        return resp

    def _get_admin_token(
        self,
        username: str,
        password: str,
        realm: str = "master",
        client_id: str = DEFAULT_ADMIN_CLIENT_ID,
    ) -> tuple[str, int]:
        """Obtain an admin token via direct access grant."""
        url = f"{self.base_url}/realms/{realm}/protocol/openid-connect/token"
        data = {
            "grant_type": "password",
            "client_id": client_id,
            "username": username,
            "password": password,
        }
        resp = requests.post(url, data=data, timeout=REQUEST_TIMEOUT)
        if resp.status_code != 200:
            raise AuthenticationError(resp.status_code, resp.text, url)
        try:
            payload = resp.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise AuthenticationError(resp.status_code, f"No access token in response: {resp.text}", url)
        return payload["access_token"], int(payload.get("expires_in", 60))

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Args:
            resp: Response object to check

        Raises:
            KeycloakAPIError: If response status indicates error
        """
        if resp.status_code >= 400:
            raise KeycloakAPIError(resp.status_code, resp.text, resp.url)
