"""Settings loader with properties-file, environment variable and Docker secrets integration."""
from __future__ import annotations
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

PROPS_FILE_NAME = "mapper.properties"
PROPS_DRYRUN = "dry.run.only"
PROPS_URL = "keycloak.url"
PROPS_USER = "keycloak.user"
PROPS_PASSWORD = "keycloak.password"
PROPS_REALM = "keycloak.realm"

# Properties key -> environment variable overriding it
ENV_OVERRIDES = {
    PROPS_DRYRUN: "DRY_RUN_ONLY",
    PROPS_URL: "KEYCLOAK_URL",
    PROPS_USER: "KEYCLOAK_ADMIN",
    PROPS_PASSWORD: "KEYCLOAK_ADMIN_PASSWORD",
    PROPS_REALM: "KEYCLOAK_REALM",
}

TEMPLATE_PROPS = {
    PROPS_DRYRUN: "false",
    PROPS_URL: "http://localhost:8080",
    PROPS_USER: "admin",
    PROPS_PASSWORD: "password",
    PROPS_REALM: "realm",
}

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


class ConfigError(RuntimeError):
    """Settings are missing or invalid; raised before any remote call."""
    pass


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from /run/secrets", file=sys.stderr)
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read /run/secrets/{secret_name}: {e}", file=sys.stderr)

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


def read_properties(path: Path) -> dict[str, str]:
    """Parse a Java-style properties file.

    Supports ``key=value`` and ``key: value`` lines; blank lines and lines
    starting with ``#`` or ``!`` are ignored.
    """
    props: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped[0] in "#!":
            continue
        separators = [idx for idx in (stripped.find("="), stripped.find(":")) if idx > 0]
        if not separators:
            continue
        sep = min(separators)
        props[stripped[:sep].strip()] = stripped[sep + 1:].strip()
    return props


def write_properties_template(path: Path) -> None:
    """Write a properties file holding the default settings."""
    lines = [f"{key}={value}" for key, value in sorted(TEMPLATE_PROPS.items())]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def parse_bool(value: str, key: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid boolean '{value}' for setting '{key}'")


@dataclass
class MapperConfig:
    """Mapper configuration container."""
    # Keycloak
    keycloak_url: str
    keycloak_user: str
    keycloak_password: str
    keycloak_realm: str

    # Mode
    dry_run_only: bool = False

    # Admin authentication
    auth_realm: str = "master"
    admin_client_id: str = "admin-cli"

    # Audit
    operator: str = "mapper"

    def summary(self) -> str:
        """Startup banner with the password masked."""
        return (
            f"Dry run only: {self.dry_run_only}\n"
            f"Keycloak url: {self.keycloak_url}\n"
            f"Keycloak user: {self.keycloak_user}\n"
            f"Keycloak password: {'*' * 8 if self.keycloak_password else '(empty)'}\n"
            f"Keycloak realm: {self.keycloak_realm}"
        )


def load_settings(
    properties_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> MapperConfig:
    """Load mapper settings.

    Priority (highest first): /run/secrets (password only), environment
    variables, properties file.

    A missing properties file is replaced by a template when the environment
    does not provide the settings either; the operator must then edit it.

    Raises:
        ConfigError: If a required setting is missing or invalid
    """
    env = os.environ if environ is None else environ
    path = Path(properties_path or PROPS_FILE_NAME)

    env_provided = all(env.get(ENV_OVERRIDES[key]) for key in (PROPS_URL, PROPS_USER, PROPS_PASSWORD, PROPS_REALM))

    props: dict[str, str] = {}
    if path.exists():
        props = read_properties(path)
    elif not env_provided:
        write_properties_template(path)
        raise ConfigError(
            f"Missing properties file {path}. A default template was created; "
            "edit it and run the mapper again."
        )

    def _value(key: str) -> str:
        value = env.get(ENV_OVERRIDES[key]) or props.get(key, "")
        if not value:
            raise ConfigError(
                f"Missing required setting '{key}' (set it in {path} or via {ENV_OVERRIDES[key]})"
            )
        return value

    password = _load_secret_from_file("keycloak_admin_password") or _value(PROPS_PASSWORD)
    dry_run_raw = env.get(ENV_OVERRIDES[PROPS_DRYRUN]) or props.get(PROPS_DRYRUN, "false")

    return MapperConfig(
        keycloak_url=_value(PROPS_URL).rstrip("/"),
        keycloak_user=_value(PROPS_USER),
        keycloak_password=password,
        keycloak_realm=_value(PROPS_REALM),
        dry_run_only=parse_bool(dry_run_raw, PROPS_DRYRUN),
        auth_realm=env.get("KEYCLOAK_AUTH_REALM", "master"),
        admin_client_id=env.get("KEYCLOAK_ADMIN_CLIENT_ID", "admin-cli"),
        operator=env.get("MAPPER_OPERATOR", "mapper"),
    )
