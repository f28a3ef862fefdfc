"""Map every Keycloak group to a realm role of the same name.

This module is the CLI wrapper around rolemapper.core: it loads settings,
logs in to Keycloak, prints the planned changes and applies them once the
operator confirms.
"""
from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import requests

from rolemapper.config import ConfigError, MapperConfig, load_settings
from rolemapper.config.settings import PROPS_DRYRUN, PROPS_FILE_NAME
from rolemapper.core.applier import ApplyError, ApplyResult, apply_change_set
from rolemapper.core.keycloak import KeycloakClient, KeycloakError, KeycloakIdentityStore
from rolemapper.core.reconciler import ChangeSet, build_change_set
from rolemapper.core.report import render_change_set

CONFIRM_PROMPT = "Do you really want to continue? (Y/N): "


def connect(config: MapperConfig) -> KeycloakIdentityStore:
    """Authenticate as admin and return a store bound to the target realm."""
    client = KeycloakClient(config.keycloak_url)
    client.authenticate_admin(
        config.keycloak_user,
        config.keycloak_password,
        realm=config.auth_realm,
        client_id=config.admin_client_id,
    )
    print(f"Logged in to {config.keycloak_url}")
    return KeycloakIdentityStore(client, config.keycloak_realm)


def confirm(prompt: str = CONFIRM_PROMPT, input_fn: Optional[Callable[[str], str]] = None) -> bool:
    """Ask the operator; only answers starting with Y/y count as yes."""
    try:
        answer = (input_fn or input)(prompt)
    except EOFError:
        return False
    return answer.strip().upper().startswith("Y")


def run(
    config: MapperConfig,
    *,
    dry_run: bool,
    assume_yes: bool = False,
    properties_path: Optional[Path] = None,
) -> Optional[ApplyResult]:
    """Reconcile the configured realm. Returns None when nothing was attempted."""
    store = connect(config)
    realm = store.get_realm(config.keycloak_realm)
    print(f"Found realm: {realm.name}")

    change_set: ChangeSet = build_change_set(store)
    print(render_change_set(change_set))

    if dry_run:
        print(
            f"\nNote: Disable or remove the {PROPS_DRYRUN} option in "
            f"{properties_path or PROPS_FILE_NAME} to create the missing roles and mappings"
        )
        return None
    if not change_set.has_changes:
        return None

    confirmed = assume_yes or confirm()
    result = apply_change_set(
        store,
        change_set,
        confirmed,
        realm=config.keycloak_realm,
        operator=config.operator,
    )
    if result.applied:
        print(
            f"*** Created {len(result.roles_created)} role(s) and "
            f"{len(result.mappings_created)} mapping(s) ***"
        )
    else:
        print("*** No changes applied ***")
    return result


def main(argv: Optional[list[str]] = None) -> None:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Keycloak group to realm-role mapper")
    parser.add_argument("--properties", type=Path, default=Path(PROPS_FILE_NAME),
                        help=f"Settings file (default: {PROPS_FILE_NAME})")
    parser.add_argument("--dry-run", action="store_true",
                        help="Only report the planned changes")
    parser.add_argument("--yes", action="store_true",
                        help="Apply without asking for confirmation")
    parser.add_argument("--operator", default=None,
                        help="Operator identifier for audit logs (default: mapper)")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    args = parser.parse_args(argv)

    level = logging.WARNING if args.verbose == 0 else logging.INFO if args.verbose == 1 else logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_settings(args.properties)
    except ConfigError as e:
        print(f"[mapper] Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    if args.operator:
        config.operator = args.operator

    dry_run = args.dry_run or config.dry_run_only
    print("*** Running with ***")
    print(config.summary())

    try:
        run(config, dry_run=dry_run, assume_yes=args.yes, properties_path=args.properties)
    except ApplyError as e:
        print(f"[mapper] Error: {e}", file=sys.stderr)
        print("[mapper] Changes applied before the failure were kept; re-run after fixing the cause.",
              file=sys.stderr)
        sys.exit(1)
    except (KeycloakError, requests.RequestException) as e:
        print(f"[mapper] Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
