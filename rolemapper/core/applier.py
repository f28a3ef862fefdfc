"""Apply a reconciliation change set to the identity store.

All missing roles are created before any mapping is added. Every mapping
re-resolves its role by name right before binding it, so a role created
earlier in the same run is picked up with its provider id.

The first failure stops the run. Changes already applied are kept (there is
no rollback); re-running the mapper picks up where it stopped because the
change set is always rebuilt from live state.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field

import requests

from rolemapper.core.keycloak.exceptions import KeycloakError, RoleNotFoundError
from rolemapper.core.models import IdentityStore
from rolemapper.core.reconciler import ChangeSet
from scripts import audit

logger = logging.getLogger(__name__)


@dataclass
class ApplyResult:
    """What an apply run actually changed."""
    applied: bool = False
    roles_created: list[str] = field(default_factory=list)
    mappings_created: list[tuple[str, str]] = field(default_factory=list)  # (group_id, role_name)


class ApplyError(Exception):
    """An apply run stopped on a failed operation.

    Attributes:
        operation: Description of the failing operation
        result: Changes applied before the failure
    """

    def __init__(self, operation: str, result: ApplyResult, cause: Exception):
        self.operation = operation
        self.result = result
        self.cause = cause
        super().__init__(
            f"{operation} failed: {cause} "
            f"(already applied: {len(result.roles_created)} role(s), "
            f"{len(result.mappings_created)} mapping(s))"
        )


def apply_change_set(
    store: IdentityStore,
    change_set: ChangeSet,
    confirmed: bool,
    *,
    realm: str = "",
    operator: str = "mapper",
) -> ApplyResult:
    """Create missing roles, then missing group mappings.

    Args:
        store: Identity store bound to the target realm
        change_set: Changes computed by ``build_change_set``
        confirmed: Operator answer; nothing is touched unless True
        realm: Realm name recorded in the audit trail
        operator: Who triggered the run, recorded in the audit trail

    Returns:
        ApplyResult describing the applied changes

    Raises:
        ApplyError: On the first failing role creation or mapping
    """
    result = ApplyResult()
    if not confirmed:
        logger.info("Apply declined by operator; no changes made")
        return result
    if not change_set.has_changes:
        logger.info("Nothing to apply")
        return result

    result.applied = True

    logger.info("Creating %d missing role(s)", len(change_set.missing_roles))
    for role_name in change_set.missing_roles:
        try:
            store.create_role(role_name)
        except (KeycloakError, requests.RequestException) as e:
            _audit("role_create", role_name, realm, operator, {"error": str(e)}, success=False)
            raise ApplyError(f"Creating role '{role_name}'", result, e) from e
        result.roles_created.append(role_name)
        _audit("role_create", role_name, realm, operator, {})

    logger.info("Creating %d missing mapping(s)", len(change_set.missing_mappings))
    for group_id, role_name in change_set.missing_mappings.items():
        operation = f"Mapping role '{role_name}' to group {group_id}"
        try:
            role = store.find_role_by_name(role_name)
            if role is None:
                raise RoleNotFoundError(f"Role '{role_name}' not found")
            store.add_realm_roles_to_group(group_id, [role])
        except (KeycloakError, requests.RequestException) as e:
            _audit("group_role_mapping", role_name, realm, operator,
                   {"group_id": group_id, "error": str(e)}, success=False)
            raise ApplyError(operation, result, e) from e
        logger.info("Mapped role %s/%s to group %s", role.name, role.id, group_id)
        result.mappings_created.append((group_id, role_name))
        _audit("group_role_mapping", role_name, realm, operator, {"group_id": group_id, "role_id": role.id})

    return result


def _audit(
    event_type: audit.EventType,
    target: str,
    realm: str,
    operator: str,
    details: dict,
    success: bool = True,
) -> bool:
    return audit.safe_log_mapper_event(
        event_type,
        target,
        operator=operator,
        realm=realm,
        details=details,
        success=success,
    )
