"""Human-readable preview of a reconciliation change set."""
from __future__ import annotations

from .reconciler import ChangeSet

NO_CHANGES_MESSAGE = "*** All roles and mappings are already set, no changes needed ***"
ROLES_HEADING = "*** The following missing roles will be created ***"
MAPPINGS_HEADING = "*** The following mappings will be created ***"


def render_change_set(change_set: ChangeSet) -> str:
    """Render the change set as the preview shown before applying it.

    Args:
        change_set: Result of ``build_change_set``

    Returns:
        Multi-line report; a single "no changes needed" line when empty
    """
    if not change_set.has_changes:
        return NO_CHANGES_MESSAGE

    lines = [ROLES_HEADING]
    lines.extend(f"Role {role_name}" for role_name in change_set.missing_roles)
    lines.append(MAPPINGS_HEADING)
    for group_id, role_name in change_set.missing_mappings.items():
        # Role names equal group names, so the group is shown by name and id
        lines.append(f"Group {role_name} ({group_id}) to Role {role_name}")
    return "\n".join(lines)
