"""Group/role reconciliation.

Walks the realm's group forest and works out which realm roles must be created
and which groups still need the role of the same name mapped to them.

A group is considered mapped when one of its realm roles has exactly the
group's name (case-sensitive). The walk only reads from the store; changes
are applied separately by ``rolemapper.core.applier``.

Usage:
    change_set = build_change_set(store)
    print(render_change_set(change_set))
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from .models import Group, IdentityStore

logger = logging.getLogger(__name__)


class GroupState(str, Enum):
    """Classification of a single group during a reconciliation walk."""
    MAPPED = "mapped"
    ROLE_MISSING = "role-missing"
    MAPPING_MISSING = "mapping-missing"


@dataclass(frozen=True)
class ChangeSet:
    """Roles to create and group → role mappings to add.

    Attributes:
        missing_roles: Unique role names that do not exist yet, in discovery order
        missing_mappings: Group id → role name for every unmapped group
    """
    missing_roles: tuple[str, ...] = ()
    missing_mappings: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def has_changes(self) -> bool:
        return bool(self.missing_roles or self.missing_mappings)


class _ChangeSetBuilder:
    """Accumulates changes during a single walk."""

    def __init__(self):
        self.missing_roles: list[str] = []
        self.missing_mappings: dict[str, str] = {}

    def add_missing_role(self, name: str) -> None:
        if name not in self.missing_roles:
            self.missing_roles.append(name)

    def add_missing_mapping(self, group: Group) -> None:
        self.missing_mappings[group.id] = group.name

    def freeze(self) -> ChangeSet:
        return ChangeSet(
            missing_roles=tuple(self.missing_roles),
            missing_mappings=MappingProxyType(dict(self.missing_mappings)),
        )


def is_group_mapped(group: Group) -> bool:
    """True if a realm role named exactly like the group is mapped to it."""
    return group.name in group.realm_roles


def classify_group(group: Group, store: IdentityStore) -> GroupState:
    """Classify a group given its current realm-role mappings.

    Args:
        group: Group detail with authoritative ``realm_roles``
        store: Identity store used to look up the role by name

    Returns:
        MAPPED, ROLE_MISSING (no role of that name exists) or
        MAPPING_MISSING (role exists but is not mapped to the group)
    """
    if is_group_mapped(group):
        return GroupState.MAPPED
    if store.find_role_by_name(group.name) is None:
        return GroupState.ROLE_MISSING
    return GroupState.MAPPING_MISSING


def build_change_set(store: IdentityStore) -> ChangeSet:
    """Walk every group of the realm (pre-order) and collect the needed changes.

    Each group is re-fetched before it is classified because listed groups
    may carry incomplete role mappings. Sub-groups are always visited, even
    when their parent is already mapped.

    Raises:
        KeycloakError: Any lookup failure, unchanged
    """
    builder = _ChangeSetBuilder()
    for group in store.list_groups():
        _visit(group, store, builder)
    change_set = builder.freeze()
    logger.info(
        "Reconciliation found %d missing role(s) and %d missing mapping(s)",
        len(change_set.missing_roles),
        len(change_set.missing_mappings),
    )
    return change_set


def _visit(group: Group, store: IdentityStore, builder: _ChangeSetBuilder) -> None:
    logger.debug("Preparing mapper for group %s/%s", group.name, group.id)
    detail = store.get_group(group.id)
    state = classify_group(detail, store)

    if state is GroupState.MAPPED:
        logger.info("Role %s is already mapped to group %s", detail.name, detail.id)
    else:
        logger.info("Role mapping is missing for group %s (%s)", detail.name, state.value)
        if state is GroupState.ROLE_MISSING:
            builder.add_missing_role(detail.name)
        builder.add_missing_mapping(detail)

    # Children come from the listed tree; detail lookups do not carry them
    for sub_group in group.sub_groups:
        _visit(sub_group, store, builder)
