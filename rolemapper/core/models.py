"""Domain types shared by the reconciler, reporter and applier.

``IdentityStore`` is the capability set the reconciliation needs from the
identity provider. ``KeycloakIdentityStore`` implements it over the Admin
REST API; tests implement it in memory.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence


@dataclass(frozen=True)
class Realm:
    id: str
    name: str


@dataclass(frozen=True)
class Role:
    name: str
    id: Optional[str] = None

    @property
    def exists(self) -> bool:
        return self.id is not None


@dataclass(frozen=True)
class Group:
    """Read-only snapshot of a provider group.

    Attributes:
        id: Provider-assigned identifier
        name: Display name, also the expected role name
        realm_roles: Names of realm roles currently mapped to the group
        sub_groups: Child groups in provider order
    """
    id: str
    name: str
    realm_roles: tuple[str, ...] = ()
    sub_groups: tuple["Group", ...] = field(default=(), repr=False)


class IdentityStore(Protocol):
    """Operations against the identity provider, bound to one realm.

    Every method is a synchronous remote call and raises a
    ``KeycloakError`` subclass on failure.
    """

    def get_realm(self, name: str) -> Realm: ...

    def list_groups(self) -> Sequence[Group]: ...

    def get_group(self, group_id: str) -> Group: ...

    def find_role_by_name(self, name: str) -> Optional[Role]: ...

    def create_role(self, name: str) -> Role: ...

    def add_realm_roles_to_group(self, group_id: str, roles: Sequence[Role]) -> None: ...

    def remove_realm_roles_from_group(self, group_id: str, roles: Sequence[Role]) -> None: ...
