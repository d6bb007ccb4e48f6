"""Authenticated caller passed explicitly into the policy and lifecycle service."""

from dataclasses import dataclass
from dataclasses import field
from typing import FrozenSet

from labsoft_api.workflow.enums import Role


@dataclass(frozen=True)
class Principal:
    """
    Verified caller identity and granted roles.

    Attributes
    ----------
    identity : str
        Stable identity string from the token (typically an email or subject id).
        Compared case-sensitively for ownership.
    roles : FrozenSet[Role]
        Roles granted to the caller.
    """

    identity: str
    roles: FrozenSet[Role] = field(default_factory=frozenset)

    def has_role(self, role: Role) -> bool:
        return role in self.roles

    @property
    def is_admin(self) -> bool:
        return self.has_role(Role.ADMIN)
