"""Workspace models: role grants and the authority union."""

from collections.abc import Iterable

from pydantic import Field

from src.models.common import Authority, CellarBase, UUIDv7

ALL_AUTHORITIES: frozenset[Authority] = frozenset(Authority)


class RoleGrant(CellarBase):
    """One workspace role as held by a member.

    ``has_admin_authority`` is an explicit override: it grants the whole
    authority universe regardless of the listed authorities.
    """

    role_id: UUIDv7
    name: str
    authorities: frozenset[Authority] = Field(default_factory=frozenset)
    has_admin_authority: bool = False


def effective_permissions(grants: Iterable[RoleGrant]) -> frozenset[Authority]:
    """Union of authorities across ``grants``.

    Pure: no I/O. A caller with no grants has the empty set.
    """
    collected: set[Authority] = set()
    for grant in grants:
        if grant.has_admin_authority is True:
            return ALL_AUTHORITIES
        collected.update(grant.authorities)
    if Authority.WORKSPACE_ADMIN in collected:
        return ALL_AUTHORITIES
    return frozenset(collected)
