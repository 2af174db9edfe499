"""Membership roles and their ranks."""

from enum import IntEnum, StrEnum

from core.exceptions import InvalidRoleError


class Role(IntEnum):
    """Membership role hierarchy. Higher value = more authority.

    Values are persisted ranks and never change; new roles get new values.
    """

    MEMBER = 20
    ADMIN = 30
    OWNER = 40


class ResourceKind(StrEnum):
    """Kinds of resource a role can be held on or evaluated against."""

    TEAM = "team"
    PROJECT = "project"
    MILESTONE = "milestone"


# Teams have no ADMIN tier; milestones inherit the project role.
RESOURCE_ROLES: dict[ResourceKind, frozenset[Role]] = {
    ResourceKind.TEAM: frozenset({Role.MEMBER, Role.OWNER}),
    ResourceKind.PROJECT: frozenset({Role.MEMBER, Role.ADMIN, Role.OWNER}),
    ResourceKind.MILESTONE: frozenset({Role.MEMBER, Role.ADMIN, Role.OWNER}),
}


def rank(role: Role) -> int:
    """Return the numeric rank of a role."""
    return int(role)


def outranks(a: Role, b: Role) -> bool:
    """True if ``a`` is strictly above ``b``."""
    return rank(a) > rank(b)


def is_valid_for(role: Role, kind: ResourceKind) -> bool:
    return role in RESOURCE_ROLES[kind]


def parse_role(value: str | Role, kind: ResourceKind) -> Role:
    """Parse a role name (case-insensitive) and check it is allowed on ``kind``.

    Raises:
        InvalidRoleError: unknown name, or a role the resource kind does not have.
    """
    if isinstance(value, Role):
        role = value
    else:
        try:
            role = Role[str(value).strip().upper()]
        except KeyError:
            raise InvalidRoleError(str(value), kind.value) from None

    if not is_valid_for(role, kind):
        raise InvalidRoleError(role.name.lower(), kind.value)
    return role
