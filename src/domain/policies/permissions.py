"""Permission evaluator: a fixed rule table keyed by resource kind and action."""

from enum import StrEnum

from domain.policies.roles import RESOURCE_ROLES, ResourceKind, Role


class Action(StrEnum):
    READ = "read"
    UPDATE = "update"
    MANAGE = "manage"
    DELETE = "delete"


_M, _A, _O = Role.MEMBER, Role.ADMIN, Role.OWNER

_RULES: dict[ResourceKind, dict[Action, frozenset[Role]]] = {
    ResourceKind.TEAM: {
        Action.READ: frozenset({_M, _O}),
        Action.UPDATE: frozenset({_O}),
        Action.MANAGE: frozenset({_O}),
        Action.DELETE: frozenset({_O}),
    },
    ResourceKind.PROJECT: {
        Action.READ: frozenset({_M, _A, _O}),
        Action.UPDATE: frozenset({_A, _O}),
        Action.MANAGE: frozenset({_A, _O}),
        Action.DELETE: frozenset({_O}),
    },
    ResourceKind.MILESTONE: {
        Action.READ: frozenset({_M, _A, _O}),
        Action.UPDATE: frozenset({_A, _O}),
        Action.MANAGE: frozenset({_A, _O}),
        Action.DELETE: frozenset({_O}),
    },
}

# Field-level overrides, consulted before the action rule.
_FIELD_RULES: dict[tuple[ResourceKind, Action, str], frozenset[Role]] = {
    (ResourceKind.MILESTONE, Action.UPDATE, "status"): frozenset({_M, _A, _O}),
}


def can(
    role: Role | None,
    action: Action,
    resource: ResourceKind,
    field: str | None = None,
) -> bool:
    """Decide whether ``role`` may perform ``action`` on ``resource``.

    A missing role (no membership) is always denied, as is a role the
    resource kind does not have (ADMIN on a team).
    """
    if role is None or role not in RESOURCE_ROLES[resource]:
        return False

    if field is not None:
        allowed = _FIELD_RULES.get((resource, action, field))
        if allowed is not None:
            return role in allowed

    return role in _RULES[resource][action]


def permitted_actions(role: Role | None, resource: ResourceKind) -> set[Action]:
    """All actions ``role`` may perform on ``resource``, for presentation."""
    return {action for action in Action if can(role, action, resource)}
