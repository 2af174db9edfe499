"""Unit tests for role ranks and parsing."""

import pytest

from core.exceptions import InvalidRoleError
from domain.policies.roles import (
    ResourceKind,
    Role,
    is_valid_for,
    outranks,
    parse_role,
    rank,
)


class TestRank:
    def test_hierarchy_is_strict(self):
        assert rank(Role.MEMBER) < rank(Role.ADMIN) < rank(Role.OWNER)

    def test_outranks(self):
        assert outranks(Role.OWNER, Role.ADMIN)
        assert outranks(Role.ADMIN, Role.MEMBER)
        assert not outranks(Role.MEMBER, Role.MEMBER)
        assert not outranks(Role.ADMIN, Role.OWNER)


class TestValidity:
    def test_team_has_no_admin(self):
        assert is_valid_for(Role.OWNER, ResourceKind.TEAM)
        assert is_valid_for(Role.MEMBER, ResourceKind.TEAM)
        assert not is_valid_for(Role.ADMIN, ResourceKind.TEAM)

    @pytest.mark.parametrize("role", list(Role))
    def test_project_accepts_every_role(self, role: Role):
        assert is_valid_for(role, ResourceKind.PROJECT)


class TestParseRole:
    def test_case_insensitive(self):
        assert parse_role(" Admin ", ResourceKind.PROJECT) == Role.ADMIN

    def test_passes_through_enum(self):
        assert parse_role(Role.OWNER, ResourceKind.TEAM) == Role.OWNER

    def test_unknown_name(self):
        with pytest.raises(InvalidRoleError) as exc_info:
            parse_role("viewer", ResourceKind.PROJECT)
        assert exc_info.value.status_code == 400

    def test_admin_rejected_on_team(self):
        with pytest.raises(InvalidRoleError):
            parse_role("admin", ResourceKind.TEAM)
