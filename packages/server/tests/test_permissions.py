"""
Tests for the role -> capability gate.
"""

import uuid

import pytest

from app.core.errors import Unauthorized
from app.core.permissions import (
    ActingIdentity,
    NO_CAPABILITIES,
    capabilities_for,
    parse_role,
    require_capability,
)
from points_ledger_shared.schemas.common import Role


class TestCapabilityTable:

    @pytest.mark.parametrize(
        "role, can_edit, can_manage_users",
        [
            ("super_admin", True, True),
            ("editor", True, False),
            ("viewer", False, False),
            (None, False, False),
        ],
    )
    def test_role_capabilities(self, role, can_edit, can_manage_users):
        caps = capabilities_for(role)
        assert caps.can_edit is can_edit
        assert caps.can_manage_users is can_manage_users

    def test_role_flags_are_exclusive(self):
        caps = capabilities_for(Role.EDITOR)
        assert caps.is_editor
        assert not caps.is_super_admin
        assert not caps.is_viewer

    def test_unknown_role_gets_nothing(self):
        assert capabilities_for("owner") == NO_CAPABILITIES
        assert parse_role("owner") is None

    def test_enum_and_string_agree(self):
        assert capabilities_for(Role.SUPER_ADMIN) == capabilities_for("super_admin")


class TestRequireCapability:

    def test_editor_may_edit(self):
        identity = ActingIdentity(user_id=uuid.uuid4(), role=Role.EDITOR)
        assert require_capability(identity, "can_edit") is identity

    def test_editor_may_not_manage_users(self):
        identity = ActingIdentity(user_id=uuid.uuid4(), role=Role.EDITOR)
        with pytest.raises(Unauthorized, match="Super Admin access required"):
            require_capability(identity, "can_manage_users")

    def test_viewer_may_not_edit(self):
        identity = ActingIdentity(user_id=uuid.uuid4(), role=Role.VIEWER)
        with pytest.raises(Unauthorized, match="Editor access required"):
            require_capability(identity, "can_edit")

    def test_missing_identity_is_denied(self):
        with pytest.raises(Unauthorized):
            require_capability(None, "can_edit")

    def test_identity_without_profile_is_denied(self):
        identity = ActingIdentity(user_id=uuid.uuid4(), role=None)
        with pytest.raises(Unauthorized):
            require_capability(identity, "can_edit")
