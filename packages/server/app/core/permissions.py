"""
Role-based capability gate.

The gate is advisory: the store's row-level security policies reject
unauthorized writes on their own. Services still consult it before every
mutation so callers get a specific ``Unauthorized`` error instead of a
driver failure.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional, Union

from app.core.errors import Unauthorized
from points_ledger_shared.schemas.common import Role


@dataclass(frozen=True)
class Capabilities:
    role: Optional[Role]
    can_edit: bool = False
    can_manage_users: bool = False
    is_super_admin: bool = False
    is_editor: bool = False
    is_viewer: bool = False


NO_CAPABILITIES = Capabilities(role=None)


def parse_role(value: Union[Role, str, None]) -> Optional[Role]:
    """Return the Role for ``value`` or None if it is absent or unrecognized."""
    if value is None:
        return None
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None


def capabilities_for(role: Union[Role, str, None]) -> Capabilities:
    """Map a role to its capability record. Unknown or absent roles get nothing."""
    parsed = parse_role(role)
    if parsed is Role.SUPER_ADMIN:
        return Capabilities(
            role=parsed, can_edit=True, can_manage_users=True, is_super_admin=True
        )
    if parsed is Role.EDITOR:
        return Capabilities(role=parsed, can_edit=True, is_editor=True)
    if parsed is Role.VIEWER:
        return Capabilities(role=parsed, is_viewer=True)
    return NO_CAPABILITIES


@dataclass(frozen=True)
class ActingIdentity:
    """The caller of a core operation, passed explicitly instead of looked up."""

    user_id: uuid.UUID
    role: Optional[Role] = None
    username: Optional[str] = None
    email: Optional[str] = None

    @property
    def capabilities(self) -> Capabilities:
        return capabilities_for(self.role)


_CAPABILITY_MESSAGES = {
    "can_edit": "Editor access required",
    "can_manage_users": "Super Admin access required",
}


def require_capability(identity: Optional[ActingIdentity], capability: str) -> ActingIdentity:
    """Raise Unauthorized unless ``identity`` holds ``capability``."""
    caps = identity.capabilities if identity is not None else NO_CAPABILITIES
    if not getattr(caps, capability, False):
        raise Unauthorized(_CAPABILITY_MESSAGES.get(capability, "Permission denied"))
    return identity
