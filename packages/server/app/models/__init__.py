# SQLModel definitions — imported here to ensure metadata is populated for Alembic.
from .base import TimestampMixin  # noqa: F401
from .member import Member  # noqa: F401
from .contribution import Contribution  # noqa: F401
from .app_user import AppUser  # noqa: F401
from .identity_account import IdentityAccount, RevokedSession  # noqa: F401
