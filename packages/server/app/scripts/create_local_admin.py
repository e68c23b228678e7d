"""
Script to create the first Super Admin (identity account + profile) for local use.
"""

import asyncio
import argparse

from app.core.database import get_session_context, set_rls_identity
from app.core.errors import DuplicateKey
from app.core.identity import LocalIdentityProvider
from points_ledger_shared.schemas.common import Role
from app.models.app_user import AppUser
from app.services.users import get_app_user


async def create_admin(email: str, password: str, username: str, designation: str):
    async with get_session_context() as session:
        # Bootstrap writes to app_users under the role it is about to create.
        await set_rls_identity(session, None, Role.SUPER_ADMIN.value)
        provider = LocalIdentityProvider(session)

        try:
            account = (await provider.sign_up(email, password, isolated=True)).account
            print(f"Created identity account: {email}")
        except DuplicateKey:
            account = await provider.find_account(email)
            print(f"Identity account {email} already exists.")

        profile = await get_app_user(session, account.id)
        if profile is None:
            session.add(
                AppUser(
                    id=account.id,
                    username=username,
                    designation=designation,
                    role=Role.SUPER_ADMIN.value,
                )
            )
            print(f"Added {email} as super_admin.")
        elif profile.role != Role.SUPER_ADMIN.value:
            profile.role = Role.SUPER_ADMIN.value
            session.add(profile)
            print(f"Promoted {email} to super_admin.")
        else:
            print(f"{email} is already a super_admin.")

    print("Done.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a local Super Admin user.")
    parser.add_argument("--email", required=True, help="Email address for the user")
    parser.add_argument("--password", required=True, help="Password for the user")
    parser.add_argument("--username", default="Administrator", help="Display name")
    parser.add_argument("--designation", default="Administrator", help="Designation / title")

    args = parser.parse_args()

    asyncio.run(create_admin(args.email, args.password, args.username, args.designation))
