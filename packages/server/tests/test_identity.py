"""
Tests for the local identity provider: sign-in, sign-out, refresh and
password reset.
"""

import pytest

from app.core.auth import hash_password, verify_password
from app.core.errors import DuplicateKey, InvalidCredentials, ValidationError
from app.core.identity import LocalIdentityProvider

PASSWORD = "Corr3ct-Horse!"


class TestPasswordHashing:

    def test_hash_and_verify(self):
        hashed = hash_password(PASSWORD)
        assert hashed != PASSWORD
        assert verify_password(PASSWORD, hashed)
        assert not verify_password("wrong", hashed)


class TestSignIn:

    async def test_sign_in_issues_session(self, session):
        provider = LocalIdentityProvider(session)
        account = (await provider.sign_up("member@ledger.org", PASSWORD)).account
        await session.commit()

        auth = await provider.sign_in("Member@Ledger.org ", PASSWORD)
        assert auth.account_id == account.id
        assert (await provider.get_identity(auth.access_token)).id == account.id

    @pytest.mark.parametrize("email, password", [
        ("member@ledger.org", "Wr0ng-Password!"),
        ("nobody@ledger.org", PASSWORD),
    ])
    async def test_failures_share_one_message(self, session, email, password):
        provider = LocalIdentityProvider(session)
        await provider.sign_up("member@ledger.org", PASSWORD)
        with pytest.raises(InvalidCredentials, match="Invalid email or password"):
            await provider.sign_in(email, password)

    async def test_isolated_sign_up_issues_no_session(self, session):
        result = await LocalIdentityProvider(session).sign_up("member@ledger.org", PASSWORD)
        assert result.session is None

    async def test_duplicate_sign_up(self, session):
        provider = LocalIdentityProvider(session)
        await provider.sign_up("member@ledger.org", PASSWORD)
        with pytest.raises(DuplicateKey):
            await provider.sign_up("MEMBER@ledger.org", PASSWORD)


class TestSessionLifecycle:

    async def test_sign_out_revokes_token(self, session):
        provider = LocalIdentityProvider(session)
        auth = (await provider.sign_up("member@ledger.org", PASSWORD, isolated=False)).session
        await provider.sign_out(auth.access_token)
        assert await provider.get_identity(auth.access_token) is None

    async def test_sign_out_ignores_garbage(self, session):
        await LocalIdentityProvider(session).sign_out("not-a-token")

    async def test_refresh_rotates_token(self, session):
        provider = LocalIdentityProvider(session)
        old = (await provider.sign_up("member@ledger.org", PASSWORD, isolated=False)).session
        new = await provider.refresh(old.access_token)
        assert new.access_token != old.access_token
        assert await provider.get_identity(old.access_token) is None
        assert (await provider.get_identity(new.access_token)).email == "member@ledger.org"


class TestPasswordReset:

    async def test_unknown_email_returns_none(self, session):
        assert await LocalIdentityProvider(session).request_password_reset("x@ledger.org") is None

    async def test_reset_changes_password(self, session):
        provider = LocalIdentityProvider(session)
        await provider.sign_up("member@ledger.org", PASSWORD)
        token = await provider.request_password_reset("member@ledger.org")

        await provider.reset_password(token, "N3w-Passphrase!")
        await provider.sign_in("member@ledger.org", "N3w-Passphrase!")
        with pytest.raises(InvalidCredentials):
            await provider.sign_in("member@ledger.org", PASSWORD)

    async def test_reset_token_is_not_a_session(self, session):
        provider = LocalIdentityProvider(session)
        await provider.sign_up("member@ledger.org", PASSWORD)
        token = await provider.request_password_reset("member@ledger.org")
        assert await provider.get_identity(token) is None

    async def test_weak_new_password_rejected(self, session):
        provider = LocalIdentityProvider(session)
        await provider.sign_up("member@ledger.org", PASSWORD)
        token = await provider.request_password_reset("member@ledger.org")
        with pytest.raises(ValidationError):
            await provider.reset_password(token, "short")

    async def test_session_token_cannot_reset(self, session):
        provider = LocalIdentityProvider(session)
        auth = (await provider.sign_up("member@ledger.org", PASSWORD, isolated=False)).session
        with pytest.raises(InvalidCredentials):
            await provider.reset_password(auth.access_token, "N3w-Passphrase!")
