"""
HTTP surface tests: authentication, role gating and the error envelope.
"""

import pytest
from httpx import AsyncClient

from app.services.bulk_import import TEMPLATE_ROWS
from points_ledger_shared.schemas.common import Role

from conftest import add_member, add_profile, bearer

MEMBER = {
    "reg_no": "S/2021/001",
    "full_name": "Saman Kumara Perera",
    "name_with_initials": "S.K. Perera",
    "batch": "2021",
    "faculty": "Science",
    "whatsapp": "0771234567",
}


@pytest.fixture
async def tokens(session):
    """Bearer tokens for one profile per role."""
    _, admin = await add_profile(session, "admin@ledger.org", Role.SUPER_ADMIN)
    _, editor = await add_profile(session, "editor@ledger.org", Role.EDITOR)
    _, viewer = await add_profile(session, "viewer@ledger.org", Role.VIEWER)
    return {"admin": admin, "editor": editor, "viewer": viewer}


class TestAuthentication:

    async def test_requires_session(self, client: AsyncClient):
        response = await client.get("/api/v1/members")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHENTICATED"

    async def test_login_and_me(self, client: AsyncClient, session, tokens):
        response = await client.post(
            "/auth/login", json={"email": "editor@ledger.org", "password": "Sup3r-Secret!"}
        )
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = await client.get("/auth/me", headers=bearer(token))
        assert me.status_code == 200
        body = me.json()
        assert body["capabilities"]["can_edit"] is True
        assert body["capabilities"]["can_manage_users"] is False
        assert body["profile"]["role"] == "editor"

    async def test_bad_login_message(self, client: AsyncClient, tokens):
        response = await client.post(
            "/auth/login", json={"email": "editor@ledger.org", "password": "nope"}
        )
        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid email or password"

    async def test_logout_revokes_bearer(self, client: AsyncClient, tokens):
        headers = bearer(tokens["viewer"])
        assert (await client.post("/auth/logout", headers=headers)).status_code == 200
        assert (await client.get("/api/v1/members", headers=headers)).status_code == 401

    async def test_password_strength(self, client: AsyncClient):
        response = await client.post("/auth/password-strength", json={"password": "Abcdef1!"})
        assert response.json() == {"is_valid": True, "errors": [], "strength": "fair"}


class TestMembersApi:

    async def test_editor_creates_and_fetches_by_reg_no(self, client: AsyncClient, tokens):
        created = await client.post("/api/v1/members", json=MEMBER, headers=bearer(tokens["editor"]))
        assert created.status_code == 201
        assert created.json()["total_points"] == 0

        fetched = await client.get("/api/v1/members/S/2021/001", headers=bearer(tokens["viewer"]))
        assert fetched.status_code == 200
        assert fetched.json()["full_name"] == "Saman Kumara Perera"

    async def test_viewer_gets_specific_denial(self, client: AsyncClient, tokens):
        response = await client.post("/api/v1/members", json=MEMBER, headers=bearer(tokens["viewer"]))
        assert response.status_code == 403
        assert response.json()["error"] == {
            "code": "UNAUTHORIZED",
            "message": "Editor access required",
            "status": 403,
        }

    async def test_duplicate_is_conflict(self, client: AsyncClient, session, tokens):
        await add_member(session, "S/2021/001")
        response = await client.post("/api/v1/members", json=MEMBER, headers=bearer(tokens["editor"]))
        assert response.status_code == 409
        assert "already exists" in response.json()["error"]["message"]

    async def test_patch_rejects_reg_no(self, client: AsyncClient, session, tokens):
        await add_member(session, "S/2021/001")
        response = await client.patch(
            "/api/v1/members/S/2021/001", json={"reg_no": "S/2021/999"}, headers=bearer(tokens["editor"])
        )
        assert response.status_code == 422

    async def test_patch_null_name_is_validation_error(self, client: AsyncClient, session, tokens):
        await add_member(session, "S/2021/001")
        response = await client.patch(
            "/api/v1/members/S/2021/001", json={"full_name": None}, headers=bearer(tokens["editor"])
        )
        assert response.status_code == 422
        fetched = await client.get("/api/v1/members/S/2021/001", headers=bearer(tokens["viewer"]))
        assert fetched.json()["full_name"] == "Member S/2021/001"

    async def test_missing_member_is_404(self, client: AsyncClient, tokens):
        response = await client.get("/api/v1/members/S/1999/999", headers=bearer(tokens["viewer"]))
        assert response.status_code == 404

    async def test_search(self, client: AsyncClient, session, tokens):
        await add_member(session, "S/2021/001", full_name="Saman Perera")
        await add_member(session, "S/2021/002", full_name="Nimal Silva")
        response = await client.get("/api/v1/members", params={"q": "silva"}, headers=bearer(tokens["viewer"]))
        assert [m["reg_no"] for m in response.json()["data"]] == ["S/2021/002"]


class TestLedgerApi:

    async def test_contribution_updates_leaderboard(self, client: AsyncClient, session, tokens):
        await add_member(session, "S/2021/001")
        await add_member(session, "S/2021/002")
        response = await client.post(
            "/api/v1/contributions",
            json={
                "member_reg_no": "S/2021/002",
                "project_name": "Career Fair",
                "time_period": "2024-03",
                "position": "Treasurer",
                "points": 25,
            },
            headers=bearer(tokens["editor"]),
        )
        assert response.status_code == 201

        board = await client.get("/api/v1/leaderboard", headers=bearer(tokens["viewer"]))
        assert [(e["reg_no"], e["points"]) for e in board.json()["data"]] == [
            ("S/2021/002", 25),
            ("S/2021/001", 0),
        ]

        monthly = await client.get("/api/v1/leaderboard/monthly/2024/3", headers=bearer(tokens["viewer"]))
        assert monthly.json()["period"] == "2024-03"
        assert monthly.json()["data"][0]["points"] == 25

    async def test_invalid_month_is_validation_error(self, client: AsyncClient, tokens):
        response = await client.get("/api/v1/leaderboard/monthly/2024/13", headers=bearer(tokens["viewer"]))
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestAdministrationApi:

    async def test_template_download(self, client: AsyncClient, tokens):
        response = await client.get("/api/v1/imports/members/template", headers=bearer(tokens["viewer"]))
        assert response.status_code == 200
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert len(TEMPLATE_ROWS) == 2

    async def test_users_list_is_admin_only(self, client: AsyncClient, tokens):
        assert (await client.get("/api/v1/users", headers=bearer(tokens["editor"]))).status_code == 403
        response = await client.get("/api/v1/users", headers=bearer(tokens["admin"]))
        assert response.status_code == 200
        assert len(response.json()["data"]) == 3

    async def test_admin_creates_user(self, client: AsyncClient, tokens):
        response = await client.post(
            "/api/v1/users",
            json={
                "email": "new.viewer@ledger.org",
                "password": "Str0ng-Passw0rd!",
                "username": "New Viewer",
                "designation": "Member",
            },
            headers=bearer(tokens["admin"]),
        )
        assert response.status_code == 201
        assert response.json()["role"] == "viewer"

        # The administrator's own session is unaffected
        me = await client.get("/auth/me", headers=bearer(tokens["admin"]))
        assert me.json()["email"] == "admin@ledger.org"
