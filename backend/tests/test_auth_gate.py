"""
JunkHub Backend — Authorization Gate and Ownership Tests
==========================================================

What we test:
    ✅ Ownership predicate: missing → 404, wrong principal → 403
    ✅ Multi-owner records accept any listed owner
    ✅ Gate failure ladder over HTTP: no token, bad token, wrong role,
       deleted account, unapproved owner
    ✅ Cookie token wins over the Authorization header
"""

import uuid
from types import SimpleNamespace

import pytest

from app.auth.credentials import issue_token
from app.auth.ownership import authorize_owner, load_owned
from app.config import settings
from app.exceptions import ForbiddenError, NotFoundError
from app.models.enums import Role


class TestAuthorizeOwner:

    def test_missing_record_is_not_found(self):
        with pytest.raises(NotFoundError) as exc_info:
            authorize_owner(None, lambda r: r.owner_id, uuid.uuid4(), "Shop")
        assert exc_info.value.message == "Shop not found"

    def test_other_principal_is_forbidden(self):
        record = SimpleNamespace(owner_id=uuid.uuid4())
        with pytest.raises(ForbiddenError) as exc_info:
            authorize_owner(record, lambda r: r.owner_id, uuid.uuid4(), "Shop")
        assert exc_info.value.message == "Access denied"

    def test_owner_gets_record_back(self):
        owner_id = uuid.uuid4()
        record = SimpleNamespace(owner_id=owner_id)
        assert authorize_owner(record, lambda r: r.owner_id, owner_id, "Shop") is record

    def test_any_of_several_owners_is_accepted(self):
        first, second = uuid.uuid4(), uuid.uuid4()
        record = SimpleNamespace(owners={first, second})
        assert authorize_owner(record, lambda r: r.owners, second, "Order") is record

    def test_no_owner_at_all_is_forbidden(self):
        record = SimpleNamespace(owner_id=None)
        with pytest.raises(ForbiddenError):
            authorize_owner(record, lambda r: r.owner_id, uuid.uuid4(), "Product")

    @pytest.mark.asyncio
    async def test_load_owned_awaits_loader(self):
        owner_id = uuid.uuid4()
        record = SimpleNamespace(owner_id=owner_id)

        async def fetch():
            return record

        assert await load_owned(fetch(), lambda r: r.owner_id, owner_id, "Chat") is record


class TestGate:

    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, client):
        response = await client.get("/api/users/profile")
        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "Authentication required"
        assert body["code"] == "UNAUTHENTICATED"

    @pytest.mark.asyncio
    async def test_bad_token_is_401(self, client):
        response = await client.get("/api/users/profile", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid or expired token"

    @pytest.mark.asyncio
    async def test_wrong_role_is_403(self, client, make_user, auth_headers):
        user = await make_user()
        response = await client.get("/api/owner/stats", headers=auth_headers(user))
        assert response.status_code == 403
        assert response.json()["error"] == "Owner access required"

    @pytest.mark.asyncio
    async def test_user_token_cannot_reach_admin(self, client, make_owner, auth_headers):
        owner = await make_owner()
        response = await client.get("/api/admin/stats", headers=auth_headers(owner))
        assert response.status_code == 403
        assert response.json()["error"] == "Admin access required"

    @pytest.mark.asyncio
    async def test_deleted_account_is_401(self, client):
        token = issue_token(uuid.uuid4(), "ghost@example.com", Role.USER)
        response = await client.get("/api/users/profile", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["error"] == "User not found"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path",
        [
            "/api/owner/stats",
            "/api/owner/chats",
            "/api/owner/notifications",
            "/api/shops/owner/my-shops",
            "/api/offers/shop",
            "/api/owner/profile",
        ],
    )
    async def test_unapproved_owner_is_pending(self, client, make_owner, auth_headers, path):
        owner = await make_owner(approved=False)
        response = await client.get(path, headers=auth_headers(owner))
        assert response.status_code == 403
        body = response.json()
        assert body["code"] == "PENDING_APPROVAL"
        assert body["error"] == "Your account is pending approval."

    @pytest.mark.asyncio
    async def test_approved_owner_passes(self, client, make_owner, auth_headers):
        owner = await make_owner()
        response = await client.get("/api/owner/stats", headers=auth_headers(owner))
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_cookie_wins_over_bearer(self, client, make_user, make_owner, auth_headers):
        """A user cookie plus an owner bearer token resolves to the user."""
        user = await make_user()
        owner = await make_owner()
        headers = auth_headers(owner)
        headers["Cookie"] = f"{settings.auth_cookie_name}={issue_token(user.id, user.email, Role.USER)}"

        response = await client.get("/api/users/profile", headers=headers)

        assert response.status_code == 200
        assert response.json()["user"]["id"] == str(user.id)

    @pytest.mark.asyncio
    async def test_me_reports_role(self, client, make_admin, auth_headers):
        admin = await make_admin()
        response = await client.get("/api/auth/me", headers=auth_headers(admin))
        assert response.status_code == 200
        assert response.json()["user"]["role"] == "admin"
        assert response.json()["user"]["email"] == admin.email
