"""
Care Guide Notes API — HTTP Endpoint Tests
============================================

What:  End-to-end checks through the ASGI app: envelopes, status codes,
       authentication and role checks, list metadata.
"""

import uuid

import pytest

from careguide.models.user import IsActive, Role

API = "/api/v1"


class TestRootAndHealth:
    @pytest.mark.asyncio
    async def test_welcome(self, test_client):
        response = await test_client.get("/")
        assert response.status_code == 200
        assert response.json()["message"] == "Welcome to Care Guide Note App Server!"

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, test_client):
        response = await test_client.get("/", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"

    @pytest.mark.asyncio
    async def test_generated_request_id_matches_error_envelope(self, test_client):
        response = await test_client.get(f"{API}/notes")
        rid = response.headers["X-Request-ID"]
        assert len(rid) == 8
        assert response.json()["request_id"] == rid


class TestAuthFlow:
    @pytest.mark.asyncio
    async def test_register_login_me(self, test_client):
        register = await test_client.post(
            f"{API}/user/register",
            json={"name": "Jane Doe", "email": "jane@example.com", "password": "secret1"},
        )
        assert register.status_code == 201
        body = register.json()
        assert body["success"] is True
        assert body["statusCode"] == 201
        assert body["meta"] is None
        assert "password_hash" not in body["data"]

        login = await test_client.post(
            f"{API}/auth/login", json={"email": "jane@example.com", "password": "secret1"}
        )
        assert login.status_code == 200
        assert "accessToken=" in login.headers["set-cookie"]
        assert "httponly" in login.headers["set-cookie"].lower()
        token = login.json()["data"]["access_token"]

        me = await test_client.get(f"{API}/user/me", headers={"Authorization": token})
        assert me.status_code == 200
        assert me.json()["data"]["email"] == "jane@example.com"

    @pytest.mark.asyncio
    async def test_cookie_authenticates(self, test_client, make_user):
        await make_user(email="cookie@example.com")
        login = await test_client.post(
            f"{API}/auth/login", json={"email": "cookie@example.com", "password": "123456"}
        )
        token = login.json()["data"]["access_token"]

        me = await test_client.get(f"{API}/user/me", headers={"Cookie": f"accessToken={token}"})
        assert me.status_code == 200

    @pytest.mark.asyncio
    async def test_duplicate_registration(self, test_client, make_user):
        await make_user(email="taken@example.com")
        response = await test_client.post(
            f"{API}/user/register",
            json={"name": "Again", "email": "taken@example.com", "password": "secret1"},
        )
        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["statusCode"] == 409
        assert body["error"] == "conflict"
        assert body["message"] == "User already exists"
        assert "request_id" in body

    @pytest.mark.asyncio
    async def test_bad_credentials(self, test_client, make_user):
        await make_user(email="me@example.com")
        response = await test_client.post(
            f"{API}/auth/login", json={"email": "me@example.com", "password": "wrong"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_invalid_body_is_400(self, test_client):
        response = await test_client.post(
            f"{API}/user/register", json={"name": "X", "email": "not-an-email", "password": "1"}
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["details"]["errors"]

    @pytest.mark.asyncio
    async def test_logout_clears_cookie(self, test_client):
        response = await test_client.post(f"{API}/auth/logout")
        assert response.status_code == 200
        assert "accessToken=" in response.headers["set-cookie"]

    @pytest.mark.asyncio
    async def test_change_password(self, test_client, make_user, auth_headers):
        user = await make_user(email="pw@example.com")
        response = await test_client.post(
            f"{API}/auth/change-password",
            json={"old_password": "123456", "new_password": "654321"},
            headers=auth_headers(user),
        )
        assert response.status_code == 200

        login = await test_client.post(
            f"{API}/auth/login", json={"email": "pw@example.com", "password": "654321"}
        )
        assert login.status_code == 200


class TestAccessControl:
    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, test_client):
        response = await test_client.get(f"{API}/notes")
        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "unauthorized"
        assert body["statusCode"] == 401

    @pytest.mark.asyncio
    async def test_garbage_token_is_401(self, test_client):
        response = await test_client.get(f"{API}/notes", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_blocked_user_is_403(self, test_client, make_user, auth_headers):
        user = await make_user(is_active=IsActive.BLOCKED.value)
        response = await test_client.get(f"{API}/notes", headers=auth_headers(user))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_deleted_user_is_403(self, test_client, make_user, auth_headers):
        user = await make_user(is_deleted=True)
        response = await test_client.get(f"{API}/user/me", headers=auth_headers(user))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_user_cannot_list_all_notes(self, test_client, make_user, auth_headers):
        user = await make_user()
        response = await test_client.get(f"{API}/notes/all-notes", headers=auth_headers(user))
        assert response.status_code == 403
        assert response.json()["message"] == "You are not permitted to view this route"

    @pytest.mark.asyncio
    async def test_user_cannot_list_users(self, test_client, make_user, auth_headers):
        user = await make_user()
        response = await test_client.get(f"{API}/user/all-users", headers=auth_headers(user))
        assert response.status_code == 403


class TestNotesEndpoints:
    @pytest.mark.asyncio
    async def test_create_then_list_with_meta(self, test_client, make_user, auth_headers):
        user = await make_user()
        headers = auth_headers(user)
        for i in range(3):
            created = await test_client.post(
                f"{API}/notes",
                json={"title": f"Note {i}", "content": "body", "priority": "MEDIUM"},
                headers=headers,
            )
            assert created.status_code == 201

        response = await test_client.get(f"{API}/notes?limit=2", headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["statusCode"] == 200
        assert len(body["data"]) == 2
        assert body["meta"] == {"total": 3, "page": 1, "limit": 2, "totalPage": 2}

    @pytest.mark.asyncio
    async def test_list_accepts_filters_search_and_fields(
        self, test_client, make_user, make_notes, auth_headers
    ):
        user = await make_user()
        await make_notes(user, ["Blood pressure", "Groceries", "Pressure cooker"])

        response = await test_client.get(
            f"{API}/notes",
            params={"searchTerm": "pressure", "fields": "title", "sort": "title", "sortField": "x"},
            headers=auth_headers(user),
        )

        body = response.json()
        assert [row["title"] for row in body["data"]] == ["Blood pressure", "Pressure cooker"]
        assert set(body["data"][0]) == {"id", "title"}
        assert body["meta"]["total"] == 2

    @pytest.mark.asyncio
    async def test_absurd_page_number_is_tolerated(
        self, test_client, make_user, make_notes, auth_headers
    ):
        user = await make_user()
        await make_notes(user, ["Only note"])

        response = await test_client.get(
            f"{API}/notes", params={"page": "9" * 30, "sort": "bogus"}, headers=auth_headers(user)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["meta"]["page"] == 1
        assert [row["title"] for row in body["data"]] == ["Only note"]

    @pytest.mark.asyncio
    async def test_bad_filter_operator_is_400(self, test_client, make_user, auth_headers):
        user = await make_user()
        response = await test_client.get(
            f"{API}/notes", params={"title[like]": "x"}, headers=auth_headers(user)
        )
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_query"

    @pytest.mark.asyncio
    async def test_admin_lists_all_notes_with_authors(
        self, test_client, make_user, make_notes, auth_headers
    ):
        alice = await make_user(name="Alice")
        admin = await make_user(name="Admin", role=Role.ADMIN)
        await make_notes(alice, ["Alice's note"])

        response = await test_client.get(f"{API}/notes/all-notes", headers=auth_headers(admin))

        assert response.status_code == 200
        [row] = response.json()["data"]
        assert row["author"]["name"] == "Alice"
        assert "password_hash" not in row["author"]

    @pytest.mark.asyncio
    async def test_single_note_lifecycle(self, test_client, make_user, make_notes, auth_headers):
        owner = await make_user()
        stranger = await make_user()
        [note] = await make_notes(owner, ["Original"])
        url = f"{API}/notes/{note.id}"

        assert (await test_client.get(url, headers=auth_headers(stranger))).status_code == 403

        patched = await test_client.patch(url, json={"title": "Edited"}, headers=auth_headers(owner))
        assert patched.status_code == 200
        assert patched.json()["data"]["title"] == "Edited"

        deleted = await test_client.delete(url, headers=auth_headers(owner))
        assert deleted.status_code == 200

        missing = await test_client.get(url, headers=auth_headers(owner))
        assert missing.status_code == 404
        assert missing.json()["message"] == "Note not found"

    @pytest.mark.asyncio
    async def test_malformed_id_is_400(self, test_client, make_user, auth_headers):
        user = await make_user()
        response = await test_client.get(f"{API}/notes/not-a-uuid", headers=auth_headers(user))
        assert response.status_code == 400


class TestPostsAndUsersEndpoints:
    @pytest.mark.asyncio
    async def test_post_feed(self, test_client, make_user, auth_headers):
        user = await make_user(name="Poster")
        headers = auth_headers(user)
        created = await test_client.post(f"{API}/posts", json={"content": "Hi all"}, headers=headers)
        assert created.status_code == 201
        post_id = created.json()["data"]["id"]

        feed = await test_client.get(f"{API}/posts", headers=headers)
        assert feed.json()["meta"]["total"] == 1
        assert feed.json()["data"][0]["author"]["name"] == "Poster"

        edited = await test_client.patch(
            f"{API}/posts/{post_id}", json={"content": "Hello all"}, headers=headers
        )
        assert edited.json()["data"]["content"] == "Hello all"

        deleted = await test_client.delete(f"{API}/posts/{post_id}", headers=headers)
        assert deleted.status_code == 200

    @pytest.mark.asyncio
    async def test_admin_user_endpoints(self, test_client, make_user, auth_headers):
        admin = await make_user(name="Admin", role=Role.SUPER_ADMIN)
        user = await make_user(name="Gardener", interests=["gardening"])
        headers = auth_headers(admin)

        listing = await test_client.get(f"{API}/user/all-users?sort=name", headers=headers)
        assert listing.status_code == 200
        assert [row["name"] for row in listing.json()["data"]] == ["Admin", "Gardener"]
        assert all("password_hash" not in row for row in listing.json()["data"])

        single = await test_client.get(f"{API}/user/{user.id}", headers=headers)
        assert single.json()["data"]["name"] == "Gardener"

        groups = await test_client.get(f"{API}/user/get-grouped-users-by-interests", headers=headers)
        assert groups.json()["data"] == [
            {
                "interest": "gardening",
                "users": [{"id": str(user.id), "name": "Gardener", "email": user.email}],
                "count": 1,
            }
        ]

        blocked = await test_client.patch(
            f"{API}/user/{user.id}", json={"is_active": "BLOCKED"}, headers=headers
        )
        assert blocked.json()["data"]["is_active"] == "BLOCKED"

        shut_out = await test_client.get(f"{API}/user/me", headers=auth_headers(user))
        assert shut_out.status_code == 403

    @pytest.mark.asyncio
    async def test_user_posts_endpoint(self, test_client, make_user, auth_headers):
        user = await make_user()
        missing = await test_client.get(
            f"{API}/user/get-user-posts/{uuid.uuid4()}", headers=auth_headers(user)
        )
        assert missing.status_code == 404

        found = await test_client.get(
            f"{API}/user/get-user-posts/{user.id}", headers=auth_headers(user)
        )
        assert found.status_code == 200
        assert found.json()["data"]["posts"] == []
