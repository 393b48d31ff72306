"""
Care Guide Notes API — User & Auth Service Tests
==================================================

What we test:
    ✅ Registration: duplicate emails, lowercasing, hashed password never returned
    ✅ Role and status update rules for USER / ADMIN / SUPER_ADMIN actors
    ✅ Users grouped by interest; a user's posts
    ✅ Login and password change outcomes
"""

import uuid

import pytest

from careguide.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from careguide.models.user import IsActive, Role
from careguide.schemas.note import PostCreate
from careguide.schemas.user import UserCreate, UserUpdate
from careguide.security import verify_password
from careguide.seed import seed_demo_users
from careguide.services.auth_service import AuthService
from careguide.services.post_service import post_service
from careguide.services.user_service import UserService

DEFAULT_PASSWORD = "123456"


class TestRegistration:
    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_create_user(self, db_session):
        user = await self.service.create_user(
            db_session,
            UserCreate(name="Jane Doe", email="Jane@Example.com", password="secret1", interests=["yoga"]),
        )

        assert user["email"] == "jane@example.com"
        assert user["role"] == "USER"
        assert user["is_active"] == "ACTIVE"
        assert user["is_verified"] is True
        assert user["auths"] == [{"provider": "credentials", "provider_id": "jane@example.com"}]
        assert "password_hash" not in user

        stored = await self.service.find_by_email(db_session, "jane@example.com")
        assert stored.password_hash != "secret1"
        assert verify_password("secret1", stored.password_hash)

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, db_session, make_user):
        await make_user(email="taken@example.com")

        with pytest.raises(ConflictError) as exc_info:
            await self.service.create_user(
                db_session,
                UserCreate(name="Someone", email="TAKEN@example.com", password="secret1"),
            )
        assert exc_info.value.message == "User already exists"


class TestUpdateRules:
    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_user_updates_own_profile(self, db_session, make_user):
        user = await make_user(name="Old Name")

        result = await self.service.update_user(
            db_session, user.id, UserUpdate(name="New Name", interests=["chess"]), user
        )

        assert result["name"] == "New Name"
        assert result["interests"] == ["chess"]

    @pytest.mark.asyncio
    async def test_user_cannot_update_someone_else(self, db_session, make_user):
        user = await make_user()
        other = await make_user()

        with pytest.raises(PermissionDeniedError):
            await self.service.update_user(db_session, other.id, UserUpdate(name="Nope"), user)

    @pytest.mark.asyncio
    async def test_user_cannot_change_own_role(self, db_session, make_user):
        user = await make_user()

        with pytest.raises(PermissionDeniedError):
            await self.service.update_user(db_session, user.id, UserUpdate(role=Role.ADMIN), user)

    @pytest.mark.asyncio
    async def test_user_cannot_change_own_status(self, db_session, make_user):
        user = await make_user()

        with pytest.raises(PermissionDeniedError):
            await self.service.update_user(db_session, user.id, UserUpdate(is_verified=False), user)

    @pytest.mark.asyncio
    async def test_admin_blocks_user(self, db_session, make_user):
        admin = await make_user(role=Role.ADMIN)
        user = await make_user()

        result = await self.service.update_user(
            db_session, user.id, UserUpdate(is_active=IsActive.BLOCKED), admin
        )
        assert result["is_active"] == "BLOCKED"

    @pytest.mark.asyncio
    async def test_admin_cannot_grant_super_admin(self, db_session, make_user):
        admin = await make_user(role=Role.ADMIN)
        user = await make_user()

        with pytest.raises(PermissionDeniedError):
            await self.service.update_user(
                db_session, user.id, UserUpdate(role=Role.SUPER_ADMIN), admin
            )

    @pytest.mark.asyncio
    async def test_admin_cannot_change_another_admins_role(self, db_session, make_user):
        admin = await make_user(role=Role.ADMIN)
        other_admin = await make_user(role=Role.ADMIN)

        with pytest.raises(PermissionDeniedError) as exc_info:
            await self.service.update_user(
                db_session, other_admin.id, UserUpdate(role=Role.USER), admin
            )
        assert "Admins cannot modify" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_admin_cannot_touch_super_admin(self, db_session, make_user):
        admin = await make_user(role=Role.ADMIN)
        boss = await make_user(role=Role.SUPER_ADMIN)

        with pytest.raises(PermissionDeniedError):
            await self.service.update_user(db_session, boss.id, UserUpdate(name="Renamed"), admin)

    @pytest.mark.asyncio
    async def test_super_admin_promotes_user(self, db_session, make_user):
        boss = await make_user(role=Role.SUPER_ADMIN)
        user = await make_user()

        result = await self.service.update_user(
            db_session, user.id, UserUpdate(role=Role.ADMIN), boss
        )
        assert result["role"] == "ADMIN"

    @pytest.mark.asyncio
    async def test_update_missing_user(self, db_session, make_user):
        admin = await make_user(role=Role.ADMIN)

        with pytest.raises(NotFoundError):
            await self.service.update_user(db_session, uuid.uuid4(), UserUpdate(name="Ghost"), admin)


class TestReports:
    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_group_users_by_interest(self, db_session, make_user):
        ann = await make_user(name="Ann", interests=["gardening", "cooking"])
        ben = await make_user(name="Ben", interests=["cooking"])
        await make_user(name="Cat", interests=[])

        groups = await self.service.get_users_by_interests(db_session)

        assert [g["interest"] for g in groups] == ["cooking", "gardening"]
        cooking = groups[0]
        assert cooking["count"] == 2
        assert cooking["users"] == [
            {"id": ann.id, "name": "Ann", "email": ann.email},
            {"id": ben.id, "name": "Ben", "email": ben.email},
        ]
        assert groups[1]["count"] == 1

    @pytest.mark.asyncio
    async def test_user_posts(self, db_session, make_user):
        user = await make_user(name="Writer")
        await post_service.create_post(db_session, PostCreate(content="One"), user)
        await post_service.create_post(db_session, PostCreate(content="Two"), user)
        await db_session.commit()

        result = await self.service.get_user_posts(db_session, user.id)

        assert result["name"] == "Writer"
        assert sorted(p["content"] for p in result["posts"]) == ["One", "Two"]

    @pytest.mark.asyncio
    async def test_user_posts_for_missing_user(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_user_posts(db_session, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_list_users_search_and_projection(self, session_factory, make_user):
        await make_user(name="Maria Lopez", address="12 Oak Street")
        await make_user(name="John Smith", address="4 Pine Road")

        data, meta = await self.service.get_all_users(
            session_factory, {"searchTerm": "oak", "fields": "name,password_hash"}
        )

        assert meta.total == 1
        assert data[0]["name"] == "Maria Lopez"
        assert set(data[0]) == {"id", "name"}


class TestAuthService:
    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_login_returns_token_and_user(self, db_session, make_user):
        await make_user(email="login@example.com")

        result = await self.service.login(db_session, "LOGIN@example.com", DEFAULT_PASSWORD)

        assert result["access_token"]
        assert result["user"]["email"] == "login@example.com"
        assert "password_hash" not in result["user"]

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_the_same(self, db_session, make_user):
        await make_user(email="login@example.com")

        with pytest.raises(AuthenticationError) as wrong_password:
            await self.service.login(db_session, "login@example.com", "not-it")
        with pytest.raises(AuthenticationError) as unknown_email:
            await self.service.login(db_session, "nobody@example.com", DEFAULT_PASSWORD)

        assert wrong_password.value.message == unknown_email.value.message

    @pytest.mark.asyncio
    async def test_blocked_user_cannot_log_in(self, db_session, make_user):
        await make_user(email="blocked@example.com", is_active=IsActive.BLOCKED.value)

        with pytest.raises(PermissionDeniedError) as exc_info:
            await self.service.login(db_session, "blocked@example.com", DEFAULT_PASSWORD)
        assert exc_info.value.message == "User is BLOCKED"

    @pytest.mark.asyncio
    async def test_change_password(self, db_session, make_user):
        user = await make_user(email="pw@example.com")
        actor = await UserService().find_by_email(db_session, "pw@example.com")

        await self.service.change_password(db_session, actor, DEFAULT_PASSWORD, "brand-new")
        await db_session.commit()

        result = await self.service.login(db_session, "pw@example.com", "brand-new")
        assert result["user"]["id"] == user.id

    @pytest.mark.asyncio
    async def test_change_password_requires_old_password(self, db_session, make_user):
        await make_user(email="pw@example.com")
        actor = await UserService().find_by_email(db_session, "pw@example.com")

        with pytest.raises(AuthenticationError):
            await self.service.change_password(db_session, actor, "wrong", "brand-new")


class TestSeed:
    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, session_factory, db_session):
        assert await seed_demo_users(session_factory) == 2
        assert await seed_demo_users(session_factory) == 0

        admin = await UserService().find_by_email(db_session, "admin@example.com")
        assert admin.role == "SUPER_ADMIN"
        assert verify_password("123456", admin.password_hash)
