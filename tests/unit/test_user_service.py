"""Unit tests for UserService."""

from uuid import UUID, uuid4

import pytest

from fraudbucket.core.errors import ConflictError, NotFoundError, ValidationError
from fraudbucket.core.roles import Role
from fraudbucket.services.user_service import UserService
from tests.conftest import ADMIN_EMAIL, ANALYST_EMAIL, ANALYST_PASSWORD


@pytest.fixture
def user_service(user_repo) -> UserService:
    return UserService(user_repo)


class TestListUsers:
    """Test paginated listing."""

    @pytest.mark.asyncio
    async def test_list_all(self, user_service):
        result = await user_service.list_users(page=1, page_size=5)

        assert result["message"] == "All users"
        assert result["totalRecords"] == 2
        assert result["pageCount"] == 1
        assert {u["email"] for u in result["data"]} == {ADMIN_EMAIL, ANALYST_EMAIL}
        assert all("password_hash" not in u for u in result["data"])

    @pytest.mark.asyncio
    async def test_page_count_rounds_up(self, user_service, user_repo):
        for i in range(3):
            user_repo.add_user(email=f"extra{i}@fraudbucket.test", password="extra-pass-1")
        result = await user_service.list_users(page=2, page_size=2)
        assert result["totalRecords"] == 5
        assert result["pageCount"] == 3
        assert len(result["data"]) == 2

    @pytest.mark.asyncio
    async def test_search(self, user_service):
        result = await user_service.list_users(search_text="  analyst ")
        assert [u["email"] for u in result["data"]] == [ANALYST_EMAIL]

    @pytest.mark.asyncio
    async def test_invalid_page(self, user_service):
        with pytest.raises(ValidationError):
            await user_service.list_users(page=0)


class TestGetUser:
    @pytest.mark.asyncio
    async def test_found(self, user_service, admin_user):
        user = await user_service.get_user(UUID(admin_user["id"]))
        assert user["email"] == ADMIN_EMAIL

    @pytest.mark.asyncio
    async def test_not_found(self, user_service):
        with pytest.raises(NotFoundError, match="User not found"):
            await user_service.get_user(uuid4())


class TestCreateUser:
    """Test user creation."""

    @pytest.mark.asyncio
    async def test_create(self, user_service, user_repo):
        """Test the password is stored hashed and the response is sanitized."""
        user = await user_service.create_user(
            firstname="New",
            lastname="Person",
            email="new@fraudbucket.test",
            phone="555-0199",
            role=Role.USER,
            password="new-person-pass",
        )

        assert user["role"] == "USER"
        assert "password_hash" not in user
        stored = user_repo.stored(user["id"])
        assert stored["password_hash"] != "new-person-pass"
        assert await user_repo.verify_password(stored, "new-person-pass") is True

    @pytest.mark.asyncio
    async def test_duplicate_email(self, user_service):
        with pytest.raises(ConflictError, match="Email already exists"):
            await user_service.create_user(
                firstname="Dup",
                lastname="Licate",
                email=ADMIN_EMAIL,
                phone="555",
                role=Role.USER,
                password="duplicate-pass",
            )


class TestUpdateUser:
    """Test partial updates."""

    @pytest.mark.asyncio
    async def test_update_profile(self, user_service, analyst_user):
        user = await user_service.update_user(
            UUID(analyst_user["id"]), {"firstname": "Anna", "role": Role.ADMIN}
        )
        assert user["firstname"] == "Anna"
        assert user["role"] == "ADMIN"

    @pytest.mark.asyncio
    async def test_no_fields(self, user_service, analyst_user):
        with pytest.raises(ValidationError, match="No fields provided"):
            await user_service.update_user(UUID(analyst_user["id"]), {"phone": None})

    @pytest.mark.asyncio
    async def test_missing_user(self, user_service):
        with pytest.raises(NotFoundError):
            await user_service.update_user(uuid4(), {"firstname": "X"})

    @pytest.mark.asyncio
    async def test_email_taken_by_other_user(self, user_service, analyst_user):
        with pytest.raises(ConflictError):
            await user_service.update_user(UUID(analyst_user["id"]), {"email": ADMIN_EMAIL})

    @pytest.mark.asyncio
    async def test_keeping_own_email(self, user_service, analyst_user):
        user = await user_service.update_user(UUID(analyst_user["id"]), {"email": ANALYST_EMAIL})
        assert user["email"] == ANALYST_EMAIL

    @pytest.mark.asyncio
    async def test_password_change_revokes_refresh_token(
        self, user_service, user_repo, analyst_user
    ):
        """Test changing the password signs the user out."""
        await user_repo.set_refresh_token(analyst_user["id"], "live-refresh-token")

        await user_service.update_user(UUID(analyst_user["id"]), {"password": "changed-pass-1"})

        stored = user_repo.stored(analyst_user["id"])
        assert stored["refresh_token"] is None
        assert await user_repo.verify_password(stored, "changed-pass-1") is True
        assert await user_repo.verify_password(stored, ANALYST_PASSWORD) is False


class TestDeleteUser:
    @pytest.mark.asyncio
    async def test_delete(self, user_service, user_repo, analyst_user):
        await user_service.delete_user(UUID(analyst_user["id"]))
        assert analyst_user["id"] not in user_repo.users

    @pytest.mark.asyncio
    async def test_delete_missing(self, user_service):
        with pytest.raises(NotFoundError):
            await user_service.delete_user(uuid4())
