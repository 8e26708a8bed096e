"""Unit tests for the bearer-token guard and role policy dependencies."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest
from fastapi.security import HTTPAuthorizationCredentials

from fraudbucket.core.auth import (
    INVALID_OR_EXPIRED_TOKEN_MSG,
    MISSING_TOKEN_MSG,
    AuthenticatedUser,
    authenticate_token,
    get_current_user,
    get_token_service,
    only_permit,
)
from fraudbucket.core.errors import ForbiddenError, UnauthorizedError
from fraudbucket.core.roles import Role
from fraudbucket.core.tokens import TokenService
from tests.conftest import ACCESS_SECRET, REFRESH_SECRET


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestAuthenticatedUser:
    """Test AuthenticatedUser model."""

    def test_is_admin(self):
        assert AuthenticatedUser(user_id="1", role=Role.ADMIN).is_admin is True
        assert AuthenticatedUser(user_id="1", role=Role.USER).is_admin is False

    def test_has_role(self):
        user = AuthenticatedUser(user_id="1", role=Role.USER)
        assert user.has_role(Role.USER) is True
        assert user.has_role(Role.ADMIN) is False


class TestAuthenticateToken:
    """Test access token verification."""

    def test_valid_token(self, token_service, admin_user):
        """Test the identity is built from the verified claims."""
        token = token_service.issue_access_token(admin_user)
        user = authenticate_token(token, token_service)

        assert user.user_id == admin_user["id"]
        assert user.role == Role.ADMIN
        assert user.email == admin_user["email"]
        assert user.firstname == "Ada"

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token(self, token_service, token):
        with pytest.raises(UnauthorizedError, match=MISSING_TOKEN_MSG):
            authenticate_token(token, token_service)

    def test_garbage_token(self, token_service):
        with pytest.raises(UnauthorizedError, match=INVALID_OR_EXPIRED_TOKEN_MSG):
            authenticate_token("garbage", token_service)

    def test_refresh_token_rejected(self, token_service, admin_user):
        """Test refresh tokens cannot authorize requests."""
        token = token_service.issue_refresh_token(admin_user)
        with pytest.raises(UnauthorizedError):
            authenticate_token(token, token_service)

    def test_expired_token(self, admin_user):
        past = TokenService(
            ACCESS_SECRET,
            REFRESH_SECRET,
            clock=lambda: datetime.now(UTC) - timedelta(hours=2),
        )
        token = past.issue_access_token(admin_user)
        with pytest.raises(UnauthorizedError):
            authenticate_token(token, TokenService(ACCESS_SECRET, REFRESH_SECRET))


class TestGetCurrentUser:
    """Test the get_current_user dependency."""

    @pytest.mark.asyncio
    async def test_attaches_identity_to_request(self, token_service, analyst_user):
        """Test the resolved user is stored on request.state."""
        request = MagicMock()
        token = token_service.issue_access_token(analyst_user)

        user = await get_current_user(request, bearer(token), token_service)

        assert user.user_id == analyst_user["id"]
        assert request.state.user is user

    @pytest.mark.asyncio
    async def test_no_credentials(self, token_service):
        with pytest.raises(UnauthorizedError):
            await get_current_user(MagicMock(), None, token_service)

    def test_token_service_from_app_state(self, token_service):
        request = MagicMock()
        request.app.state.token_service = token_service
        assert get_token_service(request) is token_service


class TestOnlyPermit:
    """Test the only_permit dependency factory."""

    def test_admin_permitted(self):
        checker = only_permit(Role.ADMIN)
        user = AuthenticatedUser(user_id="1", role=Role.ADMIN)
        assert checker(user) is user

    def test_user_forbidden(self):
        """Test an authenticated user without the role gets ForbiddenError."""
        checker = only_permit(Role.ADMIN)
        with pytest.raises(ForbiddenError) as exc_info:
            checker(AuthenticatedUser(user_id="1", role=Role.USER))
        assert exc_info.value.details == {"required_roles": ["ADMIN"]}

    def test_multiple_roles(self):
        checker = only_permit(Role.USER, Role.ADMIN)
        assert checker(AuthenticatedUser(user_id="1", role=Role.USER)).role == Role.USER
        assert checker(AuthenticatedUser(user_id="1", role=Role.ADMIN)).role == Role.ADMIN

    def test_empty_allow_list_denies_everyone(self):
        checker = only_permit()
        with pytest.raises(ForbiddenError):
            checker(AuthenticatedUser(user_id="1", role=Role.ADMIN))
