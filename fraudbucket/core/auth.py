"""
Bearer-token authentication and role policy.

This module verifies access tokens issued by ``TokenService``, resolves
the caller's identity and exposes FastAPI dependencies for
authentication and role-based authorization.
"""

import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from fraudbucket.core.errors import ForbiddenError, UnauthorizedError
from fraudbucket.core.roles import Role, is_permitted
from fraudbucket.core.tokens import InvalidTokenError, TokenKind, TokenService

logger = logging.getLogger(__name__)

INVALID_OR_EXPIRED_TOKEN_MSG = "Invalid or expired token"
MISSING_TOKEN_MSG = "Missing authorization header"

# Authorization header is optional at the scheme level; absence is reported by us
_optional_security = HTTPBearer(auto_error=False)


class AuthenticatedUser(BaseModel):
    """Identity resolved from a verified access token."""

    user_id: str
    role: Role
    email: str | None = None
    firstname: str | None = None
    lastname: str | None = None
    phone: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def has_role(self, role: Role) -> bool:
        return self.role == role


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def authenticate_token(token: str | None, tokens: TokenService) -> AuthenticatedUser:
    """Verify an access token and build the caller identity."""
    if not token:
        logger.warning("Missing access token")
        raise UnauthorizedError(MISSING_TOKEN_MSG)

    try:
        claims = tokens.verify(token, TokenKind.ACCESS)
    except InvalidTokenError:
        raise UnauthorizedError(INVALID_OR_EXPIRED_TOKEN_MSG) from None

    return AuthenticatedUser(
        user_id=claims.id,
        role=claims.role,
        email=claims.email,
        firstname=claims.firstname,
        lastname=claims.lastname,
        phone=claims.phone,
    )


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_optional_security),
    tokens: TokenService = Depends(get_token_service),
) -> AuthenticatedUser:
    """Extract and verify the bearer access token.

    The resolved identity is also attached to ``request.state.user`` for
    handlers and middleware further down the chain.
    """
    token = credentials.credentials if credentials else None
    user = authenticate_token(token, tokens)
    request.state.user = user
    return user


def only_permit(*allowed_roles: Role):
    """Dependency factory that admits only the listed roles.

    Usage:
        @router.delete("/user/{id}")
        async def delete_user(
            id: UUID,
            user: AuthenticatedUser = Depends(only_permit(Role.ADMIN)),
        ):
            ...
    """
    allowed = frozenset(allowed_roles)

    def role_checker(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if not is_permitted(user.role, allowed):
            logger.warning(
                "Access denied - user %s has role %s, allowed: %s",
                user.user_id,
                user.role.value,
                sorted(r.value for r in allowed),
            )
            raise ForbiddenError(
                "Insufficient permissions",
                details={"required_roles": sorted(r.value for r in allowed)},
            )
        return user

    return role_checker
