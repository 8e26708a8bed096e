"""
FastAPI dependency injection utilities.

Long-lived collaborators (token service, Redis-backed passcode store,
mailer) are built once in the application lifespan and stored on
``app.state``. Repositories and services are built per request around
the request's database session.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fraudbucket.core.auth import (
    AuthenticatedUser,
    get_current_user,
    get_token_service,
    only_permit,
)
from fraudbucket.core.config import Settings
from fraudbucket.core.database import get_session
from fraudbucket.core.roles import Role
from fraudbucket.core.tokens import TokenService
from fraudbucket.persistence.passcode_store import PasscodeStore
from fraudbucket.persistence.user_repository import UserRepository
from fraudbucket.services.auth_service import AuthService
from fraudbucket.services.mailer import Mailer
from fraudbucket.services.user_service import UserService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_passcode_store(request: Request) -> PasscodeStore:
    return request.app.state.passcode_store


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_user_repository(session: AsyncSession = Depends(get_session)) -> UserRepository:
    return UserRepository(session)


def get_auth_service(
    users: UserRepository = Depends(get_user_repository),
    tokens: TokenService = Depends(get_token_service),
    passcodes: PasscodeStore = Depends(get_passcode_store),
    mailer: Mailer = Depends(get_mailer),
    settings: Settings = Depends(get_app_settings),
) -> AuthService:
    return AuthService(
        users,
        tokens,
        passcodes,
        mailer,
        reset_url=settings.password_reset.url,
        passcode_ttl_seconds=settings.password_reset.passcode_ttl_seconds,
    )


def get_user_service(users: UserRepository = Depends(get_user_repository)) -> UserService:
    return UserService(users)


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
RequireAdmin = Annotated[AuthenticatedUser, Depends(only_permit(Role.ADMIN))]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
