"""API routes for sign-in and refresh-token exchange."""

from fastapi import APIRouter, Depends, Request, Response

from fraudbucket.core.config import Settings
from fraudbucket.core.dependencies import AppSettings, get_auth_service
from fraudbucket.schemas.auth import (
    NewTokenRequest,
    NewTokenResponse,
    SignInRequest,
    SignInResponse,
)
from fraudbucket.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def set_refresh_cookie(response: Response, token: str, settings: Settings) -> None:
    """Write the refresh token to an HTTP-only, strict same-site cookie."""
    response.set_cookie(
        key=settings.security.refresh_cookie_name,
        value=token,
        max_age=settings.tokens.refresh_ttl_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


@router.post("/signin", response_model=SignInResponse)
async def sign_in(
    request: SignInRequest,
    response: Response,
    settings: AppSettings,
    auth_service: AuthService = Depends(get_auth_service),
) -> dict:
    """Sign in with email and password.

    Returns an access token, a refresh token and the user profile; the
    refresh token is also set as an HTTP-only cookie.
    """
    result = await auth_service.sign_in(request.email, request.password)
    set_refresh_cookie(response, result.refresh_token, settings)
    return {
        "access_token": result.access_token,
        "refresh_token": result.refresh_token,
        "user": result.user,
    }


@router.post("/newToken", response_model=NewTokenResponse)
async def new_token(
    http_request: Request,
    response: Response,
    settings: AppSettings,
    request: NewTokenRequest | None = None,
    auth_service: AuthService = Depends(get_auth_service),
) -> dict:
    """Exchange a refresh token for a new access token.

    The refresh token is read from the body, falling back to the refresh
    cookie. It is rotated on success and the cookie is updated.
    """
    token = request.refresh_token if request else None
    if not token:
        token = http_request.cookies.get(settings.security.refresh_cookie_name)

    result = await auth_service.refresh(token)
    set_refresh_cookie(response, result.refresh_token, settings)
    return {"access_token": result.access_token}
