"""Request/response schemas for sign-in, token refresh and password reset.

Field names follow the camelCase wire format of the public API.
Required credentials are optional at the schema level so that their
absence is reported as a MissingFieldError with a field-specific message.
"""

from pydantic import BaseModel, ConfigDict, Field

from fraudbucket.schemas.user import UserResponse


class SignInRequest(BaseModel):
    """Schema for signing in with email and password."""

    email: str | None = Field(None, max_length=255)
    password: str | None = Field(None, max_length=1024)


class SignInResponse(BaseModel):
    """Token pair and sanitized user returned after sign-in."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(..., alias="accessToken")
    refresh_token: str = Field(..., alias="refreshToken")
    user: UserResponse


class NewTokenRequest(BaseModel):
    """Schema for exchanging a refresh token."""

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str | None = Field(None, alias="refreshToken")


class NewTokenResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(..., alias="accessToken")


class PasswordResetRequest(BaseModel):
    """Schema for requesting a password reset link."""

    email: str | None = Field(None, max_length=255)


class PasswordResetConfirm(BaseModel):
    """Schema for setting a new password with a reset passcode."""

    password: str | None = Field(None, max_length=1024)
    passcode: str | None = Field(None, max_length=256)


class MessageResponse(BaseModel):
    message: str
