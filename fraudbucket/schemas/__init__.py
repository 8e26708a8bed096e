"""Schemas package for request/response models."""

from fraudbucket.schemas.auth import (
    MessageResponse,
    NewTokenRequest,
    NewTokenResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    SignInRequest,
    SignInResponse,
)
from fraudbucket.schemas.user import (
    UserCreate,
    UserEnvelope,
    UserListResponse,
    UserResponse,
    UserUpdate,
)

__all__ = [
    "MessageResponse",
    "NewTokenRequest",
    "NewTokenResponse",
    "PasswordResetConfirm",
    "PasswordResetRequest",
    "SignInRequest",
    "SignInResponse",
    "UserCreate",
    "UserEnvelope",
    "UserListResponse",
    "UserResponse",
    "UserUpdate",
]
