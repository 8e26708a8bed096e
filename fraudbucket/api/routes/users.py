"""API routes for user accounts and password recovery."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from fraudbucket.core.dependencies import (
    CurrentUser,
    RequireAdmin,
    get_auth_service,
    get_user_service,
)
from fraudbucket.schemas.auth import (
    MessageResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
)
from fraudbucket.schemas.user import (
    UserCreate,
    UserEnvelope,
    UserListResponse,
    UserUpdate,
)
from fraudbucket.services.auth_service import AuthService
from fraudbucket.services.user_service import UserService

router = APIRouter(prefix="/user", tags=["users"])


@router.post("/request-password-reset", response_model=MessageResponse)
async def request_password_reset(
    request: PasswordResetRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> dict:
    """Email a time-limited password reset link."""
    await auth_service.request_password_reset(request.email)
    return {"message": "Password reset link sent to your email"}


@router.post("/password-reset", response_model=MessageResponse)
async def reset_password(
    request: PasswordResetConfirm,
    auth_service: AuthService = Depends(get_auth_service),
) -> dict:
    """Set a new password using the passcode from a reset link.

    All sessions of the account are signed out.
    """
    await auth_service.reset_password(request.password, request.passcode)
    return {"message": "Password has been reset successfully"}


@router.post("", response_model=UserEnvelope, status_code=201)
async def create_user(
    request: UserCreate,
    current_user: RequireAdmin,
    user_service: UserService = Depends(get_user_service),
) -> dict:
    """Create a new user account."""
    user = await user_service.create_user(
        firstname=request.firstname,
        lastname=request.lastname,
        email=request.email,
        phone=request.phone,
        role=request.role,
        password=request.password,
    )
    return {"message": "New user created successfully", "data": user}


@router.get("", response_model=UserListResponse)
async def list_users(
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    page_size: int = Query(5, ge=1, le=100, alias="pageSize"),
    search_text: str = Query("", alias="searchText", max_length=255),
    user_service: UserService = Depends(get_user_service),
) -> dict:
    """List users, optionally filtered by name, email, role or phone."""
    return await user_service.list_users(page=page, page_size=page_size, search_text=search_text)


@router.get("/{user_id}", response_model=UserEnvelope)
async def get_user(
    user_id: UUID,
    current_user: CurrentUser,
    user_service: UserService = Depends(get_user_service),
) -> dict:
    """Get a user by ID."""
    return {"message": "User details", "data": await user_service.get_user(user_id)}


@router.patch("/{user_id}", response_model=UserEnvelope)
async def update_user(
    user_id: UUID,
    request: UserUpdate,
    current_user: RequireAdmin,
    user_service: UserService = Depends(get_user_service),
) -> dict:
    """Update a user.

    Changing the password signs the user out of every session.
    """
    user = await user_service.update_user(user_id, request.model_dump(exclude_unset=True))
    return {"message": "User details updated successfully", "data": user}


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: UUID,
    current_user: RequireAdmin,
    user_service: UserService = Depends(get_user_service),
) -> dict:
    """Delete a user."""
    await user_service.delete_user(user_id)
    return {"message": "User deleted successfully"}
