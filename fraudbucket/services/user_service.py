"""User administration service."""

import logging
from math import ceil
from typing import Any
from uuid import UUID, uuid4

from fraudbucket.core.errors import ConflictError, NotFoundError, ValidationError
from fraudbucket.core.roles import Role
from fraudbucket.core.security import hash_password_async
from fraudbucket.persistence.user_repository import UserRepository
from fraudbucket.services.auth_service import public_user

logger = logging.getLogger(__name__)


class UserService:
    """Service for user account operations."""

    def __init__(self, repo: UserRepository):
        self.repo = repo

    async def list_users(
        self,
        page: int = 1,
        page_size: int = 5,
        search_text: str = "",
    ) -> dict[str, Any]:
        """List users with page-number pagination."""
        if page < 1 or page_size < 1:
            raise ValidationError(
                "page and pageSize must be positive",
                details={"page": page, "pageSize": page_size},
            )
        users, total = await self.repo.list_users(
            search_text=search_text.strip(),
            limit=page_size,
            offset=(page - 1) * page_size,
        )
        return {
            "message": "All users",
            "data": [public_user(u) for u in users],
            "pageCount": ceil(total / page_size),
            "totalRecords": total,
        }

    async def get_user(self, user_id: UUID) -> dict[str, Any]:
        """Get a user by ID."""
        user = await self.repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found.", details={"user_id": str(user_id)})
        return public_user(user)

    async def create_user(
        self,
        firstname: str,
        lastname: str,
        email: str,
        phone: str,
        role: Role,
        password: str,
    ) -> dict[str, Any]:
        """Create a new user with a hashed password."""
        if await self.repo.email_taken(email):
            raise ConflictError("Email already exists")

        user = await self.repo.create(
            user_id=uuid4(),
            firstname=firstname,
            lastname=lastname,
            email=email,
            phone=phone,
            role=role.value,
            password_hash=await hash_password_async(password),
        )
        logger.info("User created", extra={"user_id": user["id"], "role": role.value})
        return public_user(user)

    async def update_user(self, user_id: UUID, fields: dict[str, Any]) -> dict[str, Any]:
        """Apply a partial update.

        A new password is hashed and stored through the same statement
        that revokes the user's refresh token.
        """
        fields = {k: v for k, v in fields.items() if v is not None}
        if not fields:
            raise ValidationError("No fields provided for update")

        existing = await self.repo.get_by_id(user_id)
        if not existing:
            raise NotFoundError("User not found", details={"user_id": str(user_id)})

        email = fields.get("email")
        if email and await self.repo.email_taken(email, exclude_id=user_id):
            raise ConflictError("User with this email exist")

        if isinstance(fields.get("role"), Role):
            fields["role"] = fields["role"].value

        password = fields.pop("password", None)
        if password:
            await self.repo.update_password(user_id, await hash_password_async(password))

        user = await self.repo.update(user_id, fields)
        if not user:
            raise NotFoundError("User not found", details={"user_id": str(user_id)})
        return public_user(user)

    async def delete_user(self, user_id: UUID) -> None:
        """Delete a user."""
        if not await self.repo.delete(user_id):
            raise NotFoundError("User not found", details={"user_id": str(user_id)})
        logger.info("User deleted", extra={"user_id": str(user_id)})
