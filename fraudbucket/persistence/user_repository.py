"""User repository using SQLAlchemy 2.0 async with raw SQL.

Table: users

Every write is a single statement. Refresh-token rotation is a
compare-and-swap on the stored value, so two concurrent refreshes with
the same token cannot both succeed.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from fraudbucket.core.security import verify_password_async

logger = logging.getLogger(__name__)

USER_COLUMNS = """
    id, firstname, lastname, email, phone, role,
    password_hash, refresh_token, created_at, updated_at
"""

# Fields that may be changed through a profile update
UPDATABLE_FIELDS = ("firstname", "lastname", "email", "phone", "role")

USERS_DDL = """
CREATE TABLE IF NOT EXISTS users (
    id UUID PRIMARY KEY,
    firstname VARCHAR(100) NOT NULL,
    lastname VARCHAR(100) NOT NULL,
    email VARCHAR(255) NOT NULL UNIQUE,
    phone VARCHAR(32) NOT NULL,
    role VARCHAR(16) NOT NULL CHECK (role IN ('USER', 'ADMIN')),
    password_hash TEXT NOT NULL,
    refresh_token TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""


class UserRepository:
    """Repository for users data access."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: UUID | str) -> dict[str, Any] | None:
        """Get user by ID."""
        result = await self.session.execute(
            text(f"SELECT {USER_COLUMNS} FROM users WHERE id = :user_id"),
            {"user_id": str(user_id)},
        )
        row = result.fetchone()
        if row is None:
            return None
        return self._row_to_dict(row)

    async def get_by_email(self, email: str) -> dict[str, Any] | None:
        """Get user by email."""
        result = await self.session.execute(
            text(f"SELECT {USER_COLUMNS} FROM users WHERE email = :email"),
            {"email": email},
        )
        row = result.fetchone()
        if row is None:
            return None
        return self._row_to_dict(row)

    async def email_taken(self, email: str, exclude_id: UUID | str | None = None) -> bool:
        """Check whether another user already owns the email."""
        params: dict[str, Any] = {"email": email}
        condition = ""
        if exclude_id is not None:
            condition = " AND id <> :exclude_id"
            params["exclude_id"] = str(exclude_id)
        result = await self.session.execute(
            text(f"SELECT 1 FROM users WHERE email = :email{condition} LIMIT 1"),
            params,
        )
        return result.fetchone() is not None

    async def list_users(
        self,
        search_text: str = "",
        limit: int = 5,
        offset: int = 0,
    ) -> tuple[list[dict[str, Any]], int]:
        """List users page by page, optionally filtered by a search term."""
        params: dict[str, Any] = {"limit": limit, "offset": offset}
        where_clause = ""
        if search_text:
            where_clause = """
                WHERE firstname ILIKE :pattern OR lastname ILIKE :pattern
                   OR email ILIKE :pattern OR role ILIKE :pattern
                   OR phone ILIKE :pattern
            """
            params["pattern"] = f"%{search_text}%"

        count_result = await self.session.execute(
            text(f"SELECT COUNT(*) FROM users {where_clause}"),
            params,
        )
        total = count_result.scalar() or 0

        result = await self.session.execute(
            text(f"""
                SELECT {USER_COLUMNS}
                FROM users
                {where_clause}
                ORDER BY created_at DESC, id DESC
                LIMIT :limit OFFSET :offset
            """),
            params,
        )
        return [self._row_to_dict(row) for row in result.fetchall()], total

    async def create(
        self,
        user_id: UUID,
        firstname: str,
        lastname: str,
        email: str,
        phone: str,
        role: str,
        password_hash: str,
    ) -> dict[str, Any] | None:
        """Create a new user."""
        await self.session.execute(
            text("""
                INSERT INTO users (
                    id, firstname, lastname, email, phone, role,
                    password_hash, refresh_token, created_at, updated_at
                ) VALUES (
                    :id, :firstname, :lastname, :email, :phone, :role,
                    :password_hash, NULL, NOW(), NOW()
                )
            """),
            {
                "id": str(user_id),
                "firstname": firstname,
                "lastname": lastname,
                "email": email,
                "phone": phone,
                "role": role,
                "password_hash": password_hash,
            },
        )
        return await self.get_by_id(user_id)

    async def update(self, user_id: UUID | str, fields: dict[str, Any]) -> dict[str, Any] | None:
        """Update profile fields. Unknown keys are ignored."""
        updates = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
        if not updates:
            return await self.get_by_id(user_id)

        assignments = ", ".join(f"{name} = :{name}" for name in updates)
        result = await self.session.execute(
            text(f"""
                UPDATE users
                SET {assignments}, updated_at = NOW()
                WHERE id = :user_id
            """),
            {**updates, "user_id": str(user_id)},
        )
        if result.rowcount == 0:
            return None
        return await self.get_by_id(user_id)

    async def delete(self, user_id: UUID | str) -> bool:
        """Delete a user."""
        result = await self.session.execute(
            text("DELETE FROM users WHERE id = :user_id"),
            {"user_id": str(user_id)},
        )
        return result.rowcount > 0

    async def set_refresh_token(self, user_id: UUID | str, token: str | None) -> bool:
        """Overwrite the single refresh-token slot unconditionally."""
        result = await self.session.execute(
            text("""
                UPDATE users
                SET refresh_token = :token, updated_at = NOW()
                WHERE id = :user_id
            """),
            {"token": token, "user_id": str(user_id)},
        )
        return result.rowcount > 0

    async def swap_refresh_token(
        self, user_id: UUID | str, expected: str, replacement: str
    ) -> bool:
        """Replace the stored refresh token only if it still equals ``expected``."""
        result = await self.session.execute(
            text("""
                UPDATE users
                SET refresh_token = :replacement, updated_at = NOW()
                WHERE id = :user_id AND refresh_token = :expected
            """),
            {"replacement": replacement, "expected": expected, "user_id": str(user_id)},
        )
        if result.rowcount != 1:
            logger.info("Refresh token swap missed for user %s", user_id)
            return False
        return True

    async def update_password(self, user_id: UUID | str, password_hash: str) -> bool:
        """Store a new password hash and revoke the refresh token in one statement."""
        result = await self.session.execute(
            text("""
                UPDATE users
                SET password_hash = :password_hash,
                    refresh_token = NULL,
                    updated_at = NOW()
                WHERE id = :user_id
            """),
            {"password_hash": password_hash, "user_id": str(user_id)},
        )
        if result.rowcount == 0:
            logger.warning("Password update matched no user %s", user_id)
            return False
        return True

    async def commit(self) -> None:
        """Commit the request's transaction now instead of at request teardown."""
        await self.session.commit()

    async def verify_password(self, user: dict[str, Any], password: str) -> bool:
        """Compare a plaintext password with the user's stored hash."""
        return await verify_password_async(password, user.get("password_hash"))

    def _row_to_dict(self, row: Any) -> dict[str, Any]:
        """Convert database row to dictionary."""
        return {
            "id": str(row.id),
            "firstname": row.firstname,
            "lastname": row.lastname,
            "email": row.email,
            "phone": row.phone,
            "role": row.role,
            "password_hash": row.password_hash,
            "refresh_token": row.refresh_token,
            "created_at": row.created_at,
            "updated_at": row.updated_at,
        }
