"""Authentication flows: sign-in, token refresh and password reset.

Refresh tokens live in a single slot on the user row. Sign-in fills the
slot, every refresh rotates it with a compare-and-swap, and a password
reset empties it. A token that no longer matches the slot is rejected
even when its signature is still valid.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

from fraudbucket.core.errors import (
    CredentialNotFoundError,
    InvalidCredentialError,
    InvalidOrExpiredLinkError,
    InvalidOrExpiredTokenError,
    MissingFieldError,
    NotFoundError,
)
from fraudbucket.core.logging import get_logger, redact_email
from fraudbucket.core.security import generate_passcode, hash_password_async
from fraudbucket.core.tokens import InvalidTokenError, TokenKind, TokenService
from fraudbucket.persistence.passcode_store import PasscodeStore
from fraudbucket.persistence.user_repository import UserRepository
from fraudbucket.services.mailer import Mailer

logger = get_logger(__name__)

INVALID_REFRESH_TOKEN_MSG = "Invalid or expired refresh token"
INVALID_RESET_LINK_MSG = "Invalid or expired reset link"

# Fields safe to return to clients
PUBLIC_USER_FIELDS = ("id", "firstname", "lastname", "role", "email", "phone")


def public_user(user: dict[str, Any]) -> dict[str, Any]:
    """Project a user row to the fields a client may see."""
    return {field: user.get(field) for field in PUBLIC_USER_FIELDS}


def _require(value: str | None, message: str) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingFieldError(message)
    return value


@dataclass(frozen=True)
class SignInResult:
    access_token: str
    refresh_token: str
    user: dict[str, Any]


@dataclass(frozen=True)
class RefreshResult:
    access_token: str
    refresh_token: str


class AuthService:
    """Orchestrates credential checks, token issuance and password resets."""

    def __init__(
        self,
        users: UserRepository,
        tokens: TokenService,
        passcodes: PasscodeStore,
        mailer: Mailer,
        *,
        reset_url: str,
        passcode_ttl_seconds: int = 900,
    ):
        self.users = users
        self.tokens = tokens
        self.passcodes = passcodes
        self.mailer = mailer
        self.reset_url = reset_url
        self.passcode_ttl_seconds = passcode_ttl_seconds

    async def sign_in(self, email: str | None, password: str | None) -> SignInResult:
        email = _require(email, "Missing email")
        password = _require(password, "Missing password")

        user = await self.users.get_by_email(email)
        if user is None:
            raise CredentialNotFoundError("Email does not exist !")

        if not await self.users.verify_password(user, password):
            logger.info("sign_in_rejected", user_id=user["id"])
            raise InvalidCredentialError("Incorrect password !")

        pair = self.tokens.issue_pair(user)
        await self.users.set_refresh_token(user["id"], pair.refresh_token)

        logger.info("sign_in_succeeded", user_id=user["id"], role=user["role"])
        return SignInResult(
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            user=public_user(user),
        )

    async def refresh(self, refresh_token: str | None) -> RefreshResult:
        """Exchange a refresh token for a new access token and rotate it.

        Every failure raises the same InvalidOrExpiredTokenError.
        """
        refresh_token = _require(refresh_token, "Missing refreshToken")

        try:
            claims = self.tokens.verify(refresh_token, TokenKind.REFRESH)
        except InvalidTokenError:
            raise InvalidOrExpiredTokenError(INVALID_REFRESH_TOKEN_MSG) from None

        user = await self.users.get_by_id(claims.id)
        if user is None or user.get("refresh_token") != refresh_token:
            logger.info("refresh_rejected", user_id=claims.id)
            raise InvalidOrExpiredTokenError(INVALID_REFRESH_TOKEN_MSG)

        pair = self.tokens.issue_pair(user)
        swapped = await self.users.swap_refresh_token(
            user["id"], expected=refresh_token, replacement=pair.refresh_token
        )
        if not swapped:
            # Another refresh rotated the slot between the read and the swap
            logger.info("refresh_lost_race", user_id=user["id"])
            raise InvalidOrExpiredTokenError(INVALID_REFRESH_TOKEN_MSG)

        logger.info("refresh_rotated", user_id=user["id"])
        return RefreshResult(access_token=pair.access_token, refresh_token=pair.refresh_token)

    def build_reset_url(self, passcode: str) -> str:
        separator = "&" if "?" in self.reset_url else "?"
        return f"{self.reset_url}{separator}{urlencode({'passcode': passcode})}"

    async def request_password_reset(self, email: str | None) -> None:
        """Issue a passcode and email the reset link.

        An unknown email raises NotFoundError. Mail delivery failure is
        logged and does not fail the request.
        """
        email = _require(email, "Missing email")

        user = await self.users.get_by_email(email)
        if user is None:
            raise NotFoundError("User with this email does not exist")

        passcode = generate_passcode()
        await self.passcodes.save(passcode, user["email"], self.passcode_ttl_seconds)

        sent = await self.mailer.send_reset_link(user["email"], self.build_reset_url(passcode))
        if not sent:
            logger.warning("reset_email_not_sent", to=redact_email(user["email"]))
        else:
            logger.info("reset_link_issued", user_id=user["id"])

    async def reset_password(self, password: str | None, passcode: str | None) -> None:
        """Set a new password using a passcode from a reset link.

        The passcode is claimed atomically; if the reset fails afterwards
        it is released again, so it is only spent by a successful reset.
        The user's refresh token is cleared with the password change, and
        the transaction is committed before the passcode is considered spent.
        """
        password = _require(password, "Missing password")
        passcode = _require(passcode, "Missing passcode")

        claimed = await self.passcodes.claim(passcode)
        if claimed is None:
            raise InvalidOrExpiredLinkError(INVALID_RESET_LINK_MSG)

        try:
            user = await self.users.get_by_email(claimed.email)
            if user is None:
                raise NotFoundError("User not found")

            password_hash = await hash_password_async(password)
            if not await self.users.update_password(user["id"], password_hash):
                raise NotFoundError("User not found")
            # Committed inside the claim window: a failed commit releases the passcode
            await self.users.commit()
        except BaseException:  # includes cancellation
            await self.passcodes.release(claimed)
            raise

        logger.info("password_reset_completed", user_id=user["id"])
