"""Access and refresh token issuance and verification.

Tokens are HS256 JWTs signed with python-jose. Access and refresh tokens
use distinct secrets and carry a ``type`` claim, so neither kind can be
presented in place of the other.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from fraudbucket.core.config import TokenConfig
from fraudbucket.core.logging import get_logger
from fraudbucket.core.roles import Role

logger = get_logger(__name__)


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class InvalidTokenError(Exception):
    """Raised when a token is malformed, expired or wrongly signed."""


class TokenClaims(BaseModel):
    """Identity claims carried by both token kinds."""

    id: str
    role: Role
    firstname: str | None = None
    lastname: str | None = None
    email: str | None = None
    phone: str | None = None
    type: TokenKind
    exp: int
    iat: int | None = None
    jti: str | None = None


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str


class TokenService:
    """Issues and verifies signed, time-limited tokens."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        *,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(hours=1),
        refresh_ttl: timedelta = timedelta(days=1),
        issuer: str = "fraudbucket-api",
        clock: Callable[[], datetime] | None = None,
    ):
        if not access_secret or not refresh_secret:
            raise ValueError("Token secrets must not be empty")
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh token secrets must differ")
        self._secrets = {
            TokenKind.ACCESS: access_secret,
            TokenKind.REFRESH: refresh_secret,
        }
        self._ttls = {
            TokenKind.ACCESS: access_ttl,
            TokenKind.REFRESH: refresh_ttl,
        }
        self.algorithm = algorithm
        self.issuer = issuer
        self._clock = clock or (lambda: datetime.now(UTC))

    @classmethod
    def from_config(cls, config: TokenConfig) -> TokenService:
        return cls(
            config.access_secret.get_secret_value(),
            config.refresh_secret.get_secret_value(),
            algorithm=config.algorithm,
            access_ttl=timedelta(seconds=config.access_ttl_seconds),
            refresh_ttl=timedelta(seconds=config.refresh_ttl_seconds),
            issuer=config.issuer,
        )

    def ttl_seconds(self, kind: TokenKind) -> int:
        return int(self._ttls[kind].total_seconds())

    def _issue(self, user: Mapping[str, Any], kind: TokenKind) -> str:
        now = self._clock()
        role = user["role"]
        payload = {
            "id": str(user["id"]),
            "role": role.value if isinstance(role, Role) else str(role),
            "firstname": user.get("firstname"),
            "lastname": user.get("lastname"),
            "email": user.get("email"),
            "phone": user.get("phone"),
            "type": kind.value,
            "iss": self.issuer,
            "iat": int(now.timestamp()),
            "exp": int((now + self._ttls[kind]).timestamp()),
            # Unique per issuance so a rotation never reproduces the previous value
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self._secrets[kind], algorithm=self.algorithm)

    def issue_access_token(self, user: Mapping[str, Any]) -> str:
        return self._issue(user, TokenKind.ACCESS)

    def issue_refresh_token(self, user: Mapping[str, Any]) -> str:
        return self._issue(user, TokenKind.REFRESH)

    def issue_pair(self, user: Mapping[str, Any]) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(user),
            refresh_token=self.issue_refresh_token(user),
        )

    def verify(self, token: str, kind: TokenKind) -> TokenClaims:
        """Verify signature, expiry, issuer and kind; return the claims.

        Raises:
            InvalidTokenError: for any failure; the cause is only logged.
        """
        if not token or not isinstance(token, str):
            raise InvalidTokenError("Empty token")

        try:
            payload = jwt.decode(
                token,
                self._secrets[kind],
                algorithms=[self.algorithm],
                issuer=self.issuer,
            )
        except jwt.ExpiredSignatureError:
            logger.info("token_expired", kind=kind.value)
            raise InvalidTokenError("Token expired") from None
        except JWTError as e:
            logger.info("token_rejected", kind=kind.value, reason=str(e))
            raise InvalidTokenError("Invalid token") from None

        if payload.get("type") != kind.value:
            logger.info("token_wrong_kind", kind=kind.value)
            raise InvalidTokenError("Wrong token type")

        try:
            return TokenClaims.model_validate(payload)
        except ValidationError:
            logger.info("token_claims_invalid", kind=kind.value)
            raise InvalidTokenError("Invalid token claims") from None
